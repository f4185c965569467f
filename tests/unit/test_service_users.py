"""Tests for UserService, TemplateService and MessageService."""
import pytest

from mpconsole.core.wechat import (
    MessageService,
    MissingFieldError,
    PlatformError,
    Template,
    TemplateService,
    UserInfo,
    UserService,
)


@pytest.fixture()
def users(pipeline):
    return UserService(pipeline)


def _echo_profiles(params, body):
    return {
        "user_info_list": [
            {"subscribe": 1, "openid": entry["openid"], "nickname": entry["openid"].upper(), "tagid_list": [2]}
            for entry in body["user_list"]
        ]
    }


# ─────────────────────────────────────────────────────────────────────────────
# UserService
# ─────────────────────────────────────────────────────────────────────────────
def test_list_openids_paginates(platform, users):
    platform.on(
        "/cgi-bin/user/get",
        {"total": 3, "count": 2, "data": {"openid": ["o1", "o2"]}, "next_openid": "o2"},
        {"total": 3, "count": 1, "data": {"openid": ["o3"]}, "next_openid": "o3"},
        {"total": 3, "count": 0, "next_openid": ""},
    )

    assert users.list_openids() == ["o1", "o2", "o3"]

    calls = platform.calls_to("/cgi-bin/user/get")
    assert "next_openid" not in calls[0].params
    assert calls[1].params["next_openid"] == "o2"
    assert calls[2].params["next_openid"] == "o3"


def test_list_openids_no_subscribers(platform, users):
    platform.on("/cgi-bin/user/get", {"total": 0, "count": 0, "next_openid": ""})
    assert users.list_openids() == []


def test_list_openids_malformed_page(platform, users):
    platform.on("/cgi-bin/user/get", {"total": 1, "count": 1, "data": {"openid": "o1"}})

    with pytest.raises(MissingFieldError):
        users.list_openids()


def test_batch_get_user_info_chunks_by_hundred(platform, users):
    platform.on("/cgi-bin/user/info/batchget", _echo_profiles)
    openids = [f"o{index}" for index in range(250)]

    profiles = users.batch_get_user_info(openids)

    calls = platform.calls_to("/cgi-bin/user/info/batchget")
    assert [len(call.body["user_list"]) for call in calls] == [100, 100, 50]
    assert calls[0].body["user_list"][0] == {"openid": "o0", "lang": "zh_CN"}
    assert [profile.openid for profile in profiles] == openids


def test_batch_get_user_info_empty_input_makes_no_calls(platform, users):
    assert users.batch_get_user_info([]) == []
    assert platform.calls == []


def test_list_all_user_info(platform, users):
    platform.on("/cgi-bin/user/get", {"total": 1, "count": 1, "data": {"openid": ["oA"]}, "next_openid": ""})
    platform.on("/cgi-bin/user/info/batchget", _echo_profiles)

    assert users.list_all_user_info() == [UserInfo("oA", "OA", [2])]


# ─────────────────────────────────────────────────────────────────────────────
# TemplateService
# ─────────────────────────────────────────────────────────────────────────────
def test_list_templates(platform, pipeline):
    platform.on(
        "/cgi-bin/template/get_all_private_template",
        {
            "template_list": [
                {
                    "template_id": "iPk5sOIt5X_flOVKn5GrTFpncEYTojx6ddbt8WYoV5s",
                    "title": "领取奖金提醒",
                    "primary_industry": "IT科技",
                    "deputy_industry": "互联网|电子商务",
                    "content": "{{result.DATA}}\n\n领奖金额:{{withdrawMoney.DATA}}\n",
                    "example": "您已提交领奖申请",
                }
            ]
        },
    )

    (template,) = TemplateService(pipeline).list_templates()

    assert template.template_id == "iPk5sOIt5X_flOVKn5GrTFpncEYTojx6ddbt8WYoV5s"
    assert template.title == "领取奖金提醒"
    assert template.to_dict()["deputy_industry"] == "互联网|电子商务"


def test_list_templates_null_list(platform, pipeline):
    platform.on("/cgi-bin/template/get_all_private_template", {"template_list": None})
    assert TemplateService(pipeline).list_templates() == []


def test_template_to_dict_drops_missing_fields():
    assert Template("t1", "Title").to_dict() == {"template_id": "t1", "title": "Title"}


def test_list_templates_entry_without_id(platform, pipeline):
    platform.on("/cgi-bin/template/get_all_private_template", {"template_list": [{"title": "no id"}]})

    with pytest.raises(MissingFieldError) as exc_info:
        TemplateService(pipeline).list_templates()

    assert exc_info.value.path == "template_list.0.template_id"


# ─────────────────────────────────────────────────────────────────────────────
# MessageService
# ─────────────────────────────────────────────────────────────────────────────
def test_send_template(platform, pipeline):
    platform.on("/cgi-bin/message/template/send", {"errcode": 0, "errmsg": "ok", "msgid": 200228332})
    data = {"first": {"value": "Hello"}}

    assert MessageService(pipeline).send_template("oA", "tmpl-1", "https://example.com", data) is True

    (call,) = platform.calls_to("/cgi-bin/message/template/send")
    assert call.body == {
        "touser": "oA",
        "template_id": "tmpl-1",
        "url": "https://example.com",
        "data": data,
    }


def test_send_template_rejected(platform, pipeline):
    platform.on("/cgi-bin/message/template/send", {"errcode": 43004, "errmsg": "require subscribe"})

    with pytest.raises(PlatformError) as exc_info:
        MessageService(pipeline).send_template("oA", "tmpl-1", "", {})

    assert exc_info.value.code == 43004

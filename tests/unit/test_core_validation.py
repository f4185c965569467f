"""Tests for platform response validation and errcode interpretation."""
import pytest

from mpconsole.core.wechat.exceptions import InvalidJsonError, MissingFieldError, PlatformError
from mpconsole.core.wechat.validation import (
    SuccessPolicy,
    is_semantic_success,
    lookup,
    require_semantic_success,
    validate,
)


# ─────────────────────────────────────────────────────────────────────────────
# validate / lookup
# ─────────────────────────────────────────────────────────────────────────────
def test_validate_returns_nested_value():
    body = '{"total":2,"count":2,"data":{"openid":["o1","o2"]},"next_openid":"o2"}'
    assert validate(body, "data.openid") == ["o1", "o2"]


def test_validate_missing_field():
    with pytest.raises(MissingFieldError) as exc_info:
        validate("{}", "data")
    assert exc_info.value.path == "data"


def test_validate_invalid_json():
    with pytest.raises(InvalidJsonError):
        validate("not json", "data")


def test_validate_empty_body_is_invalid_json():
    with pytest.raises(InvalidJsonError):
        validate("", "tags")


def test_validate_explicit_null_is_present():
    assert validate('{"template_list": null}', "template_list") is None


def test_lookup_indexes_lists():
    document = {"tags": [{"id": 2, "name": "star"}, {"id": 100, "name": "vip"}]}
    assert lookup(document, "tags.1.name") == "vip"


def test_lookup_index_out_of_range():
    with pytest.raises(MissingFieldError):
        lookup({"tags": []}, "tags.0")


def test_lookup_through_scalar():
    with pytest.raises(MissingFieldError) as exc_info:
        lookup({"data": "flat"}, "data.openid")
    assert "data.openid" in str(exc_info.value)


# ─────────────────────────────────────────────────────────────────────────────
# Semantic success
# ─────────────────────────────────────────────────────────────────────────────
def test_errcode_zero_is_success():
    assert is_semantic_success('{"errcode":0,"errmsg":"ok"}') is True


def test_errcode_nonzero_is_failure():
    body = '{"errcode":40001,"errmsg":"invalid credential"}'
    assert is_semantic_success(body) is False
    with pytest.raises(PlatformError) as exc_info:
        require_semantic_success(body)
    assert exc_info.value.code == 40001
    assert exc_info.value.errmsg == "invalid credential"


def test_absent_errcode_default_policy():
    assert is_semantic_success('{"tags":[]}') is True


def test_absent_policy_accepts_missing_errcode():
    assert is_semantic_success('{"tag":{"id":134,"name":"vip"}}', SuccessPolicy.ABSENT) is True


def test_absent_policy_rejects_any_errcode():
    assert is_semantic_success('{"errcode":0}', SuccessPolicy.ABSENT) is False


def test_explicit_zero_policy_requires_errcode():
    assert is_semantic_success("{}", SuccessPolicy.EXPLICIT_ZERO) is False
    with pytest.raises(PlatformError) as exc_info:
        require_semantic_success("{}", SuccessPolicy.EXPLICIT_ZERO)
    assert exc_info.value.code is None


def test_explicit_zero_policy_accepts_string_zero():
    assert is_semantic_success('{"errcode":"0"}', SuccessPolicy.EXPLICIT_ZERO) is True


def test_boolean_errcode_is_not_zero():
    assert is_semantic_success('{"errcode":false}') is False


def test_require_semantic_success_returns_document():
    document = require_semantic_success('{"errcode":0,"msgid":200228332}', SuccessPolicy.EXPLICIT_ZERO)
    assert document["msgid"] == 200228332


def test_semantic_check_invalid_json():
    with pytest.raises(InvalidJsonError):
        is_semantic_success("<html>")

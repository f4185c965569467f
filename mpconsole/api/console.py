"""Operator console API routes.

Each route translates one platform operation into the console envelope
(see ``mpconsole.api.errors.envelope``). Parameters are read from a JSON
body, a form body or the query string, in that order.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Optional

from flask import Blueprint, abort, current_app, request

from mpconsole.api.decorators import require_operator_token
from mpconsole.api.errors import envelope, status_for
from mpconsole.core.container import PlatformContainer
from mpconsole.core.wechat.exceptions import WeChatError

logger = logging.getLogger(__name__)

bp = Blueprint("console", __name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────────────────────────────────────────────
def _container() -> PlatformContainer:
    return current_app.extensions["mpconsole"]


def _param(name: str) -> Optional[Any]:
    """Read a request parameter from the JSON body, the form or the query string."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if isinstance(payload, dict) and name in payload:
            return payload[name]
    if name in request.form:
        return request.form[name]
    return request.args.get(name)


def _required_str(name: str) -> str:
    value = _param(name)
    if value is None or not str(value).strip():
        abort(400, description=f"Parameter '{name}' is required")
    return str(value).strip()


def _required_int(name: str) -> int:
    value = _required_str(name)
    try:
        return int(value)
    except ValueError:
        abort(400, description=f"Parameter '{name}' must be an integer")


def _required_object(name: str) -> dict:
    """Read a JSON object parameter (given as an object or a JSON string)."""
    value = _param(name)
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            abort(400, description=f"Parameter '{name}' must be a JSON object")
    if not isinstance(value, dict):
        abort(400, description=f"Parameter '{name}' must be a JSON object")
    return value


def _run(operation: str, fn, *args):
    """Run a platform operation and wrap its outcome in the envelope."""
    try:
        return envelope(fn(*args))
    except WeChatError as exc:
        logger.warning("%s failed: %s", operation, exc)
        return envelope(error=exc, status=status_for(exc))


# ─────────────────────────────────────────────────────────────────────────────
# Read operations
# ─────────────────────────────────────────────────────────────────────────────
@bp.get("/templates")
@require_operator_token
def list_templates():
    return _run("list_templates", lambda: [t.to_dict() for t in _container().templates.list_templates()])


@bp.get("/tags")
@require_operator_token
def list_tags():
    return _run("list_tags", lambda: [t.to_dict() for t in _container().tags.list_tags()])


@bp.get("/tags/<int:tag_id>/members")
@require_operator_token
def list_tag_members(tag_id: int):
    return _run("list_tag_members", _container().tags.list_member_openids, tag_id)


@bp.get("/users")
@require_operator_token
def list_users():
    return _run("list_users", lambda: [u.to_dict() for u in _container().users.list_all_user_info()])


@bp.get("/mapping")
@require_operator_token
def get_mapping():
    return _run("get_mapping", _container().mapping.load)


# ─────────────────────────────────────────────────────────────────────────────
# Mutations
# ─────────────────────────────────────────────────────────────────────────────
@bp.post("/tags")
@require_operator_token
def create_tag():
    name = _required_str("name")
    logger.info("create_tag requested: name=%s", name)

    def _create():
        tag = _container().tags.create_tag(name)
        return tag.to_dict() if tag else None

    return _run("create_tag", _create)


@bp.post("/tags/delete")
@require_operator_token
def delete_tag():
    tag_id = _required_int("tag_id")
    logger.info("delete_tag requested: tag_id=%s", tag_id)
    return _run("delete_tag", _container().tags.delete_tag, tag_id)


@bp.post("/tags/members/add")
@require_operator_token
def add_tag_member():
    tag_id = _required_int("tag_id")
    openid = _required_str("openid")
    logger.info("add_tag_member requested: tag_id=%s openid=%s", tag_id, openid)
    return _run("add_tag_member", _container().tags.add_members, tag_id, [openid])


@bp.post("/tags/members/remove")
@require_operator_token
def remove_tag_member():
    tag_id = _required_int("tag_id")
    openid = _required_str("openid")
    logger.info("remove_tag_member requested: tag_id=%s openid=%s", tag_id, openid)
    return _run("remove_tag_member", _container().tags.remove_members, tag_id, [openid])


@bp.post("/mapping")
@require_operator_token
def save_mapping():
    mapping = _required_object("mapping")
    try:
        return _run("save_mapping", _container().mapping.save, mapping)
    except ValueError as exc:
        abort(400, description=str(exc))


@bp.post("/messages/template")
@require_operator_token
def send_template_by_tag():
    template_id = _required_str("template_id")
    url = str(_param("url") or "")
    values = _required_object("data")
    logger.info("send_template_by_tag requested: template_id=%s fields=%s", template_id, sorted(values))
    return _run("send_template_by_tag", _container().broadcast.send_template_by_tag, template_id, url, values)

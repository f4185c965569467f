"""Platform resources decoded from WeChat responses."""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import MissingFieldError
from .validation import lookup, parse_json


def _require(entry: Any, key: str, path: str) -> Any:
    if not isinstance(entry, dict) or key not in entry:
        raise MissingFieldError(f"{path}.{key}")
    return entry[key]


@dataclass
class Tag:
    id: int
    name: str
    count: int = 0

    @classmethod
    def from_dict(cls, entry: Dict[str, Any], path: str = "tag") -> "Tag":
        try:
            return cls(
                id=int(_require(entry, "id", path)),
                name=str(entry.get("name", "")),
                count=int(entry.get("count") or 0),
            )
        except (TypeError, ValueError) as exc:
            raise MissingFieldError(path, f"malformed: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Template:
    template_id: str
    title: str = ""
    primary_industry: Optional[str] = None
    deputy_industry: Optional[str] = None
    content: Optional[str] = None
    example: Optional[str] = None

    @classmethod
    def from_dict(cls, entry: Dict[str, Any], path: str = "template") -> "Template":
        template_id = _require(entry, "template_id", path)
        return cls(
            template_id=str(template_id),
            title=str(entry.get("title", "")),
            primary_industry=entry.get("primary_industry"),
            deputy_industry=entry.get("deputy_industry"),
            content=entry.get("content"),
            example=entry.get("example"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class UserInfo:
    openid: str
    nickname: str = ""
    tagid_list: List[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, entry: Dict[str, Any], path: str = "user_info") -> "UserInfo":
        openid = _require(entry, "openid", path)
        try:
            tag_ids = [int(tag_id) for tag_id in (entry.get("tagid_list") or [])]
        except (TypeError, ValueError) as exc:
            raise MissingFieldError(f"{path}.tagid_list", f"malformed: {exc}") from exc
        return cls(openid=str(openid), nickname=str(entry.get("nickname") or ""), tagid_list=tag_ids)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def decode_list(value: Any, path: str, item_decoder) -> list:
    """Decode a JSON array found at ``path``; JSON null decodes as an empty list."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise MissingFieldError(path, "is not a list")
    return [item_decoder(entry, f"{path}.{index}") for index, entry in enumerate(value)]


def decode_string_list(value: Any, path: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MissingFieldError(path, "is not a list of strings")
    return list(value)


def decode_openid_page(body: str) -> Tuple[List[str], str]:
    """Decode one page of an openid listing into (openids, next_openid).

    A page reporting ``count == 0`` without a ``data`` object is empty.
    """
    document = parse_json(body)
    next_openid = ""
    if isinstance(document, dict):
        next_openid = str(document.get("next_openid") or "")
        if document.get("count") == 0 and "data" not in document:
            return [], ""
    openids = decode_string_list(lookup(document, "data.openid"), "data.openid")
    return openids, next_openid


def chunked(items: Iterable[str], size: int) -> List[List[str]]:
    items = list(items)
    return [items[index:index + size] for index in range(0, len(items), size)]

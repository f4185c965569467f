"""JSON-file persistence for the template → tag association.

The mapping decides which subscriber cohort (tag) receives a template when
an operator broadcasts it. It is stored as a flat JSON object:

    {"<template_id>": <tag_id>, ...}
"""
from __future__ import annotations
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from mpconsole.core.wechat.exceptions import MappingNotFoundError, MappingStoreError

logger = logging.getLogger(__name__)

DEFAULT_MAPPING_FILE = "data.json"


def coerce_mapping(raw: Any) -> Dict[str, int]:
    """Validate a decoded mapping.

    Raises:
        ValueError: If it is not an object of non-empty string keys to integers
    """
    if not isinstance(raw, dict):
        raise ValueError("mapping must be a JSON object")
    mapping: Dict[str, int] = {}
    for template_id, tag_id in raw.items():
        if not isinstance(template_id, str) or not template_id.strip():
            raise ValueError("template id must be a non-empty string")
        if isinstance(tag_id, bool) or not isinstance(tag_id, int):
            raise ValueError(f"tag id for template '{template_id}' must be an integer")
        mapping[template_id] = tag_id
    return mapping


class TemplateTagStore:
    """File-backed template → tag mapping with an in-memory cache."""

    def __init__(self, path: str | Path = DEFAULT_MAPPING_FILE):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: Optional[Dict[str, int]] = None

    def load(self) -> Dict[str, int]:
        """Return the mapping, creating an empty file on first use.

        Raises:
            MappingStoreError: If the file cannot be read or is malformed
        """
        with self._lock:
            if self._cache:
                return dict(self._cache)
            if not self.path.exists():
                self._write({})
                logger.info("Created empty mapping file %s", self.path)
                self._cache = {}
                return {}
            try:
                text = self.path.read_text(encoding="utf-8")
                mapping = coerce_mapping(json.loads(text or "{}"))
            except OSError as exc:
                raise MappingStoreError(f"cannot read {self.path}: {exc}") from exc
            except ValueError as exc:
                raise MappingStoreError(f"malformed mapping in {self.path}: {exc}") from exc
            self._cache = mapping
            logger.info("Loaded %d template/tag association(s) from %s", len(mapping), self.path)
            return dict(mapping)

    def save(self, mapping: Dict[str, Any]) -> Dict[str, int]:
        """Validate, persist and cache a new mapping.

        Raises:
            ValueError: If the mapping is malformed
            MappingStoreError: If the file cannot be written
        """
        validated = coerce_mapping(mapping)
        with self._lock:
            self._write(validated)
            self._cache = validated
        logger.info("Saved %d template/tag association(s) to %s", len(validated), self.path)
        return dict(validated)

    def tag_for_template(self, template_id: str) -> int:
        """Return the tag associated with a template.

        Raises:
            MappingNotFoundError: If the template has no association
        """
        mapping = self.load()
        if template_id not in mapping:
            raise MappingNotFoundError(template_id)
        return mapping[template_id]

    def _write(self, mapping: Dict[str, int]) -> None:
        try:
            if self.path.parent != Path(""):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(mapping, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise MappingStoreError(f"cannot write {self.path}: {exc}") from exc

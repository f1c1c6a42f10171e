"""Helpers for the JSON blob fields of the remote schema.

Several logical sub-fields of a record live in one string attribute holding a
serialised JSON object (``profileData``, ``classDetails``, ``sessionTimes``...).
Reads are lenient: anything missing or malformed falls back to an empty value,
and so does a well-formed blob whose members have the wrong shape.
Writes always replace the blob as a whole.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError


logger = logging.getLogger(__name__)


def parse_json_field(value: Any, fallback: Any = None) -> Any:
    if fallback is None:
        fallback = {}
    if value is None or value == '' or value == {} or value == []:
        return fallback
    if isinstance(value, (dict, list)):
        decoded = value
    elif isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            logger.warning('json_field_malformed length=%s', len(value))
            return fallback
    else:
        return fallback
    if not isinstance(decoded, type(fallback)):
        return fallback
    return decoded


def stringify_json_field(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(',', ':'))


def pack_blob(updates: Mapping[str, Any], members: Mapping[str, str]) -> dict[str, Any] | None:
    """Build the replacement blob for a partial update.

    ``members`` maps the python attribute name to the key used inside the blob.
    Returns ``None`` when none of the members were supplied, so the caller leaves
    the stored blob untouched. A supplied member counts even when its value is
    falsy (``''``, ``0``, ``[]``), which is what lets a caller clear a field.
    Members that were not supplied are left out of the blob entirely.
    """
    if not any(name in updates for name in members):
        return None
    return {remote: updates[name] for name, remote in members.items() if name in updates}


def copy_present(updates: Mapping[str, Any], members: Mapping[str, str], target: dict[str, Any]) -> dict[str, Any]:
    for name, remote in members.items():
        if name in updates:
            target[remote] = updates[name]
    return target


def compact(blob: Mapping[str, Any]) -> dict[str, Any]:
    """Drop unset (``None``) members before a blob is written on create."""
    return {key: value for key, value in blob.items() if value is not None}


# Member readers. Blobs are written by more than one client, so a member can
# hold any JSON value; these keep only values of the expected shape.

def text_member(value: Any, fallback: str | None = None) -> str | None:
    return value if isinstance(value, str) else fallback


def string_list_member(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def int_member(value: Any, fallback: int | None = 0) -> int | None:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback


def model_member(value: Any, model: type[BaseModel]) -> BaseModel | None:
    if not isinstance(value, dict):
        return None
    try:
        return model.model_validate(value)
    except ValidationError:
        logger.warning('json_field_member_invalid model=%s', model.__name__)
        return None


def model_list_member(value: Any, model: type[BaseModel]) -> list[BaseModel]:
    if not isinstance(value, list):
        return []
    items = (model_member(item, model) for item in value)
    return [item for item in items if item is not None]

"""Tag keys, values and the ordered ``TagMap`` callers build while recording."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from statscore.core.config import get_settings
from statscore.core.errors import ValidationError

# Anything outside printable ASCII
_INVALID_STRING = re.compile(r"[^\x20-\x7e]")


@dataclass(frozen=True)
class TagKey:
    name: str


@dataclass(frozen=True)
class TagValue:
    value: str


def _is_legal(text: str) -> bool:
    return _INVALID_STRING.search(text) is None


def is_valid_tag_key(tag_key: Optional[TagKey]) -> bool:
    if tag_key is None or not isinstance(tag_key.name, str):
        return False
    name = tag_key.name
    return bool(name) and _is_legal(name) and len(name) <= get_settings().TAG_MAX_LENGTH


def is_valid_tag_value(tag_value: Optional[TagValue]) -> bool:
    if tag_value is None or not isinstance(tag_value.value, str):
        return False
    value = tag_value.value
    return _is_legal(value) and len(value) <= get_settings().TAG_MAX_LENGTH


class TagMap:
    """Ordered mapping of TagKey to TagValue. Setting an existing key moves it last."""

    def __init__(self, tags: Optional[Mapping[Union[TagKey, str], Union[TagValue, str]]] = None):
        self._tags: Dict[TagKey, TagValue] = {}
        for key, value in (tags or {}).items():
            self.set(key, value)

    def set(self, tag_key: Union[TagKey, str], tag_value: Union[TagValue, str]) -> None:
        if isinstance(tag_key, str):
            tag_key = TagKey(tag_key)
        if isinstance(tag_value, str):
            tag_value = TagValue(tag_value)
        if not is_valid_tag_key(tag_key):
            raise ValidationError(f"Invalid TagKey name: {getattr(tag_key, 'name', None)}")
        if not is_valid_tag_value(tag_value):
            raise ValidationError(f"Invalid TagValue: {getattr(tag_value, 'value', None)}")
        self._tags.pop(tag_key, None)
        self._tags[tag_key] = tag_value

    def delete(self, tag_key: Union[TagKey, str]) -> None:
        if isinstance(tag_key, str):
            tag_key = TagKey(tag_key)
        self._tags.pop(tag_key, None)

    def get(self, tag_key: Union[TagKey, str]) -> Optional[TagValue]:
        if isinstance(tag_key, str):
            tag_key = TagKey(tag_key)
        return self._tags.get(tag_key)

    @property
    def tags(self) -> Dict[TagKey, TagValue]:
        return dict(self._tags)

    def items(self) -> Iterator[Tuple[TagKey, TagValue]]:
        return iter(list(self._tags.items()))

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag_key: object) -> bool:
        if isinstance(tag_key, str):
            tag_key = TagKey(tag_key)
        return tag_key in self._tags

    def __repr__(self) -> str:
        inner = ", ".join(f"{k.name}={v.value}" for k, v in self._tags.items())
        return f"TagMap({inner})"

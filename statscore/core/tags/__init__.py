"""Tags: dimensional key/value annotations attached to recorded measurements."""

from statscore.core.tags.tag_map import (
    TagKey,
    TagMap,
    TagValue,
    is_valid_tag_key,
    is_valid_tag_value,
)

__all__ = [
    "TagKey",
    "TagMap",
    "TagValue",
    "is_valid_tag_key",
    "is_valid_tag_value",
]

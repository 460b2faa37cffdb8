"""Identity keys for tag and label value vectors.

Every meter and view deduplicates its time series through
``hash_label_values``. The default sorts the values before joining them, so
two vectors holding the same values under different keys share a key and
merge into one series. That matches the historical behaviour existing
exports depend on; ``ordered_hash_label_values`` keeps positions and can be
installed with ``set_label_hasher`` (or ``STATSCORE_LABEL_HASH_MODE=ordered``).
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Union

from statscore.core.export.types import LabelValue

COMMA_SEPARATOR = ","

HashInput = Sequence[Union[LabelValue, str, None]]
LabelHasher = Callable[[HashInput], str]


def _raw(value: Union[LabelValue, str, None]) -> str:
    value = _value_of(value)
    # Unset values join as the empty string
    return "" if value is None else str(value)


def sorted_hash_label_values(values: HashInput) -> str:
    return COMMA_SEPARATOR.join(sorted(_raw(v) for v in values))


def ordered_hash_label_values(values: HashInput) -> str:
    # Positional identity needs an unambiguous encoding of unset entries
    return COMMA_SEPARATOR.join(
        "\x00" if _value_of(v) is None else _raw(v).replace("\\", "\\\\").replace(",", "\\,")
        for v in values
    )


def _value_of(value: Union[LabelValue, str, None]) -> Optional[str]:
    # LabelValue and TagValue both carry the raw string in .value
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "value", value)


_hasher: Optional[LabelHasher] = None


def set_label_hasher(hasher: Optional[LabelHasher]) -> None:
    """Install the identity function. ``None`` restores the configured default."""
    global _hasher
    _hasher = hasher


def get_label_hasher() -> LabelHasher:
    if _hasher is not None:
        return _hasher
    from statscore.core.config import get_settings

    if get_settings().LABEL_HASH_MODE == "ordered":
        return ordered_hash_label_values
    return sorted_hash_label_values


def hash_label_values(values: HashInput) -> str:
    """Deterministic string key for a vector of label or tag values."""
    return get_label_hasher()(values)

"""Small helpers shared by the resource builders."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_REPLACEMENT_CHAR = "\ufffd"


def merge_labels(
    labels: dict[str, str] | None, extra: Mapping[str, str] | None
) -> dict[str, str]:
    """Merge ``extra`` into ``labels`` in place and return it.

    A missing ``labels`` mapping starts out empty; keys in ``extra`` win.
    """
    if labels is None:
        labels = {}
    if extra:
        labels.update(extra)
    return labels


def _port_as_character(port: int) -> str:
    # The port is turned into the character with that code point, not its
    # decimal digits; invalid code points become the replacement character.
    if 0 <= port <= 0x10FFFF and not 0xD800 <= port <= 0xDFFF:
        return chr(port)
    return _REPLACEMENT_CHAR


def monitoring_annotations(port: int) -> dict[str, str]:
    """Return the prometheus scrape annotations for ``port``."""
    return {
        "prometheus.io/scrape": "true",
        "prometheus.io/port": _port_as_character(port),
    }


def convert_string_to_int32(s: str) -> int:
    """Parse a base-10 signed 32-bit integer, returning -1 when it is invalid."""
    if not _DECIMAL.fullmatch(s):
        return -1
    value = int(s)
    if not _INT32_MIN <= value <= _INT32_MAX:
        return -1
    return value


def is_ssl_enabled_for_internal_communication(listeners: Iterable[Any]) -> bool:
    """Tell whether any internal listener is of type ssl (case-insensitive)."""
    return any(listener.type.lower() == "ssl" for listener in listeners)


def string_slice_remove(items: Iterable[str], s: str) -> list[str]:
    """Return ``items`` without any occurrence of ``s``."""
    return [item for item in items if item != s]
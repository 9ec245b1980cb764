"""Turning caller data into edit directives.

A data mapping associates each selector with a raw value. Raw values are
forgiving: a string or number means "replace the content", a mapping spells
out the individual edits, a falsy value erases the element, and a list gives
one value per matched element (the last entry is reused once the list runs
out).

Recognized mapping keys:

- ``replace`` (str): discard the element content and use this instead.
- ``prepend`` (str): insert before the content.
- ``append`` (str): insert after the content.
- ``clone`` (int): emit the element this many extra times.
- ``attr:<name>`` (str): set an attribute; empty or non-string removes it.

Anything else is ignored. Normalization never fails: values of the wrong
type collapse to ``""`` or ``0``.
"""

from __future__ import annotations

import math
import numbers
import re
from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Iterator

    Directive = Mapping[str, Any]


class _Remove:
    __slots__ = ()

    def __repr__(self) -> str:
        return "REMOVE"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "REMOVE"


# Marker value of an ``attr:<name>`` entry whose attribute must be removed.
REMOVE: Final = _Remove()

STRING_KEYS = frozenset({"replace", "prepend", "append"})
CLONE_KEY = "clone"
ATTR_PREFIX = "attr:"

_ATTR_KEY_PATTERN = re.compile(r"attr:([a-z][a-z0-9_.:-]*)\Z")


def is_attr_key(key: object) -> bool:
    return isinstance(key, str) and _ATTR_KEY_PATTERN.match(key) is not None


def _is_number(value: object) -> bool:
    return isinstance(value, (numbers.Real, Decimal)) and not isinstance(value, bool)


def _stringify(value: object) -> str:
    if isinstance(value, str):
        return value
    if value is None or value is False:
        return ""
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return ""
    try:
        return str(value)
    except ValueError:
        # Integers too long to print.
        return ""


def _positive_integer(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        value = value.strip()
    elif not _is_number(value):
        return 0
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    # Round half up.
    return max(0, int(math.floor(number + 0.5)))


def normalize(raw: object) -> Directive | None:
    """Return the canonical directive for one raw value, or None to erase.

    >>> dict(normalize("hello"))
    {'replace': 'hello'}
    >>> dict(normalize({"clone": 1.6, "bogus": True}))
    {'clone': 2, 'attr:id': REMOVE}
    >>> normalize(None) is None
    True
    """
    if _is_number(raw):
        return MappingProxyType({"replace": _stringify(raw)})

    if not raw:
        return None

    if isinstance(raw, str):
        return MappingProxyType({"replace": raw})

    directive: dict[str, Any] = {}
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            if key in STRING_KEYS or is_attr_key(key):
                directive[key] = _stringify(value)
            elif key == CLONE_KEY:
                directive[key] = _positive_integer(value)

    if CLONE_KEY in directive:
        # Clones must not duplicate the element id.
        directive[ATTR_PREFIX + "id"] = REMOVE

    return MappingProxyType(directive)


def attribute_edits(directive: Directive) -> Iterator[tuple[str, str | None]]:
    """Yield ``(name, value)`` pairs; a None value means remove the attribute."""
    for key, value in directive.items():
        if not is_attr_key(key):
            continue
        name = key[len(ATTR_PREFIX) :]
        if value is REMOVE or not value or not isinstance(value, str):
            yield name, None
        else:
            yield name, value


class DirectiveAccessor:
    """Hands out one directive per matched element.

    The n-th call returns the directive for the n-th raw value; once the
    values run out the last one is repeated forever. The cursor only moves
    forward: build a new accessor to start over.
    """

    __slots__ = ("cursor", "values")

    def __init__(self, raw: object) -> None:
        if isinstance(raw, (list, tuple)):
            values = list(raw)
        else:
            values = [raw]
        if not values:
            values = [None]
        self.values = values
        self.cursor = 0

    def next(self) -> Directive | None:
        value = self.values[min(self.cursor, len(self.values) - 1)]
        self.cursor += 1
        return normalize(value)

    __call__ = next

    def __iter__(self) -> Iterator[Directive | None]:
        while True:
            yield self.next()

    def __repr__(self) -> str:
        return f"DirectiveAccessor(cursor={self.cursor}, values={len(self.values)})"

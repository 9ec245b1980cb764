"""CSS selector compiler for the streaming rewriter.

Selectors are matched while the document streams past, so only information
available at a start tag can be used: the element itself and its open
ancestors. Sibling combinators and structural pseudo-classes would need
lookahead and are rejected.

Supported syntax: type selectors, ``*``, ``#id``, ``.class``, attribute
selectors (``[a]``, ``[a=v]``, ``[a~=v]``, ``[a|=v]``, ``[a^=v]``, ``[a$=v]``,
``[a*=v]``, with an optional ``i`` flag), descendant and child combinators and
comma-separated selector lists.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from typing import Protocol

    class Matchable(Protocol):
        name: str
        attrs: Mapping[str, str]


class SelectorError(ValueError):
    """Raised when a selector cannot be parsed or is not supported."""

    def __init__(self, message: str, selector: str = "", position: int | None = None) -> None:
        self.selector = selector
        self.position = position
        if position is not None:
            message = f"{message} at position {position} in {selector!r}"
        elif selector:
            message = f"{message} in {selector!r}"
        super().__init__(message)


_IDENT_PATTERN = re.compile(r"-?(?:[_a-zA-Z\u00a0-\U0010ffff]|\\.)(?:[-_a-zA-Z0-9\u00a0-\U0010ffff]|\\.)*")
_WHITESPACE_PATTERN = re.compile(r"[ \t\n\r\f]*")
_ATTR_OPERATOR_PATTERN = re.compile(r"[~|^$*]?=")
_ESCAPE_PATTERN = re.compile(r"\\(.)")

DESCENDANT = " "
CHILD = ">"

_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text
    return _ESCAPE_PATTERN.sub(r"\1", text)


@dataclass(frozen=True, slots=True)
class AttributeCondition:
    name: str
    operator: str | None = None
    value: str = ""
    ignore_case: bool = False

    def matches(self, attrs: Mapping[str, str]) -> bool:
        actual = attrs.get(self.name)
        if actual is None:
            return False
        operator = self.operator
        if operator is None:
            return True

        expected = self.value
        if self.ignore_case:
            actual = actual.lower()
            expected = expected.lower()

        if operator == "=":
            return actual == expected
        if operator == "~=":
            return bool(expected) and expected in actual.split()
        if operator == "|=":
            return actual == expected or actual.startswith(expected + "-")
        if not expected:
            return False
        if operator == "^=":
            return actual.startswith(expected)
        if operator == "$=":
            return actual.endswith(expected)
        return expected in actual


@dataclass(frozen=True, slots=True)
class CompoundSelector:
    tag: str | None
    ids: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    attributes: tuple[AttributeCondition, ...] = ()

    def matches(self, element: Matchable) -> bool:
        if self.tag is not None and element.name != self.tag:
            return False
        attrs = element.attrs
        for element_id in self.ids:
            if attrs.get("id") != element_id:
                return False
        if self.classes:
            present = attrs.get("class", "").split()
            for name in self.classes:
                if name not in present:
                    return False
        for condition in self.attributes:
            if not condition.matches(attrs):
                return False
        return True


@dataclass(frozen=True, slots=True)
class ComplexSelector:
    # Rightmost compound first; each entry carries the combinator that links
    # it to the compound on its left (None for the leftmost one).
    parts: tuple[tuple[CompoundSelector, str | None], ...]

    def matches(self, stack: Sequence[Matchable]) -> bool:
        if not stack:
            return False
        return self._match_from(0, stack, len(stack) - 1)

    def _match_from(self, part_index: int, stack: Sequence[Matchable], element_index: int) -> bool:
        compound, combinator = self.parts[part_index]
        if not compound.matches(stack[element_index]):
            return False
        if combinator is None:
            return True
        if combinator == CHILD:
            return element_index > 0 and self._match_from(part_index + 1, stack, element_index - 1)
        for ancestor_index in range(element_index - 1, -1, -1):
            if self._match_from(part_index + 1, stack, ancestor_index):
                return True
        return False


@dataclass(frozen=True, slots=True)
class Selector:
    text: str
    alternatives: tuple[ComplexSelector, ...]

    def matches(self, stack: Sequence[Matchable]) -> bool:
        """True if the last element of ``stack`` matches, given its ancestors."""
        return any(alternative.matches(stack) for alternative in self.alternatives)

    def __str__(self) -> str:
        return self.text


class _SelectorParser:
    __slots__ = ("pos", "text")

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str) -> SelectorError:
        return SelectorError(message, self.text, self.pos)

    def skip_whitespace(self) -> bool:
        match = _WHITESPACE_PATTERN.match(self.text, self.pos)
        end = match.end() if match else self.pos
        skipped = end > self.pos
        self.pos = end
        return skipped

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def parse_ident(self) -> str:
        match = _IDENT_PATTERN.match(self.text, self.pos)
        if match is None:
            raise self.error("Expected identifier")
        self.pos = match.end()
        return _unescape(match.group(0))

    def parse(self) -> Selector:
        alternatives = []
        self.skip_whitespace()
        while True:
            alternatives.append(self.parse_complex())
            if self.peek() != ",":
                break
            self.pos += 1
            self.skip_whitespace()
        if self.pos < len(self.text):
            raise self.error(f"Unexpected character {self.peek()!r}")
        return Selector(self.text, tuple(alternatives))

    def parse_complex(self) -> ComplexSelector:
        compounds: list[CompoundSelector] = [self.parse_compound()]
        combinators: list[str] = []
        while True:
            had_space = self.skip_whitespace()
            c = self.peek()
            if c == "" or c == ",":
                break
            if c == ">":
                self.pos += 1
                self.skip_whitespace()
                combinators.append(CHILD)
            elif c in "+~":
                raise self.error(f"Unsupported combinator {c!r}")
            elif had_space:
                combinators.append(DESCENDANT)
            else:
                raise self.error(f"Unexpected character {c!r}")
            compounds.append(self.parse_compound())

        parts = []
        for index in range(len(compounds) - 1, -1, -1):
            parts.append((compounds[index], combinators[index - 1] if index > 0 else None))
        return ComplexSelector(tuple(parts))

    def parse_compound(self) -> CompoundSelector:
        tag: str | None = None
        ids: list[str] = []
        classes: list[str] = []
        attributes: list[AttributeCondition] = []
        start = self.pos

        c = self.peek()
        if c == "*":
            self.pos += 1
        elif c and _IDENT_PATTERN.match(self.text, self.pos):
            tag = self.parse_ident().translate(_ASCII_LOWER_TABLE)

        while True:
            c = self.peek()
            if c == "#":
                self.pos += 1
                ids.append(self.parse_ident())
            elif c == ".":
                self.pos += 1
                classes.append(self.parse_ident())
            elif c == "[":
                attributes.append(self.parse_attribute())
            elif c == ":":
                raise self.error("Pseudo-classes are not supported")
            else:
                break

        if self.pos == start:
            raise self.error("Expected selector")
        return CompoundSelector(tag, tuple(ids), tuple(classes), tuple(attributes))

    def parse_attribute(self) -> AttributeCondition:
        self.pos += 1
        self.skip_whitespace()
        name = self.parse_ident().translate(_ASCII_LOWER_TABLE)
        self.skip_whitespace()

        if self.peek() == "]":
            self.pos += 1
            return AttributeCondition(name)

        match = _ATTR_OPERATOR_PATTERN.match(self.text, self.pos)
        if match is None:
            raise self.error("Expected attribute operator")
        operator = match.group(0)
        self.pos = match.end()
        self.skip_whitespace()

        quote = self.peek()
        if quote in ("'", '"'):
            close = self.text.find(quote, self.pos + 1)
            if close == -1:
                raise self.error("Unterminated string")
            value = _unescape(self.text[self.pos + 1 : close])
            self.pos = close + 1
        else:
            value = self.parse_ident()
        self.skip_whitespace()

        ignore_case = False
        if self.peek() in ("i", "I", "s", "S"):
            ignore_case = self.peek() in ("i", "I")
            self.pos += 1
            self.skip_whitespace()

        if self.peek() != "]":
            raise self.error("Expected ']'")
        self.pos += 1
        return AttributeCondition(name, operator, value, ignore_case)


def parse_selector(text: str) -> Selector:
    """Compile a selector list such as ``"ul > li.item, #main a[href]"``."""
    if not isinstance(text, str):
        raise SelectorError(f"Selector must be a string, not {type(text).__name__}")
    if not text.strip():
        raise SelectorError("Empty selector")
    return _SelectorParser(text).parse()

"""Streaming selector engine.

The rewriter tokenizes the document incrementally and keeps only the stack
of currently open elements. Whenever a start tag matches one of the
registered selectors, the handler is called with an :class:`Element`; the
handler may edit the element's attributes, erase it, or pipe its content
(inner scope) or its whole markup (outer scope) through a content stage.

Output produced inside a piped element is routed through its stages; stages
of nested elements feed the stages of their ancestors, so an inner match is
always rewritten before the outer pipeline sees it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import IMPLIED_END_TAG_SETS, VOID_ELEMENT_SET
from .stages import Pipeline, Replace
from .tokenizer import Tokenizer
from .tokens import Attribute, Tag

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .selector import Selector
    from .stages import ContentStage
    from .tokenizer import TokenizerOpts

    ElementHandler = Callable[["Element"], None]

logger = logging.getLogger(__name__)

_SEPARATOR_CHARS = "\t\n\f\r /"


def _escape_attr_value(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;")


class OpenElement:
    """An element whose end has not been seen yet."""

    __slots__ = ("attrs", "inner_frames", "name", "outer_frames", "tag")

    def __init__(self, tag: Tag) -> None:
        self.tag = tag
        self.name = tag.name
        attrs: dict[str, str] = {}
        for attr in tag.attrs:
            attrs.setdefault(attr.name, attr.value)
        self.attrs = attrs
        self.inner_frames = 0
        self.outer_frames = 0

    def __repr__(self) -> str:
        return f"<OpenElement {self.name}>"


class Element:
    """Handler-facing view of a matched start tag.

    Attribute edits are applied to the start tag before it is written out.
    """

    __slots__ = ("_attrs", "_dirty", "_inner", "_outer", "_void", "erased", "tag")

    def __init__(self, tag: Tag, void: bool) -> None:
        self.tag = tag
        self._attrs: list[Attribute] = list(tag.attrs)
        self._dirty = False
        self._void = void
        self._inner: list[ContentStage] = []
        self._outer: list[ContentStage] = []
        self.erased = False

    def __repr__(self) -> str:
        return f"<Element {self.name} line={self.tag.line}>"

    @property
    def name(self) -> str:
        return self.tag.name

    @property
    def is_void(self) -> bool:
        """True when the element has no content (void or self-closing tag)."""
        return self._void

    # Attributes

    def get_attribute(self, name: str) -> str | None:
        name = name.lower()
        for attr in self._attrs:
            if attr.name == name:
                return attr.value
        return None

    def has_attribute(self, name: str) -> bool:
        return self.get_attribute(name) is not None

    @property
    def attributes(self) -> dict[str, str]:
        attrs: dict[str, str] = {}
        for attr in self._attrs:
            attrs.setdefault(attr.name, attr.value)
        return attrs

    def set_attribute(self, name: str, value: str) -> None:
        name = name.lower()
        value = str(value)
        raw = f'{name}="{_escape_attr_value(value)}"'
        updated: list[Attribute] = []
        found = False
        for attr in self._attrs:
            if attr.name != name:
                updated.append(attr)
                continue
            if found:
                continue
            found = True
            separator = attr.raw[: len(attr.raw) - len(attr.raw.lstrip(_SEPARATOR_CHARS))]
            updated.append(Attribute(name, value, (separator or " ") + raw))
        if not found:
            updated.append(Attribute(name, value, " " + raw))
        self._attrs = updated
        self._dirty = True

    def remove_attribute(self, name: str) -> None:
        name = name.lower()
        kept = [attr for attr in self._attrs if attr.name != name]
        if len(kept) != len(self._attrs):
            self._attrs = kept
            self._dirty = True

    def start_tag(self) -> str:
        """Source text of the start tag with attribute edits applied."""
        tag = self.tag
        if not self._dirty:
            return tag.raw
        return tag.head + "".join(attr.raw for attr in self._attrs) + tag.tail

    # Content

    def pipe(self, stage: ContentStage, *, outer: bool = False) -> None:
        """Route the element content (or, with ``outer``, its whole markup)."""
        if outer:
            self._outer.append(stage)
        else:
            self._inner.append(stage)

    def erase(self) -> None:
        """Drop the element entirely, tags included."""
        if self.erased:
            return
        self.erased = True
        self._outer.insert(0, Pipeline([Replace("")]))


class Rewriter:
    __slots__ = ("frames", "handlers", "out", "stack", "tokenizer")

    def __init__(
        self,
        handlers: Sequence[tuple[Selector, ElementHandler]],
        tokenizer_opts: TokenizerOpts | None = None,
    ) -> None:
        self.handlers = list(handlers)
        self.tokenizer = Tokenizer(tokenizer_opts)
        self.stack: list[OpenElement] = []
        self.frames: list[ContentStage] = []
        self.out: list[str] = []

    def feed(self, chunk: str) -> list[str]:
        """Process a chunk of the document and return the output produced."""
        for token in self.tokenizer.feed(chunk):
            self._process(token)
        return self._drain()

    def close(self) -> list[str]:
        """Finish the document, closing any element still open."""
        for token in self.tokenizer.close():
            self._process(token)
        while self.stack:
            logger.debug("Closing <%s> at end of document", self.stack[-1].name)
            self._pop_element(None)
        return self._drain()

    # ---------------------
    # Token handling
    # ---------------------

    def _process(self, token) -> None:
        if not isinstance(token, Tag):
            self._write(token.data)
        elif token.kind == Tag.START:
            self._start_tag(token)
        else:
            self._end_tag(token)

    def _start_tag(self, tag: Tag) -> None:
        self._imply_end_tags(tag.name)

        entry = OpenElement(tag)
        void = tag.self_closing or tag.name in VOID_ELEMENT_SET
        self.stack.append(entry)

        handlers = [handler for selector, handler in self.handlers if selector.matches(self.stack)]
        if not handlers:
            self._write(tag.raw)
            if void:
                self.stack.pop()
            return

        element = Element(tag, void)
        for handler in handlers:
            handler(element)

        for stage in element._outer:
            self.frames.append(stage)
        entry.outer_frames = len(element._outer)
        self._write(element.start_tag())

        if void:
            self.stack.pop()
            self._close_frames(entry.outer_frames)
            return

        for stage in element._inner:
            self.frames.append(stage)
        entry.inner_frames = len(element._inner)

    def _end_tag(self, tag: Tag) -> None:
        stack = self.stack
        for index in range(len(stack) - 1, -1, -1):
            if stack[index].name == tag.name:
                break
        else:
            logger.debug("Unmatched end tag </%s> on line %s", tag.name, tag.line)
            self._write(tag.raw)
            return

        while len(stack) - 1 > index:
            logger.debug("End tag </%s> implicitly closes <%s>", tag.name, stack[-1].name)
            self._pop_element(None)
        self._pop_element(tag.raw)

    def _imply_end_tags(self, name: str) -> None:
        stack = self.stack
        while stack:
            closers = IMPLIED_END_TAG_SETS.get(stack[-1].name)
            if closers is None or name not in closers:
                return
            self._pop_element(None)

    def _pop_element(self, end_tag: str | None) -> None:
        entry = self.stack.pop()
        self._close_frames(entry.inner_frames)
        if end_tag:
            self._write(end_tag)
        self._close_frames(entry.outer_frames)

    # ---------------------
    # Output routing
    # ---------------------

    def _write(self, text: str) -> None:
        if text:
            self._route([text], len(self.frames))

    def _route(self, chunks: list[str], depth: int) -> None:
        frames = self.frames
        for index in range(depth - 1, -1, -1):
            if not chunks:
                return
            stage = frames[index]
            produced: list[str] = []
            for chunk in chunks:
                produced.extend(stage.feed(chunk))
            chunks = produced
        self.out.extend(chunks)

    def _close_frames(self, count: int) -> None:
        for _ in range(count):
            stage = self.frames.pop()
            self._route(stage.flush(), len(self.frames))

    def _drain(self) -> list[str]:
        out = self.out
        self.out = []
        return out

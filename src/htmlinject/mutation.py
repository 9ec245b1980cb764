"""Applying a data mapping to a stream of HTML chunks."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .directives import CLONE_KEY, DirectiveAccessor, attribute_edits
from .rewriter import Rewriter
from .selector import parse_selector
from .stages import build_pipeline

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from .directives import Directive
    from .rewriter import Element
    from .selector import Selector
    from .tokenizer import TokenizerOpts

logger = logging.getLogger(__name__)


def apply_directive(element: Element, directive: Directive | None) -> None:
    """Apply one normalized directive to a matched element."""
    if not directive:
        element.erase()
        return

    pipeline = build_pipeline(directive)
    if len(pipeline):
        # Cloning duplicates the whole element, tags included.
        element.pipe(pipeline, outer=CLONE_KEY in directive)

    for name, value in attribute_edits(directive):
        if value is None:
            element.remove_attribute(name)
        else:
            element.set_attribute(name, value)


def _make_handler(selector: Selector, accessor: DirectiveAccessor) -> Callable[[Element], None]:
    def handler(element: Element) -> None:
        directive = accessor.next()
        if not directive:
            logger.debug("Erasing <%s> on line %s matched by %r", element.name, element.tag.line, selector.text)
        apply_directive(element, directive)

    return handler


class MutationStream:
    """A reusable transform from document chunks to mutated document chunks.

    Selectors are compiled once, when the stream is built; an invalid selector
    raises :class:`~htmlinject.selector.SelectorError` right away. Each time
    the stream is applied to a document it gets fresh directive accessors, so
    applications never share cycling state.

    Chunks may be ``str`` or ``bytes``; bytes are decoded incrementally with
    ``encoding``. The result is a generator of ``str`` chunks, so the document
    is only read as fast as the output is consumed.
    """

    __slots__ = ("encoding", "selectors", "tokenizer_opts")

    def __init__(
        self,
        data: Mapping[str, object] | None,
        *,
        encoding: str = "utf-8",
        tokenizer_opts: TokenizerOpts | None = None,
    ) -> None:
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise TypeError(f"Template data must be a mapping, not {type(data).__name__}")
        self.selectors = [(parse_selector(selector), raw) for selector, raw in data.items()]
        self.encoding = encoding
        self.tokenizer_opts = tokenizer_opts

    def __call__(self, chunks: Iterable[str | bytes]) -> Iterator[str]:
        return self._run(chunks)

    def _run(self, chunks: Iterable[str | bytes]) -> Iterator[str]:
        # One accessor per selector, bound before the document starts.
        handlers = [(selector, _make_handler(selector, DirectiveAccessor(raw))) for selector, raw in self.selectors]
        rewriter = Rewriter(handlers, self.tokenizer_opts)
        decoder = None

        for chunk in chunks:
            if isinstance(chunk, (bytes, bytearray)):
                if decoder is None:
                    decoder = codecs.getincrementaldecoder(self.encoding)()
                chunk = decoder.decode(chunk)
            out = rewriter.feed(chunk)
            if out:
                yield "".join(out)

        out = []
        if decoder is not None:
            out.extend(rewriter.feed(decoder.decode(b"", final=True)))
        out.extend(rewriter.close())
        if out:
            yield "".join(out)


def inject(data: Mapping[str, object] | None, **options) -> MutationStream:
    """Build the transform that applies ``data`` to an HTML document.

    >>> stream = inject({"p": "bye"})
    >>> "".join(stream(['<p id="a">hi</p>']))
    '<p id="a">bye</p>'
    """
    return MutationStream(data, **options)

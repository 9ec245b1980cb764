"""Template entry point: input resolution and output adaptations."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

from .mutation import MutationStream
from .tokenizer import TokenizerOpts

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    TemplateData = Mapping[str, object] | None
    Callback = Callable[[BaseException | None, str | None], object]

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class TemplateOpts:
    __slots__ = ("chunk_size", "discard_bom", "encoding")

    def __init__(self, encoding="utf-8", chunk_size=DEFAULT_CHUNK_SIZE, discard_bom=False):
        self.encoding = encoding
        self.chunk_size = int(chunk_size)
        self.discard_bom = bool(discard_bom)
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")


def concat(chunks: Iterable[str | bytes], encoding: str = "utf-8") -> str:
    """Join a stream of output chunks into one string."""
    parts: list[str] = []
    for chunk in chunks:
        if isinstance(chunk, (bytes, bytearray)):
            chunk = bytes(chunk).decode(encoding)
        parts.append(chunk)
    return "".join(parts)


def _resolve_path(source: object) -> str | None:
    """Return the file path ``source`` names, or None for literal markup."""
    if isinstance(source, os.PathLike):
        return os.fspath(source)
    if isinstance(source, str) and "<" not in source and os.path.isfile(source):
        return source
    return None


class Template:
    """An HTML document that can be rendered with different data.

    ``source`` is either a path to an HTML file or the markup itself. Files
    are re-read lazily on every render, in ``chunk_size`` pieces.

    Usage::

        template = Template("page.html")
        html = template.render({"title": "Hello", "li": ["one", "two"]})
    """

    __slots__ = ("opts", "path", "source")

    def __init__(self, source: str | bytes | os.PathLike[str], *, opts: TemplateOpts | None = None) -> None:
        if not isinstance(source, (str, bytes, bytearray, os.PathLike)):
            raise TypeError(f"Template source must be a path or markup, not {type(source).__name__}")
        self.opts = opts or TemplateOpts()
        self.source = source
        self.path = _resolve_path(source)

    def __repr__(self) -> str:
        if self.path is not None:
            return f"Template(path={self.path!r})"
        return f"Template(<{len(self.source)} characters of markup>)"

    @property
    def is_file(self) -> bool:
        return self.path is not None

    def read(self) -> Iterator[str | bytes]:
        """Yield the raw document chunks."""
        if self.path is None:
            yield self.source
            return
        logger.debug("Reading template %s", self.path)
        with open(self.path, "rb") as handle:
            while True:
                chunk = handle.read(self.opts.chunk_size)
                if not chunk:
                    return
                yield chunk

    def inject(self, data: TemplateData) -> MutationStream:
        """The transform applying ``data``; usable on any chunk iterable."""
        return MutationStream(
            data,
            encoding=self.opts.encoding,
            tokenizer_opts=TokenizerOpts(discard_bom=self.opts.discard_bom),
        )

    def stream(self, data: TemplateData) -> Iterator[str]:
        """Render lazily, yielding output chunks as the document is read."""
        return self.inject(data)(self.read())

    __call__ = stream

    def render(self, data: TemplateData) -> str:
        return concat(self.stream(data), self.opts.encoding)

    def callback(self, data: TemplateData, callback: Callback) -> None:
        """Render and report through ``callback(error, html)``."""
        try:
            html = self.render(data)
        except Exception as exc:  # noqa: BLE001
            callback(exc, None)
            return
        callback(None, html)

    async def render_async(self, data: TemplateData) -> str:
        """Render in a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(self.render, data)

"""Content stages applied to the markup of one matched element.

Every stage sees the element content as a sequence of chunks: ``feed`` is
called once per chunk and returns what to pass downstream, ``flush`` is
called once at the end of the element and returns any trailing output.

Stages are assembled by :func:`build_pipeline` in a fixed order: Clone,
Prepend, Replace, Append. Replace therefore discards cloned copies and
prepended text, while appended text always survives.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .directives import CLONE_KEY

if TYPE_CHECKING:
    from typing import Protocol

    from .directives import Directive

    class ContentStage(Protocol):
        def feed(self, chunk: str) -> list[str]: ...

        def flush(self) -> list[str]: ...


class Clone:
    """Pass content through, then repeat all of it ``count`` more times."""

    __slots__ = ("count", "store")

    def __init__(self, count: int) -> None:
        self.count = max(0, int(count))
        self.store: list[str] = []

    def feed(self, chunk: str) -> list[str]:
        self.store.append(chunk)
        return [chunk]

    def flush(self) -> list[str]:
        return self.store * self.count


class Prepend:
    __slots__ = ("seen", "text")

    def __init__(self, text: str) -> None:
        self.text = text
        self.seen = False

    def feed(self, chunk: str) -> list[str]:
        if self.seen:
            return [chunk]
        self.seen = True
        return [self.text, chunk] if self.text else [chunk]

    def flush(self) -> list[str]:
        if self.seen or not self.text:
            return []
        self.seen = True
        return [self.text]


class Replace:
    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    def feed(self, chunk: str) -> list[str]:
        return []

    def flush(self) -> list[str]:
        return [self.text] if self.text else []


class Append:
    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    def feed(self, chunk: str) -> list[str]:
        return [chunk]

    def flush(self) -> list[str]:
        return [self.text] if self.text else []


class Pipeline:
    """An ordered chain of stages behaving like a single stage."""

    __slots__ = ("stages",)

    def __init__(self, stages: list[ContentStage] | None = None) -> None:
        self.stages = list(stages or ())

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        names = ", ".join(type(stage).__name__ for stage in self.stages)
        return f"Pipeline([{names}])"

    def feed(self, chunk: str) -> list[str]:
        if not chunk:
            return []
        return self._push(0, [chunk])

    def flush(self) -> list[str]:
        out: list[str] = []
        for index, stage in enumerate(self.stages):
            out.extend(self._push(index + 1, stage.flush()))
        return out

    def _push(self, start: int, chunks: list[str]) -> list[str]:
        for stage in self.stages[start:]:
            if not chunks:
                break
            produced: list[str] = []
            for chunk in chunks:
                produced.extend(stage.feed(chunk))
            chunks = produced
        return [chunk for chunk in chunks if chunk]


def build_pipeline(directive: Directive) -> Pipeline:
    """Build the Clone -> Prepend -> Replace -> Append chain for a directive.

    Stages whose key is absent from the directive are left out.
    """
    stages: list[ContentStage] = []
    if CLONE_KEY in directive:
        stages.append(Clone(directive[CLONE_KEY]))
    if "prepend" in directive:
        stages.append(Prepend(directive["prepend"]))
    if "replace" in directive:
        stages.append(Replace(directive["replace"]))
    if "append" in directive:
        stages.append(Append(directive["append"]))
    return Pipeline(stages)

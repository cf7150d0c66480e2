from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Protocol

StepOrigin = Literal["bundled", "local"]


class StepFactory(Protocol):
    def __call__(self) -> Callable[[Any], Awaitable[None] | None]:
        ...


@dataclass(frozen=True)
class NamedStep:
    """An invocable step that remembers its id and where it was resolved from."""

    id: str
    fn: Callable[[Any], Awaitable[None] | None]
    origin: StepOrigin = "bundled"
    doc: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise TypeError("NamedStep.id must be a non-empty string")
        object.__setattr__(self, "id", self.id.strip())
        if not callable(self.fn):
            raise TypeError(f"NamedStep.fn must be callable (type={type(self.fn).__name__})")
        if self.origin not in ("bundled", "local"):
            raise ValueError(f"NamedStep.origin must be 'bundled' or 'local' (got {self.origin!r})")

    def __call__(self, ctx: Any) -> Awaitable[None] | None:
        return self.fn(ctx)


@dataclass(frozen=True)
class StepRef:
    id: str
    factory: StepFactory
    doc: str | None = None
    source: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise TypeError("StepRef.id must be a non-empty string")
        object.__setattr__(self, "id", self.id.strip())

        if not callable(self.factory):
            raise TypeError(f"StepRef.factory must be callable (step={self.id})")
        if self.doc is not None and (not isinstance(self.doc, str) or not self.doc.strip()):
            raise TypeError("StepRef.doc must be a non-empty string or None")
        if self.source is not None and (
            not isinstance(self.source, str) or not self.source.strip()
        ):
            raise TypeError("StepRef.source must be a non-empty string or None")

        if self.tags:
            object.__setattr__(
                self, "tags", tuple(str(tag).strip() for tag in self.tags if str(tag).strip())
            )

    def build(self, *, origin: StepOrigin = "bundled") -> NamedStep:
        fn = self.factory()
        if not callable(fn):
            raise TypeError(
                f"Step factory returned non-callable (step={self.id}, type={type(fn).__name__})"
            )
        return NamedStep(id=self.id, fn=fn, origin=origin, doc=self.doc)

"""Base classes for document processors and the state shared by one processing run."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, NoReturn, Sequence

from .documents import Document
from .engine import ExpansionEngine
from .errors import DocProcessorError, DocweaverError, NoProgressError, ProcessLimitError
from .index import DocumentIndex

if TYPE_CHECKING:
    from .config import ProcessingSettings

logger = logging.getLogger(__name__)

DEFAULT_PROCESS_LIMIT = 10_000


@dataclass
class RunContext:
    """Settings and collected warnings of a single processing run."""

    process_limit: int = DEFAULT_PROCESS_LIMIT
    max_workers: int = 8
    log_not_found: bool = True
    presort_includes: bool = True
    warnings: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def from_settings(cls, settings: "ProcessingSettings") -> "RunContext":
        return cls(
            process_limit=settings.process_limit,
            max_workers=settings.max_workers,
            log_not_found=settings.log_not_found,
            presort_includes=settings.presort_includes,
        )

    def warn(self, message: str) -> None:
        logger.warning("%s", message)
        with self._lock:
            self.warnings.append(message)


class DocProcessor(ABC):
    """A unit that rewrites the content of indexed documents.

    An instance runs at most once; create a new one for every run.
    """

    name: ClassVar[str] = ""

    def __init__(self) -> None:
        self._has_run = False

    def run(self, index: DocumentIndex, context: RunContext) -> None:
        if self._has_run:
            raise DocProcessorError(self.name, message=f"Doc processor {self.name} has already run")
        self._has_run = True
        logger.debug("Running doc processor %s", self.name)
        try:
            self.process(index, context)
        except DocweaverError:
            raise
        except Exception as exc:
            raise DocProcessorError(self.name, exc) from exc

    @abstractmethod
    def process(self, index: DocumentIndex, context: RunContext) -> None:
        """Rewrite the documents of `index` in place."""


class TagProcessor(DocProcessor):
    """A processor that expands a fixed set of block and inline tags.

    Subclasses declare `tags` and implement `expand_block` and `expand_inline`;
    the expansion engine drives them until no supported tag remains.
    """

    tags: ClassVar[frozenset[str]] = frozenset()
    parallel_safe: ClassVar[bool] = True

    def __init__(self) -> None:
        super().__init__()
        self.index = DocumentIndex()
        self.context = RunContext()

    def supports(self, tag: str) -> bool:
        return tag in self.tags

    def query_filter(self, document: Document) -> bool:  # noqa: ARG002
        """Whether `document` may be looked up while expanding tags."""

        return True

    def process_filter(self, document: Document) -> bool:  # noqa: ARG002
        """Whether `document` may be rewritten by this processor."""

        return True

    @abstractmethod
    def expand_block(self, tag_text: str, path: str, document: Document) -> str:
        """Return the replacement for a block starting with `@tag`."""

    @abstractmethod
    def expand_inline(self, tag_text: str, path: str, document: Document) -> str:
        """Return the replacement for an inline `{@tag ...}`."""

    def sort_documents(self, documents: list[Document]) -> list[Document]:
        return documents

    def should_continue(self, iteration: int, any_modifications: bool, remaining: Sequence[Document]) -> bool:
        """Decide whether another pass is needed, raising when the loop cannot terminate."""

        if not remaining:
            return False
        if iteration >= self.context.process_limit:
            self.on_process_error(remaining, limit_reached=True)
        if iteration > 0 and not any_modifications:
            self.on_process_error(remaining, limit_reached=False)
        return True

    def on_process_error(self, remaining: Sequence[Document], *, limit_reached: bool) -> NoReturn:
        if limit_reached:
            raise ProcessLimitError(self.name, self.context.process_limit)
        raise NoProgressError(self.name, [document.path for document in remaining])

    def process(self, index: DocumentIndex, context: RunContext) -> None:
        ExpansionEngine(self, context).run(index)

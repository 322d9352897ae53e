"""Exceptions raised while expanding documentation tags."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .tokenizer import content_to_comment, line_and_column

if TYPE_CHECKING:
    from .documents import Document


class DocweaverError(RuntimeError):
    """Base class for every fatal expansion error."""


class ReferenceNotFoundError(DocweaverError):
    """Raised when a `@include` or `@sample` target cannot be resolved."""

    def __init__(self, target: str, attempted: Sequence[str], *, exists: bool = False) -> None:
        self.target = target
        self.attempted = list(attempted)
        self.exists = exists
        if exists:
            headline = f"Reference found, but no documentation found for: {target}"
        else:
            headline = f"Reference not found: {target}"
        queries = "".join(f"\n | {query}" for query in self.attempted)
        super().__init__(f"{headline}\nAttempted queries: [{queries}\n]")


class SelfReferenceError(DocweaverError):
    def __init__(self, target: str, path: str) -> None:
        self.target = target
        self.path = path
        super().__init__(f"Self-reference detected. '{target}' in {path} refers to the documentation it is part of.")


class CircularReferenceError(DocweaverError):
    """Raised when documents keep including each other and no pass makes progress."""

    def __init__(self, tag: str, documents: Sequence["Document"]) -> None:
        self.tag = tag
        self.paths = [document.path for document in documents]
        listing = "".join(f"\n{document.path}:\n{document.content}\n" for document in documents)
        super().__init__(f"Circular references detected in @{tag} statements:\n{listing}")


class ProcessLimitError(DocweaverError):
    def __init__(self, processor_name: str, limit: int) -> None:
        self.processor_name = processor_name
        self.limit = limit
        super().__init__(
            f"Process limit of {limit} reached for {processor_name}; a tag probably expands into itself."
        )


class NoProgressError(DocweaverError):
    """Raised when a full pass modifies nothing while supported tags remain."""

    def __init__(self, processor_name: str, paths: Sequence[str]) -> None:
        self.processor_name = processor_name
        self.paths = list(paths)
        listing = ", ".join(self.paths)
        super().__init__(f"{processor_name} made no progress while tags remain in: {listing}")


class DocProcessorError(DocweaverError):
    """Wraps any failure of a processor with the processor's name."""

    def __init__(self, processor_name: str, cause: BaseException | None = None, message: str | None = None) -> None:
        self.processor_name = processor_name
        self.cause = cause
        super().__init__(message or f"Doc processor {processor_name} failed: {cause}")


class TagProcessorError(DocProcessorError):
    """A tag processor failed on a specific span of a specific document."""

    def __init__(
        self,
        processor_name: str,
        document: "Document",
        current_content: str,
        span: tuple[int, int],
        cause: BaseException | None = None,
    ) -> None:
        self.document = document
        self.current_content = current_content
        start = max(0, min(span[0], len(current_content)))
        end = max(start, min(span[1], len(current_content)))
        self.span = (start, end)
        super().__init__(processor_name, cause, self.render(processor_name, cause))

    @property
    def failing_text(self) -> str:
        start, end = self.span
        return self.current_content[start:end]

    def locations(self) -> tuple[str, str]:
        """Return `file:line:col` for the comment and for the failing tag."""

        document = self.document
        file_text = document.file_text() if document.file is not None else None
        if file_text is None or document.doc_start is None:
            return document.location, document.location
        doc_line, doc_column = line_and_column(file_text, document.doc_start)
        span_line, span_column = line_and_column(self.current_content, self.span[0])
        location = document.file.resolve()
        tag_column = span_column if span_line > 1 else doc_column + span_column
        return f"{location}:{doc_line}:{doc_column}", f"{location}:{doc_line + span_line - 1}:{tag_column}"

    def render(self, processor_name: str | None = None, cause: BaseException | None = None) -> str:
        processor_name = processor_name or self.processor_name
        cause = cause if cause is not None else self.cause
        doc_location, tag_location = self.locations()
        start, end = self.span
        highlighted = f"{self.current_content[:start]}>>>{self.failing_text}<<<{self.current_content[end:]}"
        lines = [
            f"Doc processor {processor_name} failed processing doc:",
            f"Doc location: {doc_location}",
            f"Exception location: {tag_location}",
            f"Tag throwing the exception: {self.failing_text}",
        ]
        if cause is not None:
            lines.append(f"Reason for the exception: {cause}")
        lines.extend(
            [
                "",
                "Current state of the doc with the >>>cause for the exception<<<:",
                "-" * 50,
                content_to_comment(highlighted),
                "-" * 50,
            ]
        )
        return "\n".join(lines)

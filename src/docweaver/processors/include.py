"""`@include`: copy the documentation of another declaration."""

from __future__ import annotations

import logging
import re
from typing import NoReturn, Sequence

from ..documents import Document, Language
from ..errors import CircularReferenceError, ReferenceNotFoundError, SelfReferenceError
from ..graph import IncludeGraph, build_include_graph, presort
from ..processor import TagProcessor
from ..tokenizer import (
    decode_reference_target,
    escape_for_javadoc,
    get_tag_arguments,
    rewrite_reference_links,
    trailing_text,
)

logger = logging.getLogger(__name__)

JAVA_LINK_PATTERN = re.compile(r"\{@link.*}")


class IncludeProcessor(TagProcessor):
    """Replaces `@include [Target]` with the documentation of `Target`.

    The first argument is the reference, anything after it is appended to the
    included text. Links inside the included text are rewritten so they still
    resolve from the including document. Only documents with documentation are
    looked up or rewritten.
    """

    name = "include"
    tags = frozenset({"include"})
    parallel_safe = False

    def __init__(self) -> None:
        super().__init__()
        self._graph: IncludeGraph | None = None

    def query_filter(self, document: Document) -> bool:
        return document.has_documentation

    def process_filter(self, document: Document) -> bool:
        return document.has_documentation

    def sort_documents(self, documents: list[Document]) -> list[Document]:
        if not self.context.presort_includes:
            return documents
        if self._graph is None:
            self._graph = build_include_graph(self.index, documents, self.tags, self._resolve_target)
        return presort(documents, self._graph)

    def expand_block(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def expand_inline(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def _resolve_target(self, document: Document, target: str) -> Document | None:
        return self.index.resolve(document, target, lambda found: found.identifier != document.identifier)

    def _expand(self, tag_text: str, document: Document) -> str:
        reference, rest = get_tag_arguments(tag_text, "include", 2)
        target = decode_reference_target(reference)
        logger.debug("Including %s into %s", target, document.path)

        included = self._resolve_target(document, target)
        if included is None:
            self._raise_unresolved(document, target)

        if self.index.process_filter(included) and included.has_any_tag(self.tags):
            # the target still includes something itself, retry next pass
            return tag_text

        content = included.content.removeprefix("\n").removesuffix("\n")
        if document.language is Language.KOTLIN:
            content = rewrite_reference_links(content, lambda query: self._rewrite_link(query, included, document))
        else:
            if JAVA_LINK_PATTERN.search(content):
                logger.warning(
                    "{@link} statements included into %s are not expanded; use fully qualified paths in them",
                    document.path,
                )
            content = escape_for_javadoc(content)

        return trailing_text(content, rest)

    def _rewrite_link(self, query: str, source: Document, destination: Document) -> str:
        unfiltered = self.index.without_filters()

        def points_to_same(path: str, found: Document) -> bool:
            return unfiltered.resolve(destination, path) is found

        return unfiltered.resolve_path(source, query, points_to_same) or query

    def _raise_unresolved(self, document: Document, target: str) -> NoReturn:
        unfiltered = self.index.without_filters()
        if unfiltered.resolve(document, target) is document:
            raise SelfReferenceError(target, document.path)
        attempted = unfiltered.candidate_paths(document, target)
        exists = unfiltered.resolve_path(document, target) is not None
        raise ReferenceNotFoundError(target, attempted, exists=exists)

    def on_process_error(self, remaining: Sequence[Document], *, limit_reached: bool) -> NoReturn:
        raise CircularReferenceError("include", remaining)

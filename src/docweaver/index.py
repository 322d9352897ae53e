"""Path-keyed lookup of documents with independently filtered query and process views."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Mapping, Sequence

from .documents import Document, Language

logger = logging.getLogger(__name__)

DocumentFilter = Callable[[Document], bool]
PathValidator = Callable[[str, Document], bool]


def accept_all(document: Document) -> bool:  # noqa: ARG001
    return True


def all_of(*filters: DocumentFilter) -> DocumentFilter:
    """Compose filters with logical AND, skipping `accept_all`."""

    active = [document_filter for document_filter in filters if document_filter is not accept_all]
    if not active:
        return accept_all
    if len(active) == 1:
        return active[0]
    return lambda document: all(document_filter(document) for document_filter in active)


class _Store:
    """Backing data shared by every view of one index."""

    def __init__(self, documents_by_path: Mapping[str, Sequence[Document]]) -> None:
        self.documents_by_path = {path: list(documents) for path, documents in documents_by_path.items()}
        self.type_closures: dict[str, list[Document]] = {}
        self.lock = threading.Lock()


class DocumentIndex:
    """Answers which documents a (possibly short) name refers to from a given document.

    The query filter applies to lookups made while expanding tags, the process
    filter decides which documents are rewritten. Reconfiguring either returns a
    new view over the same store, with its own query cache.
    """

    def __init__(
        self,
        documents_by_path: Mapping[str, Sequence[Document]] | None = None,
        *,
        query_filter: DocumentFilter = accept_all,
        process_filter: DocumentFilter = accept_all,
        _store: _Store | None = None,
    ) -> None:
        self._store = _store or _Store(documents_by_path or {})
        self.query_filter = query_filter
        self.process_filter = process_filter
        self._cache: dict[str, list[Document] | None] = {}
        self._cache_lock = threading.Lock()

    @classmethod
    def from_documents(cls, documents: Iterable[Document], known_paths: Iterable[str] = ()) -> "DocumentIndex":
        """Index documents under their path and extension path.

        `known_paths` are paths that exist in the wider symbol universe without
        any document of their own.
        """

        by_path: dict[str, list[Document]] = {path: [] for path in known_paths}
        for document in documents:
            for path in document.paths:
                by_path.setdefault(path, []).append(document)
        return cls(by_path)

    def with_query_filter(self, query_filter: DocumentFilter) -> "DocumentIndex":
        return DocumentIndex(query_filter=query_filter, process_filter=self.process_filter, _store=self._store)

    def with_process_filter(self, process_filter: DocumentFilter) -> "DocumentIndex":
        return DocumentIndex(query_filter=self.query_filter, process_filter=process_filter, _store=self._store)

    def without_filters(self) -> "DocumentIndex":
        if self.query_filter is accept_all and self.process_filter is accept_all:
            return self
        return DocumentIndex(_store=self._store)

    def __contains__(self, path: str) -> bool:
        return path in self._store.documents_by_path

    def documents(self) -> list[Document]:
        """Every indexed document once, in indexing order."""

        seen: dict[str, Document] = {}
        for documents in self._store.documents_by_path.values():
            for document in documents:
                seen.setdefault(document.identifier, document)
        return list(seen.values())

    def documents_to_process(self) -> list[Document]:
        return [document for document in self.documents() if self.process_filter(document)]

    def query(self, path: str) -> list[Document] | None:
        """Documents at `path` passing the query filter.

        Returns None when the path is unknown and an empty list when the path
        exists but every document at it is filtered out.
        """

        with self._cache_lock:
            if path in self._cache:
                return self._cache[path]
        documents = self._store.documents_by_path.get(path)
        result = None if documents is None else [document for document in documents if self.query_filter(document)]
        with self._cache_lock:
            self._cache.setdefault(path, result)
        return result

    def candidate_paths(self, origin: Document, target: str) -> list[str]:
        """Fully qualified guesses for `target` as written inside `origin`'s documentation."""

        candidates = self._candidate_paths(origin, target)
        if origin.language is Language.JAVA:
            head, _, rest = target.partition(".")
            if rest and head.endswith("Kt"):
                candidates.extend(self._candidate_paths(origin, rest))
        return list(dict.fromkeys(candidates))

    @staticmethod
    def _candidate_paths(origin: Document, target: str) -> list[str]:
        segments = origin.path.split(".")
        candidates = [".".join(segments[:end]) + "." + target for end in range(len(segments), 0, -1)]
        candidates.extend(f"{super_path}.{target}" for super_path in origin.super_paths)
        for imported in origin.imports:
            if imported.is_all_under:
                candidates.append(f"{imported.fq_name.removesuffix('.*')}.{target}")
                continue
            name = imported.imported_name
            if target == name or target.startswith(name + "."):
                candidates.append(target.replace(name, imported.fq_name, 1))
        candidates.append(target)
        return candidates

    def resolve(self, origin: Document, target: str, extra_filter: DocumentFilter = accept_all) -> Document | None:
        """Return the first document matching `target` from `origin`'s perspective."""

        for candidate in self.candidate_paths(origin, target):
            found = self._first_match(candidate, extra_filter)
            if found is not None:
                return found

        if origin.language is Language.KOTLIN and "." in target:
            return self._resolve_member(origin, target, extra_filter)
        return None

    def _first_match(self, path: str, extra_filter: DocumentFilter) -> Document | None:
        for document in self.query(path) or ():
            if extra_filter(document):
                return document
        return None

    def _resolve_member(self, origin: Document, target: str, extra_filter: DocumentFilter) -> Document | None:
        receiver_path, member = target.rsplit(".", 1)
        receiver = self.without_filters().resolve(origin, receiver_path)
        if receiver is None:
            return None
        for type_document in self.type_closure(receiver):
            for path in type_document.paths:
                found = self._first_match(f"{path}.{member}", extra_filter)
                if found is not None:
                    logger.debug("Resolved %s to %s through receiver type %s", target, found.path, path)
                    return found
        return None

    def type_closure(self, document: Document) -> list[Document]:
        """The document followed by all of its supertypes, recursively."""

        store = self._store
        with store.lock:
            cached = store.type_closures.get(document.identifier)
        if cached is not None:
            return cached

        closure: list[Document] = []
        seen: set[str] = set()
        pending = [document]
        while pending:
            current = pending.pop(0)
            if current.identifier in seen:
                continue
            seen.add(current.identifier)
            closure.append(current)
            for super_path in current.super_paths:
                pending.extend(store.documents_by_path.get(super_path, ()))

        with store.lock:
            store.type_closures.setdefault(document.identifier, closure)
        return closure

    def resolve_path(
        self,
        origin: Document,
        target: str,
        is_valid: PathValidator | None = None,
        extra_filter: DocumentFilter = accept_all,
    ) -> str | None:
        """Fully qualified path `target` refers to, or None when nothing matches.

        When a document is found, its path or extension path is returned,
        whichever is valid and collides least. Otherwise the first candidate that
        exists in the index is returned.
        """

        found = self.resolve(origin, target, extra_filter)
        if found is not None:
            valid = [path for path in found.paths if is_valid is None or is_valid(path, found)]
            if valid:
                return min(valid, key=lambda path: len(self._store.documents_by_path.get(path, ())))
        for candidate in self.candidate_paths(origin, target):
            if candidate in self:
                return candidate
        return None

"""Dependency graph of `@include` references, used to pre-sort documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Callable, Iterable, Sequence

from .documents import Document
from .index import DocumentIndex
from .tokenizer import decode_reference_target, find_inline_tags, get_tag_arguments, get_tag_name, split_into_blocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """`target` must be fully expanded before `dependent` is processed."""

    target: str
    dependent: str


@dataclass
class IncludeGraph:
    documents: dict[str, Document] = field(default_factory=dict)
    edges: set[Edge] = field(default_factory=set)

    def add_document(self, document: Document) -> None:
        self.documents.setdefault(document.identifier, document)

    def add_edge(self, target: Document, dependent: Document) -> None:
        self.add_document(target)
        self.add_document(dependent)
        self.edges.add(Edge(target.identifier, dependent.identifier))

    def ordered(self) -> list[Document] | None:
        """Documents in a dependency-respecting order, or None when the graph has a cycle."""

        sorter: TopologicalSorter[str] = TopologicalSorter()
        for identifier in self.documents:
            sorter.add(identifier)
        for edge in sorted(self.edges, key=lambda edge: (edge.dependent, edge.target)):
            sorter.add(edge.dependent, edge.target)
        try:
            return [self.documents[identifier] for identifier in sorter.static_order()]
        except CycleError as exc:
            logger.debug("Include graph has a cycle, keeping original order: %s", exc.args[1])
            return None


def tag_texts(content: str, tags: Iterable[str]) -> list[tuple[str, str]]:
    """Every `(name, text)` occurrence of the given block or inline tags in `content`."""

    wanted = set(tags)
    found = [
        (tag.name, content[tag.start : tag.end]) for tag in find_inline_tags(content) if tag.name in wanted
    ]
    for block in split_into_blocks(content):
        if not block.lstrip().startswith("@"):
            continue
        name = get_tag_name(block)
        if name in wanted:
            found.append((name, block))
    return found


def build_include_graph(
    index: DocumentIndex,
    documents: Sequence[Document],
    tags: Iterable[str] = ("include",),
    resolve: Callable[[Document, str], Document | None] | None = None,
) -> IncludeGraph:
    """Add one edge per resolvable include reference found in `documents`.

    `resolve` defaults to a lookup in `index` that never returns the including
    document itself.
    """

    tags = tuple(tags)

    def default_resolve(document: Document, target: str) -> Document | None:
        return index.resolve(document, target, lambda found: found.identifier != document.identifier)

    resolve = resolve or default_resolve
    graph = IncludeGraph()
    for document in documents:
        graph.add_document(document)
        for name, text in tag_texts(document.content, tags):
            target = decode_reference_target(get_tag_arguments(text, name, 2)[0])
            included = resolve(document, target)
            if included is not None:
                graph.add_edge(included, document)
    return graph


def presort(documents: Sequence[Document], graph: IncludeGraph) -> list[Document]:
    """Order `documents` so include targets come first; keep the input order on a cycle."""

    ordered = graph.ordered()
    if ordered is None:
        return list(documents)
    wanted = {document.identifier for document in documents}
    result = [document for document in ordered if document.identifier in wanted]
    result.extend(document for document in documents if document.identifier not in graph.documents)
    return result

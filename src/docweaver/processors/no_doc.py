"""Strips documentation, e.g. for a release without docs."""

from __future__ import annotations

from ..index import DocumentIndex
from ..processor import DocProcessor, RunContext


class NoDocProcessor(DocProcessor):
    name = "noDoc"

    def process(self, index: DocumentIndex, context: RunContext) -> None:  # noqa: D401
        for document in index.documents_to_process():
            document.set_content("")

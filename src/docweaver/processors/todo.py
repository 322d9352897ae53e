"""Placeholder docs for declarations that have none."""

from __future__ import annotations

import logging

from ..index import DocumentIndex
from ..processor import DocProcessor, RunContext

logger = logging.getLogger(__name__)

TODO = "TODO"


class TodoProcessor(DocProcessor):
    """Writes `TODO` into every blank or missing doc."""

    name = "todo"

    def process(self, index: DocumentIndex, context: RunContext) -> None:  # noqa: D401
        for document in index.documents_to_process():
            if document.has_documentation and document.content.strip():
                continue
            logger.debug("Adding a TODO doc to %s", document.path)
            document.has_documentation = True
            document.set_content(TODO)

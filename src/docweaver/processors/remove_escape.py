"""Final clean-up of escape characters once every tag is expanded."""

from __future__ import annotations

import logging

from ..index import DocumentIndex
from ..processor import DocProcessor, RunContext
from ..tokenizer import remove_escape_chars

logger = logging.getLogger(__name__)


class RemoveEscapeCharsProcessor(DocProcessor):
    """Drops `\\` escapes from documented content; `\\\\` becomes a literal backslash."""

    name = "removeEscapeChars"

    def process(self, index: DocumentIndex, context: RunContext) -> None:  # noqa: D401
        for document in index.documents_to_process():
            if not document.has_documentation:
                continue
            content = remove_escape_chars(document.content)
            if content != document.content:
                logger.debug("Removed escape characters from %s", document.path)
                document.set_content(content)

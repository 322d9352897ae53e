"""Fixed-point driver that expands supported tags until none remain."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from .documents import Document
from .errors import ProcessLimitError, TagProcessorError
from .index import DocumentIndex, all_of
from .tokenizer import InlineTag, find_inline_tags, get_tag_name, split_into_blocks_with_ranges

if TYPE_CHECKING:
    from .processor import RunContext, TagProcessor

logger = logging.getLogger(__name__)


class ExpansionEngine:
    """Runs one tag processor over an index.

    Every pass visits each eligible document that still carries a supported
    tag: inline tags are expanded first, deepest first and one at a time with a
    rescan after each replacement, then every block starting with a supported
    tag is replaced. Passes repeat until no supported tag remains; the
    processor's `should_continue` raises when a pass makes no progress or the
    process limit is reached.
    """

    def __init__(self, processor: "TagProcessor", context: "RunContext") -> None:
        self.processor = processor
        self.context = context

    def run(self, index: DocumentIndex) -> None:
        processor = self.processor
        view = index.with_query_filter(all_of(index.query_filter, processor.query_filter)).with_process_filter(
            all_of(index.process_filter, processor.process_filter)
        )
        processor.index = view
        processor.context = self.context

        iteration = 0
        any_modifications = True
        while True:
            remaining = [
                document
                for document in view.documents_to_process()
                if any(processor.supports(tag) for tag in document.tags)
            ]
            if not processor.should_continue(iteration, any_modifications, remaining):
                break
            logger.debug("%s pass %d over %d documents", processor.name, iteration, len(remaining))
            any_modifications = self._run_pass(processor.sort_documents(remaining))
            iteration += 1

    def _run_pass(self, documents: list[Document]) -> bool:
        if self.processor.parallel_safe and self.context.max_workers > 1 and len(documents) > 1:
            with ThreadPoolExecutor(max_workers=self.context.max_workers) as executor:
                contents = list(executor.map(self.expand_document, documents))
            modified = False
            for document, content in zip(documents, contents):
                if content != document.content:
                    document.set_content(content)
                    modified = True
            return modified

        modified = False
        for document in documents:
            content = self.expand_document(document)
            if content != document.content:
                document.set_content(content)
                modified = True
        return modified

    def expand_document(self, document: Document) -> str:
        """Return the content of `document` after one inline and one block phase."""

        content = self._expand_inline_tags(document, document.content)
        return self._expand_block_tags(document, content)

    def _expand_inline_tags(self, document: Document, content: str) -> str:
        processor = self.processor
        replacements = 0
        while True:
            for tag in self._supported_inline_tags(content):
                original = content[tag.start : tag.end]
                try:
                    replacement = processor.expand_inline(original, document.path, document)
                except Exception as exc:
                    raise TagProcessorError(processor.name, document, content, tag.span, exc) from exc
                if replacement != original:
                    if replacements >= self.context.process_limit:
                        raise ProcessLimitError(processor.name, self.context.process_limit)
                    replacements += 1
                    content = content[: tag.start] + replacement + content[tag.end :]
                    break
            else:
                return content

    def _supported_inline_tags(self, content: str) -> list[InlineTag]:
        return [tag for tag in find_inline_tags(content) if self.processor.supports(tag.name)]

    def _expand_block_tags(self, document: Document, content: str) -> str:
        processor = self.processor
        blocks: list[str] = []
        for block, span in split_into_blocks_with_ranges(content):
            name = get_tag_name(block) if block.lstrip().startswith("@") else None
            if name is not None and processor.supports(name):
                try:
                    block = processor.expand_block(block, document.path, document)
                except Exception as exc:
                    raise TagProcessorError(processor.name, document, content, span, exc) from exc
            blocks.append(block)

        last = len(blocks) - 1
        return "\n".join(block for position, block in enumerate(blocks) if block or position in (0, last))

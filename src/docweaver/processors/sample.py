"""`@sample` / `@sampleNoComments`: embed the source of another declaration."""

from __future__ import annotations

import re

from ..documents import Document, Language
from ..errors import ReferenceNotFoundError
from ..processor import TagProcessor
from ..tokenizer import (
    decode_reference_target,
    dedent,
    escape_for_javadoc,
    get_tag_arguments,
    get_tag_name,
    strip_doc_comments,
    trailing_text,
)

SAMPLE = "sample"
SAMPLE_NO_COMMENTS = "sampleNoComments"

SAMPLE_START_PATTERN = re.compile(r" *// *SampleStart *\n")
SAMPLE_END_PATTERN = re.compile(r" *// *SampleEnd *\n")


def between_sample_comments(source: str) -> str:
    """Source between the first `// SampleStart` and the last `// SampleEnd`, or all of it."""

    starts = list(SAMPLE_START_PATTERN.finditer(source))
    ends = list(SAMPLE_END_PATTERN.finditer(source))
    if not starts or not ends:
        return source
    start = starts[0].end()
    end = max(start, ends[-1].start() - 1)
    return dedent(source[start:end])


class SampleProcessor(TagProcessor):
    """Replaces `@sample [fn]` with the source code of `fn` as a code block.

    `@sampleNoComments` strips documentation comments from the source first.
    Kotlin documents get a fenced block, Java documents an escaped `<pre>`.
    """

    name = "sample"
    tags = frozenset({SAMPLE, SAMPLE_NO_COMMENTS})

    def expand_block(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def expand_inline(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def _expand(self, tag_text: str, document: Document) -> str:
        tag = get_tag_name(tag_text) or SAMPLE
        reference, rest = get_tag_arguments(tag_text, tag, 2)
        target = decode_reference_target(reference)

        queries = self.index.candidate_paths(document, target)
        sample = next((found[0] for found in map(self.index.query, queries) if found), None)
        if sample is None:
            raise ReferenceNotFoundError(target, queries)

        source = sample.raw_source
        if tag == SAMPLE_NO_COMMENTS:
            source = strip_doc_comments(source)
        source = between_sample_comments(dedent(" " * sample.doc_indent + source))
        return trailing_text(self._render(source, sample.language, document.language), rest)

    @staticmethod
    def _render(source: str, sample_language: Language, language: Language) -> str:
        if language is Language.JAVA:
            return f"<pre>\n{escape_for_javadoc(source)}\n</pre>"
        return f"```{sample_language.value}\n{source}\n```"

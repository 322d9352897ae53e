"""`@comment`: text that only exists in the source documentation."""

from __future__ import annotations

from ..documents import Document
from ..processor import TagProcessor


class CommentProcessor(TagProcessor):
    """Removes `@comment` blocks and `{@comment ...}` spans entirely."""

    name = "comment"
    tags = frozenset({"comment"})

    def expand_block(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return ""

    def expand_inline(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return ""

"""`@includeFile`: inline the text of a file next to the documented source."""

from __future__ import annotations

from ..documents import Document, Language
from ..processor import TagProcessor
from ..tokenizer import escape_for_javadoc, get_tag_arguments, trailing_text


class IncludeFileProcessor(TagProcessor):
    """Replaces `@includeFile (relative/path)` with the file's contents.

    The path is resolved against the directory of the documented source file.
    """

    name = "includeFile"
    tags = frozenset({"includeFile"})

    def expand_block(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def expand_inline(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def _expand(self, tag_text: str, document: Document) -> str:
        argument, rest = get_tag_arguments(tag_text, "includeFile", 2)
        relative = argument.strip().removeprefix("(").removesuffix(")").strip()

        if document.file is None:
            raise FileNotFoundError(f"File {relative} cannot be resolved, {document.path} has no source file.")
        target = document.file.parent / relative
        if not target.exists():
            raise FileNotFoundError(f"File {relative} (-> {target.resolve()}) does not exist.")
        if target.is_dir():
            raise IsADirectoryError(f"File {relative} (-> {target.resolve()}) is a directory.")

        content = target.read_text(encoding="utf-8")
        if document.language is Language.JAVA:
            content = escape_for_javadoc(content)
        return trailing_text(content, rest)

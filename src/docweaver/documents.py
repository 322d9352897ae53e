"""Documentation units and the metadata the expansion engine needs about them."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Sequence
from uuid import uuid4

from .tokenizer import find_tag_names


class Language(str, Enum):
    KOTLIN = "kotlin"
    JAVA = "java"


@dataclass(frozen=True)
class ImportPath:
    """An import in scope of a declaration: `import a.b.C as D` or `import a.b.*`."""

    fq_name: str
    is_all_under: bool = False
    alias: str | None = None

    @property
    def imported_name(self) -> str:
        if self.alias:
            return self.alias
        return self.fq_name.rsplit(".", 1)[-1]


@dataclass(eq=False)
class Document:
    """A documentation comment attached to a declaration.

    `content` is the comment text without `/**` markers. `tags` is kept in sync
    with `content` through `set_content`; `identifier` survives `copy()` and is the
    key used wherever paths may collide (overloads share a path).
    """

    path: str
    content: str = ""
    extension_path: str | None = None
    language: Language = Language.KOTLIN
    imports: Sequence[ImportPath] = field(default_factory=tuple)
    super_paths: Sequence[str] = field(default_factory=tuple)
    raw_source: str = ""
    file: Path | None = None
    doc_start: int | None = None
    doc_end: int | None = None
    doc_indent: int = 0
    has_documentation: bool = True
    identifier: str = field(default_factory=lambda: str(uuid4()))
    modified: bool = False
    tags: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        self.tags = frozenset(find_tag_names(self.content))

    @property
    def paths(self) -> list[str]:
        return [path for path in (self.path, self.extension_path) if path]

    @property
    def location(self) -> str:
        return str(self.file) if self.file is not None else self.path

    def set_content(self, content: str) -> None:
        """Replace the content, refreshing `tags` and marking the document modified when it changed."""

        if content == self.content:
            return
        self.content = content
        self.tags = frozenset(find_tag_names(content))
        self.modified = True

    def has_any_tag(self, tags: frozenset[str] | set[str]) -> bool:
        return not self.tags.isdisjoint(tags)

    def snapshot(self) -> "Document":
        """Return an independent copy that keeps the same identifier."""

        return copy.copy(self)

    def file_text(self) -> str | None:
        if self.file is None or not self.file.is_file():
            return None
        return self.file.read_text(encoding="utf-8")

    def __repr__(self) -> str:
        return f"Document(path={self.path!r}, identifier={self.identifier!r}, modified={self.modified})"

"""Document manifest persistence helpers (one JSON document record per line)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field, ValidationError, model_validator

from .documents import Document, ImportPath, Language
from .tokenizer import comment_to_content, content_to_comment


class ImportRecord(BaseModel):
    fq_name: str
    is_all_under: bool = False
    alias: str | None = None


class DocumentRecord(BaseModel):
    """Serialized form of a `Document` as produced by an external symbol extractor.

    Either `content` or the raw `doc_comment` (`/** ... */`) may be given.
    """

    path: str
    extension_path: str | None = None
    content: str | None = None
    doc_comment: str | None = None
    language: Language = Language.KOTLIN
    imports: list[ImportRecord] = Field(default_factory=list)
    super_paths: list[str] = Field(default_factory=list)
    raw_source: str = ""
    file: str | None = None
    doc_start: int | None = None
    doc_end: int | None = None
    doc_indent: int = 0
    has_documentation: bool | None = None
    identifier: str | None = None
    modified: bool = False

    @model_validator(mode="after")
    def _content_from_comment(self) -> "DocumentRecord":
        if self.content is None and self.doc_comment is not None:
            self.content = comment_to_content(self.doc_comment)
        return self

    def to_document(self, base_dir: Path | None = None) -> Document:
        file = None
        if self.file is not None:
            file = Path(self.file)
            if base_dir is not None and not file.is_absolute():
                file = base_dir / file
        has_documentation = self.has_documentation
        if has_documentation is None:
            has_documentation = self.content is not None
        extra = {"identifier": self.identifier} if self.identifier else {}
        document = Document(
            path=self.path,
            content=self.content or "",
            extension_path=self.extension_path,
            language=self.language,
            imports=tuple(ImportPath(**record.model_dump()) for record in self.imports),
            super_paths=tuple(self.super_paths),
            raw_source=self.raw_source,
            file=file,
            doc_start=self.doc_start,
            doc_end=self.doc_end,
            doc_indent=self.doc_indent,
            has_documentation=has_documentation,
            **extra,
        )
        document.modified = self.modified
        return document

    @classmethod
    def from_document(cls, document: Document) -> "DocumentRecord":
        return cls(
            path=document.path,
            extension_path=document.extension_path,
            content=document.content,
            doc_comment=content_to_comment(document.content, document.doc_indent),
            language=document.language,
            imports=[
                ImportRecord(fq_name=item.fq_name, is_all_under=item.is_all_under, alias=item.alias)
                for item in document.imports
            ],
            super_paths=list(document.super_paths),
            raw_source=document.raw_source,
            file=str(document.file) if document.file is not None else None,
            doc_start=document.doc_start,
            doc_end=document.doc_end,
            doc_indent=document.doc_indent,
            has_documentation=document.has_documentation,
            identifier=document.identifier,
            modified=document.modified,
        )


class DocumentManifestWriter:
    """JSONL writer for processed documents."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, documents: Iterable[Document]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as handle:
            for document in documents:
                record = DocumentRecord.from_document(document)
                handle.write(json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n")


class DocumentManifestReader:
    """Reader that turns a JSONL manifest into documents.

    Relative `file` entries are resolved against the manifest's directory.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def read(self) -> list[Document]:
        if not self._path.exists():
            raise FileNotFoundError(f"Manifest file '{self._path}' not found")

        documents: list[Document] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    record = DocumentRecord.model_validate_json(line)
                except ValidationError as exc:
                    raise ValueError(f"Invalid document record on line {line_number} of '{self._path}': {exc}") from exc
                documents.append(record.to_document(self._path.parent))
        return documents

import json

import pytest

from docweaver.documents import Document, ImportPath, Language
from docweaver.manifest import DocumentManifestReader, DocumentManifestWriter


def _write_lines(path, *records):
    path.write_text("\n".join(json.dumps(record) for record in records) + "\n", encoding="utf-8")


def test_reader_accepts_raw_doc_comments(tmp_path):
    manifest = tmp_path / "docs.jsonl"
    _write_lines(
        manifest,
        {"path": "pkg.A", "doc_comment": "/**\n * Hello\n */", "file": "A.kt"},
        {"path": "pkg.B", "language": "java", "imports": [{"fq_name": "pkg.A"}]},
    )

    first, second = DocumentManifestReader(manifest).read()

    assert first.content == "\nHello\n"
    assert first.has_documentation is True
    assert first.file == tmp_path / "A.kt"
    assert second.language is Language.JAVA
    assert second.has_documentation is False
    assert second.imports == (ImportPath("pkg.A"),)


def test_writer_and_reader_keep_documents(tmp_path):
    document = Document(
        "pkg.A",
        content="Hello {@getArg x}",
        extension_path="pkg.Base.a",
        super_paths=("pkg.Base",),
        doc_indent=4,
    )
    manifest = tmp_path / "out" / "docs.jsonl"

    DocumentManifestWriter(manifest).write([document])
    (restored,) = DocumentManifestReader(manifest).read()

    assert restored.identifier == document.identifier
    assert restored.content == document.content
    assert restored.extension_path == "pkg.Base.a"
    assert restored.super_paths == ("pkg.Base",)
    assert restored.tags == frozenset({"getArg"})
    record = json.loads(manifest.read_text(encoding="utf-8"))
    assert record["doc_comment"].startswith("    /** Hello")


def test_reader_reports_invalid_line(tmp_path):
    manifest = tmp_path / "docs.jsonl"
    manifest.write_text('{"path": "pkg.A"}\n{"content": "no path"}\n', encoding="utf-8")

    with pytest.raises(ValueError, match="line 2"):
        DocumentManifestReader(manifest).read()


def test_reader_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        DocumentManifestReader(tmp_path / "missing.jsonl").read()

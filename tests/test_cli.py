import json

import pytest

from docweaver.cli import main, parse_args, settings_from_args
from docweaver.manifest import DocumentManifestReader


@pytest.fixture()
def manifest(tmp_path):
    path = tmp_path / "docs.jsonl"
    records = [
        {"path": "com.example.helloWorld", "content": "Hello World!"},
        {"path": "com.example.helloWorld2", "content": "@include [helloWorld]"},
    ]
    path.write_text("\n".join(json.dumps(record) for record in records) + "\n", encoding="utf-8")
    return path


def test_parse_args_builds_settings(monkeypatch):
    monkeypatch.delenv("DOCWEAVER_PROCESSORS", raising=False)
    monkeypatch.delenv("DOCWEAVER_PROCESS_LIMIT", raising=False)
    args = parse_args(["docs.jsonl", "--processors", "include,arg", "--process-limit", "3", "--no-log-not-found"])

    settings = settings_from_args(args)

    assert settings.processors == ["include", "arg"]
    assert settings.process_limit == 3
    assert settings.log_not_found is False


def test_main_writes_processed_manifest(manifest, tmp_path):
    output = tmp_path / "processed.jsonl"

    exit_code = main([str(manifest), "--output", str(output), "--processors", "include"])

    assert exit_code == 0
    documents = {document.path: document for document in DocumentManifestReader(output).read()}
    assert documents["com.example.helloWorld2"].content == "Hello World!"
    assert documents["com.example.helloWorld2"].modified is True


def test_main_reports_expansion_errors(tmp_path):
    path = tmp_path / "docs.jsonl"
    path.write_text(json.dumps({"path": "com.example.A", "content": "@include [A]"}) + "\n", encoding="utf-8")

    assert main([str(path), "--processors", "include"]) == 1


def test_main_rejects_unknown_processor(manifest):
    with pytest.raises(SystemExit):
        main([str(manifest), "--processors", "include,nope"])

import logging
from pathlib import Path

import pytest

from docweaver.documents import Document, Language
from docweaver.errors import ReferenceNotFoundError, TagProcessorError
from docweaver.pipeline import process_documents
from docweaver.processors.arg import replace_dollar_notation
from docweaver.processors.sample import between_sample_comments

SAMPLE_SOURCE = """fun demo() {
    // SampleStart
    val x = 1
    println(x)
    // SampleEnd
}"""


def test_set_arg_and_get_arg_inline():
    document = Document("pkg.Doc", content="{@setArg name World}Hello {@getArg name}!")

    result = process_documents([document], ["arg"])

    assert document.content == "Hello World!"
    assert result.warnings == []


def test_set_arg_block_after_use():
    document = Document("pkg.Doc", content="Hello {@getArg name}!\n@setArg name World")

    process_documents([document], ["arg"])

    assert document.content == "Hello World!\n"


def test_get_arg_keeps_trailing_text():
    document = Document("pkg.Doc", content="{@setArg kind tree}A {@getArg kind structure}.")

    process_documents([document], ["arg"])

    assert document.content == "A tree structure."


def test_arg_values_are_scoped_per_document():
    first = Document("pkg.First", content="{@setArg name One}{@getArg name}")
    second = Document("pkg.Second", content="{@setArg name Two}{@getArg name}")

    process_documents([first, second], ["arg"], max_workers=1)

    assert first.content == "One"
    assert second.content == "Two"


def test_arg_values_from_included_docs_are_resolved_in_the_including_doc():
    common = Document("pkg.common", content="Creates a {@getArg kind}.")
    first = Document("pkg.tree", content="@include [common]\n@setArg kind tree")
    second = Document("pkg.list", content="@include [common]\n@setArg kind list")

    process_documents([common, first, second], ["include", "arg"])

    assert first.content == "Creates a tree.\n"
    assert second.content == "Creates a list.\n"
    assert common.content == "Creates a {@getArg kind}."


def test_reference_keys_match_fully_qualified_references():
    helper = Document("pkg.Helper", content="Helps.")
    document = Document("pkg.Doc", content="{@setArg [Helper] helper value}Uses {@getArg [pkg.Helper]}")

    process_documents([helper, document], ["arg"])

    assert document.content == "Uses helper value"


def test_missing_arg_is_left_in_place_and_warned():
    document = Document("pkg.Doc", content="Hello {@getArg missing}")

    result = process_documents([document], ["arg"])

    assert document.content == "Hello {@getArg missing}"
    assert result.warnings == [
        'Could not find @setArg argument(s) in doc (pkg.Doc:1:7): "{@getArg missing}"'
    ]


def test_missing_arg_warning_can_be_disabled():
    document = Document("pkg.Doc", content="Hello {@getArg missing}")

    result = process_documents([document], ["arg"], log_not_found=False)

    assert result.warnings == []


def test_deprecated_arg_tags_still_work(caplog):
    document = Document("pkg.Doc", content="{@arg name World}Hi {@includeArg name}")

    with caplog.at_level(logging.WARNING, logger="docweaver.processors.arg"):
        process_documents([document], ["arg"])

    assert document.content == "Hi World"
    assert "deprecated" in caplog.text


def test_arg_runs_in_parallel_over_many_documents():
    documents = [
        Document(f"pkg.Doc{number}", content=f"{{@setArg value v{number}}}{{@getArg value}}") for number in range(6)
    ]

    process_documents(documents, ["arg"], max_workers=4)

    assert [document.content for document in documents] == [f"v{number}" for number in range(6)]


def test_set_and_get_inline():
    document = Document("pkg.Doc", content="{@set name World}Hello {@get name}! {@get name unused}")

    result = process_documents([document], ["arg"])

    assert document.content == "Hello World! World"
    assert result.warnings == []


def test_get_falls_back_to_its_default_and_warns():
    document = Document("pkg.Doc", content="Hi {@get missing fallback}, {@get gone}.")

    result = process_documents([document], ["arg"])

    assert document.content == "Hi fallback, ."
    assert result.warnings == [
        'Could not find @set argument(s) in doc (pkg.Doc:1:4): "{@get missing fallback}"',
        'Could not find @set argument(s) in doc (pkg.Doc:1:29): "{@get gone}"',
    ]


def test_dollar_notation_reads_values():
    document = Document("pkg.Doc", content="{@set name World}Hello $name and ${name}!")

    process_documents([document], ["arg"])

    assert document.content == "Hello World and World!"


def test_dollar_notation_defaults():
    document = Document("pkg.Doc", content="${missing=default value} and $other=dflt.")

    result = process_documents([document], ["arg"])

    assert document.content == "default value and dflt."
    assert len(result.warnings) == 2


def test_escaped_dollar_is_kept_literally():
    document = Document("pkg.Doc", content="Costs \\$5, {@set x 1}$x")

    process_documents([document], ["arg", "removeEscapeChars"])

    assert document.content == "Costs $5, 1"


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("$name", "{@get name}"),
        ("${name}", "{@get name}"),
        ("$name=value rest", "{@get name value} rest"),
        ("${name=some value}", "{@get name some value}"),
        ("${a=${b}}", "{@get a {@get b}}"),
        ("$[Foo.bar] x", "{@get [Foo.bar]} x"),
        ("$`a b`=[c d] e", "{@get `a b` [c d]} e"),
        ("\\$name", "\\$name"),
        ("cost: $ 5", "cost: $ 5"),
        ("${open", "${open"),
    ],
)
def test_replace_dollar_notation(content, expected):
    assert replace_dollar_notation(content) == expected


def test_comment_tags_are_removed():
    inline = Document("pkg.Inline", content="Before {@comment {@comment x}} after")
    block = Document("pkg.Block", content="Visible\n@comment hidden\nstill hidden")

    process_documents([inline, block], ["comment"])

    assert inline.content == "Before  after"
    assert block.content == "Visible\n"


def test_between_sample_comments():
    assert between_sample_comments(SAMPLE_SOURCE) == "val x = 1\nprintln(x)"
    assert between_sample_comments("fun x() = 1") == "fun x() = 1"


def test_sample_embeds_source_in_fenced_block():
    sample = Document("pkg.samples.demo", raw_source=SAMPLE_SOURCE, has_documentation=False)
    document = Document("pkg.Doc", content="Example:\n@sample [pkg.samples.demo]")

    process_documents([sample, document], ["sample"])

    assert document.content == "Example:\n```kotlin\nval x = 1\nprintln(x)\n```"


def test_sample_no_comments_strips_doc_comments():
    sample = Document("pkg.demo", raw_source="/** Docs */\nfun demo() = 1")
    document = Document("pkg.Doc", content="@sampleNoComments [demo]")

    process_documents([sample, document], ["sample"])

    assert document.content == "```kotlin\nfun demo() = 1\n```"


def test_sample_in_java_uses_escaped_pre_block():
    sample = Document("pkg.demo", raw_source="if (a < b) {}", language=Language.JAVA)
    document = Document("pkg.Doc", content="@sample [demo]", language=Language.JAVA)

    process_documents([sample, document], ["sample"])

    assert document.content == "<pre>\nif (a &lt; b) {}\n</pre>"


def test_missing_sample_raises():
    document = Document("pkg.Doc", content="@sample [nothing]")

    with pytest.raises(TagProcessorError) as excinfo:
        process_documents([document], ["sample"])

    assert isinstance(excinfo.value.cause, ReferenceNotFoundError)


def _documented_source(tmp_path: Path, content: str, language: Language = Language.KOTLIN) -> Document:
    source = tmp_path / "Source.kt"
    source.write_text("class Source\n", encoding="utf-8")
    return Document("pkg.Source", content=content, file=source, language=language)


def test_include_file_inlines_relative_file(tmp_path):
    (tmp_path / "snippet.txt").write_text("Hello from a file", encoding="utf-8")
    document = _documented_source(tmp_path, "Text: {@includeFile (snippet.txt)}")

    process_documents([document], ["includeFile"])

    assert document.content == "Text: Hello from a file"


def test_include_file_escapes_for_java(tmp_path):
    (tmp_path / "snippet.txt").write_text("a < b", encoding="utf-8")
    document = _documented_source(tmp_path, "@includeFile (snippet.txt)", Language.JAVA)

    process_documents([document], ["includeFile"])

    assert document.content == "a &lt; b"


def test_include_file_missing_file(tmp_path):
    document = _documented_source(tmp_path, "@includeFile (missing.txt)")

    with pytest.raises(TagProcessorError) as excinfo:
        process_documents([document], ["includeFile"])

    assert isinstance(excinfo.value.cause, FileNotFoundError)
    assert "does not exist" in str(excinfo.value.cause)


def test_include_file_rejects_directories(tmp_path):
    (tmp_path / "folder").mkdir()
    document = _documented_source(tmp_path, "@includeFile (folder)")

    with pytest.raises(TagProcessorError) as excinfo:
        process_documents([document], ["includeFile"])

    assert isinstance(excinfo.value.cause, IsADirectoryError)


def test_remove_escape_chars_runs_last():
    document = Document("pkg.Doc", content="Write \\@include or \\{@getArg x} literally, \\\\ stays")

    process_documents([document], ["include", "arg", "removeEscapeChars"])

    assert document.content == "Write @include or {@getArg x} literally, \\ stays"


def test_todo_fills_blank_and_missing_docs():
    blank = Document("pkg.Blank", content="  \n")
    missing = Document("pkg.Missing", has_documentation=False)
    documented = Document("pkg.Documented", content="Real docs")

    process_documents([blank, missing, documented], ["todo"])

    assert blank.content == "TODO"
    assert missing.content == "TODO"
    assert missing.has_documentation is True
    assert documented.content == "Real docs"
    assert documented.modified is False


def test_no_doc_removes_all_docs():
    documents = [Document("pkg.A", content="A docs"), Document("pkg.B", content="@include [A]")]

    process_documents(documents, ["noDoc"])

    assert [document.content for document in documents] == ["", ""]
    assert all(document.modified for document in documents)

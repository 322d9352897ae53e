import pytest

from docweaver.documents import Document, Language
from docweaver.errors import CircularReferenceError, ReferenceNotFoundError, SelfReferenceError, TagProcessorError
from docweaver.pipeline import process_documents


def test_include_copies_documentation():
    hello = Document("com.example.helloWorld", content="Hello World!")
    including = Document("com.example.helloWorld2", content="@include [helloWorld]")

    process_documents([hello, including], ["include"])

    assert including.content == "Hello World!"
    assert including.modified is True
    assert hello.modified is False


def test_include_accepts_backticked_reference():
    hello = Document("com.example.helloWorld", content="Hello World!")
    including = Document("com.example.helloWorld2", content="@include [`helloWorld`]")

    process_documents([hello, including], ["include"])

    assert including.content == "Hello World!"


def test_inline_include_keeps_trailing_text():
    hello = Document("com.example.hello", content="Hello")
    including = Document("com.example.greeting", content="Say {@include [hello] there}, twice.")

    process_documents([hello, including], ["include"])

    assert including.content == "Say Hello there, twice."


def test_transitive_includes_are_fully_expanded():
    a = Document("com.example.a", content="@include [b]")
    b = Document("com.example.b", content="@include [c]")
    c = Document("com.example.c", content="Base docs")

    process_documents([a, b, c], ["include"])

    assert a.content == "Base docs"
    assert b.content == "Base docs"


@pytest.mark.parametrize("presort_includes", [True, False])
def test_transitive_includes_do_not_depend_on_presorting(presort_includes):
    a = Document("com.example.a", content="A: {@include [b]}")
    b = Document("com.example.b", content="B: {@include [c]}")
    c = Document("com.example.c", content="C")

    process_documents([a, b, c], ["include"], presort_includes=presort_includes)

    assert a.content == "A: B: C"


def test_self_include_is_reported():
    document = Document("com.example.A", content="@include [A]")

    with pytest.raises(TagProcessorError) as excinfo:
        process_documents([document], ["include"])

    error = excinfo.value
    assert isinstance(error.cause, SelfReferenceError)
    assert ">>>@include [A]<<<" in str(error)
    assert document.content == "@include [A]"


def test_mutual_includes_are_reported_as_circular():
    a = Document("com.example.a", content="@include [b]")
    b = Document("com.example.b", content="@include [a]")

    with pytest.raises(CircularReferenceError) as excinfo:
        process_documents([a, b], ["include"])

    assert excinfo.value.paths == ["com.example.a", "com.example.b"]
    assert "Circular references detected in @include statements" in str(excinfo.value)


def test_missing_reference_lists_attempted_queries():
    document = Document("com.example.Doc", content="@include [Nope]")

    with pytest.raises(TagProcessorError) as excinfo:
        process_documents([document], ["include"])

    cause = excinfo.value.cause
    assert isinstance(cause, ReferenceNotFoundError)
    assert cause.exists is False
    assert "com.example.Nope" in cause.attempted
    assert "Reference not found: Nope" in str(cause)


def test_reference_without_documentation_is_reported_as_found():
    target = Document("com.example.Target", has_documentation=False)
    document = Document("com.example.Doc", content="@include [Target]")

    with pytest.raises(TagProcessorError) as excinfo:
        process_documents([target, document], ["include"])

    cause = excinfo.value.cause
    assert isinstance(cause, ReferenceNotFoundError)
    assert cause.exists is True
    assert "no documentation found for: Target" in str(cause)


def test_included_links_are_rewritten_for_the_including_document():
    helper = Document("pkg.Helper", content="Helper docs")
    source = Document("pkg.Source", content="See [Helper]")
    destination = Document("other.Dest", content="@include [pkg.Source]")

    process_documents([helper, source, destination], ["include"])

    assert destination.content == "See [Helper][pkg.Helper]"


def test_include_into_java_escapes_content():
    source = Document("pkg.Source", content="a < b @see */")
    destination = Document("pkg.Dest", content="@include [Source]", language=Language.JAVA)

    process_documents([source, destination], ["include"])

    assert destination.content == "a &lt; b &#64;see &#42;&#47;"


def test_included_content_loses_one_surrounding_newline():
    source = Document("pkg.Source", content="\nFirst line\nSecond line\n")
    destination = Document("pkg.Dest", content="Intro\n@include [Source]\n@return nothing")

    process_documents([source, destination], ["include"])

    assert destination.content == "Intro\nFirst line\nSecond line\n@return nothing"

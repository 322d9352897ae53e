"""`@set` / `@get` (and `$key` shorthands): define a value in one place and reuse it in a doc."""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from ..documents import Document
from ..errors import ProcessLimitError
from ..index import DocumentIndex
from ..processor import RunContext, TagProcessor
from ..tokenizer import get_tag_arguments, get_tag_name, line_and_column, remove_escape_chars, trailing_text

logger = logging.getLogger(__name__)

SET = "set"
GET = "get"
SET_ARG = "setArg"
GET_ARG = "getArg"
DEPRECATED_SET_ARG = "arg"
DEPRECATED_GET_ARG = "includeArg"

DECLARE_TAGS = frozenset({SET, SET_ARG, DEPRECATED_SET_ARG})
RETRIEVE_TAGS = frozenset({GET, GET_ARG, DEPRECATED_GET_ARG})


class ArgProcessor(TagProcessor):
    """Stores `@set key value` per document and substitutes `{@get key}`.

    Before expanding, `$key`, `${key}`, `$key=default` and `${key=default}` are
    rewritten to `{@get key}` / `{@get key default}`. Retrieval waits while the
    document still has declaring tags, so that every value is settled first. A
    `get` whose key has no value becomes its default, possibly empty; a
    `getArg` is left in place. Keys written as a reference, `[Foo]`, are
    resolved to the fully qualified path of `Foo`. Keys that never get a value
    are reported as warnings at the end of the run.
    """

    name = "arg"
    tags = DECLARE_TAGS | RETRIEVE_TAGS

    def __init__(self) -> None:
        super().__init__()
        self._values: dict[tuple[str, str], str] = {}
        self._not_found: dict[tuple[str, str], tuple[str, str, str]] = {}
        self._warned_deprecated: set[str] = set()
        self._lock = threading.Lock()

    def process(self, index: DocumentIndex, context: RunContext) -> None:
        for document in index.documents_to_process():
            if self.process_filter(document):
                document.set_content(replace_dollar_notation(document.content))
        super().process(index, context)

    def expand_block(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def expand_inline(self, tag_text: str, path: str, document: Document) -> str:  # noqa: D401
        return self._expand(tag_text, document)

    def value(self, document: Document, key: str) -> str | None:
        keys = self._keys(document, key)
        with self._lock:
            for candidate in keys:
                if (document.identifier, candidate) in self._values:
                    return self._values[(document.identifier, candidate)]
        return None

    def _expand(self, tag_text: str, document: Document) -> str:
        tag = get_tag_name(tag_text) or ""
        self._warn_deprecated(tag, document)
        if tag in DECLARE_TAGS:
            return self._declare(tag_text, tag, document)

        if document.has_any_tag(DECLARE_TAGS):
            return tag_text

        key, rest = get_tag_arguments(tag_text, tag, 2)
        key = key.strip()
        value = self.value(document, key)
        if value is None:
            declaring = SET if tag == GET else SET_ARG
            with self._lock:
                self._not_found[(document.identifier, key)] = (
                    declaring,
                    self._location(document, tag_text),
                    tag_text,
                )
            # a missing `get` falls back to its default
            return rest if tag == GET else tag_text
        with self._lock:
            self._not_found.pop((document.identifier, key), None)
        return trailing_text(value, rest) if tag != GET else value

    def _declare(self, tag_text: str, tag: str, document: Document) -> str:
        key, value = get_tag_arguments(tag_text, tag, 2)
        key = key.strip()
        value = remove_escape_chars(value.lstrip().removesuffix("\n"))
        keys = self._keys(document, key)
        with self._lock:
            for candidate in keys:
                self._values[(document.identifier, candidate)] = value
                self._not_found.pop((document.identifier, candidate), None)
            self._not_found.pop((document.identifier, key), None)
        return ""

    def _keys(self, document: Document, key: str) -> list[str]:
        """A `[Reference]` key stands for the paths of the referenced declaration."""

        if not (key.startswith("[") and "]" in key):
            return [key]
        target = key.removeprefix("[").split("]", 1)[0]
        found = self.index.without_filters().resolve(document, target)
        if found is None:
            return [key]
        return [key] + [f"[{path}]" for path in found.paths]

    def _warn_deprecated(self, tag: str, document: Document) -> None:
        replacement = {DEPRECATED_SET_ARG: SET, DEPRECATED_GET_ARG: GET}.get(tag)
        if replacement is None:
            return
        with self._lock:
            if tag in self._warned_deprecated:
                return
            self._warned_deprecated.add(tag)
        logger.warning("@%s in %s is deprecated, use @%s instead", tag, document.path, replacement)

    def should_continue(self, iteration: int, any_modifications: bool, remaining: Sequence[Document]) -> bool:
        if not remaining:
            self._report_not_found()
            return False
        if iteration >= self.context.process_limit:
            raise ProcessLimitError(self.name, self.context.process_limit)
        if iteration > 0 and not any_modifications:
            self._report_not_found()
            return False
        return True

    def _report_not_found(self) -> None:
        if not self.context.log_not_found:
            return
        for declaring, location, tag_text in list(self._not_found.values()):
            self.context.warn(f'Could not find @{declaring} argument(s) in doc ({location}): "{tag_text}"')

    @staticmethod
    def _location(document: Document, tag_text: str) -> str:
        offset = document.content.find(tag_text)
        if offset < 0:
            return document.location
        line, column = line_and_column(document.content, offset)
        return f"{document.location}:{line}:{column}"


def replace_dollar_notation(content: str) -> str:
    """Rewrite `${key}`, `${key=default}`, `$key` and `$key=default` to `{@get ...}` tags.

    Inside `${...}` only the `${` and the first `=` change, so the default may
    hold anything up to the closing brace, nested tags included. A bare `$key`
    takes a key and an optional default made of letters, digits and `_`, or a
    single region opened by their first char: `` `...` ``, `[...]` (also
    `[...][...]`) and, for the default, `{...}`. Escaped dollars and dollars
    without a key are kept as they are.
    """

    result: list[str] = []
    position = 0
    while position < len(content):
        char = content[position]
        if char == "\\":
            result.append(content[position : position + 2])
            position += 2
            continue
        if char != "$":
            result.append(char)
            position += 1
            continue

        bracketed = content.startswith("${", position) and _has_closing_brace(content, position + 2)
        start = position + (2 if bracketed else 1)
        key, default, end = scan_dollar_key(content, start, bracketed=bracketed)
        if not key:
            result.append(char)
            position += 1
        elif bracketed:
            result.append(f"{{@{GET} {key}")
            position = start + len(key)
            if default is not None:
                # `=` becomes the argument separator, the rest is scanned as usual
                result.append(" ")
                position += 1
        else:
            result.append(f"{{@{GET} {key}" + ("" if default is None else f" {default}") + "}")
            position = end
    return "".join(result)


def scan_dollar_key(text: str, start: int, *, bracketed: bool = False) -> tuple[str, str | None, int]:
    """Read the `key` and optional `=default` of a dollar notation starting at `start`.

    Returns the key, the default (None without `=`) and the index where
    scanning stopped.
    """

    key: list[str] = []
    default: list[str] | None = None
    regions: list[str] = []
    square_brackets = 0
    second_bracket_allowed = False
    escape_next = False
    position = start
    while position < len(text):
        char = text[position]
        current = key if default is None else default
        first = not current
        allow_second_bracket, second_bracket_allowed = second_bracket_allowed, False

        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif first and char == "`":
            regions.append("`")
        elif first and char == "[":
            regions.append("[")
            square_brackets += 1
        elif first and char == "{" and (default is not None or bracketed):
            regions.append("{")
        elif "`" in regions:
            if char == "`":
                _close_region(regions, "`")
        elif "{" in regions:
            if char == "}":
                _close_region(regions, "{")
            elif char in "{`":
                regions.append(char)
        elif "[" in regions:
            if char == "]":
                _close_region(regions, "[")
                second_bracket_allowed = "[" not in regions and square_brackets == 1
            elif char in "[{`":
                regions.append(char)
        elif char == "[" and allow_second_bracket:
            square_brackets += 1
            regions.append("[")
        elif default is None and char == "=":
            default = []
            square_brackets = 0
            position += 1
            continue
        elif default is not None and bracketed:
            if char == "}":
                break
            if char in "[{`":
                regions.append(char)
        elif not _is_word_char(char):
            break

        current.append(char)
        position += 1

    return "".join(key), None if default is None else "".join(default), position


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _close_region(regions: list[str], opener: str) -> None:
    index = len(regions) - 1 - regions[::-1].index(opener)
    del regions[index:]


def _has_closing_brace(text: str, start: int) -> bool:
    escape_next = False
    for char in text[start:]:
        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif char == "}":
            return True
    return False

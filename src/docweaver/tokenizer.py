"""Tolerant scanners for tags, tag arguments and reference links inside doc content."""

from __future__ import annotations

import html
import re
import textwrap
from dataclasses import dataclass
from typing import Callable

CURLY_BRACES = "{"
SQUARE_BRACKETS = "["
PARENTHESES = "("
ANGULAR_BRACKETS = "<"
BACKTICKS = "`"
DOUBLE_QUOTES = '"'
SINGLE_QUOTES = "'"

_CLOSING_TO_OPENING = {
    "}": CURLY_BRACES,
    "]": SQUARE_BRACKETS,
    ")": PARENTHESES,
    ">": ANGULAR_BRACKETS,
}

DOC_COMMENT_PATTERN = re.compile(r"( *)/\*\*([^*]|\*(?!/))*?\*/")
_PARAMETER_LIST_PATTERN = re.compile(r"\(.*\)")

Splitter = Callable[[str], bool]
RogueClosingCharHandler = Callable[[str, int, int], None]


@dataclass(frozen=True)
class InlineTag:
    """An inline `{@name ...}` occurrence; `end` is exclusive."""

    name: str
    start: int
    end: int
    depth: int

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end


def _pop_through(indicators: list[str], marker: str) -> bool:
    """Remove the last `marker` and everything opened after it."""

    for index in range(len(indicators) - 1, -1, -1):
        if indicators[index] == marker:
            del indicators[index:]
            return True
    return False


def _is_whitespace(char: str) -> bool:
    return char.isspace()


def remove_escape_chars(text: str) -> str:
    """Drop unescaped backslashes; `\\\\` collapses to a single backslash."""

    result: list[str] = []
    escape_next = False
    for char in text:
        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
            continue
        result.append(char)
    return "".join(result)


def trailing_text(value: str, rest: str) -> str:
    """Append `rest` to `value`, inserting a single space unless `rest` already starts with whitespace."""

    if not rest:
        return value
    if rest[0].isspace():
        return value + rest
    return f"{value} {rest}"


def escape_html(text: str) -> str:
    return html.escape(text, quote=False).replace('"', "&quot;")


def escape_for_javadoc(text: str) -> str:
    """Escape text so it can be placed inside a Javadoc comment without ending it."""

    return escape_html(text).replace("@", "&#64;").replace("*/", "&#42;&#47;")


def line_and_column(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and column of `offset` in `text`."""

    line = 1
    column = 1
    for char in text[:offset]:
        if char == "\n":
            line += 1
            column = 1
        else:
            column += 1
    return line, column


def get_tag_name(text: str) -> str | None:
    """Return the tag name at the start of `text` (`  @tag ...` or `{@tag ...}`), if any."""

    if not (text.lstrip().startswith("@") or text.startswith("{@")):
        return None
    stripped = text.lstrip()
    if stripped.startswith("{"):
        stripped = stripped[1:]
    if stripped.startswith("@"):
        stripped = stripped[1:]
    name: list[str] = []
    for char in stripped:
        if char.isspace() or char in "{}":
            break
        name.append(char)
    return "".join(name) or None


def get_tag_arguments(
    text: str,
    tag: str,
    n: int,
    *,
    is_splitter: Splitter = _is_whitespace,
    on_rogue_closing_char: RogueClosingCharHandler | None = None,
) -> list[str]:
    """Split the text following `@tag` into exactly `n` arguments, padding with empty strings.

    Splitter characters inside `{}`, `[]`, `()`, `<>`, backticks or quotes do not
    split. The last argument receives everything that remains, minus one leading
    splitter character (a leading newline is kept). Escaped characters never open
    or close a region. A closing character without a matching opener is reported
    through `on_rogue_closing_char(char, argument_index, offset_in_argument)`.
    """

    if n <= 0:
        raise ValueError("n must be greater than 0")

    content = text
    if content.startswith("{") and content.endswith("}"):
        content = content[1:-1]
    content = _lstrip_splitters(content, is_splitter)
    content = content.removeprefix("@").removeprefix(tag)
    content = _lstrip_splitters(content, is_splitter)

    arguments: list[str] = []
    current: list[str] = []
    indicators: list[str] = []

    def is_done() -> bool:
        return len(arguments) >= n - 1

    def only_splitters() -> bool:
        return all(is_splitter(char) for char in current)

    def rogue(char: str) -> None:
        if on_rogue_closing_char is not None:
            on_rogue_closing_char(char, len(arguments), len(current))

    escape_next = False
    for char in content:
        escaped = escape_next
        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif is_done():
            pass
        elif is_splitter(char) and not indicators:
            if not only_splitters():
                arguments.append("".join(current))
            current = []
        elif char == "`":
            if not _pop_through(indicators, BACKTICKS):
                indicators.append(BACKTICKS)

        if not escaped and BACKTICKS not in indicators:
            if char in "{[(<":
                indicators.append(char)
            elif char in _CLOSING_TO_OPENING:
                if not _pop_through(indicators, _CLOSING_TO_OPENING[char]):
                    rogue(char)
            elif char in (DOUBLE_QUOTES, SINGLE_QUOTES):
                if not _pop_through(indicators, char):
                    indicators.append(char)

        if is_done() or not only_splitters() or not is_splitter(char):
            current.append(char)

    arguments.append("".join(current))

    last = len(arguments) - 1
    trimmed: list[str] = []
    for index, argument in enumerate(arguments):
        if index == last:
            if argument and is_splitter(argument[0]) and argument[0] != "\n":
                argument = argument[1:]
        else:
            argument = _lstrip_splitters(argument.removeprefix("\n"), is_splitter)
        trimmed.append(argument)
    trimmed.extend([""] * (n - len(trimmed)))
    return trimmed


def _lstrip_splitters(text: str, is_splitter: Splitter) -> str:
    index = 0
    while index < len(text) and is_splitter(text[index]):
        index += 1
    return text[index:]


def decode_reference_target(token: str) -> str:
    """Normalize `[Alias][Foo]`, `{@link Foo#bar(String)}` and friends to a dotted path."""

    target = token.strip().removeprefix("[").removesuffix("]")
    if "][" in target:
        target = target.split("][", 1)[1]
    target = target.strip().removeprefix("<code>").removesuffix("</code>").strip()
    if len(target) > 1 and target.startswith("`") and target.endswith("`"):
        target = target[1:-1].strip()
    target = target.removeprefix("{").removesuffix("}").removeprefix("@link").strip()
    target = target.replace("#", ".")
    target = _PARAMETER_LIST_PATTERN.sub("", target)
    return target.strip()


def split_into_blocks(content: str) -> list[str]:
    """Split content into text blocks, each tag block starting with its `@tag` line.

    Fenced code, `{@...}` and `${...}` regions keep their lines in the current
    block. Joining the result with a newline restores `content`.
    """

    blocks: list[str] = []
    current = ""
    indicators: list[str] = []

    for line in content.split("\n"):
        starts_with_tag = line.removeprefix(" ").removeprefix(" ").startswith("@")

        if starts_with_tag and not indicators:
            if current:
                blocks.append(current.removesuffix("\n"))
            current = line + "\n"
        elif not line and not indicators:
            current += "\n"
        else:
            current += line + "\n"

        escape_next = False
        for index, char in enumerate(line):
            if escape_next:
                escape_next = False
                continue
            if char == "\\":
                escape_next = True
            elif line.startswith("```", index):
                if not _pop_through(indicators, BACKTICKS):
                    indicators.append(BACKTICKS)
            if BACKTICKS in indicators:
                continue
            if char == "{" and line[index + 1 : index + 2] == "@":
                indicators.append(CURLY_BRACES)
            elif char == "{" and index >= 1 and line[index - 1] == "$" and not (index >= 2 and line[index - 2] == "\\"):
                indicators.append(CURLY_BRACES)
            elif char == "}":
                _pop_through(indicators, CURLY_BRACES)

    blocks.append(current.removesuffix("\n"))
    return blocks


def split_into_blocks_with_ranges(content: str) -> list[tuple[str, tuple[int, int]]]:
    """Like `split_into_blocks`, with the `[start, end)` span of each block in `content`."""

    blocks = split_into_blocks(content)
    result: list[tuple[str, tuple[int, int]]] = []
    offset = 0
    for index, block in enumerate(blocks):
        end = offset + len(block)
        if index != len(blocks) - 1:
            end += 1
        result.append((block, (offset, end)))
        offset += len(block) + 1
    return result


def find_inline_tags(content: str) -> list[InlineTag]:
    """Find all inline tags, deepest first and then in order of appearance."""

    by_depth: dict[int, list[InlineTag]] = {}
    starts: list[int] = []
    escape_next = False
    for index, char in enumerate(content):
        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif char == "{" and content[index + 1 : index + 2] == "@":
            starts.append(index)
        elif char == "}" and starts:
            start = starts.pop()
            name = get_tag_name(content[start : index + 1])
            if name is not None:
                depth = len(starts)
                by_depth.setdefault(depth, []).append(InlineTag(name, start, index + 1, depth))

    return [tag for depth in sorted(by_depth, reverse=True) for tag in by_depth[depth]]


def find_inline_tag_names(content: str) -> list[str]:
    return [tag.name for tag in find_inline_tags(content)]


def find_block_tag_names(content: str) -> list[str]:
    names = []
    for block in split_into_blocks(content):
        if block.lstrip().startswith("@"):
            name = get_tag_name(block)
            if name is not None:
                names.append(name)
    return names


def find_tag_names(content: str) -> set[str]:
    """Names of every block and inline tag present in `content`."""

    return set(find_inline_tag_names(content)) | set(find_block_tag_names(content))


def rewrite_reference_links(content: str, resolve: Callable[[str], str]) -> str:
    """Rewrite `[Target]` and `[Alias][Target]` links using `resolve`.

    `[X]` becomes `[X][resolved]`, or stays `[X]` when `resolve` returns it
    unchanged; for aliased links only the target part is replaced. Links in
    backticked code and escaped brackets are left alone.
    """

    out: list[str] = []
    current = ""
    escape_next = False
    in_code = False
    state = None

    for index, char in enumerate(content):
        previous_char = content[index - 1] if index > 0 else None
        next_char = content[index + 1] if index + 1 < len(content) else None

        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif char == "`":
            in_code = not in_code
        elif char == "[" and not in_code:
            state = "aliased" if previous_char == "]" else "reference"
            out.append(current)
            current = ""
        elif char == "]" and not in_code and next_char not in ("[", "("):
            current = _process_reference(state, current, resolve, out)
            out.append(current)
            current = ""
            state = None
        current += char

    out.append(current)
    return "".join(out)


def _process_reference(state: str | None, block: str, resolve: Callable[[str], str], out: list[str]) -> str:
    if state is None:
        return block
    original = block.removeprefix("[")
    backticked = original.startswith("`") and original.endswith("`")
    if not backticked and " " in original:
        return block
    processed = resolve(original)
    if state == "aliased" or processed == original:
        out.append(f"[{processed}")
    else:
        out.append(f"[{original}][{processed}")
    return ""


def comment_to_content(comment: str) -> str:
    """Strip `/**`, `*/` and leading `*` markers from a doc comment."""

    lines = comment.split("\n")
    last = len(lines) - 1
    result = []
    for index, line in enumerate(lines):
        if index == 0:
            line = line.lstrip().removeprefix("/**")
        if index == last:
            stripped = line.lstrip()
            if stripped == "*/":
                line = ""
            else:
                line = stripped.removeprefix("*").removesuffix("*/").removesuffix(" ")
        elif index != 0:
            line = line.lstrip().removeprefix("*")
        result.append(line.removeprefix(" "))
    return "\n".join(result)


def content_to_comment(content: str, indent: int = 0) -> str:
    """Render content as a `/** ... */` doc comment indented by `indent` spaces."""

    lines = content.split("\n")
    lines[0] = "/**" if not lines[0] else f"/** {lines[0]}"
    last_is_blank = not lines[-1].strip()
    lines[-1] = lines[-1].strip() + " */"

    rendered = []
    for index, line in enumerate(lines):
        prefix = " " * indent
        if not (index == 0 or (index == len(lines) - 1 and last_is_blank)):
            prefix += " *" + (" " if line else "")
        rendered.append(prefix + line)
    return "\n".join(rendered)


def strip_doc_comments(source: str) -> str:
    return DOC_COMMENT_PATTERN.sub("", source)


def dedent(text: str) -> str:
    """Remove a blank first and last line and the common indent of the rest."""

    lines = text.split("\n")
    if lines and not lines[0].strip():
        lines = lines[1:]
    if lines and not lines[-1].strip():
        lines = lines[:-1]
    return textwrap.dedent("\n".join(lines))


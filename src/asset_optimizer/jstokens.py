"""Lightweight JavaScript tokenizer.

Only what the script pipeline needs: token boundaries with positions so
``debugger`` statements can be blanked out in place and minified output can
be aligned back to the source for source maps. No parsing is attempted; the
regex-versus-division ambiguity is resolved from the previous token.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Sequence
from dataclasses import dataclass

from asset_optimizer.sourcemap import SourceMapBuilder

_PUNCTUATORS = (
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--", "+=", "-=",
    "*=", "/=", "%=", "&=", "|=", "^=", "<<", ">>", "**",
)
_NAME = re.compile(
    r"#?(?:[A-Za-z_$\u0080-\uffff]|\\u[0-9a-fA-F{])(?:[\w$\u0080-\uffff]|\\u[0-9a-fA-F{}]+)*"
)
_NUMBER = re.compile(
    r"0[xXoObB][0-9a-fA-F_]+n?|(?:\d[\d_]*\.?[\d_]*|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?"
)
_WHITESPACE = re.compile(r"[ \t\f\v\r\n\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+")
_LINE_BREAK = re.compile(r"\r\n|[\r\n\u2028\u2029]")

_REGEX_AFTER_KEYWORDS = frozenset(
    {
        "return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw",
        "case", "do", "else", "yield", "await",
    }
)


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    text: str
    start: int
    line: int
    column: int


class _Scanner:
    def __init__(self, code: str) -> None:
        self.code = code
        self.line_starts = [0] + [m.end() for m in _LINE_BREAK.finditer(code)]

    def position(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self.line_starts, offset) - 1
        return line, offset - self.line_starts[line]

    def skip_quoted(self, index: int) -> int:
        quote = self.code[index]
        index += 1
        while index < len(self.code):
            char = self.code[index]
            if char == "\\":
                index += 2
                continue
            if char == quote or char in "\r\n":
                return index + 1
            index += 1
        return len(self.code)

    def skip_template(self, index: int) -> int:
        index += 1
        while index < len(self.code):
            char = self.code[index]
            if char == "\\":
                index += 2
                continue
            if char == "`":
                return index + 1
            if char == "$" and self.code.startswith("${", index):
                index = self.skip_substitution(index + 2)
                continue
            index += 1
        return len(self.code)

    def skip_substitution(self, index: int, collect: list[Token] | None = None) -> int:
        depth = 0
        previous: Token | None = None
        while index < len(self.code):
            token, end = self.read(index, previous)
            if token is None:
                index = end
                continue
            if token.text == "{":
                depth += 1
            elif token.text == "}":
                if depth == 0:
                    return end
                depth -= 1
            if collect is not None:
                collect.append(token)
            previous = token
            index = end
        return len(self.code)

    def substitutions(self, index: int) -> list[list[Token]]:
        """Tokens of each ``${...}`` of the template literal starting at ``index``."""
        groups: list[list[Token]] = []
        index += 1
        while index < len(self.code):
            char = self.code[index]
            if char == "\\":
                index += 2
                continue
            if char == "`":
                break
            if char == "$" and self.code.startswith("${", index):
                group: list[Token] = []
                index = self.skip_substitution(index + 2, group)
                groups.append(group)
                continue
            index += 1
        return groups

    def skip_regex(self, index: int) -> int:
        index += 1
        in_class = False
        while index < len(self.code):
            char = self.code[index]
            if char == "\\":
                index += 2
                continue
            if char in "\r\n":
                return index
            if char == "[":
                in_class = True
            elif char == "]":
                in_class = False
            elif char == "/" and not in_class:
                index += 1
                while index < len(self.code) and (
                    self.code[index].isalnum() or self.code[index] in "_$"
                ):
                    index += 1
                return index
            index += 1
        return len(self.code)

    @staticmethod
    def regex_allowed(previous: Token | None) -> bool:
        if previous is None:
            return True
        if previous.kind == "name":
            return previous.text in _REGEX_AFTER_KEYWORDS
        if previous.kind == "punct":
            return previous.text not in {")", "]"}
        return False

    def make(self, kind: str, start: int, end: int) -> Token:
        line, column = self.position(start)
        return Token(kind, self.code[start:end], start, line, column)

    def read(self, index: int, previous: Token | None) -> tuple[Token | None, int]:
        """Read one token at ``index``; ``None`` for whitespace and comments."""
        code = self.code
        match = _WHITESPACE.match(code, index)
        if match:
            return None, match.end()
        if code.startswith("//", index):
            end = _LINE_BREAK.search(code, index)
            return None, end.start() if end else len(code)
        if code.startswith("/*", index):
            end = code.find("*/", index + 2)
            return None, len(code) if end < 0 else end + 2
        if code.startswith("<!--", index) or (
            code.startswith("-->", index) and (previous is None or self._line_start(index))
        ):
            end = _LINE_BREAK.search(code, index)
            return None, end.start() if end else len(code)

        char = code[index]
        if char in "\"'":
            end = self.skip_quoted(index)
            return self.make("string", index, end), end
        if char == "`":
            end = self.skip_template(index)
            return self.make("template", index, end), end
        if char == "/" and self.regex_allowed(previous):
            end = self.skip_regex(index)
            return self.make("regex", index, end), end
        if char.isdigit() or (char == "." and index + 1 < len(code) and code[index + 1].isdigit()):
            match = _NUMBER.match(code, index)
            if match:
                return self.make("number", index, match.end()), match.end()
        match = _NAME.match(code, index)
        if match:
            return self.make("name", index, match.end()), match.end()
        for punct in _PUNCTUATORS:
            if code.startswith(punct, index):
                if punct == "?." and code[index + 2 : index + 3].isdigit():
                    break
                return self.make("punct", index, index + len(punct)), index + len(punct)
        return self.make("punct", index, index + 1), index + 1

    def _line_start(self, index: int) -> bool:
        line, _ = self.position(index)
        return not self.code[self.line_starts[line] : index].strip()


def tokenize(code: str) -> list[Token]:
    """Return significant tokens (no whitespace or comments) of ``code``."""
    scanner = _Scanner(code)
    tokens: list[Token] = []
    previous: Token | None = None
    index = 0
    while index < len(code):
        token, index = scanner.read(index, previous)
        if token is not None:
            tokens.append(token)
            previous = token
    return tokens


def _opens_method_body(tokens: Sequence[Token], position: int) -> bool:
    """Whether the ``(`` at ``position`` closes into a ``{`` (a method head)."""
    depth = 0
    for index in range(position, len(tokens)):
        text = tokens[index].text
        if text == "(":
            depth += 1
        elif text == ")":
            depth -= 1
            if depth == 0:
                return index + 1 < len(tokens) and tokens[index + 1].text == "{"
    return False


def _debugger_edits(scanner: _Scanner, tokens: Sequence[Token]) -> list[tuple[int, str]]:
    edits: list[tuple[int, str]] = []
    for position, token in enumerate(tokens):
        if token.kind == "template":
            for group in scanner.substitutions(token.start):
                edits.extend(_debugger_edits(scanner, group))
            continue
        if token.kind != "name" or token.text != "debugger":
            continue
        before = tokens[position - 1].text if position else None
        after = tokens[position + 1].text if position + 1 < len(tokens) else None
        if before in {".", "?.", "get", "set", "static"} or after in {":", "=", ","}:
            continue
        if after == "(" and _opens_method_body(tokens, position + 1):
            continue
        replacement = " " * len(token.text) if after == ";" else ";" + " " * (len(token.text) - 1)
        edits.append((token.start, replacement))
    return edits


def blank_debugger_statements(code: str, tokens: Sequence[Token]) -> tuple[str, int]:
    """Replace ``debugger`` statements with same-length empty statements.

    Offsets, lines and columns of every other token are unchanged. Statements
    inside template literal substitutions are blanked too. Property and
    method names such as ``obj.debugger``, ``{debugger: 1}`` or
    ``{debugger() {}}`` are left alone.
    """
    edits = _debugger_edits(_Scanner(code), tokens)
    if not edits:
        return code, 0
    pieces: list[str] = []
    cursor = 0
    for start, replacement in edits:
        pieces.append(code[cursor:start])
        pieces.append(replacement)
        cursor = start + len(replacement)
    pieces.append(code[cursor:])
    return "".join(pieces), len(edits)


def align_source_map(
    source_tokens: Sequence[Token],
    minified: str,
    *,
    source_name: str,
    output_name: str,
) -> dict[str, object]:
    """Map each token of ``minified`` to the identical source token.

    Whitespace/comment-only minification keeps the token sequence intact, so
    tokens are paired in order; mapping stops at the first disagreement.
    """
    builder = SourceMapBuilder(file=output_name, sources=[source_name])
    for source, generated in zip(source_tokens, tokenize(minified), strict=False):
        if source.text != generated.text:
            break
        builder.add(generated.line, generated.column, source.line, source.column)
    return builder.to_dict()

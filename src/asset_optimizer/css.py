"""Stylesheet rewriting on top of rcssmin output."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

import rcssmin

from asset_optimizer.application.options import CssOptions
from asset_optimizer.prefixes import prefix_declarations, split_declaration, vendors_for

_GROUP_AT_RULES = frozenset(
    {"media", "supports", "document", "-moz-document", "layer", "container", "scope",
     "starting-style"}
)
_KEYFRAMES_AT_RULES = frozenset(
    {"keyframes", "-webkit-keyframes", "-moz-keyframes", "-o-keyframes"}
)

_FONT_WEIGHTS = {"normal": "400", "bold": "700"}
_GENERIC_FAMILIES = frozenset(
    {
        "serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui", "math",
        "emoji", "fangsong", "ui-serif", "ui-sans-serif", "ui-monospace", "ui-rounded",
        "inherit", "initial", "unset", "revert", "revert-layer", "default",
    }
)
_IDENT_WORD = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_IDENT_VALUE = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")
_ATTRIBUTE = re.compile(
    r"^\[(?P<name>[^\]=~|^$*]+)(?P<op>[~|^$*]?=)(?P<quote>['\"])(?P<value>.*?)(?P=quote)"
    r"(?P<flag>\s*[iIsS])?\]$"
)
_NTH = re.compile(r":(nth-child|nth-last-child|nth-of-type|nth-last-of-type)\(([^)]*)\)", re.I)
_STAR = re.compile(r"(?:^|(?<=[\s>+~(,]))\*(?=[.#\[:])")

type SelectorHook = Callable[[str], str]
type BlockHook = Callable[[list[str]], list[str]]


def _skip_string(text: str, start: int) -> int:
    quote = text[start]
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        index += 1
    return len(text)


def _scan(css: str) -> Iterator[tuple[str, str]]:
    """Yield ``(text, delimiter)`` pairs split on top-level ``{``, ``}``, ``;``."""
    start = 0
    index = 0
    depth = 0
    while index < len(css):
        char = css[index]
        if char in "\"'":
            index = _skip_string(css, index)
            continue
        if char == "\\":
            index += 2
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif depth == 0 and char in "{};":
            yield css[start:index], char
            start = index + 1
        index += 1
    yield css[start:], ""


def _block_kind(prelude: str, parent: str) -> str:
    if prelude.startswith("@"):
        name = re.split(r"[\s({]", prelude[1:], maxsplit=1)[0].lower()
        if name in _GROUP_AT_RULES:
            return "group"
        if name in _KEYFRAMES_AT_RULES:
            return "keyframes"
        return "at-declarations"
    if parent == "keyframes":
        return "keyframe"
    return "rule"


@dataclass
class _Frame:
    kind: str
    declarations: list[str] = field(default_factory=list)

    @property
    def holds_declarations(self) -> bool:
        return self.kind in {"rule", "keyframe", "at-declarations"}


def rewrite_stylesheet(
    css: str,
    *,
    on_selector: SelectorHook,
    on_block: BlockHook,
) -> str:
    """Rebuild minified CSS, passing selectors and declaration blocks to hooks.

    ``on_selector`` receives style-rule preludes (not keyframe selectors);
    ``on_block`` receives the declarations of each block, without the
    separating semicolons, and returns the declarations to emit.
    """
    out: list[str] = []
    stack: list[_Frame] = []

    def flush(frame: _Frame) -> None:
        if frame.declarations:
            out.append(";".join(on_block(frame.declarations)))
            frame.declarations = []

    for text, delimiter in _scan(css):
        frame = stack[-1] if stack else None
        if delimiter == "{":
            prelude = text.strip()
            kind = _block_kind(prelude, frame.kind if frame else "group")
            if frame is not None and frame.holds_declarations and frame.declarations:
                flush(frame)
                out.append(";")
            out.append((on_selector(prelude) if kind == "rule" else prelude) + "{")
            stack.append(_Frame(kind))
        elif delimiter == ";":
            if frame is not None and frame.holds_declarations:
                if text.strip():
                    frame.declarations.append(text.strip())
            else:
                out.append(text + ";")
        elif delimiter == "}":
            if frame is None:
                out.append(text + "}")
                continue
            if frame.holds_declarations:
                if text.strip():
                    frame.declarations.append(text.strip())
                flush(frame)
            else:
                out.append(text)
            out.append("}")
            stack.pop()
        else:
            out.append(text)
    return "".join(out)


def _split_top_level(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    index = 0
    while index < len(text):
        char = text[index]
        if char in "\"'":
            index = _skip_string(text, index)
            continue
        if char in "([":
            depth += 1
        elif char in ")]":
            depth = max(0, depth - 1)
        elif char == separator and depth == 0:
            parts.append(text[start:index])
            start = index + 1
        index += 1
    parts.append(text[start:])
    return parts


def _unquote_attributes(selector: str) -> str:
    result: list[str] = []
    index = 0
    while index < len(selector):
        char = selector[index]
        if char in "\"'":
            end = _skip_string(selector, index)
            result.append(selector[index:end])
            index = end
            continue
        if char == "[":
            end = index + 1
            while end < len(selector) and selector[end] != "]":
                end = _skip_string(selector, end) if selector[end] in "\"'" else end + 1
            chunk = selector[index : end + 1]
            match = _ATTRIBUTE.match(chunk)
            if match and _IDENT_VALUE.match(match.group("value")):
                flag = (match.group("flag") or "").strip()
                chunk = (
                    f"[{match.group('name')}{match.group('op')}{match.group('value')}"
                    f"{' ' + flag if flag else ''}]"
                )
            result.append(chunk)
            index = end + 1
            continue
        result.append(char)
        index += 1
    return "".join(result)


def _normalize_nth(match: re.Match[str]) -> str:
    raw = match.group(2)
    if not re.fullmatch(r"[0-9n+\-\s]+|\s*(?:odd|even)\s*", raw, re.I):
        return match.group(0)
    argument = raw.replace(" ", "").lower()
    if argument == "2n+1":
        argument = "odd"
    elif argument == "even":
        argument = "2n"
    return f":{match.group(1)}({argument})"


def _mask_strings(text: str) -> str:
    """Return ``text`` with every quoted string overwritten by ``_``."""
    result: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\":
            result.append(text[index : index + 2])
            index += 2
            continue
        if char in "\"'":
            end = _skip_string(text, index)
            result.append("_" * (end - index))
            index = end
            continue
        result.append(char)
        index += 1
    return "".join(result)


def _sub_outside_strings(
    pattern: re.Pattern[str], replace: Callable[[re.Match[str]], str], text: str
) -> str:
    masked = _mask_strings(text)
    pieces: list[str] = []
    cursor = 0
    for match in pattern.finditer(masked):
        start, end = match.span()
        if masked[start:end] != text[start:end]:
            continue
        pieces.append(text[cursor:start])
        pieces.append(replace(match))
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def minify_selector(selector: str) -> str:
    """Apply safe size reductions to one complex selector.

    Quoted attribute values are never rewritten.
    """
    selector = selector.strip()
    if '"' in selector or "'" in selector:
        selector = _unquote_attributes(selector)
    selector = _sub_outside_strings(_NTH, _normalize_nth, selector)
    return _sub_outside_strings(_STAR, lambda match: "", selector)


def minify_selector_list(prelude: str) -> str:
    """Minify each selector of a rule prelude and drop duplicates."""
    seen: dict[str, None] = {}
    for selector in _split_top_level(prelude, ","):
        minified = minify_selector(selector)
        if minified:
            seen.setdefault(minified, None)
    return ",".join(seen) if seen else prelude


def _unquote_family(family: str) -> str:
    family = family.strip()
    if len(family) < 2 or family[0] not in "\"'" or family[-1] != family[0]:
        return family
    inner = family[1:-1]
    words = inner.split(" ")
    if all(_IDENT_WORD.match(word) for word in words) and not any(
        word.lower() in _GENERIC_FAMILIES for word in words
    ):
        return inner
    return family


def minify_font_declaration(declaration: str) -> str:
    """Shorten font weights and family lists in one declaration."""
    parts = split_declaration(declaration)
    if parts is None:
        return declaration
    prop, value, important = parts
    key = prop.lower()
    if key == "font-weight":
        value = _FONT_WEIGHTS.get(value.lower(), value)
    elif key == "font-family":
        families: dict[str, None] = {}
        for family in _split_top_level(value, ","):
            families.setdefault(_unquote_family(family), None)
        value = ",".join(families)
    elif key == "font" and "\"" not in value and "'" not in value:
        value = re.sub(r"(?<![\w-])bold(?![\w-])", "700", value)
    else:
        return declaration
    return f"{prop}:{value}{important}"


def optimize_css(css: str, options: CssOptions) -> str:
    """Minify, prefix and normalize a stylesheet."""
    minified = rcssmin.cssmin(css, keep_bang_comments=False)
    vendors = vendors_for(options.browsers)

    def on_block(declarations: list[str]) -> list[str]:
        result = prefix_declarations(declarations, vendors)
        if options.minify_font_values:
            result = [minify_font_declaration(item) for item in result]
        return result

    def on_selector(prelude: str) -> str:
        return minify_selector_list(prelude) if options.minify_selectors else prelude

    return rewrite_stylesheet(minified, on_selector=on_selector, on_block=on_block)

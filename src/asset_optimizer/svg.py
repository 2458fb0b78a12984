"""Structural SVG cleanup built on lxml."""

from __future__ import annotations

import itertools
import re
import string
from collections.abc import Iterator

from lxml import etree

SVG_NS = "http://www.w3.org/2000/svg"

EDITOR_NAMESPACES = frozenset(
    {
        "http://www.inkscape.org/namespaces/inkscape",
        "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
        "http://ns.adobe.com/AdobeIllustrator/10.0/",
        "http://ns.adobe.com/AdobeSVGViewerExtensions/3.0/",
        "http://ns.adobe.com/Extensibility/1.0/",
        "http://ns.adobe.com/Flows/1.0/",
        "http://ns.adobe.com/Graphs/1.0/",
        "http://ns.adobe.com/ImageReplacement/1.0/",
        "http://ns.adobe.com/SaveForWeb/1.0/",
        "http://ns.adobe.com/Variables/1.0/",
        "http://www.bohemiancoding.com/sketch/ns",
        "http://www.serif.com/",
    }
)

_URL_REF = re.compile(r"url\(\s*(['\"]?)#([^'\")\s]+)\1\s*\)")
_TIMING_ATTRS = frozenset({"begin", "end"})


def _local(name: object) -> str:
    if not isinstance(name, str):
        return ""
    return etree.QName(name).localname


def _namespace(name: object) -> str | None:
    if not isinstance(name, str):
        return None
    return etree.QName(name).namespace


def _drop(element: etree._Element) -> None:
    """Remove ``element`` while keeping its tail text in place."""
    parent = element.getparent()
    if parent is None:
        return
    if element.tail and element.tail.strip():
        previous = element.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + element.tail
        else:
            parent.text = (parent.text or "") + element.tail
    parent.remove(element)


def _remove_metadata(root: etree._Element) -> None:
    for element in list(root.iter(f"{{{SVG_NS}}}metadata")):
        _drop(element)


def _remove_editor_data(root: etree._Element) -> None:
    for element in list(root.iter(etree.Element)):
        if _namespace(element.tag) in EDITOR_NAMESPACES:
            _drop(element)
            continue
        for name in list(element.attrib):
            if _namespace(name) in EDITOR_NAMESPACES:
                del element.attrib[name]


def _short_ids() -> Iterator[str]:
    letters = string.ascii_letters
    for size in itertools.count(1):
        for combo in itertools.product(letters, repeat=size):
            yield "".join(combo)


def _timing_refs(value: str) -> Iterator[str]:
    for part in value.split(";"):
        head = part.strip().split(".", 1)
        if len(head) == 2 and head[0]:
            yield head[0]


def _collect_references(root: etree._Element) -> set[str]:
    refs: set[str] = set()
    for element in root.iter(etree.Element):
        for name, value in element.attrib.items():
            refs.update(match.group(2) for match in _URL_REF.finditer(value))
            local = _local(name)
            if local == "href" and value.startswith("#"):
                refs.add(value[1:])
            elif local in _TIMING_ATTRS:
                refs.update(_timing_refs(value))
    return refs


def _rewrite_value(name: str, value: str, renames: dict[str, str]) -> str:
    value = _URL_REF.sub(
        lambda m: f"url({m.group(1)}#{renames.get(m.group(2), m.group(2))}{m.group(1)})",
        value,
    )
    local = _local(name)
    if local == "href" and value.startswith("#"):
        return "#" + renames.get(value[1:], value[1:])
    if local in _TIMING_ATTRS:
        parts = []
        for part in value.split(";"):
            head, dot, _ = part.partition(".")
            key = head.strip()
            if dot and key in renames:
                part = part.replace(key, renames[key], 1)
            parts.append(part)
        return ";".join(parts)
    return value


def cleanup_ids(root: etree._Element) -> None:
    """Drop unreferenced IDs and shorten referenced ones.

    Documents with ``<style>`` or ``<script>`` are left alone since their
    selectors and code may address IDs in ways that cannot be rewritten.
    """
    if any(_local(el.tag) in {"style", "script"} for el in root.iter(etree.Element)):
        return

    refs = _collect_references(root)
    existing = [el for el in root.iter(etree.Element) if "id" in el.attrib]
    kept = {el.attrib["id"] for el in existing if el.attrib["id"] in refs}
    dangling = refs - kept

    renames: dict[str, str] = {}
    names = (name for name in _short_ids() if name not in dangling)
    for element in existing:
        current = element.attrib["id"]
        if current not in refs:
            del element.attrib["id"]
            continue
        if current not in renames:
            renames[current] = next(names)
        element.attrib["id"] = renames[current]

    if not renames:
        return
    for element in root.iter(etree.Element):
        for name, value in list(element.attrib.items()):
            if name == "id":
                continue
            rewritten = _rewrite_value(name, value, renames)
            if rewritten != value:
                element.attrib[name] = rewritten


def optimize_svg(data: bytes) -> bytes:
    """Return a cleaned-up copy of an SVG document.

    The ``viewBox`` and sizing attributes are never modified.

    Raises
    ------
    ValueError
        If ``data`` is not well-formed XML with an ``<svg>`` root.
    """
    parser = etree.XMLParser(
        remove_comments=True,
        remove_pis=True,
        remove_blank_text=True,
        resolve_entities=False,
        no_network=True,
    )
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"invalid SVG document: {exc}") from exc
    if _local(root.tag) != "svg":
        raise ValueError(f"expected <svg> root element, found <{_local(root.tag)}>")

    _remove_metadata(root)
    _remove_editor_data(root)
    cleanup_ids(root)
    etree.cleanup_namespaces(root)
    return etree.tostring(root, encoding="utf-8", xml_declaration=False)

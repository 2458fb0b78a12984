"""Vendor prefixing for CSS declarations."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

VENDORS: tuple[str, ...] = ("webkit", "moz", "ms")

_BROWSER_VENDORS: Mapping[str, str] = {
    "ie": "ms",
    "ie_mob": "ms",
    "explorer": "ms",
    "firefox": "moz",
    "ff": "moz",
    "and_ff": "moz",
}

# property -> ((vendor, prefixed property), ...)
PROPERTY_PREFIXES: Mapping[str, tuple[tuple[str, str], ...]] = {
    "flex": (("webkit", "-webkit-flex"), ("ms", "-ms-flex")),
    "flex-direction": (("webkit", "-webkit-flex-direction"), ("ms", "-ms-flex-direction")),
    "flex-wrap": (("webkit", "-webkit-flex-wrap"), ("ms", "-ms-flex-wrap")),
    "flex-flow": (("webkit", "-webkit-flex-flow"), ("ms", "-ms-flex-flow")),
    "flex-grow": (("webkit", "-webkit-flex-grow"), ("ms", "-ms-flex-positive")),
    "flex-shrink": (("webkit", "-webkit-flex-shrink"), ("ms", "-ms-flex-negative")),
    "flex-basis": (("webkit", "-webkit-flex-basis"), ("ms", "-ms-flex-preferred-size")),
    "order": (("webkit", "-webkit-order"), ("ms", "-ms-flex-order")),
    "justify-content": (("webkit", "-webkit-justify-content"), ("ms", "-ms-flex-pack")),
    "align-items": (("webkit", "-webkit-align-items"), ("ms", "-ms-flex-align")),
    "align-self": (("webkit", "-webkit-align-self"), ("ms", "-ms-flex-item-align")),
    "align-content": (("webkit", "-webkit-align-content"), ("ms", "-ms-flex-line-pack")),
    "user-select": (
        ("webkit", "-webkit-user-select"),
        ("moz", "-moz-user-select"),
        ("ms", "-ms-user-select"),
    ),
    "appearance": (("webkit", "-webkit-appearance"), ("moz", "-moz-appearance")),
    "backdrop-filter": (("webkit", "-webkit-backdrop-filter"),),
    "hyphens": (("webkit", "-webkit-hyphens"), ("ms", "-ms-hyphens")),
    "text-size-adjust": (
        ("webkit", "-webkit-text-size-adjust"),
        ("moz", "-moz-text-size-adjust"),
        ("ms", "-ms-text-size-adjust"),
    ),
    "mask": (("webkit", "-webkit-mask"),),
    "mask-image": (("webkit", "-webkit-mask-image"),),
    "mask-size": (("webkit", "-webkit-mask-size"),),
    "mask-position": (("webkit", "-webkit-mask-position"),),
    "mask-repeat": (("webkit", "-webkit-mask-repeat"),),
    "clip-path": (("webkit", "-webkit-clip-path"),),
    "box-decoration-break": (("webkit", "-webkit-box-decoration-break"),),
    "print-color-adjust": (("webkit", "-webkit-print-color-adjust"),),
    "tab-size": (("moz", "-moz-tab-size"),),
}

# (property, value) -> ((vendor, prefixed value), ...)
VALUE_PREFIXES: Mapping[tuple[str, str], tuple[tuple[str, str], ...]] = {
    ("display", "flex"): (("webkit", "-webkit-flex"), ("ms", "-ms-flexbox")),
    ("display", "inline-flex"): (("webkit", "-webkit-inline-flex"), ("ms", "-ms-inline-flexbox")),
    ("position", "sticky"): (("webkit", "-webkit-sticky"),),
}

# (property, value) pairs whose prefixed *property* only applies to that value
CONDITIONAL_PROPERTIES: Mapping[tuple[str, str], tuple[tuple[str, str], ...]] = {
    ("background-clip", "text"): (("webkit", "-webkit-background-clip"),),
}

_MS_BOX_VALUES: Mapping[str, str] = {
    "flex-start": "start",
    "flex-end": "end",
    "space-between": "justify",
    "space-around": "distribute",
    "center": "center",
    "stretch": "stretch",
    "baseline": "baseline",
}

MS_VALUE_MAPS: Mapping[str, Mapping[str, str]] = {
    "-ms-flex-pack": _MS_BOX_VALUES,
    "-ms-flex-align": _MS_BOX_VALUES,
    "-ms-flex-item-align": _MS_BOX_VALUES,
    "-ms-flex-line-pack": _MS_BOX_VALUES,
}


def vendors_for(browsers: Iterable[str]) -> frozenset[str]:
    """Resolve browser queries to the vendor prefixes that must be emitted.

    Every vendor is emitted unless a ``not <browser>`` query excludes the
    engine that needs it (``not ie 11`` drops ``-ms-``, ``not firefox < 60``
    drops ``-moz-``).
    """
    vendors = set(VENDORS)
    for query in browsers:
        words = query.lower().split()
        if len(words) >= 2 and words[0] == "not":
            vendor = _BROWSER_VENDORS.get(words[1])
            if vendor is not None:
                vendors.discard(vendor)
    return frozenset(vendors)


def split_declaration(declaration: str) -> tuple[str, str, str] | None:
    """Split ``prop:value[!important]`` into its three parts."""
    prop, sep, rest = declaration.partition(":")
    prop = prop.strip()
    if not sep or not prop or prop.startswith("--"):
        return None
    value = rest.strip()
    important = ""
    lowered = value.lower()
    if lowered.endswith("!important"):
        important = value[-len("!important"):]
        value = value[: -len("!important")].rstrip()
    return prop, value, important


def _expand(prop: str, value: str, vendors: frozenset[str]) -> list[tuple[str, str]]:
    key = prop.lower()
    lowered = value.lower()
    expanded: list[tuple[str, str]] = []
    for vendor, prefixed in PROPERTY_PREFIXES.get(key, ()):
        if vendor not in vendors:
            continue
        mapping = MS_VALUE_MAPS.get(prefixed)
        if mapping is not None:
            if lowered not in mapping:
                continue
            expanded.append((prefixed, mapping[lowered]))
        else:
            expanded.append((prefixed, value))
    for vendor, prefixed in CONDITIONAL_PROPERTIES.get((key, lowered), ()):
        if vendor in vendors:
            expanded.append((prefixed, value))
    for vendor, prefixed_value in VALUE_PREFIXES.get((key, lowered), ()):
        if vendor in vendors:
            expanded.append((prop, prefixed_value))
    return expanded


def prefix_declarations(declarations: Sequence[str], vendors: frozenset[str]) -> list[str]:
    """Insert prefixed declarations before their standard form.

    A prefixed property (or prefixed value) that is already declared in the
    same block is not added again.
    """
    parsed = [split_declaration(item) for item in declarations]
    present_props = {entry[0].lower() for entry in parsed if entry is not None}
    present_pairs = {
        (entry[0].lower(), entry[1].lower()) for entry in parsed if entry is not None
    }

    result: list[str] = []
    for declaration, entry in zip(declarations, parsed, strict=True):
        if entry is not None and not entry[0].startswith("-"):
            prop, value, important = entry
            for new_prop, new_value in _expand(prop, value, vendors):
                if new_prop.lower() != prop.lower():
                    if new_prop.lower() in present_props:
                        continue
                    present_props.add(new_prop.lower())
                elif (new_prop.lower(), new_value.lower()) in present_pairs:
                    continue
                present_pairs.add((new_prop.lower(), new_value.lower()))
                result.append(f"{new_prop}:{new_value}{important}")
        result.append(declaration)
    return result

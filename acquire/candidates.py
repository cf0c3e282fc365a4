"""
Candidate generation for datasheet locations.

Strategies run in fixed priority order and their outputs are concatenated:
aggregator → manufacturer direct → search patterns → hosting mirrors → type.

Everything here is pure: no I/O, no retries, no fetching.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence
from urllib.parse import quote, quote_plus

from .schema import Candidate, StrategyTag


# ---------------------------------------------------------------------------
# Manufacturer tables
# ---------------------------------------------------------------------------

# Ordered (prefix regex, manufacturer) pairs matched against the lowercased id
MANUFACTURER_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^(lm|tps|tlv|ina|ads)"), "ti"),
    (re.compile(r"^(ad|lt|adm|adp)"), "analog"),
    (re.compile(r"^(pic|atmega|attiny|sam|mcp)"), "microchip"),
    (re.compile(r"^(stm|l[0-9]|vn)"), "st"),
    (re.compile(r"^(lpc|i2c|pca)"), "nxp"),
    (re.compile(r"^(irfz|bss|irf)"), "infineon"),
    (re.compile(r"^(2n|bc|mur)"), "onsemi"),
    (re.compile(r"^(tsop|vs|si)"), "vishay"),
    (re.compile(r"^(dmg|dfn)"), "diodes"),
]

FALLBACK_MANUFACTURERS = ("ti", "analog", "st")

MANUFACTURER_SITES = {
    "ti": "https://www.ti.com/lit/ds/symlink/",
    "analog": "https://www.analog.com/media/en/technical-documentation/",
    "microchip": "https://ww1.microchip.com/downloads/en/DeviceDoc/",
    "st": "https://www.st.com/resource/en/datasheet/",
    "nxp": "https://www.nxp.com/docs/en/data-sheet/",
    "infineon": "https://www.infineon.com/dgdl/",
    "onsemi": "https://www.onsemi.com/pdf/datasheet/",
    "vishay": "https://www.vishay.com/docs/",
    "diodes": "https://www.diodes.com/assets/Datasheets/",
}

MANUFACTURER_DOMAINS = {
    "ti": "ti.com",
    "analog": "analog.com",
    "microchip": "microchip.com",
    "st": "st.com",
    "nxp": "nxp.com",
    "infineon": "infineon.com",
    "onsemi": "onsemi.com",
    "vishay": "vishay.com",
    "diodes": "diodes.com",
    "espressif": "espressif.com",
    "maxim": "maximintegrated.com",
    "fairchild": "onsemi.com",
    "freescale": "nxp.com",
    "atmel": "microchip.com",
}

# Document URL templates per manufacturer domain.
# {name} = raw id, {clean} = cleaned lowercase id
DOMAIN_DOCUMENT_PATTERNS = {
    "ti.com": [
        "https://www.ti.com/lit/ds/symlink/{clean}.pdf",
        "https://www.ti.com/lit/gpn/{clean}",
        "https://www.ti.com/product/{name}",
    ],
    "analog.com": [
        "https://www.analog.com/media/en/technical-documentation/{clean}.pdf",
        "https://www.analog.com/media/en/technical-documentation/data-sheets/{clean}.pdf",
    ],
    "microchip.com": [
        "https://ww1.microchip.com/downloads/en/DeviceDoc/{clean}.pdf",
        "https://ww1.microchip.com/downloads/en/DeviceDoc/{clean}-datasheet.pdf",
    ],
    "st.com": [
        "https://www.st.com/resource/en/datasheet/{clean}.pdf",
        "https://www.st.com/content/ccc/resource/technical/document/datasheet/{clean}.pdf",
    ],
    "nxp.com": [
        "https://www.nxp.com/docs/en/data-sheet/{name}.pdf",
        "https://www.nxp.com/docs/en/data-sheet/{clean}.pdf",
    ],
    "infineon.com": [
        "https://www.infineon.com/dgdl/Infineon-{name}-DataSheet.pdf",
        "https://www.infineon.com/dgdl/{name}.pdf",
    ],
}

# Generic mirror patterns synthesized in lieu of live search queries.
# {clean} = cleaned lowercase id, {dash}/{under} = separators normalized
GENERIC_DOCUMENT_PATTERNS = [
    "https://www.alldatasheet.com/datasheet-pdf/pdf/1/{clean}.html",
    "https://datasheetspdf.com/pdf-file/1/{clean}/1",
    "https://www.ti.com/lit/ds/symlink/{clean}.pdf",
    "https://www.analog.com/media/en/technical-documentation/{clean}.pdf",
    "https://ww1.microchip.com/downloads/en/DeviceDoc/{clean}.pdf",
    "https://www.st.com/resource/en/datasheet/{clean}.pdf",
    "https://www.alldatasheet.com/datasheet-pdf/pdf/{dash}.html",
    "https://datasheetspdf.com/pdf/{under}",
    "https://datasheetarchive.com/pdf/download.php?id={clean}",
    "http://www.electrodragon.com/w/images/{name}_Datasheet.pdf",
]

HOSTING_MIRROR_PATTERNS = [
    "https://datasheetspdf.com/pdf/{name}",
    "https://datasheetspdf.com/pdf-file/1/{clean}/1",
    "https://www.digchip.com/datasheets/{name}.html",
    "https://www.digchip.com/datasheets/{clean}.html",
    "https://www.datasheet4u.com/{name}.html",
    "https://www.datasheet4u.com/{clean}.html",
    "https://www.datasheetarchive.com/pdf/download.php?id={clean}",
    "https://www.datasheetarchive.com/{name}-datasheet.html",
    "https://www.datasheetcatalog.com/datasheets_pdf/{initial}/{name}.shtml",
    "https://www.datasheets.com/search?q={query}",
    "https://octopart.com/search?q={query}",
    "https://www.sparkfun.com/datasheets/{name}.pdf",
    "https://cdn-shop.adafruit.com/datasheets/{name}.pdf",
]

TYPE_KEYWORDS = {
    "ic": ["microcontroller", "integrated-circuit"],
    "mosfet": ["mosfet", "transistor"],
    "led": ["led", "light-emitting-diode"],
    "sensor": ["sensor", "transducer"],
    "regulator": ["voltage-regulator", "ldo"],
}

ALLDATASHEET = "https://www.alldatasheet.com"


# ---------------------------------------------------------------------------
# Manufacturer inference
# ---------------------------------------------------------------------------

def infer_manufacturer(
    component_id: str,
    patterns: Sequence[tuple[re.Pattern, str]] = MANUFACTURER_PATTERNS,
) -> str | None:
    """Return the first manufacturer whose prefix pattern matches, else None."""
    name = component_id.strip().lower()
    for pattern, manufacturer in patterns:
        if pattern.search(name):
            return manufacturer
    return None


def infer_manufacturers(
    component_id: str,
    limit: int = 3,
    patterns: Sequence[tuple[re.Pattern, str]] = MANUFACTURER_PATTERNS,
    fallback: Sequence[str] = FALLBACK_MANUFACTURERS,
) -> list[str]:
    """
    Return matching manufacturers in table order, at most `limit`.

    Falls back to a fixed set of common manufacturers when nothing matches.
    """
    name = component_id.strip().lower()
    matches = [mfr for pattern, mfr in patterns if pattern.search(name)]
    if not matches:
        matches = list(fallback)
    return matches[:limit]


# ---------------------------------------------------------------------------
# Name variants
# ---------------------------------------------------------------------------

def clean_component_id(component_id: str) -> str:
    """Drop everything except letters, digits and hyphens."""
    return re.sub(r'[^a-zA-Z0-9-]', '', component_id).strip()


def _seg(value: str) -> str:
    """Percent-encode a path segment."""
    return quote(value, safe='-_.~+')


def _variants(component_id: str) -> dict[str, str]:
    name = component_id.strip()
    clean = clean_component_id(name)
    return {
        "name": _seg(name),
        "clean": _seg(clean.lower()),
        "dash": _seg(re.sub(r'[^a-zA-Z0-9]', '-', name).lower()),
        "under": _seg(re.sub(r'[^a-zA-Z0-9]', '_', name).lower()),
        "initial": _seg(name[:1]),
        "query": quote_plus(name),
    }


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def aggregator_urls(component_id: str, component_type: str | None = None) -> list[str]:
    """AllDataSheet templates; never empty for a non-empty id."""
    name = component_id.strip()
    clean = clean_component_id(name)
    raw_seg = _seg(name)
    clean_seg = _seg(clean)
    query = quote_plus(name)

    urls = [
        f"{ALLDATASHEET}/view.jsp?Searchword={query}",
        f"{ALLDATASHEET}/view.jsp?Searchword={quote_plus(clean)}",
        f"{ALLDATASHEET}/datasheet-pdf/pdf/{raw_seg}.html",
        f"{ALLDATASHEET}/datasheet-pdf/pdf/{clean_seg}.html",
        f"{ALLDATASHEET}/datasheet-pdf/pdf/{_seg(clean.upper())}.html",
        f"{ALLDATASHEET}/datasheet-pdf/pdf/{_seg(clean.lower())}.html",
    ]

    for mfr in infer_manufacturers(name):
        urls.append(f"{ALLDATASHEET}/datasheet-pdf/pdf/{raw_seg}/{mfr.upper()}.html")
        urls.append(f"{ALLDATASHEET}/datasheet-pdf/pdf/{clean_seg}/{mfr.upper()}.html")

    urls.append(f"{ALLDATASHEET}/view.jsp?Searchword={query}&sField=4")
    urls.append(f"{ALLDATASHEET}/view.jsp?Searchword={query}&sField=2")

    if component_type:
        typed = f"{name}+{component_type.strip()}"
        urls.append(f"{ALLDATASHEET}/view.jsp?Searchword={quote_plus(name)}+{quote_plus(component_type.strip())}")
        urls.append(f"{ALLDATASHEET}/datasheet-pdf/pdf/{_seg(typed)}.html")

    if '-' in name:
        urls.append(f"{ALLDATASHEET}/datasheet-pdf/pdf/{_seg(name.replace('-', ''))}.html")
        urls.append(f"{ALLDATASHEET}/datasheet-pdf/pdf/{_seg(name.replace('-', ' '))}.html")

    urls.append(f"{ALLDATASHEET}/view_datasheet.jsp?Searchword={query}")
    return urls


def manufacturer_urls(component_id: str) -> list[str]:
    """Direct manufacturer datasheet URLs for up to 3 inferred manufacturers."""
    name = component_id.strip()
    clean = clean_component_id(name).lower()
    urls = []
    for mfr in infer_manufacturers(name):
        base = MANUFACTURER_SITES.get(mfr)
        if not base:
            continue
        urls.append(f"{base}{_seg(clean)}.pdf")
        urls.append(f"{base}{_seg(name.lower())}.pdf")
    return urls


def search_pattern_urls(component_id: str) -> list[str]:
    """
    Generic mirror patterns first, then direct-document URLs synthesized
    per manufacturer domain.
    """
    values = _variants(component_id)
    urls = [template.format(**values) for template in GENERIC_DOCUMENT_PATTERNS]
    for mfr in infer_manufacturers(component_id):
        domain = MANUFACTURER_DOMAINS.get(mfr)
        for template in DOMAIN_DOCUMENT_PATTERNS.get(domain, []):
            urls.append(template.format(**values))
    return urls


def hosting_mirror_urls(component_id: str) -> list[str]:
    values = _variants(component_id)
    return [template.format(**values) for template in HOSTING_MIRROR_PATTERNS]


def type_specific_urls(component_id: str, component_type: str | None) -> list[str]:
    if not component_type:
        return []
    keywords = TYPE_KEYWORDS.get(component_type.strip().lower(), [])
    name = _seg(component_id.strip())
    return [f"{ALLDATASHEET}/datasheet-pdf/pdf/{name}/{kw}.html" for kw in keywords]


# ---------------------------------------------------------------------------
# Generation + dedup
# ---------------------------------------------------------------------------

def generate_candidates(component_id: str, component_type: str | None = None) -> list[Candidate]:
    """
    Build the ranked candidate list for a component.

    Returns an empty list only for a blank id; the aggregator strategy alone
    guarantees at least one candidate otherwise.
    """
    if not component_id or not component_id.strip():
        return []

    layers: list[tuple[StrategyTag, list[str]]] = [
        ('aggregator_primary', aggregator_urls(component_id, component_type)),
        ('manufacturer_direct', manufacturer_urls(component_id)),
        ('search_pattern', search_pattern_urls(component_id)),
        ('hosting_mirror', hosting_mirror_urls(component_id)),
        ('type_specific', type_specific_urls(component_id, component_type)),
    ]

    candidates = []
    for tag, urls in layers:
        for url in urls:
            candidates.append(Candidate(source_url=url, strategy_tag=tag, priority_rank=len(candidates)))
    return candidates


def dedupe(candidates: Iterable) -> list:
    """
    Drop repeated URLs, keeping the first (highest-priority) occurrence.

    Accepts Candidates or plain URL strings.
    """
    seen: set[str] = set()
    unique = []
    for item in candidates:
        url = item.source_url if isinstance(item, Candidate) else item
        if url in seen:
            continue
        seen.add(url)
        unique.append(item)
    return unique


def strategy_counts(candidates: Iterable[Candidate]) -> dict[str, int]:
    """Count candidates per strategy tag, preserving strategy order."""
    counts: dict[str, int] = {}
    for c in candidates:
        counts[c.strategy_tag] = counts.get(c.strategy_tag, 0) + 1
    return counts


__all__ = [
    "MANUFACTURER_PATTERNS",
    "FALLBACK_MANUFACTURERS",
    "MANUFACTURER_SITES",
    "MANUFACTURER_DOMAINS",
    "TYPE_KEYWORDS",
    "infer_manufacturer",
    "infer_manufacturers",
    "clean_component_id",
    "aggregator_urls",
    "manufacturer_urls",
    "search_pattern_urls",
    "hosting_mirror_urls",
    "type_specific_urls",
    "generate_candidates",
    "dedupe",
    "strategy_counts",
]

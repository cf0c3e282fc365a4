"""
Specification extraction from markup pages.

Pipeline: sanitize → truncate → prompt → text-generation service → lenient
parse. The parse step is tagged so callers can branch on confidence:

    parsed    JSON object sliced from the first '{' to the last '}'
    partial   no usable JSON, but labeled lines ("voltage min: 3V") matched
    unparsed  nothing usable; the raw text is kept on the record

Parsing never returns None and never raises.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Protocol

from .cache import FifoCache
from .config import AcquireConfig
from .content import sanitize_markup, truncate_text
from .errors import ExtractionParseFailure
from .hasher import hash_prefix
from .schema import CurrentDraw, SpecificationRecord, TemperatureRange, VoltageRange


logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


PROMPT_TEMPLATE = """
You are an electronics engineer analyzing a datasheet webpage for component: {component}

Extract the following specifications from this webpage text:

WEBPAGE TEXT:
{text}

Extract and return ONLY a JSON object with these specifications:
{{
  "component": "{component}",
  "manufacturer": "manufacturer name",
  "description": "brief component description",
  "voltage": {{
    "min": "value with unit",
    "typ": "value with unit",
    "max": "value with unit"
  }},
  "current": {{
    "operating": "value with unit",
    "sleep": "value with unit (if available)"
  }},
  "package": "package type(s)",
  "pin_count": "pin count",
  "temperature": {{
    "min": "value with unit",
    "max": "value with unit"
  }},
  "features": ["key feature 1", "key feature 2"],
  "applications": ["typical application 1", "typical application 2"]
}}

Return ONLY valid JSON, no other text.
"""

# Labeled-line fallback: (field path, pattern). Labels must end with a colon.
LABELED_FIELDS: list[tuple[tuple[str, ...], re.Pattern]] = [
    (("component",), re.compile(r'\bcomponent\s*:\s*([^\n,]+)', re.I)),
    (("voltage", "min"), re.compile(r'\bvoltage[\s_-]*min\s*:\s*([^\n,]+)', re.I)),
    (("voltage", "typ"), re.compile(r'\bvoltage[\s_-]*typ\s*:\s*([^\n,]+)', re.I)),
    (("voltage", "max"), re.compile(r'\bvoltage[\s_-]*max\s*:\s*([^\n,]+)', re.I)),
    (("current", "operating"), re.compile(r'\bcurrent[\s_-]*operating\s*:\s*([^\n,]+)', re.I)),
    (("package",), re.compile(r'\bpackage\s*:\s*([^\n,]+)', re.I)),
    (("manufacturer",), re.compile(r'\bmanufacturer\s*:\s*([^\n,]+)', re.I)),
]


@dataclass
class ParseResult:
    """Outcome of leniently parsing service output."""
    kind: Literal['parsed', 'partial', 'unparsed']
    fields: dict = field(default_factory=dict)
    raw: str = ''

    @property
    def parsed(self) -> bool:
        return self.kind == 'parsed'


@dataclass
class Extraction:
    record: SpecificationRecord
    result: ParseResult
    cached: bool = False
    text_chars: int = 0


def build_prompt(text: str, component_id: str) -> str:
    return PROMPT_TEMPLATE.format(component=component_id, text=text)


# ---------------------------------------------------------------------------
# Lenient parsing
# ---------------------------------------------------------------------------

def slice_json_object(text: str) -> dict:
    """
    Parse the substring from the first '{' to the last '}'.

    Raises:
        ExtractionParseFailure: no braces, invalid JSON, or nesting too deep
    """
    start = text.find('{')
    end = text.rfind('}')
    if start == -1 or end <= start:
        raise ExtractionParseFailure("no JSON object in response")
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        raise ExtractionParseFailure(f"invalid JSON: {exc.msg}", {"pos": exc.pos}) from exc
    except (ValueError, RecursionError) as exc:
        raise ExtractionParseFailure(f"invalid JSON: {type(exc).__name__}") from exc


def scrape_labeled_fields(text: str) -> dict:
    """Collect `label: value` lines into a nested dict (empty if none match)."""
    fields: dict[str, Any] = {}
    for path, pattern in LABELED_FIELDS:
        match = pattern.search(text)
        if not match:
            continue
        value = match.group(1).strip()
        if not value:
            continue
        target = fields
        for key in path[:-1]:
            target = target.setdefault(key, {})
        target[path[-1]] = value
    return fields


def parse_response(text: str | None) -> ParseResult:
    """Parse service output into a tagged result. Never raises."""
    text = text or ''
    try:
        return ParseResult(kind='parsed', fields=slice_json_object(text), raw=text)
    except ExtractionParseFailure as exc:
        logger.debug("JSON slice failed: %s", exc)

    fields = scrape_labeled_fields(text)
    if fields:
        return ParseResult(kind='partial', fields=fields, raw=text)
    return ParseResult(kind='unparsed', raw=text)


# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------

def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        parts = [str(v).strip() for v in value if v is not None and str(v).strip()]
        return ', '.join(parts) or None
    if isinstance(value, dict):
        return None
    text = str(value).strip()
    return text or None


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [s for s in (_as_str(v) for v in value) if s]
    text = _as_str(value)
    return [text] if text else []


def _voltage(value: Any) -> VoltageRange | None:
    if isinstance(value, dict):
        rng = VoltageRange(_as_str(value.get('min')), _as_str(value.get('typ')), _as_str(value.get('max')))
        return rng if any((rng.min, rng.typ, rng.max)) else None
    text = _as_str(value)
    return VoltageRange(typ=text) if text else None


def _current(value: Any) -> CurrentDraw | None:
    if isinstance(value, dict):
        draw = CurrentDraw(_as_str(value.get('operating')), _as_str(value.get('sleep')))
        return draw if any((draw.operating, draw.sleep)) else None
    text = _as_str(value)
    return CurrentDraw(operating=text) if text else None


def _temperature(value: Any) -> TemperatureRange | None:
    if isinstance(value, dict):
        rng = TemperatureRange(_as_str(value.get('min')), _as_str(value.get('max')))
        return rng if any((rng.min, rng.max)) else None
    return None


def record_from_result(result: ParseResult, component_id: str, source_url: str) -> SpecificationRecord:
    """Build a record; component and source_url always come from the caller."""
    f = result.fields
    return SpecificationRecord(
        component=component_id,
        source_url=source_url,
        extracted_at=datetime.now(timezone.utc).isoformat(),
        parsed=result.parsed,
        manufacturer=_as_str(f.get('manufacturer')),
        description=_as_str(f.get('description')),
        voltage=_voltage(f.get('voltage')),
        current=_current(f.get('current')),
        package=_as_str(f.get('package')),
        pin_count=_as_str(f.get('pin_count', f.get('pins'))),
        temperature=_temperature(f.get('temperature')),
        features=_as_list(f.get('features')),
        applications=_as_list(f.get('applications')),
        raw=None if result.parsed else result.raw,
    )


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class ExtractionAdapter:
    """
    Turns a markup page into a SpecificationRecord via a text generator.

    Service responses are memoized in a FIFO cache keyed by a hash of the
    component id and the sanitized text prefix.
    """

    def __init__(
        self,
        generator: TextGenerator,
        cache: FifoCache[str] | None = None,
        max_prompt_chars: int = 10_000,
        cache_key_chars: int = 500,
    ):
        self.generator = generator
        self.cache = cache if cache is not None else FifoCache()
        self.max_prompt_chars = max_prompt_chars
        self.cache_key_chars = cache_key_chars

    @classmethod
    def from_config(cls, config: AcquireConfig, generator: TextGenerator) -> ExtractionAdapter:
        return cls(
            generator,
            cache=FifoCache(config.cache_capacity),
            max_prompt_chars=config.max_prompt_chars,
            cache_key_chars=config.cache_key_chars,
        )

    def extract(self, markup: str, component_id: str, source_url: str) -> SpecificationRecord:
        """
        Extract a record from markup.

        Raises:
            ExtractionServiceUnavailable: propagated from the generator
        """
        return self.extract_result(markup, component_id, source_url).record

    def extract_result(self, markup: str, component_id: str, source_url: str) -> Extraction:
        text = truncate_text(sanitize_markup(markup), self.max_prompt_chars)
        if not text:
            result = ParseResult(kind='unparsed', raw='')
            return Extraction(record_from_result(result, component_id, source_url), result)

        key = hash_prefix(text, self.cache_key_chars, salt=component_id)
        response = self.cache.get(key)
        cached = response is not None
        if not cached:
            response = self.generator.generate(build_prompt(text, component_id))
            self.cache.put(key, response)

        result = parse_response(response)
        logger.info(
            "Extracted %s specs from %s (%s%s)",
            component_id, source_url, result.kind, ", cached" if cached else "",
        )
        return Extraction(
            record=record_from_result(result, component_id, source_url),
            result=result,
            cached=cached,
            text_chars=len(text),
        )


__all__ = [
    "PROMPT_TEMPLATE",
    "ParseResult",
    "Extraction",
    "ExtractionAdapter",
    "build_prompt",
    "slice_json_object",
    "scrape_labeled_fields",
    "parse_response",
    "record_from_result",
]

"""
Schema definitions for datasheet acquisition.

This defines the data structures for:
- Candidates (hypothesized datasheet locations, ranked)
- Fetch outcomes (one per attempted candidate)
- Specification records (normalized component summaries persisted as JSON)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Literal, Optional


StrategyTag = Literal[
    'aggregator_primary',
    'manufacturer_direct',
    'search_pattern',
    'hosting_mirror',
    'type_specific',
]
FetchStatus = Literal['success', 'failed', 'timed_out']
ContentKind = Literal['document', 'markup', 'unsupported']


@dataclass(frozen=True)
class Candidate:
    """A hypothesized network location for a component's datasheet."""
    source_url: str
    strategy_tag: StrategyTag
    priority_rank: int


@dataclass
class VoltageRange:
    min: Optional[str] = None
    typ: Optional[str] = None
    max: Optional[str] = None


@dataclass
class CurrentDraw:
    operating: Optional[str] = None
    sleep: Optional[str] = None


@dataclass
class TemperatureRange:
    min: Optional[str] = None
    max: Optional[str] = None


def _nested(kind, value):
    """Build a nested range from a dict, keeping only the fields `kind` declares."""
    if not isinstance(value, dict):
        return None
    names = {f.name for f in fields(kind)}
    return kind(**{k: v for k, v in value.items() if k in names})


def _string_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return []


@dataclass
class SpecificationRecord:
    """Normalized summary of a component's electrical/mechanical characteristics.

    `component` and `source_url` are always populated; every other field is
    optional. `raw` keeps the service output when the record did not come
    from a clean JSON parse.
    """
    component: str
    source_url: str
    extracted_at: str
    parsed: bool = False
    manufacturer: Optional[str] = None
    description: Optional[str] = None
    voltage: Optional[VoltageRange] = None
    current: Optional[CurrentDraw] = None
    package: Optional[str] = None
    pin_count: Optional[str] = None
    temperature: Optional[TemperatureRange] = None
    features: list[str] = field(default_factory=list)
    applications: list[str] = field(default_factory=list)
    raw: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict, component: str = '', source_url: str = '') -> SpecificationRecord:
        """Build a record from stored JSON, ignoring keys this schema does not know.

        `component` and `source_url` fill in for records written without them.
        """
        return cls(
            component=str(data.get('component') or component),
            source_url=str(data.get('source_url') or source_url),
            extracted_at=str(data.get('extracted_at') or ''),
            parsed=bool(data.get('parsed', False)),
            manufacturer=data.get('manufacturer'),
            description=data.get('description'),
            voltage=_nested(VoltageRange, data.get('voltage')),
            current=_nested(CurrentDraw, data.get('current')),
            package=data.get('package'),
            pin_count=data.get('pin_count'),
            temperature=_nested(TemperatureRange, data.get('temperature')),
            features=_string_list(data.get('features')),
            applications=_string_list(data.get('applications')),
            raw=data.get('raw'),
        )


@dataclass
class FetchOutcome:
    """Result of attempting one candidate."""
    candidate: Candidate
    index: int  # position in the deduplicated list, used for filenames
    status: FetchStatus
    content_kind: Optional[ContentKind] = None
    bytes: int = 0
    duration_ms: int = 0
    error: Optional[str] = None

    # Provenance
    final_url: Optional[str] = None
    redirects: int = 0
    skipped_existing: bool = False

    # Products
    path: Optional[Path] = None
    record: Optional[SpecificationRecord] = None

    @property
    def ok(self) -> bool:
        return self.status == 'success'

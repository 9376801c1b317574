"""Data model for CSAF (Common Security Advisory Framework) advisories.

Every record is a dataclass that loads from, and dumps to, the JSON layout
of a CSAF document. Loading is strict: a missing field or a value of the
wrong type raises ``ValueError``.
"""

import json
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional, TypeVar, Union, get_args, get_origin

import httpx

_R = TypeVar("_R", bound="_Record")


def _convert(hint: Any, value: Any, where: str) -> Any:
    if get_origin(hint) is list:
        if not isinstance(value, list):
            raise ValueError(f"{where}: expected a list, got {type(value).__name__}")
        (item_hint,) = get_args(hint)
        return [_convert(item_hint, item, f"{where}[{pos}]") for pos, item in enumerate(value)]
    if is_dataclass(hint):
        return _load(hint, value, where)
    if hint is str:
        if not isinstance(value, str):
            raise ValueError(f"{where}: expected a string, got {type(value).__name__}")
        return value
    if hint is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{where}: expected a number, got {type(value).__name__}")
        return float(value)
    raise TypeError(f"{where}: unsupported field type {hint!r}")


def _load(cls: type, data: Any, where: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{where}: expected an object, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        key = f.metadata.get("key", f.name)
        if key not in data:
            raise ValueError(f"{where}: missing field {key!r}")
        kwargs[f.name] = _convert(f.type, data[key], f"{where}.{key}")
    return cls(**kwargs)


def _dump(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.metadata.get("key", f.name): _dump(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _renamed(key: str, default: Any) -> Any:
    return field(default=default, metadata={"key": key})


class _Record:
    """Shared JSON loading and dumping for the CSAF records."""

    @classmethod
    def from_dict(cls: "type[_R]", data: Any) -> _R:
        """Build the record from a decoded JSON object."""
        return _load(cls, data, cls.__name__)

    def to_dict(self) -> dict:
        """Return the record as a JSON-ready dictionary."""
        return _dump(self)


@dataclass
class AggregateSeverity(_Record):
    """Overall severity of an advisory: Low, Medium, High or Critical."""

    namespace: str = ""
    text: str = ""

    def is_critical(self) -> bool:
        return self.text.strip().lower() == "critical"

    def is_high(self) -> bool:
        return self.text.strip().lower() == "high"


@dataclass
class Tlp(_Record):
    """Traffic Light Protocol marking: WHITE, GREEN, AMBER or RED."""

    label: str = "WHITE"
    url: str = ""

    def is_public(self) -> bool:
        """True when the label allows unrestricted sharing."""
        return self.label.strip().upper() == "WHITE"


@dataclass
class Distribution(_Record):
    tlp: Tlp = field(default_factory=Tlp)


@dataclass
class Note(_Record):
    text: str = ""
    category: str = ""
    title: str = ""


@dataclass
class Publisher(_Record):
    issuing_authority: str = ""
    name: str = ""
    namespace: str = ""
    contact_details: str = ""
    category: str = ""


@dataclass
class Reference(_Record):
    summary: str = ""
    category: str = ""
    url: str = ""


@dataclass
class History(_Record):
    date: str = ""
    summary: str = ""
    number: str = ""


@dataclass
class Engine(_Record):
    name: str = ""


@dataclass
class Generator(_Record):
    date: str = ""
    engine: Engine = field(default_factory=Engine)


@dataclass
class Tracking(_Record):
    """Release and revision tracking of an advisory."""

    initial_release_date: str = ""
    revision_history: list[History] = field(default_factory=list)
    generator: Generator = field(default_factory=Generator)
    current_release_date: str = ""
    id: str = ""
    version: str = ""
    status: str = ""

    def latest_revision(self) -> Optional[History]:
        """The last entry of the revision history, or None when it is empty."""
        return self.revision_history[-1] if self.revision_history else None


@dataclass
class Document(_Record):
    aggregate_severity: AggregateSeverity = field(default_factory=AggregateSeverity)
    category: str = ""
    csaf_version: str = ""
    distribution: Distribution = field(default_factory=Distribution)
    lang: str = ""
    notes: list[Note] = field(default_factory=list)
    publisher: Publisher = field(default_factory=Publisher)
    references: list[Reference] = field(default_factory=list)
    title: str = ""
    tracking: Tracking = field(default_factory=Tracking)


@dataclass
class ProductIdentificationHelper(_Record):
    cpe: str = ""


@dataclass
class Product(_Record):
    product_identification_helper: ProductIdentificationHelper = field(
        default_factory=ProductIdentificationHelper
    )
    product_id: str = ""
    name: str = ""


@dataclass
class SubBranch(_Record):
    product: Product = field(default_factory=Product)
    name: str = ""
    category: str = ""


@dataclass
class Branch(_Record):
    name: str = ""
    category: str = ""
    branches: list[SubBranch] = field(default_factory=list)


@dataclass
class Branches(_Record):
    name: str = ""
    category: str = ""
    branches: list[Branch] = field(default_factory=list)


@dataclass
class FullProductName(_Record):
    product_id: str = ""
    name: str = ""


@dataclass
class RelationShip(_Record):
    relates_to_product_reference: str = ""
    product_reference: str = ""
    full_product_name: FullProductName = field(default_factory=FullProductName)
    category: str = ""


@dataclass
class ProductTree(_Record):
    """Products covered by an advisory, as nested branches plus relationships."""

    branches: list[Branches] = field(default_factory=list)
    relationships: list[RelationShip] = field(default_factory=list)

    def all_product_ids(self) -> list:
        """Product ids of every leaf branch, in document order."""
        return [
            leaf.product.product_id
            for top in self.branches
            for branch in top.branches
            for leaf in branch.branches
        ]

    def product_count(self) -> int:
        return len(self.all_product_ids())


@dataclass
class VulNote(_Record):
    text: str = ""
    category: str = ""
    title: str = ""


@dataclass
class ProductStatus(_Record):
    fixed: list[str] = field(default_factory=list)

    def is_product_fixed(self, product_id: str) -> bool:
        return product_id in self.fixed


@dataclass
class Remediation(_Record):
    product_ids: list[str] = field(default_factory=list)
    details: str = ""
    category: str = ""
    url: str = ""


@dataclass
class CvssV3(_Record):
    """CVSS v3 rating; the JSON keys of three fields are camelCase."""

    base_severity: str = _renamed("baseSeverity", "")
    base_score: float = _renamed("baseScore", 0.0)
    vector_string: str = _renamed("vectorString", "")
    version: str = ""

    def _is(self, level: str) -> bool:
        return self.base_severity.strip().upper() == level

    def is_critical(self) -> bool:
        return self._is("CRITICAL")

    def is_high(self) -> bool:
        return self._is("HIGH")

    def is_medium(self) -> bool:
        return self._is("MEDIUM")

    def is_low(self) -> bool:
        return self._is("LOW")


@dataclass
class Score(_Record):
    cvss_v3: CvssV3 = field(default_factory=CvssV3)
    products: list[str] = field(default_factory=list)


@dataclass
class VulThreat(_Record):
    details: str = ""
    category: str = ""


@dataclass
class Vulnerability(_Record):
    """One CVE described by an advisory."""

    cve: str = ""
    notes: list[VulNote] = field(default_factory=list)
    product_status: ProductStatus = field(default_factory=ProductStatus)
    remediations: list[Remediation] = field(default_factory=list)
    scores: list[Score] = field(default_factory=list)
    threats: list[VulThreat] = field(default_factory=list)
    title: str = ""

    def _first_cvss(self) -> Optional[CvssV3]:
        return self.scores[0].cvss_v3 if self.scores else None

    def cvss_score(self) -> Optional[float]:
        """Base score of the first CVSS rating, or None without scores."""
        cvss = self._first_cvss()
        return cvss.base_score if cvss else None

    def severity(self) -> Optional[str]:
        """Base severity of the first CVSS rating, or None without scores."""
        cvss = self._first_cvss()
        return cvss.base_severity if cvss else None

    def is_critical(self) -> bool:
        cvss = self._first_cvss()
        return bool(cvss and cvss.is_critical())

    def is_high(self) -> bool:
        cvss = self._first_cvss()
        return bool(cvss and cvss.is_high())


@dataclass
class CSAF(_Record):
    """A complete CSAF advisory."""

    document: Document = field(default_factory=Document)
    product_tree: ProductTree = field(default_factory=ProductTree)
    vulnerabilities: list[Vulnerability] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.document.tracking.id

    @property
    def version(self) -> str:
        return self.document.tracking.version

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def status(self) -> str:
        return self.document.tracking.status

    @property
    def release_date(self) -> str:
        return self.document.tracking.current_release_date

    @property
    def initial_release_date(self) -> str:
        return self.document.tracking.initial_release_date

    @classmethod
    def from_dict(cls, data: Any) -> "CSAF":
        """Build an advisory from a decoded JSON object."""
        return _load(cls, data, cls.__name__)

    def to_dict(self) -> dict:
        """Return the advisory as a JSON-ready dictionary."""
        return _dump(self)

    def cve_ids(self) -> list:
        return [vuln.cve for vuln in self.vulnerabilities]

    def contains_cve(self, cve_id: str) -> bool:
        return any(vuln.cve == cve_id for vuln in self.vulnerabilities)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "CSAF":
        """Parse an advisory from JSON text; invalid input raises ValueError."""
        return cls.from_dict(json.loads(text))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CSAF":
        """Load an advisory from a JSON file."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def to_file(self, path: Union[str, Path]) -> None:
        """Write the advisory as pretty-printed JSON."""
        Path(path).write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def from_url(cls, url: str) -> "CSAF":
        """Download and parse an advisory; HTTP error statuses raise httpx.HTTPStatusError."""
        response = httpx.get(url, follow_redirects=True)
        response.raise_for_status()
        return cls.from_json(response.text)
"""Records stored in the OVAL definition tables.

Each record loads from, and dumps to, a plain dictionary whose keys are the
column or JSON names. Loading raises ``ValueError`` when a required key is
missing or a value is out of range.
"""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, Mapping, Optional, TypeVar

_R = TypeVar("_R", bound="_Entity")


def _check_unsigned(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")


def _dump(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.metadata.get("key", f.name): _dump(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


class _Entity:
    """Shared dictionary loading and dumping."""

    @classmethod
    def _kwargs(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ValueError(f"{cls.__name__}: expected a mapping, got {type(data).__name__}")
        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = f.metadata.get("key", f.name)
            if key in data:
                kwargs[f.name] = data[key]
            elif f.default is MISSING and f.default_factory is MISSING:
                raise ValueError(f"{cls.__name__}: missing field {key!r}")
        return kwargs

    @classmethod
    def from_dict(cls: type[_R], data: Any) -> _R:
        """Build the record from a dictionary keyed by column name."""
        return cls(**cls._kwargs(data))

    def to_dict(self) -> dict[str, Any]:
        """Return the record as a dictionary keyed by column name."""
        return _dump(self)


@dataclass
class OsInfo(_Entity):
    """An operating system release and how to recognise it on a host."""

    os_type: str
    os_version: str
    package_name: str
    verify_file: str
    verify_pattern: str
    dist: str
    description: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "OsInfo":
        """Build the record from a dictionary keyed by column name."""
        return cls(**cls._kwargs(data))


@dataclass
class OvalDefinition(_Entity):
    """The header of one OVAL definition; ``from_`` is stored under ``from``."""

    id: str
    class_: str = field(metadata={"key": "class"})
    version: int
    title: str
    description: str
    family: str
    platform: str
    severity: str
    rights: str
    from_: str = field(metadata={"key": "from"})
    issued_date: str
    updated_date: str
    os_info_id: Optional[int] = None

    def __post_init__(self) -> None:
        _check_unsigned("version", self.version)

    @classmethod
    def from_dict(cls, data: Any) -> "OvalDefinition":
        """Build the definition from a dictionary using ``class`` and ``from`` keys."""
        return cls(**cls._kwargs(data))


@dataclass
class Reference(_Entity):
    ref_id: str
    ref_url: str
    source: str


@dataclass
class Cve(_Entity):
    cve_id: str
    cvss3: str
    impact: str
    href: str
    content: str


@dataclass
class Criterion(_Entity):
    comment: str
    test_ref: str


@dataclass
class Criteria(_Entity):
    """A logical combination of criteria, possibly nested."""

    operator: str
    criterion: list[Criterion] = field(default_factory=list)
    sub_criteria: Optional[list["Criteria"]] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Criteria":
        kwargs = cls._kwargs(data)
        items = kwargs.get("criterion", [])
        if not isinstance(items, list):
            raise ValueError("Criteria: 'criterion' must be a list")
        kwargs["criterion"] = [Criterion.from_dict(item) for item in items]
        subs = kwargs.get("sub_criteria")
        if subs is not None:
            if not isinstance(subs, list):
                raise ValueError("Criteria: 'sub_criteria' must be a list or null")
            kwargs["sub_criteria"] = [Criteria.from_dict(sub) for sub in subs]
        return cls(**kwargs)


@dataclass
class RpmInfoTest(_Entity):
    check: str
    comment: str
    test_id: str
    version: int
    object_ref: str
    state_ref: str

    def __post_init__(self) -> None:
        _check_unsigned("version", self.version)


@dataclass
class RpmInfoObject(_Entity):
    object_id: str
    ver: int
    rpm_name: str
    id: Optional[int] = None

    def __post_init__(self) -> None:
        _check_unsigned("ver", self.ver)


@dataclass
class RpmInfoState(_Entity):
    """An RPM state with its EVR comparison folded in."""

    state_id: str
    version: str
    evr_datatype: Optional[str] = None
    evr_operation: Optional[str] = None
    evr_value: Optional[str] = None
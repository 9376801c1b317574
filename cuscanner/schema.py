"""PostgreSQL table definitions for advisory data and the records read from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_SEVERITIES = ("NONE", "LOW", "MEDIUM", "HIGH", "CRITICAL")
_UTC_NOW = "TEXT DEFAULT (NOW() AT TIME ZONE 'UTC')"


def _one_of(column: str, *values: str) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"CHECK ({column} IN ({quoted}))"


def _references(column: str, target: str, *, cascade: bool = False) -> str:
    clause = f"FOREIGN KEY ({column}) REFERENCES {target}(id)"
    return clause + " ON DELETE CASCADE" if cascade else clause


@dataclass(frozen=True)
class _Table:
    """One table: its columns, table constraints and optional id sequence."""

    name: str
    title: str
    columns: tuple[tuple[str, str], ...]
    constraints: tuple[str, ...] = ()
    id_sequence: bool = False

    def ddl(self) -> str:
        items = [f"{column} {definition}" for column, definition in self.columns]
        items.extend(self.constraints)
        body = ",\n".join(f"    {item}" for item in items)
        sql = f"\nCREATE TABLE IF NOT EXISTS {self.name} (\n{body}\n);\n"
        if self.id_sequence:
            seq = f"{self.name}_id_seq"
            sql += (
                f"\nCREATE SEQUENCE IF NOT EXISTS {seq};\n"
                f"ALTER TABLE {self.name} ALTER COLUMN id SET DEFAULT nextval('{seq}');\n"
                f"ALTER SEQUENCE {seq} OWNED BY {self.name}.id;\n"
            )
        return sql


_TABLES = (
    _Table(
        "sa_info",
        "security advisories",
        (
            ("id", "SERIAL PRIMARY KEY"),
            ("sa_id", "TEXT NOT NULL UNIQUE"),
            ("synopsis", "TEXT"),
            ("summary", "TEXT"),
            ("topic", "TEXT"),
            ("description", "TEXT"),
            ("severity", "TEXT " + _one_of("severity", *_SEVERITIES)),
            ("affected_product", "TEXT"),
            ("affected_component", "TEXT"),
            ("status", "TEXT " + _one_of("status", "DRAFT", "PUBLISHED", "REVOKED", "UPDATED")),
            ("created_time", _UTC_NOW),
            ("updated_time", _UTC_NOW),
        ),
    ),
    _Table(
        "cve_info",
        "CVEs",
        (
            ("id", "SERIAL PRIMARY KEY"),
            ("cve_id", "TEXT NOT NULL UNIQUE"),
            ("description", "TEXT NOT NULL"),
            ("base_severity", "TEXT " + _one_of("base_severity", *_SEVERITIES)),
            ("base_score", "REAL CHECK (base_score >= 0.0 AND base_score <= 10.0)"),
            ("vector_string", "TEXT"),
            ("cvss_version", "TEXT"),
            ("published_date", "TEXT"),
            ("updated_date", "TEXT"),
            (
                "status",
                "TEXT NOT NULL DEFAULT 'PUBLISHED' " + _one_of("status", "PUBLISHED", "REJECTED"),
            ),
            ("created_at", _UTC_NOW),
            ("updated_at", _UTC_NOW),
        ),
    ),
    _Table(
        "os_version_map",
        "OS version map",
        (
            ("id", "SERIAL PRIMARY KEY"),
            ("os_version", "TEXT NOT NULL UNIQUE"),
            ("upstream_series", "TEXT NOT NULL"),
            ("dist", "TEXT NOT NULL"),
            ("release_date", "TEXT"),
            ("end_of_life", "TEXT"),
            ("description", "TEXT"),
        ),
    ),
    _Table(
        "sa_cve",
        "advisory to CVE links",
        (("sa_id", "INTEGER NOT NULL"), ("cve_id", "INTEGER NOT NULL")),
        (
            "PRIMARY KEY (sa_id, cve_id)",
            _references("sa_id", "sa_info", cascade=True),
            _references("cve_id", "cve_info", cascade=True),
        ),
    ),
    _Table(
        "cve_affect",
        "CVE impact",
        (
            ("id", "INTEGER PRIMARY KEY"),
            ("cve_id", "INTEGER NOT NULL"),
            ("package_name", "TEXT NOT NULL"),
            ("os_version_id", "INTEGER NOT NULL"),
            (
                "status",
                "TEXT NOT NULL DEFAULT 'AFFECTED' "
                + _one_of("status", "AFFECTED", "FIXED", "UNAFFECTED", "UNKNOWN"),
            ),
            ("fixed_version", "TEXT"),
            ("last_checked", _UTC_NOW),
        ),
        (
            _references("cve_id", "cve_info", cascade=True),
            _references("os_version_id", "os_version_map", cascade=True),
        ),
        id_sequence=True,
    ),
    _Table(
        "package_source_map",
        "package to source map",
        (
            ("id", "INTEGER PRIMARY KEY"),
            ("package_name", "TEXT NOT NULL"),
            ("os_version_id", "INTEGER NOT NULL"),
            ("upstream_series", "TEXT"),
            ("is_inherited", "INTEGER DEFAULT 1"),
            ("created_at", _UTC_NOW),
            ("updated_at", _UTC_NOW),
        ),
        (_references("os_version_id", "os_version_map"),),
        id_sequence=True,
    ),
    _Table(
        "src_rpm_info",
        "source packages",
        (
            ("id", "INTEGER PRIMARY KEY"),
            ("package_name", "TEXT NOT NULL"),
            ("version", "TEXT NOT NULL"),
            ("release", "TEXT NOT NULL"),
            ("dist", "TEXT"),
            ("sa_id", "INTEGER"),
            ("created_at", _UTC_NOW),
        ),
        (_references("sa_id", "sa_info"),),
        id_sequence=True,
    ),
    _Table(
        "rpm_info",
        "binary packages",
        (
            ("id", "INTEGER PRIMARY KEY"),
            ("package_name", "TEXT NOT NULL"),
            ("version", "TEXT NOT NULL"),
            ("release", "TEXT NOT NULL"),
            ("dist", "TEXT"),
            ("arch", "TEXT NOT NULL"),
            ("src_rpm_id", "INTEGER"),
            ("created_at", _UTC_NOW),
        ),
        (_references("src_rpm_id", "src_rpm_info"),),
        id_sequence=True,
    ),
    _Table(
        "processed_file",
        "processed files",
        (
            ("id", "SERIAL PRIMARY KEY"),
            ("file_name", "TEXT NOT NULL UNIQUE"),
            ("file_type", "TEXT"),
            ("processed_time", _UTC_NOW),
        ),
        id_sequence=True,
    ),
)

_DDL = {table.name: table.ddl() for table in _TABLES}

CREATE_SA_INFO_TABLE_SQL = _DDL["sa_info"]
CREATE_CVE_INFO_TABLE_SQL = _DDL["cve_info"]
CREATE_OS_VERSION_MAP_TABLE_SQL = _DDL["os_version_map"]
CREATE_SA_CVE_TABLE_SQL = _DDL["sa_cve"]
CREATE_CVE_AFFECT_TABLE_SQL = _DDL["cve_affect"]
CREATE_PACKAGE_SOURCE_MAP_TABLE_SQL = _DDL["package_source_map"]
CREATE_SRC_RPM_INFO_TABLE_SQL = _DDL["src_rpm_info"]
CREATE_RPM_INFO_TABLE_SQL = _DDL["rpm_info"]
CREATE_PROCESSED_FILE_TABLE_SQL = _DDL["processed_file"]

TABLE_CREATION_ORDER: tuple[str, ...] = tuple(table.name for table in _TABLES)
"""Table names in an order that satisfies every foreign key."""

CREATE_TABLES_SQL = "".join(f"\n-- {table.title}{_DDL[table.name]}" for table in _TABLES)
"""Every table statement, in creation order."""


@dataclass(kw_only=True)
class SaInfo:
    """A row of ``sa_info``: one security advisory."""

    id: int
    sa_id: str
    synopsis: Optional[str] = None
    summary: Optional[str] = None
    topic: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = None
    affected_product: Optional[str] = None
    affected_component: Optional[str] = None
    status: Optional[str] = None
    created_time: Optional[str] = None
    updated_time: Optional[str] = None


@dataclass(kw_only=True)
class CveInfo:
    """A row of ``cve_info``."""

    id: int
    cve_id: str
    description: str
    base_severity: Optional[str] = None
    base_score: Optional[float] = None
    vector_string: Optional[str] = None
    cvss_version: Optional[str] = None
    published_date: Optional[str] = None
    updated_date: Optional[str] = None
    status: str = "PUBLISHED"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(kw_only=True)
class OsVersionMap:
    """A row of ``os_version_map``."""

    id: int
    os_version: str
    upstream_series: str
    dist: str
    release_date: Optional[str] = None
    end_of_life: Optional[str] = None
    description: Optional[str] = None


@dataclass(kw_only=True, frozen=True)
class SaCve:
    """A row of ``sa_cve``: an advisory linked to a CVE."""

    sa_id: int
    cve_id: int


@dataclass(kw_only=True)
class CveAffect:
    """A row of ``cve_affect``: how a CVE affects a package on a release."""

    id: int
    cve_id: int
    package_name: str
    os_version_id: int
    status: str = "AFFECTED"
    fixed_version: Optional[str] = None
    last_checked: Optional[str] = None


@dataclass(kw_only=True)
class PackageSourceMap:
    """A row of ``package_source_map``."""

    id: int
    package_name: str
    os_version_id: int
    upstream_series: Optional[str] = None
    is_inherited: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(kw_only=True)
class SrcRpmInfo:
    """A row of ``src_rpm_info``: a source package."""

    id: int
    package_name: str
    version: str
    release: str
    dist: Optional[str] = None
    sa_id: Optional[int] = None
    created_at: Optional[str] = None


@dataclass(kw_only=True)
class RpmInfo:
    """A row of ``rpm_info``: a binary package."""

    id: int
    package_name: str
    version: str
    release: str
    dist: Optional[str] = None
    arch: str
    src_rpm_id: Optional[int] = None
    created_at: Optional[str] = None


@dataclass(kw_only=True)
class ProcessedFile:
    """A row of ``processed_file``: a file already imported."""

    id: int
    file_name: str
    file_type: Optional[str] = None
    processed_time: Optional[str] = None
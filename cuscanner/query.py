"""Read advisory, CVE and package records from the database.

``CsafQuery`` works with any asynchronous client that offers
``await client.query(sql, params)`` and returns rows as mappings from column
name to value. Statements use PostgreSQL ``$n`` placeholders.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, Mapping, Optional, Protocol, Sequence, TypeVar

from .dbconfig import DatabaseError
from .schema import (
    CveAffect,
    CveInfo,
    OsVersionMap,
    PackageSourceMap,
    ProcessedFile,
    RpmInfo,
    SaCve,
    SaInfo,
    SrcRpmInfo,
)

log = logging.getLogger(__name__)

_E = TypeVar("_E")

_TABLES: dict[type, str] = {
    SaInfo: "sa_info",
    CveInfo: "cve_info",
    OsVersionMap: "os_version_map",
    SaCve: "sa_cve",
    CveAffect: "cve_affect",
    PackageSourceMap: "package_source_map",
    SrcRpmInfo: "src_rpm_info",
    RpmInfo: "rpm_info",
    ProcessedFile: "processed_file",
}


class QueryClient(Protocol):
    async def query(self, sql: str, params: Sequence[Any]) -> Sequence[Mapping[str, Any]]:
        ...


def _select(entity: type, where: str = "", order_by: str = "id") -> str:
    columns = ", ".join(f.name for f in fields(entity))
    sql = f"SELECT {columns} FROM {_TABLES[entity]}"
    if where:
        sql += f" WHERE {where}"
    return f"{sql} ORDER BY {order_by}"


def _from_row(entity: type[_E], row: Mapping[str, Any]) -> _E:
    try:
        return entity(**{f.name: row[f.name] for f in fields(entity)})
    except (KeyError, IndexError, TypeError) as exc:
        raise DatabaseError("serialization", f"bad {entity.__name__} row: {exc}") from exc


class CsafQuery:
    """Lookups over the advisory tables."""

    def __init__(self, client: QueryClient) -> None:
        self._client = client

    async def _rows(self, sql: str, params: Sequence[Any] = ()) -> list[Mapping[str, Any]]:
        log.debug("query: %s %r", sql, params)
        try:
            return list(await self._client.query(sql, list(params)))
        except DatabaseError:
            raise
        except Exception as exc:
            raise DatabaseError("query", exc) from exc

    async def _many(
        self, entity: type[_E], where: str = "", params: Sequence[Any] = (), order_by: str = "id"
    ) -> list[_E]:
        rows = await self._rows(_select(entity, where, order_by), params)
        return [_from_row(entity, row) for row in rows]

    async def _one(self, entity: type[_E], where: str, params: Sequence[Any]) -> Optional[_E]:
        found = await self._many(entity, where, params)
        return found[0] if found else None

    async def _ids_after(self, column: str, timestamp: str) -> list[str]:
        rows = await self._rows(
            f"SELECT sa_id FROM sa_info WHERE {column} > $1 ORDER BY {column}", [timestamp]
        )
        try:
            return [row["sa_id"] for row in rows]
        except (KeyError, IndexError) as exc:
            raise DatabaseError("serialization", f"bad sa_info row: {exc}") from exc

    async def get_sa_info_by_id(self, id: int) -> Optional[SaInfo]:
        log.info("looking up advisory with id %s", id)
        return await self._one(SaInfo, "id = $1", [id])

    async def get_sa_info_by_sa_id(self, sa_id: str) -> Optional[SaInfo]:
        log.info("looking up advisory %s", sa_id)
        return await self._one(SaInfo, "sa_id = $1", [sa_id])

    async def get_all_sa_info(self) -> list[SaInfo]:
        return await self._many(SaInfo)

    async def get_sa_ids_after_time(self, timestamp: str) -> list[str]:
        """Advisory ids created after ``timestamp``, oldest first."""
        return await self._ids_after("created_time", timestamp)

    async def get_sa_ids_after_updated_time(self, timestamp: str) -> list[str]:
        """Advisory ids updated after ``timestamp``, oldest first."""
        return await self._ids_after("updated_time", timestamp)

    async def get_cve_info_by_id(self, id: int) -> Optional[CveInfo]:
        return await self._one(CveInfo, "id = $1", [id])

    async def get_cve_info_by_cve_id(self, cve_id: str) -> Optional[CveInfo]:
        return await self._one(CveInfo, "cve_id = $1", [cve_id])

    async def get_all_cve_info(self) -> list[CveInfo]:
        return await self._many(CveInfo)

    async def get_os_version_map_by_id(self, id: int) -> Optional[OsVersionMap]:
        return await self._one(OsVersionMap, "id = $1", [id])

    async def get_os_version_map_by_version(self, os_version: str) -> Optional[OsVersionMap]:
        return await self._one(OsVersionMap, "os_version = $1", [os_version])

    async def get_all_os_version_maps(self) -> list[OsVersionMap]:
        return await self._many(OsVersionMap)

    async def get_sa_cve_by_ids(self, sa_id: int, cve_id: int) -> Optional[SaCve]:
        found = await self._many(
            SaCve, "sa_id = $1 AND cve_id = $2", [sa_id, cve_id], order_by="sa_id, cve_id"
        )
        return found[0] if found else None

    async def get_sa_cve_by_sa_id(self, sa_id: int) -> list[SaCve]:
        return await self._many(SaCve, "sa_id = $1", [sa_id], order_by="cve_id")

    async def get_sa_cve_by_cve_id(self, cve_id: int) -> list[SaCve]:
        return await self._many(SaCve, "cve_id = $1", [cve_id], order_by="sa_id")

    async def get_all_sa_cve(self) -> list[SaCve]:
        return await self._many(SaCve, order_by="sa_id, cve_id")

    async def get_cve_affect_by_id(self, id: int) -> Optional[CveAffect]:
        return await self._one(CveAffect, "id = $1", [id])

    async def get_cve_affects_by_cve_id(self, cve_id: int) -> list[CveAffect]:
        return await self._many(CveAffect, "cve_id = $1", [cve_id])

    async def get_all_cve_affects(self) -> list[CveAffect]:
        return await self._many(CveAffect)

    async def get_package_source_map_by_id(self, id: int) -> Optional[PackageSourceMap]:
        return await self._one(PackageSourceMap, "id = $1", [id])

    async def get_package_source_map_by_name(self, package_name: str) -> list[PackageSourceMap]:
        return await self._many(PackageSourceMap, "package_name = $1", [package_name])

    async def get_all_package_source_maps(self) -> list[PackageSourceMap]:
        return await self._many(PackageSourceMap)

    async def get_src_rpm_info_by_id(self, id: int) -> Optional[SrcRpmInfo]:
        return await self._one(SrcRpmInfo, "id = $1", [id])

    async def get_src_rpm_info_by_name(self, package_name: str) -> list[SrcRpmInfo]:
        return await self._many(SrcRpmInfo, "package_name = $1", [package_name])

    async def get_all_src_rpm_info(self) -> list[SrcRpmInfo]:
        return await self._many(SrcRpmInfo)

    async def get_rpm_info_by_id(self, id: int) -> Optional[RpmInfo]:
        return await self._one(RpmInfo, "id = $1", [id])

    async def get_rpm_info_by_name(self, package_name: str) -> list[RpmInfo]:
        return await self._many(RpmInfo, "package_name = $1", [package_name])

    async def get_all_rpm_info(self) -> list[RpmInfo]:
        return await self._many(RpmInfo)

    async def get_processed_file_by_id(self, id: int) -> Optional[ProcessedFile]:
        return await self._one(ProcessedFile, "id = $1", [id])

    async def get_processed_file_by_name(self, file_name: str) -> Optional[ProcessedFile]:
        return await self._one(ProcessedFile, "file_name = $1", [file_name])

    async def get_all_processed_files(self) -> list[ProcessedFile]:
        return await self._many(ProcessedFile)
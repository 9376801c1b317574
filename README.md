# cuscanner

A library for working with CSAF (Common Security Advisory Framework) security
advisories on RPM-based distributions.

| Module | What it holds |
| --- | --- |
| `cuscanner.csaf` | Dataclass models of a CSAF document (`CSAF`, `Document`, `Tracking`, `ProductTree`, `Vulnerability`, `CvssV3`, ...) with strict loading from a dict, JSON text, a file or a URL. |
| `cuscanner.fetcher` | `CsafFetcher` (blocking) and `AsyncCsafFetcher` (asyncio) downloaders with retries and `index.txt` support; `FetcherConfig`, `FetchError`, `StatusError`, and the helpers `parse_index`, `build_url`, `filename_from_path`. |
| `cuscanner.dbconfig` | `DatabaseConfig` connection settings and `DatabaseError`. |
| `cuscanner.schema` | PostgreSQL `CREATE TABLE` statements for the advisory tables (`CREATE_TABLES_SQL`, `TABLE_CREATION_ORDER`, one `CREATE_..._SQL` per table) and their row records (`SaInfo`, `CveInfo`, `OsVersionMap`, `SaCve`, `CveAffect`, `PackageSourceMap`, `SrcRpmInfo`, `RpmInfo`, `ProcessedFile`). |
| `cuscanner.query` | `CsafQuery`, async lookups over those tables through a client you supply. |
| `cuscanner.entities` | OVAL definition records (`OsInfo`, `OvalDefinition`, `Reference`, `Cve`, `Criterion`, `Criteria`, `RpmInfoTest`, `RpmInfoObject`, `RpmInfoState`) with `from_dict` / `to_dict`. |
| `cuscanner.idgen` | `PersistentIdCounter` and `DatabaseIdGenerator` on top of any `CounterStore`; `MemoryCounterStore` keeps counters in memory. |
| `cuscanner.ovalids` | Naming rules between package versions, CSAF file names, OVAL ids and OVAL file names. |

## Reading an advisory

```python
from cuscanner.csaf import CSAF

advisory = CSAF.from_file("csaf-openeuler-sa-2025-1004.json")
print(advisory.id, advisory.title, advisory.release_date)
print(advisory.cve_ids())

if advisory.contains_cve("CVE-2025-0001"):
    for vulnerability in advisory.vulnerabilities:
        print(vulnerability.cve, vulnerability.cvss_score(), vulnerability.severity())
```

Loading is strict: a missing field or a value of the wrong type raises
`ValueError`. `CSAF.to_dict()`, `CSAF.to_json()` and `CSAF.to_file(path)`
write the document back out in the same JSON layout, including the camelCase
keys `baseSeverity`, `baseScore` and `vectorString`. `CSAF.from_url(url)`
downloads a document and raises `httpx.HTTPStatusError` on an error status.

## Fetching advisories

```python
from cuscanner.fetcher import CsafFetcher, FetcherConfig

with CsafFetcher(FetcherConfig(timeout_secs=10)) as fetcher:
    results = fetcher.fetch_from_index(
        "https://csaf.example.com/index.txt",
        "https://csaf.example.com",
    )
    for path, outcome in results:
        print(path, outcome)
```

`FetcherConfig` defaults to a 30 second timeout, 3 retries with a 1000 ms
delay between attempts, and the user agent `CSAF-Fetcher/0.1.0`. Single
downloads (`fetch`, `fetch_and_save`, `fetch_index`) raise `FetchError`, or its
subclass `StatusError` for a non-2xx response. Batch operations return
`(key, outcome)` pairs, where the outcome is the parsed `CSAF` or the
`FetchError` that stopped it; `fetch_from_index_and_save` uses `None` to mark
a file saved successfully.

`AsyncCsafFetcher` offers the same operations as coroutines (close it with
`aclose()` or use `async with`), plus `fetch_batch_concurrent`,
`fetch_from_index_concurrent` and `fetch_from_index_with_check`, which awaits
a callback `check_exists(path)` and skips paths for which it returns true.

## Querying the advisory database

`CsafQuery` works with any object offering
`await client.query(sql, params)` that returns rows as mappings from column
name to value; statements use PostgreSQL `$n` placeholders.

```python
from cuscanner.query import CsafQuery

async def show(client):
    query = CsafQuery(client)
    advisory = await query.get_sa_info_by_sa_id("openEuler-SA-2025-1004")
    cves = await query.get_all_cve_info()
```

Failures of the client are raised as `DatabaseError` with `kind == "query"`;
rows that do not fit a record raise it with `kind == "serialization"`.

`DatabaseConfig.connection_string()` produces the `key=value` string
PostgreSQL drivers accept:

```python
from cuscanner.dbconfig import DatabaseConfig

password = "password"
config = DatabaseConfig("localhost", 5432, "csaf_db", "csaf_user", password=password)
config.connection_string()
```

## OVAL identifiers

```python
import asyncio

from cuscanner.idgen import DatabaseIdGenerator, MemoryCounterStore
from cuscanner.ovalids import (
    extract_dist_from_package,
    extract_oval_id_from_filename,
    format_oval_id_to_filename,
    parse_filename_to_oval_id,
)

format_oval_id_to_filename("oval:com.culinux:def:20251001")
# 'security-oval-2025-1001.xml'
parse_filename_to_oval_id("security-oval-2025-1001.xml", "oval:com.culinux:def")
# 'oval:com.culinux:def:20251001'
extract_oval_id_from_filename("csaf-openeuler-sa-2025-1004.json", "oval:com.culinux:def")
# 'oval:com.culinux:def:20251004'
extract_dist_from_package("ansible-2.9-1.oe1")
# 'oe1'

async def ids():
    generator = DatabaseIdGenerator(MemoryCounterStore(), "oval_ids")
    first = await generator.get_or_create_object_id("openssl", "oval:example:obj:")
    again = await generator.get_or_create_object_id("openssl", "oval:example:obj:")
    return first, again  # the same id both times

asyncio.run(ids())
```

## What this package does not do

- It has no command-line tool and no HTTP server; it is a library only.
- It does not open database connections itself: `CsafQuery` needs a client
  you provide, and no database-backed `CounterStore` is included.
- It does not convert CSAF advisories into OVAL definitions, produce OVAL XML,
  or store OVAL definitions in a database; `cuscanner.entities` only defines
  the records.

## Running the tests

Install the `test` extra and run `pytest` from the project root.
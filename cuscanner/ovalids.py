"""Naming rules linking package versions, CSAF files, OVAL ids and OVAL file names."""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import Optional

log = logging.getLogger(__name__)

_EXACT_DISTS = ("oe2403", "oe2203", "oe1", "el9", "el8", "el7", "ule4")
_OE1_ALIASES = ("oe2003", "oe20.03")

_FILE_PREFIX = "security-oval-"
_FILE_SUFFIX = ".xml"
_FILE_NAME = re.compile(r"security-oval-(\d{4})-(\d+)\.xml")
_NUMBER_PAIR = re.compile(r"(\d+)-(\d+)")


def extract_dist_from_package(package_version: str) -> Optional[str]:
    """The dist tag contained in a package version, e.g. ``ansible-2.9-1.oe1`` gives ``oe1``."""
    for pattern in _EXACT_DISTS:
        if pattern in package_version:
            log.debug("dist %s found in %s", pattern, package_version)
            return pattern
    if any(alias in package_version for alias in _OE1_ALIASES):
        return "oe1"
    return None


def _join_id(prefix: str, number: str) -> str:
    return f"{prefix.rstrip(':')}:{number}"


def format_oval_id_to_filename(oval_id: str) -> str:
    """``oval:com.culinux:def:20251001`` becomes ``security-oval-2025-1001.xml``."""
    numeric = oval_id.rsplit(":", 1)[-1]
    if numeric.isdigit() and len(numeric) > 4:
        return f"{_FILE_PREFIX}{numeric[:4]}-{numeric[4:]}{_FILE_SUFFIX}"
    return f"{_FILE_PREFIX}{numeric}{_FILE_SUFFIX}"


def parse_filename_to_oval_id(filename: str, prefix: str) -> Optional[str]:
    """``security-oval-2025-1001.xml`` becomes ``<prefix>:20251001``; None if it does not match."""
    match = _FILE_NAME.fullmatch(filename)
    if match is None:
        return None
    year, serial = match.groups()
    return _join_id(prefix, f"{year}{serial}")


def extract_oval_id_from_filename(filename: str, prefix: str) -> Optional[str]:
    """Turn the last ``number-number`` part of a CSAF file name into an OVAL id.

    ``csaf-openeuler-sa-2025-1004.json`` gives ``<prefix>:20251004``.
    """
    stem = PurePosixPath(filename).name
    if stem.endswith(".json"):
        stem = stem[: -len(".json")]
    pairs = _NUMBER_PAIR.findall(stem)
    if not pairs:
        return None
    first, second = pairs[-1]
    return _join_id(prefix, f"{first}{second}")
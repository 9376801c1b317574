import copy
import json

import httpx
import pytest
import respx

from cuscanner.csaf import (
    CSAF,
    AggregateSeverity,
    CvssV3,
    History,
    ProductStatus,
    ProductTree,
    Tlp,
    Tracking,
    Vulnerability,
)


def _sample() -> dict:
    return {
        "document": {
            "aggregate_severity": {"namespace": "https://nvd.example.com/", "text": "High"},
            "category": "csaf_security_advisory",
            "csaf_version": "2.0",
            "distribution": {"tlp": {"label": "WHITE", "url": "https://tlp.example.com/"}},
            "lang": "en",
            "notes": [{"text": "Security fix", "category": "general", "title": "Synopsis"}],
            "publisher": {
                "issuing_authority": "security team",
                "name": "openEuler",
                "namespace": "https://www.example.com",
                "contact_details": "security@example.com",
                "category": "vendor",
            },
            "references": [
                {"summary": "CVE-2025-0001", "category": "self", "url": "https://cve.example.com/1"}
            ],
            "title": "An update for demo is now available",
            "tracking": {
                "initial_release_date": "2025-01-03T00:00:00+08:00",
                "revision_history": [
                    {"date": "2025-01-03", "summary": "Initial", "number": "1.0.0"},
                    {"date": "2025-01-05", "summary": "Update", "number": "1.0.1"},
                ],
                "generator": {"date": "2025-01-03", "engine": {"name": "engine"}},
                "current_release_date": "2025-01-05T00:00:00+08:00",
                "id": "openEuler-SA-2025-1004",
                "version": "1.0.1",
                "status": "final",
            },
        },
        "product_tree": {
            "branches": [
                {
                    "name": "openEuler",
                    "category": "vendor",
                    "branches": [
                        {
                            "name": "openEuler-22.03-LTS",
                            "category": "product_version",
                            "branches": [
                                {
                                    "product": {
                                        "product_identification_helper": {"cpe": "cpe:/a:demo"},
                                        "product_id": "demo-1.0-1.oe2203.x86_64.rpm",
                                        "name": "demo-1.0-1.oe2203.x86_64.rpm",
                                    },
                                    "name": "demo-1.0-1.oe2203.x86_64.rpm",
                                    "category": "product_version",
                                },
                                {
                                    "product": {
                                        "product_identification_helper": {"cpe": "cpe:/a:demo"},
                                        "product_id": "demo-1.0-1.oe2203.src.rpm",
                                        "name": "demo-1.0-1.oe2203.src.rpm",
                                    },
                                    "name": "demo-1.0-1.oe2203.src.rpm",
                                    "category": "product_version",
                                },
                            ],
                        }
                    ],
                }
            ],
            "relationships": [
                {
                    "relates_to_product_reference": "openEuler-22.03-LTS",
                    "product_reference": "demo-1.0-1.oe2203.x86_64.rpm",
                    "full_product_name": {
                        "product_id": "openEuler-22.03-LTS:demo-1.0-1.oe2203.x86_64.rpm",
                        "name": "demo-1.0-1.oe2203.x86_64.rpm",
                    },
                    "category": "default_component_of",
                }
            ],
        },
        "vulnerabilities": [
            {
                "cve": "CVE-2025-0001",
                "notes": [{"text": "Overflow", "category": "description", "title": "Vulnerability"}],
                "product_status": {"fixed": ["openEuler-22.03-LTS:demo-1.0-1.oe2203.x86_64.rpm"]},
                "remediations": [
                    {
                        "product_ids": ["openEuler-22.03-LTS:demo-1.0-1.oe2203.x86_64.rpm"],
                        "details": "demo security update",
                        "category": "vendor_fix",
                        "url": "https://sa.example.com/1004",
                    }
                ],
                "scores": [
                    {
                        "cvss_v3": {
                            "baseSeverity": "HIGH",
                            "baseScore": 7.5,
                            "vectorString": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:N/I:N/A:H",
                            "version": "3.1",
                        },
                        "products": ["openEuler-22.03-LTS:demo-1.0-1.oe2203.x86_64.rpm"],
                    }
                ],
                "threats": [{"details": "High", "category": "impact"}],
                "title": "CVE-2025-0001",
            },
            {
                "cve": "CVE-2025-0002",
                "notes": [],
                "product_status": {"fixed": []},
                "remediations": [],
                "scores": [],
                "threats": [],
                "title": "CVE-2025-0002",
            },
        ],
    }


def test_dict_round_trip():
    data = _sample()
    assert CSAF.from_dict(data).to_dict() == data


def test_cvss_keys_are_camel_case():
    csaf = CSAF.from_dict(_sample())
    cvss = csaf.vulnerabilities[0].scores[0].cvss_v3
    assert cvss.base_score == 7.5
    assert cvss.base_severity == "HIGH"
    dumped = csaf.to_dict()["vulnerabilities"][0]["scores"][0]["cvss_v3"]
    assert set(dumped) == {"baseSeverity", "baseScore", "vectorString", "version"}


def test_json_round_trip():
    csaf = CSAF.from_dict(_sample())
    assert CSAF.from_json(csaf.to_json()) == csaf


def test_file_round_trip(tmp_path):
    path = tmp_path / "advisory.json"
    csaf = CSAF.from_dict(_sample())
    csaf.to_file(str(path))
    assert json.loads(path.read_text(encoding="utf-8")) == _sample()
    assert CSAF.from_file(str(path)) == csaf


def test_from_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        CSAF.from_file(tmp_path / "absent.json")


def test_invalid_json_raises():
    with pytest.raises(ValueError):
        CSAF.from_json("{not json")


def test_missing_field_raises():
    data = _sample()
    del data["document"]["tracking"]["id"]
    with pytest.raises(ValueError, match="id"):
        CSAF.from_dict(data)


def test_wrong_type_raises():
    data = copy.deepcopy(_sample())
    data["vulnerabilities"][0]["scores"][0]["cvss_v3"]["baseScore"] = "high"
    with pytest.raises(ValueError):
        CSAF.from_dict(data)


def test_tracking_properties():
    csaf = CSAF.from_dict(_sample())
    assert csaf.id == "openEuler-SA-2025-1004"
    assert csaf.version == "1.0.1"
    assert csaf.status == "final"
    assert csaf.title == "An update for demo is now available"
    assert csaf.release_date == "2025-01-05T00:00:00+08:00"
    assert csaf.initial_release_date == "2025-01-03T00:00:00+08:00"


def test_cve_ids_and_contains():
    csaf = CSAF.from_dict(_sample())
    assert csaf.cve_ids() == ["CVE-2025-0001", "CVE-2025-0002"]
    assert csaf.contains_cve("CVE-2025-0002")
    assert not csaf.contains_cve("CVE-1999-0000")


def test_default_csaf_is_empty():
    csaf = CSAF()
    assert csaf.cve_ids() == []
    assert csaf.product_tree.product_count() == 0
    assert csaf.document.tracking.latest_revision() is None
    assert CSAF.from_dict(csaf.to_dict()) == csaf


def test_latest_revision():
    csaf = CSAF.from_dict(_sample())
    latest = csaf.document.tracking.latest_revision()
    assert latest == History(date="2025-01-05", summary="Update", number="1.0.1")
    assert Tracking().latest_revision() is None


def test_product_tree_ids():
    tree = CSAF.from_dict(_sample()).product_tree
    assert tree.all_product_ids() == [
        "demo-1.0-1.oe2203.x86_64.rpm",
        "demo-1.0-1.oe2203.src.rpm",
    ]
    assert tree.product_count() == len(tree.all_product_ids())
    assert ProductTree().all_product_ids() == []


def test_product_status():
    status = ProductStatus(fixed=["a", "b"])
    assert status.is_product_fixed("a")
    assert not status.is_product_fixed("c")


def test_aggregate_severity():
    assert AggregateSeverity(text="High").is_high()
    assert not AggregateSeverity(text="High").is_critical()
    assert AggregateSeverity(text="Critical").is_critical()


def test_tlp_public():
    assert Tlp().is_public()
    assert Tlp(label="white").is_public()
    assert not Tlp(label="RED").is_public()


@pytest.mark.parametrize(
    "severity, expected",
    [
        ("CRITICAL", (True, False, False, False)),
        ("HIGH", (False, True, False, False)),
        ("Medium", (False, False, True, False)),
        ("low", (False, False, False, True)),
    ],
)
def test_cvss_levels(severity, expected):
    cvss = CvssV3(base_severity=severity)
    assert (cvss.is_critical(), cvss.is_high(), cvss.is_medium(), cvss.is_low()) == expected


def test_vulnerability_scores():
    csaf = CSAF.from_dict(_sample())
    scored, unscored = csaf.vulnerabilities
    assert scored.cvss_score() == 7.5
    assert scored.severity() == "HIGH"
    assert scored.is_high()
    assert not scored.is_critical()
    assert unscored.cvss_score() is None
    assert unscored.severity() is None
    assert not Vulnerability().is_high()


def test_from_url():
    url = "https://csaf.example.com/advisory.json"
    with respx.mock:
        respx.get(url).mock(return_value=httpx.Response(200, json=_sample()))
        assert CSAF.from_url(url) == CSAF.from_dict(_sample())


def test_from_url_error_status():
    url = "https://csaf.example.com/missing.json"
    with respx.mock:
        respx.get(url).mock(return_value=httpx.Response(404, text="not found"))
        with pytest.raises(httpx.HTTPStatusError):
            CSAF.from_url(url)
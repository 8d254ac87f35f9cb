"""Tests for allocation policy loading."""

import json
from decimal import Decimal

import pytest

from cashrecon.domain.allocation import (
    DEFAULT_POLICY,
    DEFAULT_RATIOS,
    load_allocation_policy,
    policy_from_dict,
)
from cashrecon.domain.errors import ValidationError


def _write_policy(tmp_path, payload):
    path = tmp_path / "allocation.json"
    path.write_text(json.dumps(payload) if not isinstance(payload, str) else payload)
    return path


def test_default_when_nothing_configured(monkeypatch):
    monkeypatch.delenv("CASHRECON_ALLOCATION_PATH", raising=False)

    policy = load_allocation_policy()

    assert policy is DEFAULT_POLICY
    assert policy.label == "default@1"
    assert policy.ratio("tax_rate") == Decimal("0.10")


def test_load_from_file(tmp_path):
    path = _write_policy(
        tmp_path,
        {
            "name": "studio-2025",
            "version": 2,
            "ratios": {
                "class_revenue": "0.50",
                "membership_revenue": 0.30,
                "product_sales": "0.15",
                "other_revenue": "0.05",
                "tax_rate": "0.0825",
            },
        },
    )

    policy = load_allocation_policy(path)

    assert policy.label == "studio-2025@2"
    assert policy.ratio("class_revenue") == Decimal("0.50")
    assert policy.ratio("membership_revenue") == Decimal("0.3")
    assert policy.ratio("tax_rate") == Decimal("0.0825")
    # Untouched ratios keep their defaults.
    assert policy.ratio("depreciation") == DEFAULT_RATIOS["depreciation"]


def test_path_from_environment(tmp_path, monkeypatch):
    path = _write_policy(tmp_path, {"name": "env", "ratios": {"depreciation": "0.01"}})
    monkeypatch.setenv("CASHRECON_ALLOCATION_PATH", str(path))

    policy = load_allocation_policy()

    assert policy.name == "env"
    assert policy.version == "1"
    assert policy.ratio("depreciation") == Decimal("0.01")


@pytest.mark.parametrize(
    "ratios,message",
    [
        ({"bonus_pool": "0.1"}, "Unknown allocation ratio"),
        ({"tax_rate": "1.5"}, "between 0 and 1"),
        ({"tax_rate": "-0.1"}, "between 0 and 1"),
        ({"tax_rate": "ten"}, "must be a number"),
        ({"tax_rate": True}, "must be a number"),
        ({"class_revenue": "0.60"}, "add up to 1"),
    ],
)
def test_invalid_ratios(ratios, message):
    with pytest.raises(ValidationError, match=message):
        policy_from_dict({"ratios": ratios})


def test_ratios_must_be_object():
    with pytest.raises(ValidationError):
        policy_from_dict({"ratios": ["tax_rate", "0.1"]})


def test_missing_file(tmp_path):
    with pytest.raises(ValidationError, match="Cannot read"):
        load_allocation_policy(tmp_path / "absent.json")


def test_malformed_json(tmp_path):
    path = _write_policy(tmp_path, "{not json")
    with pytest.raises(ValidationError, match="not valid JSON"):
        load_allocation_policy(path)


def test_non_object_document(tmp_path):
    path = _write_policy(tmp_path, [1, 2, 3])
    with pytest.raises(ValidationError, match="JSON object"):
        load_allocation_policy(path)


def test_unknown_ratio_lookup():
    with pytest.raises(ValidationError):
        DEFAULT_POLICY.ratio("missing")

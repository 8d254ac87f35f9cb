"""Allocation ratios used by the report compiler.

Revenue and cost lines in the profit and loss statement are not kept in the
ledger; they are derived from totals using a named, versioned set of ratios.
The ratios are loaded once at startup from a JSON file so they can change
without touching the aggregation code::

    {
        "name": "studio-2025",
        "version": "2",
        "ratios": {"class_revenue": "0.50", "membership_revenue": "0.30", ...}
    }

Ratios missing from the file keep their default value.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from cashrecon.domain.errors import ValidationError

logger = logging.getLogger(__name__)

REVENUE_SHARES = ("class_revenue", "membership_revenue", "product_sales", "other_revenue")

DEFAULT_RATIOS: dict[str, Decimal] = {
    # Split of total revenue into lines.
    "class_revenue": Decimal("0.45"),
    "membership_revenue": Decimal("0.35"),
    "product_sales": Decimal("0.15"),
    "other_revenue": Decimal("0.05"),
    # Direct costs.
    "product_cost": Decimal("0.40"),  # of product sales
    "instructor_fees": Decimal("0.35"),  # of class revenue
    "other_direct_costs": Decimal("0.05"),  # of total revenue
    # Operating expenses.
    "utilities_share_of_rent": Decimal("0.15"),
    "depreciation": Decimal("0.03"),  # of total revenue
    # Tax.
    "taxable_share": Decimal("0.90"),
    "tax_rate": Decimal("0.10"),
}


@dataclass(frozen=True)
class AllocationPolicy:
    """Named, versioned set of allocation ratios."""

    name: str
    version: str
    ratios: dict[str, Decimal] = field(default_factory=dict)

    def ratio(self, key: str) -> Decimal:
        """Return a ratio by allocation name.

        Raises:
            ValidationError: If the policy has no ratio with that name
        """
        try:
            return self.ratios[key]
        except KeyError:
            raise ValidationError(f"Allocation policy '{self.name}' has no ratio '{key}'")

    @property
    def label(self) -> str:
        return f"{self.name}@{self.version}"


DEFAULT_POLICY = AllocationPolicy(name="default", version="1", ratios=dict(DEFAULT_RATIOS))


def _parse_ratio(key: str, raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValidationError(f"Ratio '{key}' must be a number, got {raw!r}")
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise ValidationError(f"Ratio '{key}' must be a number, got {raw!r}")
    if not value.is_finite() or value < 0 or value > 1:
        raise ValidationError(f"Ratio '{key}' must be between 0 and 1, got {raw!r}")
    return value


def policy_from_dict(data: dict[str, Any]) -> AllocationPolicy:
    """Build a policy from a decoded JSON document.

    Raises:
        ValidationError: If a ratio is unknown or out of range, or the revenue
            shares do not add up to 1
    """
    raw_ratios = data.get("ratios") or {}
    if not isinstance(raw_ratios, dict):
        raise ValidationError("Allocation policy 'ratios' must be an object")

    ratios = dict(DEFAULT_RATIOS)
    for key, raw in raw_ratios.items():
        if key not in DEFAULT_RATIOS:
            raise ValidationError(f"Unknown allocation ratio '{key}'")
        ratios[key] = _parse_ratio(key, raw)

    shares = sum((ratios[key] for key in REVENUE_SHARES), Decimal("0"))
    if shares != 1:
        raise ValidationError(f"Revenue shares must add up to 1, got {shares}")

    return AllocationPolicy(
        name=str(data.get("name") or "custom"),
        version=str(data.get("version") or "1"),
        ratios=ratios,
    )


def load_allocation_policy(path: Optional[str | Path] = None) -> AllocationPolicy:
    """Load the allocation policy.

    Args:
        path: JSON policy file. If None, uses CASHRECON_ALLOCATION_PATH, and
            the built-in default policy when that is unset.

    Returns:
        AllocationPolicy

    Raises:
        ValidationError: If the file cannot be read or holds an invalid policy
    """
    if path is None:
        path = os.environ.get("CASHRECON_ALLOCATION_PATH")
    if not path:
        return DEFAULT_POLICY

    policy_path = Path(path).expanduser()
    try:
        with open(policy_path) as f:
            data = json.load(f)
    except OSError as e:
        raise ValidationError(f"Cannot read allocation policy {policy_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Allocation policy {policy_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(f"Allocation policy {policy_path} must be a JSON object")

    policy = policy_from_dict(data)
    logger.info("Loaded allocation policy %s from %s", policy.label, policy_path)
    return policy

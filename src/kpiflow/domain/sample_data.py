"""Sample data for demos and onboarding.

Twelve months of figures for a reference multifamily property, in three
planning dimensions:

- actual: seasonal swing, steady trend and small seeded noise
- budget: flat linear growth, no noise
- forecast: budget-like trend with an optimism premium that fades over the year

Derived metrics (NOI, NOI margin, cap rate, DSCR, LTV) are always computed
from the primitives of the same dimension by ``derive_metrics``.
"""

import math
import random
from datetime import date
from typing import Any, Optional

from kpiflow.domain.entities import ColumnMapping, SampleDataConfig

DEFAULT_SEED = 42
SAMPLE_YEAR = 2024

PROPERTY = {
    "name": "Oakwood Apartments",
    "type": "Multifamily",
    "total_units": 200,
    "total_sqft": 180000,
}

# Monthly baseline for a 200-unit property
BASE = {
    "gross_potential_rent": 520000,  # $2,600/unit market rent
    "total_revenue": 485000,
    "operating_expenses": 195000,
    "occupancy_rate": 94.0,
    "property_value": 52000000,
    "loan_balance": 33000000,
    "monthly_debt_service": 175000,
    "interest_rate": 6.25,
}

MONTHLY_TREND = 0.004
EXPENSE_TREND = 0.002
VALUE_TREND = 0.003
MONTHLY_AMORTIZATION = 45000
FORECAST_OPTIMISM = 0.03

FORECAST_SUFFIX = " (Forecast)"
BUDGET_SUFFIX = " (Budget)"

# Column name -> KPI code, in output order
ESSENTIAL_COLUMNS = {
    "Total Revenue": "total_revenue",
    "Gross Potential Rent": "gpr",
    "Operating Expenses": "total_expenses",
    "Occupancy Rate": "physical_occupancy",
    "Property Value": "property_value",
    "Loan Balance": "principal_balance",
    "Monthly Debt Service": "monthly_debt_service",
}
OPTIONAL_COLUMNS = {
    "Concessions": "concessions",
    "Loss to Lease": "loss_to_lease",
    "Move-Ins": "move_ins",
    "Move-Outs": "move_outs",
    "Avg Days Vacant": "avg_days_vacant",
    "Renewal Rate": "lease_renewal_rate",
    "Interest Rate": "interest_rate",
}
DERIVED_COLUMNS = {
    "Net Operating Income": "noi",
    "NOI Margin": "noi_margin",
    "Cap Rate": "cap_rate",
    "DSCR": "dscr",
    "LTV": "ltv",
}
ACTUAL_COLUMNS = {**ESSENTIAL_COLUMNS, **OPTIONAL_COLUMNS, **DERIVED_COLUMNS}

# Forecast and budget carry the headline operating lines only
PLAN_COLUMNS = {
    name: ACTUAL_COLUMNS[name]
    for name in (
        "Total Revenue",
        "Operating Expenses",
        "Occupancy Rate",
        "Net Operating Income",
        "NOI Margin",
    )
}


def derive_metrics(primitives: dict[str, Any]) -> dict[str, Any]:
    """Compute the derived columns from one dimension's primitive columns."""
    revenue = primitives["Total Revenue"]
    expenses = primitives["Operating Expenses"]
    value = primitives["Property Value"]
    noi = round(revenue - expenses)
    return {
        "Net Operating Income": noi,
        "NOI Margin": round(noi / revenue * 100, 1),
        "Cap Rate": round(noi * 12 / value * 100, 2),
        "DSCR": round(noi / primitives["Monthly Debt Service"], 2),
        "LTV": round(primitives["Loan Balance"] / value * 100, 1),
    }


def _balance_sheet(index: int) -> dict[str, Any]:
    return {
        "Gross Potential Rent": round(BASE["gross_potential_rent"] * (1 + index * MONTHLY_TREND)),
        "Property Value": round(BASE["property_value"] * (1 + index * VALUE_TREND)),
        "Loan Balance": round(BASE["loan_balance"] - index * MONTHLY_AMORTIZATION),
        "Monthly Debt Service": BASE["monthly_debt_service"],
        "Interest Rate": BASE["interest_rate"],
    }


def _actual_primitives(index: int, rng: random.Random) -> dict[str, Any]:
    seasonal = 1 + math.sin(index / 12 * math.pi * 2) * 0.02
    trend = 1 + index * MONTHLY_TREND
    noise = 1 + (rng.random() - 0.5) * 0.01

    values = _balance_sheet(index)
    gpr = values["Gross Potential Rent"]
    occupancy = round(
        min(98.0, max(91.0, BASE["occupancy_rate"] + index * 0.15 + (rng.random() - 0.5) * 2)), 1
    )
    values.update(
        {
            "Total Revenue": round(BASE["total_revenue"] * seasonal * trend * noise),
            "Operating Expenses": round(BASE["operating_expenses"] * (1 + index * EXPENSE_TREND) * noise),
            "Occupancy Rate": occupancy,
            "Concessions": round(gpr * 0.02 * (1 - occupancy / 100) * 2),
            "Loss to Lease": round(gpr * 0.03),
            "Move-Ins": round(4 + rng.random() * 4),
            "Move-Outs": round(3 + rng.random() * 4),
            "Avg Days Vacant": round(18 + rng.random() * 10),
            "Renewal Rate": round(75 + rng.random() * 15, 1),
        }
    )
    return values


def _budget_primitives(index: int) -> dict[str, Any]:
    values = _balance_sheet(index)
    values.update(
        {
            "Total Revenue": round(BASE["total_revenue"] * (1 + index * MONTHLY_TREND)),
            "Operating Expenses": round(BASE["operating_expenses"] * (1 + index * EXPENSE_TREND)),
            "Occupancy Rate": round(BASE["occupancy_rate"] + index * 0.1, 1),
        }
    )
    return values


def _forecast_primitives(index: int) -> dict[str, Any]:
    # Optimism premium: full in January, gone by December
    optimism = FORECAST_OPTIMISM * (1 - index / 11)
    values = _balance_sheet(index)
    values.update(
        {
            "Total Revenue": round(BASE["total_revenue"] * (1 + index * MONTHLY_TREND) * (1 + optimism)),
            "Operating Expenses": round(
                BASE["operating_expenses"] * (1 + index * EXPENSE_TREND) * (1 - optimism / 2)
            ),
            "Occupancy Rate": round(min(98.0, BASE["occupancy_rate"] + index * 0.15 + optimism * 50), 1),
        }
    )
    return values


def _with_derived(primitives: dict[str, Any]) -> dict[str, Any]:
    return {**primitives, **derive_metrics(primitives)}


def sample_months(year: int = SAMPLE_YEAR) -> list[date]:
    return [date(year, month, 1) for month in range(1, 13)]


def generate_sample_rows(seed: int = DEFAULT_SEED) -> list[dict[str, Any]]:
    """Generate the full 12-month dataset.

    Args:
        seed: Seed for the noise in the actual figures

    Returns:
        One row per month: "Date" plus actual, forecast and budget columns
    """
    rng = random.Random(seed)
    rows = []
    for index, month in enumerate(sample_months()):
        actual = _with_derived(_actual_primitives(index, rng))
        forecast = _with_derived(_forecast_primitives(index))
        budget = _with_derived(_budget_primitives(index))

        row: dict[str, Any] = {"Date": month.isoformat()}
        row.update({name: actual[name] for name in ACTUAL_COLUMNS})
        row.update({name + FORECAST_SUFFIX: forecast[name] for name in PLAN_COLUMNS})
        row.update({name + BUDGET_SUFFIX: budget[name] for name in PLAN_COLUMNS})
        rows.append(row)
    return rows


def _build_mappings() -> list[ColumnMapping]:
    mappings = [
        ColumnMapping(column_name=name, kpi_code=code, data_type="actual")
        for name, code in ACTUAL_COLUMNS.items()
    ]
    for suffix, data_type in ((FORECAST_SUFFIX, "forecast"), (BUDGET_SUFFIX, "budget")):
        mappings.extend(
            ColumnMapping(column_name=name + suffix, kpi_code=code, data_type=data_type)
            for name, code in PLAN_COLUMNS.items()
        )
    return mappings


SAMPLE_DATA_MAPPINGS: list[ColumnMapping] = _build_mappings()


def get_sample_data_columns() -> list[str]:
    return ["Date"] + [m.column_name for m in SAMPLE_DATA_MAPPINGS]


def get_minimal_sample_data_columns() -> list[str]:
    return ["Date"] + list(ESSENTIAL_COLUMNS)


def get_sample_data(seed: int = DEFAULT_SEED) -> SampleDataConfig:
    """Full sample dataset with its column mapping."""
    return SampleDataConfig(
        name=f"Sample Property - {PROPERTY['name']}",
        description=(
            f"12 months of actual, forecast and budget data for a "
            f"{PROPERTY['total_units']}-unit multifamily property"
        ),
        property_type=PROPERTY["type"],
        columns=get_sample_data_columns(),
        rows=generate_sample_rows(seed),
        mappings=list(SAMPLE_DATA_MAPPINGS),
    )


def get_sample_data_rows(seed: int = DEFAULT_SEED) -> list[dict[str, Any]]:
    return generate_sample_rows(seed)


def get_minimal_sample_data_rows(seed: Optional[int] = None) -> list[dict[str, Any]]:
    """Date plus the essential actual columns only."""
    columns = get_minimal_sample_data_columns()
    rows = generate_sample_rows(DEFAULT_SEED if seed is None else seed)
    return [{name: row[name] for name in columns} for row in rows]

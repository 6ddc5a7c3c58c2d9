"""Tests for the sample dataset generator."""

from datetime import date

import pytest

from kpiflow.domain.row_normalizer import resolve_period_date
from kpiflow.domain.sample_data import (
    BUDGET_SUFFIX,
    DEFAULT_SEED,
    FORECAST_SUFFIX,
    PLAN_COLUMNS,
    SAMPLE_DATA_MAPPINGS,
    derive_metrics,
    get_minimal_sample_data_rows,
    get_sample_data,
    get_sample_data_rows,
)


def test_same_seed_reproduces_rows():
    assert get_sample_data_rows(DEFAULT_SEED) == get_sample_data_rows(DEFAULT_SEED)
    assert get_sample_data_rows() == get_sample_data_rows(DEFAULT_SEED)


def test_different_seed_changes_actuals_only():
    base = get_sample_data_rows(1)
    other = get_sample_data_rows(2)

    assert [r["Total Revenue"] for r in base] != [r["Total Revenue"] for r in other]
    for suffix in (FORECAST_SUFFIX, BUDGET_SUFFIX):
        column = "Total Revenue" + suffix
        assert [r[column] for r in base] == [r[column] for r in other]


def test_twelve_first_of_month_rows():
    rows = get_sample_data_rows()

    assert len(rows) == 12
    assert [resolve_period_date(r) for r in rows] == [date(2024, m, 1) for m in range(1, 13)]


@pytest.mark.parametrize("suffix", ["", FORECAST_SUFFIX, BUDGET_SUFFIX])
def test_derived_noi_is_consistent(suffix):
    """Test NOI and margin against the revenue and expense columns of each dimension."""
    for row in get_sample_data_rows():
        revenue = row["Total Revenue" + suffix]
        expenses = row["Operating Expenses" + suffix]
        noi = row["Net Operating Income" + suffix]

        assert noi == round(revenue - expenses)
        assert row["NOI Margin" + suffix] == round(noi / revenue * 100, 1)


def test_derived_balance_sheet_ratios_are_consistent():
    for row in get_sample_data_rows():
        noi = row["Net Operating Income"]
        value = row["Property Value"]

        assert row["Cap Rate"] == round(noi * 12 / value * 100, 2)
        assert row["DSCR"] == round(noi / row["Monthly Debt Service"], 2)
        assert row["LTV"] == round(row["Loan Balance"] / value * 100, 1)


def test_derive_metrics():
    derived = derive_metrics(
        {
            "Total Revenue": 500000,
            "Operating Expenses": 200000,
            "Property Value": 50000000,
            "Monthly Debt Service": 150000,
            "Loan Balance": 30000000,
        }
    )

    assert derived == {
        "Net Operating Income": 300000,
        "NOI Margin": 60.0,
        "Cap Rate": 7.2,
        "DSCR": 2.0,
        "LTV": 60.0,
    }


def test_budget_has_no_noise():
    rows = get_sample_data_rows()
    revenues = [r["Total Revenue" + BUDGET_SUFFIX] for r in rows]

    assert revenues == sorted(revenues)
    assert revenues[0] == 485000


def test_forecast_optimism_fades():
    rows = get_sample_data_rows()
    january, december = rows[0], rows[-1]

    assert january["Total Revenue" + FORECAST_SUFFIX] > january["Total Revenue" + BUDGET_SUFFIX]
    assert december["Total Revenue" + FORECAST_SUFFIX] == december["Total Revenue" + BUDGET_SUFFIX]


def test_actual_occupancy_is_bounded():
    for row in get_sample_data_rows():
        assert 91.0 <= row["Occupancy Rate"] <= 98.0


def test_mappings_cover_every_value_column():
    sample = get_sample_data()
    mapped = [m.column_name for m in sample.mappings]

    assert sample.columns == ["Date"] + mapped
    assert len(set(mapped)) == len(mapped)
    for row in sample.rows:
        assert list(row) == sample.columns

    data_types = {m.data_type for m in SAMPLE_DATA_MAPPINGS}
    assert data_types == {"actual", "forecast", "budget"}
    forecast = [m for m in SAMPLE_DATA_MAPPINGS if m.data_type == "forecast"]
    assert len(forecast) == len(PLAN_COLUMNS)
    assert all(m.column_name.endswith(FORECAST_SUFFIX) for m in forecast)


def test_sample_metadata():
    sample = get_sample_data()

    assert "Oakwood Apartments" in sample.name
    assert sample.property_type == "Multifamily"


def test_minimal_rows():
    rows = get_minimal_sample_data_rows()

    assert len(rows) == 12
    assert list(rows[0]) == [
        "Date",
        "Total Revenue",
        "Gross Potential Rent",
        "Operating Expenses",
        "Occupancy Rate",
        "Property Value",
        "Loan Balance",
        "Monthly Debt Service",
    ]
    assert rows[0]["Total Revenue"] == get_sample_data_rows()[0]["Total Revenue"]

"""Initialize the default KPI catalog."""

import click
from kpiflow.domain.kpi import KpiService


# (code, name, category, description, format, sort_order)
INITIAL_KPI_DEFINITIONS = [
    # Rent/Revenue
    ("gpr", "Gross Potential Rent", "rent_revenue", "Total rent if all units were leased at market rates", "currency", 1),
    ("egi", "Effective Gross Income", "rent_revenue", "Gross potential rent minus vacancy and concessions, plus other income", "currency", 2),
    ("total_revenue", "Total Revenue", "rent_revenue", "All income from the property", "currency", 3),
    ("revenue_per_unit", "Revenue Per Unit", "rent_revenue", "Average monthly revenue per unit", "currency", 4),
    ("revenue_per_sqft", "Revenue Per Sq Ft", "rent_revenue", "Revenue per square foot", "currency", 5),
    ("rent_growth", "Rent Growth", "rent_revenue", "Year-over-year rent increase percentage", "percentage", 6),
    ("loss_to_lease", "Loss to Lease", "rent_revenue", "Difference between market rent and actual rent", "currency", 7),
    ("concessions", "Concessions", "rent_revenue", "Total concessions and discounts given", "currency", 8),
    # Occupancy
    ("physical_occupancy", "Physical Occupancy Rate", "occupancy", "Percentage of units that are physically occupied", "percentage", 1),
    ("economic_occupancy", "Economic Occupancy Rate", "occupancy", "Actual rent collected as percentage of potential rent", "percentage", 2),
    ("vacancy_rate", "Vacancy Rate", "occupancy", "Percentage of units that are vacant", "percentage", 3),
    ("lease_renewal_rate", "Lease Renewal Rate", "occupancy", "Percentage of tenants who renew their lease", "percentage", 4),
    ("avg_days_vacant", "Average Days Vacant", "occupancy", "Average number of days a unit stays vacant", "number", 5),
    ("move_ins", "Move-Ins", "occupancy", "Number of new move-ins in the period", "number", 6),
    ("move_outs", "Move-Outs", "occupancy", "Number of move-outs in the period", "number", 7),
    # Property performance
    ("noi", "Net Operating Income", "property_performance", "Revenue minus operating expenses (before debt service)", "currency", 1),
    ("noi_margin", "NOI Margin", "property_performance", "NOI as a percentage of total revenue", "percentage", 2),
    ("operating_expense_ratio", "Operating Expense Ratio", "property_performance", "Operating expenses as percentage of revenue", "percentage", 3),
    ("cap_rate", "Cap Rate", "property_performance", "NOI divided by property value", "percentage", 4),
    ("cash_on_cash", "Cash on Cash Return", "property_performance", "Annual cash flow divided by total cash invested", "percentage", 5),
    ("total_expenses", "Total Operating Expenses", "property_performance", "All operating expenses for the period", "currency", 6),
    ("expense_per_unit", "Expense Per Unit", "property_performance", "Average operating expense per unit", "currency", 7),
    # Financial
    ("ebitda", "EBITDA", "financial", "Earnings before interest, taxes, depreciation, and amortization", "currency", 1),
    ("free_cash_flow", "Free Cash Flow", "financial", "Cash available after all expenses and capital expenditures", "currency", 2),
    ("roi", "Return on Investment", "financial", "Total return as percentage of investment", "percentage", 3),
    ("irr", "Internal Rate of Return", "financial", "Annualized rate of return on investment", "percentage", 4),
    ("equity_multiple", "Equity Multiple", "financial", "Total distributions divided by total equity invested", "ratio", 5),
    ("property_value", "Current Property Value", "financial", "Estimated current market value", "currency", 6),
    ("appreciation", "Appreciation", "financial", "Change in property value from acquisition", "percentage", 7),
    # Debt service
    ("dscr", "Debt Service Coverage Ratio", "debt_service", "NOI divided by annual debt service", "ratio", 1),
    ("ltv", "Loan-to-Value", "debt_service", "Loan balance as percentage of property value", "percentage", 2),
    ("interest_coverage", "Interest Coverage Ratio", "debt_service", "EBITDA divided by interest expense", "ratio", 3),
    ("principal_balance", "Principal Balance", "debt_service", "Outstanding loan principal", "currency", 4),
    ("monthly_debt_service", "Monthly Debt Service", "debt_service", "Monthly principal and interest payment", "currency", 5),
    ("annual_debt_service", "Annual Debt Service", "debt_service", "Total annual debt payments", "currency", 6),
    ("interest_rate", "Interest Rate", "debt_service", "Current loan interest rate", "percentage", 7),
]


@click.command("init-kpis")
@click.pass_context
def init_kpis(ctx):
    """Initialize database with the default KPI definitions.

    Codes that already exist are left untouched.
    """
    db = ctx.obj["db"]
    service = KpiService(db)

    created = 0
    existing = 0
    for code, name, category, description, fmt, sort_order in INITIAL_KPI_DEFINITIONS:
        if service.get_definition_by_code(code) is not None:
            existing += 1
            continue
        service.create_definition(
            code=code,
            name=name,
            category=category,
            format=fmt,
            description=description,
            sort_order=sort_order,
        )
        created += 1

    if existing == 0:
        click.echo(f"Successfully created {created} KPI definitions.")
    else:
        click.echo(f"Created {created} KPI definitions ({existing} already existed).")


def register_commands(cli):
    """Register init-kpis command with main CLI."""
    cli.add_command(init_kpis)

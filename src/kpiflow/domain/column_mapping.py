"""Column-to-KPI mapping suggestions.

Pure functions that look at spreadsheet headers (and optionally sample values)
and propose which KPI each column holds. Suggestions never pick a planning
dimension; the caller decides whether a column is actual, forecast or budget.
"""

import re
from typing import Any, Mapping, Optional, Sequence

from kpiflow.domain.entities import ColumnInfo, KpiDefinition, SuggestedMapping
from kpiflow.utils.amount_parser import parse_numeric_value

# Common header variations for each KPI code
KPI_ALIASES: dict[str, list[str]] = {
    # Rent/Revenue
    "gpr": ["gpr", "gross potential rent", "potential rent", "gross rent"],
    "egi": ["egi", "effective gross income", "effective income"],
    "total_revenue": ["total revenue", "revenue", "total income", "income"],
    "revenue_per_unit": ["revenue per unit", "rev/unit", "income per unit"],
    "revenue_per_sqft": ["revenue per sqft", "revenue per sf", "rev/sf", "revenue psf"],
    "rent_growth": ["rent growth", "rental growth", "rent increase"],
    "loss_to_lease": ["loss to lease", "ltl", "lease loss"],
    "concessions": ["concessions", "rent concessions", "discounts"],
    # Occupancy
    "physical_occupancy": ["physical occupancy", "occupancy", "occupancy rate", "occ rate", "occ"],
    "economic_occupancy": ["economic occupancy", "econ occupancy", "econ occ"],
    "vacancy_rate": ["vacancy rate", "vacancy", "vac rate"],
    "lease_renewal_rate": ["lease renewal rate", "renewal rate", "renewals"],
    "avg_days_vacant": ["avg days vacant", "days vacant", "average vacancy days"],
    "move_ins": ["move ins", "move-ins", "moveins", "new leases"],
    "move_outs": ["move outs", "move-outs", "moveouts"],
    # Property performance
    "noi": ["noi", "net operating income", "net income"],
    "noi_margin": ["noi margin", "operating margin", "noi %"],
    "operating_expense_ratio": ["operating expense ratio", "opex ratio", "expense ratio", "oer"],
    "cap_rate": ["cap rate", "capitalization rate", "cap"],
    "cash_on_cash": ["cash on cash", "coc", "cash on cash return", "coc return"],
    "total_expenses": ["total expenses", "expenses", "operating expenses", "opex"],
    "expense_per_unit": ["expense per unit", "exp/unit", "cost per unit"],
    # Financial
    "ebitda": ["ebitda", "earnings before interest"],
    "free_cash_flow": ["free cash flow", "fcf", "cash flow"],
    "roi": ["roi", "return on investment", "return"],
    "irr": ["irr", "internal rate of return"],
    "equity_multiple": ["equity multiple", "em", "moic", "multiple on invested capital"],
    "property_value": ["property value", "value", "current value", "market value"],
    "appreciation": ["appreciation", "value appreciation", "price appreciation"],
    # Debt service
    "dscr": ["dscr", "debt service coverage ratio", "debt coverage"],
    "ltv": ["ltv", "loan to value", "loan-to-value"],
    "interest_coverage": ["interest coverage", "interest coverage ratio", "icr"],
    "principal_balance": ["principal balance", "loan balance", "principal", "outstanding loan"],
    "monthly_debt_service": ["monthly debt service", "monthly payment", "debt payment"],
    "annual_debt_service": ["annual debt service", "yearly debt service", "annual payment"],
    "interest_rate": ["interest rate", "rate", "loan rate"],
}

DATE_KEYWORDS = ("date", "period", "month", "year", "quarter", "time", "timestamp")

ALIAS_THRESHOLD = 0.8
DIRECT_THRESHOLD = 0.7
INCLUDE_THRESHOLD = 0.7

_SEPARATORS = re.compile(r"[_\-\s]+")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_DATE_VALUE = re.compile(r"^\d{4}[-/]\d{2}[-/]\d{2}|^\d{2}[-/]\d{2}[-/]\d{4}")
_CURRENCY_VALUE = re.compile(r"^[$£€]|USD|EUR|GBP")


def normalize_name(value: str) -> str:
    """Lowercase and strip punctuation so header variants compare equal."""
    value = _SEPARATORS.sub(" ", value.lower())
    return _NON_ALNUM.sub("", value).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Similarity score between 0 and 1.

    Equal names score 1.0, containment scores 0.9, anything else falls back
    to normalized edit distance.
    """
    left = normalize_name(a)
    right = normalize_name(b)

    if left == right:
        return 1.0
    if left and right and (left in right or right in left):
        return 0.9

    longest = max(len(left), len(right))
    if longest == 0:
        return 0.0
    return 1 - levenshtein_distance(left, right) / longest


def is_date_column(column_name: str) -> bool:
    """Check whether a header names a date/period column."""
    normalized = normalize_name(column_name)
    return any(keyword in normalized for keyword in DATE_KEYWORDS)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def detect_column_type(values: Sequence[Any]) -> str:
    """Classify column values as date, currency, percentage, number or text."""
    present = [v for v in values if not _is_blank(v)][:10]
    if not present:
        return "text"

    if all(isinstance(v, str) and _DATE_VALUE.match(v) for v in present):
        return "date"
    if any(isinstance(v, str) and _CURRENCY_VALUE.search(v) for v in present):
        return "currency"
    if any(isinstance(v, str) and v.strip().endswith("%") for v in present):
        return "percentage"
    if all(parse_numeric_value(v) is not None for v in present):
        return "number"
    return "text"


def _score_to_confidence(score: float) -> str:
    if score >= 0.95:
        return "high"
    if score >= 0.8:
        return "medium"
    if score >= 0.6:
        return "low"
    return "none"


def find_best_kpi_match(
    column_name: str, definitions: Sequence[KpiDefinition]
) -> Optional[tuple[KpiDefinition, float]]:
    """Find the best matching KPI definition for a column header.

    Aliases are checked first, then KPI codes and display names. A later
    candidate only replaces the current best on a strictly higher score, so
    ties resolve to the first candidate in alias/definition order.
    """
    if is_date_column(column_name):
        return None

    by_code = {d.code: d for d in definitions}
    best: Optional[tuple[KpiDefinition, float]] = None

    for kpi_code, aliases in KPI_ALIASES.items():
        definition = by_code.get(kpi_code)
        if definition is None:
            continue
        for alias in aliases:
            score = similarity(column_name, alias)
            if score >= ALIAS_THRESHOLD and (best is None or score > best[1]):
                best = (definition, score)

    for definition in definitions:
        score = max(similarity(column_name, definition.code), similarity(column_name, definition.name))
        if score >= DIRECT_THRESHOLD and (best is None or score > best[1]):
            best = (definition, score)

    return best


def _no_suggestion(column_name: str) -> SuggestedMapping:
    return SuggestedMapping(
        column_name=column_name,
        suggested_kpi_code=None,
        suggested_kpi_name=None,
        confidence="none",
        confidence_score=0.0,
        include=False,
    )


def suggest_mappings(
    column_names: Sequence[str],
    kpi_definitions: Sequence[KpiDefinition],
    sample_values: Optional[Mapping[str, Sequence[Any]]] = None,
) -> list[SuggestedMapping]:
    """Suggest a KPI for every column, in input order.

    Args:
        column_names: Spreadsheet headers
        kpi_definitions: Known KPI definitions
        sample_values: Optional column name -> sample cell values, used to
            skip columns whose values are dates

    Returns:
        One SuggestedMapping per column name
    """
    suggestions = []
    for column_name in column_names:
        values = (sample_values or {}).get(column_name, [])
        if is_date_column(column_name) or detect_column_type(values) == "date":
            suggestions.append(_no_suggestion(column_name))
            continue

        match = find_best_kpi_match(column_name, kpi_definitions)
        if match is None:
            suggestions.append(_no_suggestion(column_name))
            continue

        definition, score = match
        suggestions.append(
            SuggestedMapping(
                column_name=column_name,
                suggested_kpi_code=definition.code,
                suggested_kpi_name=definition.name,
                confidence=_score_to_confidence(score),
                confidence_score=round(score, 4),
                include=score >= INCLUDE_THRESHOLD,
            )
        )
    return suggestions


def analyze_columns(
    column_names: Sequence[str], rows: Sequence[Mapping[str, Any]]
) -> list[ColumnInfo]:
    """Profile each column: detected type, first samples and blank count."""
    infos = []
    for name in column_names:
        values = [row.get(name) for row in rows]
        present = [v for v in values if not _is_blank(v)]
        infos.append(
            ColumnInfo(
                name=name,
                detected_type=detect_column_type(values),
                sample_values=present[:5],
                null_count=len(values) - len(present),
            )
        )
    return infos


def find_date_column(
    column_names: Sequence[str], rows: Sequence[Mapping[str, Any]]
) -> Optional[str]:
    """Find the period column, first by header name, then by values."""
    for name in column_names:
        if is_date_column(name):
            return name
    for name in column_names:
        if detect_column_type([row.get(name) for row in rows]) == "date":
            return name
    return None


def validate_mappings_have_date(
    column_names: Sequence[str], rows: Sequence[Mapping[str, Any]]
) -> Optional[str]:
    """Return an error message when no period column can be found."""
    if find_date_column(column_names, rows) is None:
        return "No date column detected. Please ensure your data includes a Date or Period column."
    return None

"""Builders for filters and warehouse rows shared across the test suite."""

from decimal import Decimal

from budget_kernel.domain.filters import AnalyticsFilter, ReportPeriod
from budget_kernel.domain.periods import PeriodInterval, PeriodSelection
from budget_kernel.domain.values import AccountCategory, Frequency
from budget_kernel.models import UAT, Entity, ExecutionLineItem

REPORT_TYPE = "Executie bugetara agregata la nivel de ordonator principal"


def make_filter(
    frequency: Frequency = Frequency.YEAR,
    start: str | None = "2023",
    end: str | None = "2024",
    dates: tuple[str, ...] | None = None,
    **overrides,
) -> AnalyticsFilter:
    """Expense filter with a report type and an interval selection."""
    interval = PeriodInterval(start, end) if start is not None and end is not None else None
    kwargs = {
        "account_category": AccountCategory.EXPENSE,
        "report_period": ReportPeriod(
            frequency=frequency,
            selection=PeriodSelection(interval=interval, dates=dates),
        ),
        "report_type": REPORT_TYPE,
    }
    kwargs.update(overrides)
    return AnalyticsFilter(**kwargs)


def line_item(
    entity_cui: str,
    year: int,
    month: int,
    amount: str,
    *,
    functional_code: str = "65.02",
    economic_code: str | None = "20.01",
    account_category: str = "ch",
    report_type: str = REPORT_TYPE,
    ytd_amount: str | None = None,
    quarterly_amount: str | None = None,
) -> ExecutionLineItem:
    """One fact row; quarterly/yearly flags follow from the month."""
    is_quarterly = month % 3 == 0
    is_yearly = month == 12
    return ExecutionLineItem(
        year=year,
        month=month,
        quarter=(month - 1) // 3 + 1 if is_quarterly else None,
        report_type=report_type,
        report_id=f"{entity_cui}-{year}-{month:02d}",
        entity_cui=entity_cui,
        budget_sector_id=1,
        funding_source_id=1,
        functional_code=functional_code,
        economic_code=economic_code,
        account_category=account_category,
        ytd_amount=Decimal(ytd_amount or amount),
        monthly_amount=Decimal(amount),
        quarterly_amount=Decimal(quarterly_amount or amount) if is_quarterly else None,
        is_quarterly=is_quarterly,
        is_yearly=is_yearly,
    )


def seed_reference_data(session) -> None:
    """
    Two counties (Cluj, Bucharest), three UATs, four entities.

    The Cluj county seat UAT has siruta_code == county_code ('CJ'); the
    Bucharest one carries SIRUTA 179132.
    """
    session.add_all(
        [
            UAT(
                id=1, uat_key="CJ-Cluj", uat_code="4305857", siruta_code="CJ",
                name="Judetul Cluj", county_code="CJ", county_name="Cluj",
                region="Nord-Vest", population=700000,
            ),
            UAT(
                id=2, uat_key="CJ-Floresti", uat_code="4485391", siruta_code="57706",
                name="Floresti", county_code="CJ", county_name="Cluj",
                region="Nord-Vest", population=50000,
            ),
            UAT(
                id=3, uat_key="B-Bucuresti", uat_code="4267117", siruta_code="179132",
                name="Municipiul Bucuresti", county_code="B", county_name="Bucuresti",
                region="Bucuresti-Ilfov", population=1700000,
            ),
        ]
    )
    session.flush()
    session.add_all(
        [
            Entity(cui="4305857", name="Consiliul Judetean Cluj", uat_id=1,
                   entity_type="admin_county_council", is_uat=False),
            Entity(cui="4485391", name="Comuna Floresti", uat_id=2,
                   entity_type="admin_commune_hall", is_uat=True),
            Entity(cui="4267117", name="Primaria Municipiului Bucuresti", uat_id=3,
                   entity_type="admin_municipality_hall", is_uat=True),
            Entity(cui="9999999", name="Scoala Gimnaziala", uat_id=None,
                   entity_type="school", is_uat=False),
        ]
    )
    session.flush()


def seed_execution_data(session) -> None:
    """
    Reference data plus six line items over 2023-2024.

    Yearly (December) YTD totals: county council 1000 (2023) and 2000
    (2024); Floresti 500, Bucharest 3000 and the school 700 in 2024.
    Floresti also reports a June line item that is not yearly.
    """
    seed_reference_data(session)
    session.add_all(
        [
            line_item("4305857", 2023, 12, "100", ytd_amount="1000"),
            line_item("4305857", 2024, 12, "200", ytd_amount="2000"),
            line_item("4485391", 2024, 6, "50", ytd_amount="250"),
            line_item("4485391", 2024, 12, "60", ytd_amount="500"),
            line_item("4267117", 2024, 12, "300", ytd_amount="3000"),
            line_item("9999999", 2024, 12, "70", ytd_amount="700"),
        ]
    )
    session.flush()

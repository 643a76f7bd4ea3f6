from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from expenses import ExpenseRecord, to_decimal

THIS_MONTH = 'this_month'
LAST_MONTH = 'last_month'
THIS_YEAR = 'this_year'
LAST_YEAR = 'last_year'
ALL_TIME = 'all_time'

TIMEFRAMES = {
    THIS_MONTH: 'This Month',
    LAST_MONTH: 'Last Month',
    THIS_YEAR: 'This Year',
    LAST_YEAR: 'Last Year',
    ALL_TIME: 'All Time',
}

UNCATEGORIZED = 'Uncategorized'

# Sheets may re-render USER_ENTERED dates in the spreadsheet locale
DATE_FORMATS = ['%Y-%m-%d', '%m/%d/%Y', '%d/%m/%Y', '%Y/%m/%d']


class SummaryStatus(Enum):
    OK = 'ok'
    NO_EXPENSES_RECORDED = 'no_expenses_recorded'
    NO_EXPENSES_FOR_TIMEFRAME = 'no_expenses_for_timeframe'


@dataclass
class SummaryResult:
    status: SummaryStatus
    timeframe: str
    totals: dict = field(default_factory=dict)
    grand_total: Decimal = Decimal(0)

    def message(self):
        label = timeframe_label(self.timeframe)
        if self.status is SummaryStatus.NO_EXPENSES_RECORDED:
            return 'No expenses recorded yet!'
        if self.status is SummaryStatus.NO_EXPENSES_FOR_TIMEFRAME:
            return f"No expenses found for **{label}**."

        lines = [f"**Expense Summary for {label}:**", ""]
        for category in sorted(self.totals):
            lines.append(f"- **{category}**: {format_amount(self.totals[category])}")
        lines.append("")
        lines.append(f"**Total Expenditure**: {format_amount(self.grand_total)}")
        return "\n".join(lines)


def timeframe_label(timeframe):
    return timeframe.replace('_', ' ')


def format_amount(amount):
    return f"₹{amount:.2f}"


def parse_sheet_date(value):
    """Date of a stored row, or None if the cell is not a recognisable date"""
    value = (value or '').strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def row_to_record(row):
    """Read a sheet row by column position; short rows get empty cells"""
    cells = list(row) + [''] * (6 - len(row))
    amount = to_decimal(cells[1])
    return ExpenseRecord(
        date=cells[0],
        amount=Decimal('NaN') if amount is None else amount,
        merchant=cells[2],
        category=cells[3],
        description=cells[4],
        entry_method=cells[5],
    )


def in_timeframe(spent_on, timeframe, now):
    if timeframe == ALL_TIME:
        return True
    if spent_on is None:
        return False
    if timeframe == THIS_MONTH:
        return spent_on.year == now.year and spent_on.month == now.month
    if timeframe == LAST_MONTH:
        year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
        return spent_on.year == year and spent_on.month == month
    if timeframe == THIS_YEAR:
        return spent_on.year == now.year
    if timeframe == LAST_YEAR:
        return spent_on.year == now.year - 1
    raise ValueError(f"Unknown timeframe: {timeframe}")


def filter_expenses(records, timeframe, now):
    return [r for r in records if in_timeframe(parse_sheet_date(r.date), timeframe, now)]


def aggregate(rows, timeframe, now=None):
    """Sum expenses per category for the timeframe.

    rows is the raw sheet content with the header as its first row. A sheet
    with no data rows and a timeframe with no matching rows are reported as
    different statuses.
    """
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"Unknown timeframe: {timeframe}")
    now = now or datetime.now()

    if len(rows) <= 1:
        return SummaryResult(SummaryStatus.NO_EXPENSES_RECORDED, timeframe)

    records = [row_to_record(row) for row in rows[1:]]
    filtered = filter_expenses(records, timeframe, now)
    if not filtered:
        return SummaryResult(SummaryStatus.NO_EXPENSES_FOR_TIMEFRAME, timeframe)

    totals = defaultdict(Decimal)
    grand_total = Decimal(0)
    for record in filtered:
        totals[record.category or UNCATEGORIZED] += record.amount
        grand_total += record.amount

    return SummaryResult(SummaryStatus.OK, timeframe, dict(totals), grand_total)

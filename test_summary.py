"""Tests for the expense summary aggregation."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from summary import (
    SummaryStatus,
    aggregate,
    format_amount,
    parse_sheet_date,
    row_to_record,
)

HEADER = ['Date', 'Amount', 'Merchant', 'Category', 'Description', 'Entry Method']
MARCH_2024 = datetime(2024, 3, 20)


def _row(day, amount, category, merchant='Shop'):
    return [day, amount, merchant, category, 'note', 'Manual Entry']


ROWS = [
    HEADER,
    _row('2024-03-05', '200', 'Food', 'Cafe'),
    _row('2024-03-10', '50.25', 'Transport'),
    _row('2024-02-14', '999', 'Shopping'),
    _row('2023-12-31', '10', 'Food'),
    _row('2023-01-01', '5', 'Food'),
]


def test_single_food_row_this_month():
    rows = [HEADER, ['2024-03-05', '200', 'Cafe', 'Food', 'lunch', 'Manual Entry']]
    result = aggregate(rows, 'this_month', MARCH_2024)

    assert result.status is SummaryStatus.OK
    assert result.totals == {'Food': Decimal('200')}
    assert format_amount(result.grand_total) == '₹200.00'
    message = result.message()
    assert '- **Food**: ₹200.00' in message
    assert message.endswith('**Total Expenditure**: ₹200.00')
    assert message.startswith('**Expense Summary for this month:**')


def test_header_only_sheet_means_nothing_recorded():
    result = aggregate([HEADER], 'all_time', MARCH_2024)
    assert result.status is SummaryStatus.NO_EXPENSES_RECORDED
    assert result.message() == 'No expenses recorded yet!'
    assert aggregate([], 'all_time', MARCH_2024).status is SummaryStatus.NO_EXPENSES_RECORDED


def test_rows_outside_timeframe_are_reported_separately():
    rows = [HEADER, _row('2020-01-01', '10', 'Food')]
    result = aggregate(rows, 'this_month', MARCH_2024)
    assert result.status is SummaryStatus.NO_EXPENSES_FOR_TIMEFRAME
    assert result.message() == 'No expenses found for **this month**.'


@pytest.mark.parametrize('timeframe, expected_total', [
    ('this_month', Decimal('250.25')),
    ('last_month', Decimal('999')),
    ('this_year', Decimal('1249.25')),
    ('last_year', Decimal('15')),
    ('all_time', Decimal('1264.25')),
])
def test_timeframes_use_calendar_boundaries(timeframe, expected_total):
    assert aggregate(ROWS, timeframe, MARCH_2024).grand_total == expected_total


def test_last_month_in_january_is_previous_december():
    result = aggregate(ROWS, 'last_month', datetime(2024, 1, 15))
    assert result.totals == {'Food': Decimal('10')}


def test_category_sums_add_up_to_grand_total():
    rows = [HEADER] + [_row('2024-03-01', amount, cat) for amount, cat in [
        ('0.1', 'Food'), ('0.2', 'Food'), ('0.7', 'Transport'), ('1000.33', 'Other'), ('3', '')]]
    result = aggregate(rows, 'all_time', MARCH_2024)
    assert sum(result.totals.values()) == result.grand_total
    assert result.totals['Food'] == Decimal('0.3')
    assert result.totals['Uncategorized'] == Decimal('3')


def test_categories_are_summed_by_stored_text():
    rows = [HEADER, _row('2024-03-01', '1', 'Food'), _row('2024-03-01', '2', 'Pets')]
    assert set(aggregate(rows, 'all_time', MARCH_2024).totals) == {'Food', 'Pets'}


def test_unparsable_amount_propagates_as_nan():
    rows = [HEADER, _row('2024-03-01', 'abc', 'Food'), _row('2024-03-01', '5', 'Food')]
    result = aggregate(rows, 'all_time', MARCH_2024)
    assert result.grand_total.is_nan()
    assert '₹NaN' in result.message()


def test_unparsable_dates_only_count_for_all_time():
    rows = [HEADER, _row('someday', '7', 'Food')]
    assert aggregate(rows, 'this_year', MARCH_2024).status is SummaryStatus.NO_EXPENSES_FOR_TIMEFRAME
    assert aggregate(rows, 'all_time', MARCH_2024).grand_total == Decimal('7')


def test_message_sorts_categories():
    message = aggregate(ROWS, 'this_year', MARCH_2024).message()
    assert message.index('**Food**') < message.index('**Shopping**') < message.index('**Transport**')


def test_unknown_timeframe_is_rejected():
    with pytest.raises(ValueError):
        aggregate(ROWS, 'this_week', MARCH_2024)


def test_parse_sheet_date_accepts_locale_formats():
    assert parse_sheet_date('2024-03-05') == date(2024, 3, 5)
    assert parse_sheet_date('3/5/2024') == date(2024, 3, 5)
    assert parse_sheet_date('') is None


def test_short_rows_are_padded():
    record = row_to_record(['2024-03-05', '12'])
    assert record.amount == Decimal('12')
    assert record.category == ''

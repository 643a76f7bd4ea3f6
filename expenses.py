from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

MANUAL_ENTRY = 'Manual Entry'
IMAGE_ENTRY = 'Via Image/Pic'

UNKNOWN_MERCHANT = 'Unknown Merchant'
UNSPECIFIED_PURPOSE = 'Unspecified'

SHEET_COLUMNS = ['Date', 'Amount', 'Merchant', 'Category', 'Description', 'Entry Method']


@dataclass
class ParsedExpense:
    """Fields as Gemini returns them; any of them may be missing for a receipt"""
    amount: Optional[Decimal] = None
    merchant: Optional[str] = None
    purpose: Optional[str] = None
    category: Optional[str] = None
    spend_date: Optional[str] = None

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from Gemini, got {type(data).__name__}")
        return cls(
            amount=to_decimal(data.get('amount')),
            merchant=data.get('merchant'),
            purpose=data.get('purpose'),
            category=data.get('category'),
            spend_date=data.get('spend_date'),
        )


@dataclass
class ExpenseRecord:
    date: str
    amount: Decimal
    merchant: str
    category: str
    description: str
    entry_method: str

    def to_row(self):
        """Values in sheet column order: date, amount, merchant, category, description, entry method"""
        return [
            self.date,
            float(self.amount),
            self.merchant,
            self.category,
            self.description,
            self.entry_method,
        ]

    def details_block(self):
        return (
            "```\n"
            f"Date: {self.date}\n"
            f"Amount: {self.amount}\n"
            f"Merchant: {self.merchant}\n"
            f"Category: {self.category}\n"
            f"Description: {self.description}\n"
            f"Entry Method: {self.entry_method}\n"
            "```"
        )


def to_decimal(value):
    """Convert a JSON or sheet value to Decimal; None stays None, junk becomes NaN"""
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal('NaN')
    try:
        return Decimal(str(value).replace(',', '').strip())
    except InvalidOperation:
        return Decimal('NaN')


def normalize_expense(parsed, current_date, entry_method, categories):
    """Fill every missing field of a parsed expense and resolve its category.

    Used for both typed and receipt expenses so the persisted row never has
    an empty cell.
    """
    if isinstance(current_date, date):
        current_date = current_date.isoformat()

    return ExpenseRecord(
        date=parsed.spend_date or current_date,
        amount=parsed.amount if parsed.amount is not None else Decimal(0),
        merchant=parsed.merchant or UNKNOWN_MERCHANT,
        category=categories.resolve(parsed.category).name,
        description=parsed.purpose or UNSPECIFIED_PURPOSE,
        entry_method=entry_method,
    )

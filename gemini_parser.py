import json
import logging
from decimal import Decimal

import google.generativeai as genai

from expenses import ParsedExpense
from result import Result

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.0-flash'

EXPENSE_FIELDS = ['amount', 'merchant', 'purpose', 'category', 'spend_date']


def expense_schema(nullable=False):
    """Response schema Gemini must follow; receipts get nullable fields"""
    def field(kind):
        spec = {'type': kind}
        if nullable:
            spec['nullable'] = True
        return spec

    schema = {
        'type': 'OBJECT',
        'properties': {
            'amount': field('NUMBER'),
            'merchant': field('STRING'),
            'purpose': field('STRING'),
            'category': field('STRING'),
            'spend_date': field('STRING'),
        },
    }
    if not nullable:
        schema['required'] = list(EXPENSE_FIELDS)
    return schema


def build_text_prompt(details, current_date, categories):
    return f"""
Extract the following information from the input sentence and return it as a JSON object in this format:
{{
  "amount": <amount spent as a number>,
  "merchant": <name of the merchant/place where money was spent>,
  "purpose": <brief description of the spending purpose>,
  "category": <best fitting category from [{categories.prompt_string()}]>,
  "spend_date": <date in YYYY-MM-DD format>
}}

Instructions:
- Extract the amount as a number.
- Extract the merchant/place name.
- Extract the spending purpose/description.
- For "category", choose the BEST fit from the provided list. If no clear category matches, use 'Other'.
- For "spend_date", convert time references like "today", "yesterday", "two days ago", "last Monday", etc. to an actual date in YYYY-MM-DD format based on the current date of {current_date}.

Input sentence:
{details}

Return ONLY the JSON object.
"""


def build_image_prompt(current_date, categories):
    return f"""
Extract the following information from this bill image. If any field is missing or cannot be inferred, return null for that field.
Return only a JSON object in this format:
{{
  "amount": <amount spent as a number or null>,
  "merchant": <name of the merchant/place or null>,
  "purpose": <brief description of the spending or null>,
  "category": <best fitting category from [{categories.prompt_string()}] or null>,
  "spend_date": <date in YYYY-MM-DD format or null>
}}
Relative dates on the bill should be resolved against the current date of {current_date}.
Here is the bill image:
"""


def parse_expense_json(text, require_all=False):
    """Turn Gemini's JSON text into a ParsedExpense, raising ValueError on bad output"""
    try:
        data = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise ValueError(f"Gemini returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from Gemini, got {type(data).__name__}")

    if require_all:
        missing = [name for name in EXPENSE_FIELDS if data.get(name) is None]
        if missing:
            raise ValueError(f"Gemini response is missing fields: {', '.join(missing)}")

    wrong = [name for name in EXPENSE_FIELDS if not _matches_schema(name, data.get(name))]
    if wrong:
        raise ValueError(f"Gemini response has wrongly typed fields: {', '.join(wrong)}")
    return ParsedExpense.from_json(data)


def _matches_schema(name, value):
    # Nulls only get this far for receipts; text responses were checked for them above
    if value is None:
        return True
    if name == 'amount':
        return isinstance(value, (int, Decimal)) and not isinstance(value, bool)
    return isinstance(value, str)


class GeminiExpenseParser:
    """Expense extraction on top of a Gemini model with a fixed JSON response schema"""

    def __init__(self, api_key=None, model_name=DEFAULT_MODEL, model=None):
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
            logger.info(f"✅ Gemini model {model_name} configured")
        self.model = model

    async def _generate(self, contents, schema):
        response = await self.model.generate_content_async(
            contents,
            generation_config=genai.GenerationConfig(
                response_mime_type='application/json',
                response_schema=schema,
            ),
        )
        return response.text

    async def extract_from_text(self, details, current_date, categories):
        """Parse a typed expense description into a ParsedExpense"""
        try:
            prompt = build_text_prompt(details, current_date, categories)
            text = await self._generate(prompt, expense_schema())
            return Result.success(parse_expense_json(text, require_all=True))
        except Exception as e:
            logger.error(f"❌ Gemini text extraction error: {e}")
            return Result.failure(e)

    async def extract_from_image(self, image_bytes, mime_type, current_date, categories):
        """Parse a bill image; fields Gemini cannot read come back as None"""
        try:
            image_part = {'mime_type': mime_type, 'data': image_bytes}
            prompt = build_image_prompt(current_date, categories)
            text = await self._generate([image_part, prompt], expense_schema(nullable=True))
            return Result.success(parse_expense_json(text))
        except Exception as e:
            logger.error(f"❌ Gemini image extraction error: {e}")
            return Result.failure(e)

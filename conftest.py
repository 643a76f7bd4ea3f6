"""Fakes for Discord, Gemini and Google Sheets so tests never touch the network."""

from datetime import date, datetime

import pytest

from categories import InMemoryCategoryStore
from handlers import BotServices
from result import Result


class FakeResponse:
    def __init__(self):
        self.deferred = None
        self.sent = []

    async def defer(self, ephemeral=False, thinking=False):
        self.deferred = {'ephemeral': ephemeral}

    async def send_message(self, content=None, ephemeral=False):
        self.sent.append({'content': content, 'ephemeral': ephemeral})

    def is_done(self):
        return self.deferred is not None or bool(self.sent)


class FakeInteraction:
    def __init__(self, channel=None):
        self.channel = channel
        self.response = FakeResponse()
        self.edits = []
        self.command = None

    async def edit_original_response(self, content=None):
        self.edits.append(content)


class FakeAttachment:
    def __init__(self, content_type='image/png', filename='bill.png', data=b'\x89PNG fake'):
        self.content_type = content_type
        self.filename = filename
        self.data = data
        self.saved_to = []

    async def save(self, fp):
        self.saved_to.append(fp)
        with open(fp, 'wb') as f:
            f.write(self.data)
        return len(self.data)


class FakeParser:
    def __init__(self, text_result=None, image_result=None):
        self.text_result = text_result
        self.image_result = image_result
        self.text_calls = []
        self.image_calls = []

    async def extract_from_text(self, details, current_date, categories):
        self.text_calls.append((details, current_date))
        return self.text_result

    async def extract_from_image(self, image_bytes, mime_type, current_date, categories):
        self.image_calls.append((image_bytes, mime_type, current_date))
        return self.image_result


class FakeSheet:
    def __init__(self, rows=None, append_error=None, read_error=None):
        self.rows = rows if rows is not None else []
        self.append_error = append_error
        self.read_error = read_error
        self.appended = []

    async def append_row(self, record):
        if self.append_error:
            return Result.failure(self.append_error)
        self.appended.append(record)
        return Result.success()

    async def read_all_rows(self):
        if self.read_error:
            return Result.failure(self.read_error)
        return Result.success(self.rows)


@pytest.fixture
def categories():
    return InMemoryCategoryStore()


@pytest.fixture
def make_services(categories, tmp_path):
    def _make(parser=None, sheet=None):
        return BotServices(
            parser=parser or FakeParser(),
            sheet=sheet or FakeSheet(),
            categories=categories,
            temp_image_dir=str(tmp_path / 'temp_images'),
            today=lambda: date(2024, 3, 5),
            now=lambda: datetime(2024, 3, 20, 12, 0),
        )
    return _make

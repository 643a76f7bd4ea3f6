import asyncio
import logging
import os
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

import discord

from categories import CategoryStore, DuplicateCategoryError
from expenses import IMAGE_ENTRY, MANUAL_ENTRY, normalize_expense
from gemini_parser import GeminiExpenseParser
from sheets import ExpenseSheet
from summary import aggregate

logger = logging.getLogger(__name__)

NON_IMAGE_MESSAGE = 'Please upload an image file (PNG, JPG, JPEG).'
WRONG_CHANNEL_MESSAGE = 'I can only respond in text channels or DMs.'


@dataclass
class BotServices:
    """Everything a command handler talks to"""
    parser: GeminiExpenseParser
    sheet: ExpenseSheet
    categories: CategoryStore
    temp_image_dir: str = 'temp_images'
    today: Callable[[], date] = date.today
    now: Callable[[], datetime] = datetime.now


def is_supported_channel(channel):
    return isinstance(channel, (discord.TextChannel, discord.DMChannel))


async def reply(interaction, content):
    """Edit the deferred response; each handler does this exactly once"""
    await interaction.edit_original_response(content=content)


async def _record_expense(services, record, success_title, failure_prefix):
    """Append the record and return the reply text"""
    appended = await services.sheet.append_row(record)
    if appended.ok:
        return f"{success_title}\n{record.details_block()}"
    return f"{failure_prefix} Error: {appended.error}"


async def handle_expense_add(interaction: discord.Interaction, details: str, services: BotServices):
    """/expense add: let Gemini parse the typed details, then append the row"""
    await interaction.response.defer()

    current_date = services.today().isoformat()
    parsed = await services.parser.extract_from_text(details, current_date, services.categories)
    if not parsed.ok:
        await reply(interaction, f"Failed to add expense. Error: {parsed.error}")
        return

    record = normalize_expense(parsed.value, current_date, MANUAL_ENTRY, services.categories)
    await reply(interaction, await _record_expense(
        services, record, 'Expense added successfully!', 'Failed to add expense.'))


def temp_image_path(temp_dir, filename):
    safe_name = os.path.basename(filename or 'image')
    return os.path.join(temp_dir, f"bill_{int(time.time() * 1000)}_{safe_name}")


def _read_bytes(path):
    with open(path, 'rb') as f:
        return f.read()


def remove_temp_image(path):
    """Best-effort cleanup; failures are logged and never reach the user"""
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.error(f"❌ Error deleting local image {path}: {e}")


async def handle_expense_upload(interaction: discord.Interaction, bill_image: discord.Attachment, services: BotServices):
    """/expense upload: read a bill image with Gemini, then append the row"""
    await interaction.response.defer()

    mime_type = bill_image.content_type or ''
    if not mime_type.startswith('image/'):
        await reply(interaction, NON_IMAGE_MESSAGE)
        return

    img_path = temp_image_path(services.temp_image_dir, bill_image.filename)
    try:
        os.makedirs(services.temp_image_dir, exist_ok=True)
        await bill_image.save(img_path)
        loop = asyncio.get_running_loop()
        image_bytes = await loop.run_in_executor(None, _read_bytes, img_path)

        current_date = services.today().isoformat()
        parsed = await services.parser.extract_from_image(
            image_bytes, mime_type, current_date, services.categories)
        if parsed.ok:
            record = normalize_expense(parsed.value, current_date, IMAGE_ENTRY, services.categories)
            message = await _record_expense(
                services, record, 'Expense from image added successfully!', 'Failed to add expense from image.')
        else:
            message = f"Failed to add expense from image. Error: {parsed.error}"
    except (OSError, discord.HTTPException) as e:
        logger.error(f"❌ Error processing /expense upload: {e}")
        message = f"Failed to add expense from image. Error: {e}"
    finally:
        remove_temp_image(img_path)

    await reply(interaction, message)


async def handle_expense_summary(interaction: discord.Interaction, timeframe: str, services: BotServices):
    """/expense summary: re-read the whole sheet and total it per category"""
    await interaction.response.defer()

    rows = await services.sheet.read_all_rows()
    if not rows.ok:
        await reply(interaction, f"Failed to retrieve summary. Error: {rows.error}")
        return

    try:
        result = aggregate(rows.value, timeframe, services.now())
    except ValueError as e:
        logger.error(f"❌ Error processing /expense summary: {e}")
        await reply(interaction, f"Failed to retrieve summary. Error: {e}")
        return
    await reply(interaction, result.message())


async def handle_category_add(interaction: discord.Interaction, name: str, services: BotServices):
    """/category add: register a new category for future prompts"""
    await interaction.response.defer(ephemeral=True)

    try:
        category = services.categories.add(name)
    except DuplicateCategoryError as e:
        await reply(interaction, str(e))
        return
    except OSError as e:
        logger.error(f"❌ Error saving category '{name}': {e}")
        await reply(interaction, f"Failed to add category. Error: {e}")
        return

    await reply(
        interaction,
        f"Category '{category.name}' added successfully! "
        f"Current categories: {', '.join(services.categories.names())}",
    )

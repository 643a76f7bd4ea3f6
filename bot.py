import logging
import sys
import traceback

import discord
from discord import app_commands

from categories import create_category_store
from config import ConfigError, load_settings, setup_logging
from gemini_parser import GeminiExpenseParser
from handlers import (
    WRONG_CHANNEL_MESSAGE,
    BotServices,
    handle_category_add,
    handle_expense_add,
    handle_expense_summary,
    handle_expense_upload,
    is_supported_channel,
)
from sheets import ExpenseSheet, load_credentials
from summary import TIMEFRAMES

logger = logging.getLogger(__name__)

ACTIVITY_NAME = 'your expenses with /expense'


class ExpenseCommandTree(app_commands.CommandTree):
    """Routes slash commands, refusing channels the bot cannot answer in"""

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.type is not discord.InteractionType.application_command:
            return False
        if not is_supported_channel(interaction.channel):
            await interaction.response.send_message(WRONG_CHANNEL_MESSAGE, ephemeral=True)
            return False
        return True

    async def on_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        if isinstance(error, app_commands.CheckFailure):
            return
        command = interaction.command.qualified_name if interaction.command else 'unknown'
        logger.error(f"❌ Unhandled error in /{command}: {error}")
        logger.error(f"❌ Traceback: {''.join(traceback.format_exception(error))}")
        try:
            message = f"Something went wrong. Error: {error}"
            if interaction.response.is_done():
                await interaction.edit_original_response(content=message)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException:
            logger.error("❌ Could not send error message to user")


def build_command_groups(services):
    """The two top-level slash commands and their subcommands"""
    expense = app_commands.Group(name='expense', description='Manage your expenses.')
    category = app_commands.Group(
        name='category',
        description='Manage expense categories.',
        default_permissions=discord.Permissions(manage_channels=True),
    )

    @expense.command(name='add', description='Manually add a new expense.')
    @app_commands.describe(details='Details of the expense (e.g., "lunch at cafe for 200 today").')
    async def expense_add(interaction: discord.Interaction, details: str):
        await handle_expense_add(interaction, details, services)

    @expense.command(name='upload', description='Upload a bill image to add an expense.')
    @app_commands.describe(bill_image='The image of the bill/receipt.')
    async def expense_upload(interaction: discord.Interaction, bill_image: discord.Attachment):
        await handle_expense_upload(interaction, bill_image, services)

    @expense.command(name='summary', description='Get a summary of expenses.')
    @app_commands.describe(timeframe='Select the timeframe for the summary.')
    @app_commands.choices(timeframe=[
        app_commands.Choice(name=label, value=value) for value, label in TIMEFRAMES.items()
    ])
    async def expense_summary(interaction: discord.Interaction, timeframe: app_commands.Choice[str]):
        await handle_expense_summary(interaction, timeframe.value, services)

    @category.command(name='add', description='Add a new expense category.')
    @app_commands.describe(name='The name of the new category (e.g., "Subscriptions").')
    async def category_add(interaction: discord.Interaction, name: str):
        await handle_category_add(interaction, name, services)

    return [expense, category]


async def publish_commands(tree, commands, guild):
    """Replace every slash command registered for the guild with the given set"""
    for command in commands:
        tree.add_command(command, guild=guild, override=True)
    try:
        logger.info("Started refreshing application (/) commands.")
        synced = await tree.sync(guild=guild)
        logger.info(f"✅ Successfully reloaded {len(synced)} application (/) commands.")
        return synced
    except discord.HTTPException as e:
        logger.error(f"❌ Failed to publish commands, keeping the previous set: {e}")
        return None


class ExpenseBot(discord.Client):
    def __init__(self, services, guild_id, application_id=None):
        intents = discord.Intents.default()
        super().__init__(intents=intents, application_id=application_id)
        self.services = services
        self.guild = discord.Object(id=guild_id)
        self.tree = ExpenseCommandTree(self)

    async def setup_hook(self):
        await publish_commands(self.tree, build_command_groups(self.services), self.guild)

    async def on_ready(self):
        logger.info(f"We have logged in as {self.user}")
        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.watching, name=ACTIVITY_NAME))


def connect_sheet(settings):
    """Authenticate against Google Sheets; the bot cannot run without it"""
    sheet = ExpenseSheet(settings.spreadsheet_id, settings.worksheet_name)
    credentials = load_credentials(settings.service_account_file, settings.service_account_json)
    sheet.connect(credentials)
    return sheet


def main():
    """Load settings, connect to Sheets and Gemini, then run the Discord client"""
    try:
        settings = load_settings()
    except ConfigError as e:
        print(e, file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_dir)
    logger.info("🚀 Starting Discord expense bot...")

    try:
        sheet = connect_sheet(settings)
    except Exception as e:
        logger.error(f"❌ Error setting up Google Sheets: {e}")
        sys.exit(1)

    services = BotServices(
        parser=GeminiExpenseParser(settings.gemini_api_key, settings.gemini_model),
        sheet=sheet,
        categories=create_category_store(settings.categories_file),
        temp_image_dir=settings.temp_image_dir,
    )
    bot = ExpenseBot(services, settings.guild_id, settings.discord_client_id)
    bot.run(settings.discord_bot_token, log_handler=None)


if __name__ == '__main__':
    main()

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from gemini_parser import DEFAULT_MODEL
from sheets import get_spreadsheet_id

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_SERVICE_ACCOUNT_FILE = 'service_account.json'

REQUIRED_VARS = ['DISCORD_BOT_TOKEN', 'DISCORD_CLIENT_ID', 'GUILD_ID', 'GEMINI_API_KEY']


class ConfigError(ValueError):
    """Raised when the environment is missing something the bot cannot run without"""


@dataclass
class Settings:
    discord_bot_token: str
    discord_client_id: int
    guild_id: int
    gemini_api_key: str
    spreadsheet_id: str
    service_account_file: str = DEFAULT_SERVICE_ACCOUNT_FILE
    service_account_json: Optional[str] = None
    worksheet_name: str = 'Sheet1'
    gemini_model: str = DEFAULT_MODEL
    categories_file: Optional[str] = None
    temp_image_dir: str = 'temp_images'
    log_level: str = 'INFO'
    log_dir: Optional[str] = None


def _int_var(env, name):
    try:
        return int(env[name])
    except ValueError:
        raise ConfigError(f"❌ {name} must be a numeric Discord ID, got {env[name]!r}") from None


def load_settings(env=None, dotenv_path=None):
    """Read settings from the environment, loading .env first when env is not given"""
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    missing = [name for name in REQUIRED_VARS if not env.get(name)]
    if missing:
        raise ConfigError(f"❌ Missing required environment variables: {', '.join(missing)}")

    spreadsheet_id = env.get('SPREADSHEET_ID') or get_spreadsheet_id(env.get('SPREADSHEET_URL'))
    if not spreadsheet_id:
        raise ConfigError("❌ Set SPREADSHEET_ID or a SPREADSHEET_URL containing /d/<id>")

    return Settings(
        discord_bot_token=env['DISCORD_BOT_TOKEN'],
        discord_client_id=_int_var(env, 'DISCORD_CLIENT_ID'),
        guild_id=_int_var(env, 'GUILD_ID'),
        gemini_api_key=env['GEMINI_API_KEY'],
        spreadsheet_id=spreadsheet_id,
        service_account_file=env.get('GOOGLE_SERVICE_ACCOUNT_FILE') or DEFAULT_SERVICE_ACCOUNT_FILE,
        service_account_json=env.get('GOOGLE_SERVICE_ACCOUNT_CREDENTIALS_JSON') or None,
        worksheet_name=env.get('WORKSHEET_NAME') or 'Sheet1',
        gemini_model=env.get('GEMINI_MODEL') or DEFAULT_MODEL,
        categories_file=env.get('CATEGORIES_FILE') or None,
        temp_image_dir=env.get('TEMP_IMAGE_DIR') or 'temp_images',
        log_level=(env.get('LOG_LEVEL') or 'INFO').upper(),
        log_dir=env.get('LOG_DIR') or None,
    )


def setup_logging(level='INFO', log_dir=None):
    """Console logging, plus a timestamped UTF-8 log file when log_dir is set"""
    handlers = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_filename = os.path.join(log_dir, f"bot_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
        handlers.append(logging.FileHandler(log_filename, encoding='utf-8'))

    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, level, logging.INFO),
        handlers=handlers,
    )
    # discord.py is chatty at INFO
    logging.getLogger('discord.gateway').setLevel(logging.WARNING)

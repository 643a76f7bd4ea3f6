#!/usr/bin/env python3
"""
Check all dependencies and configuration for the Discord expense bot
"""

import importlib.util
import os
import sys

from config import ConfigError, load_settings

DEPENDENCIES = [
    ("discord.py", "discord"),
    ("google-generativeai", "google.generativeai"),
    ("gspread", "gspread"),
    ("google-auth", "google.auth"),
    ("python-dotenv", "dotenv"),
]


def check_dependency(module_name, import_name=None):
    """Check if a Python module is installed"""
    if import_name is None:
        import_name = module_name

    try:
        if importlib.util.find_spec(import_name):
            print(f"OK: {module_name}")
            return True
        print(f"MISSING: {module_name}")
        return False
    except ImportError:
        # find_spec raises when a parent package is missing
        print(f"MISSING: {module_name}")
        return False


def check_file(filepath):
    """Check if a file exists"""
    if os.path.exists(filepath):
        print(f"EXISTS: {filepath}")
        return True
    print(f"MISSING: {filepath}")
    return False


def main(env=None):
    print("=== DISCORD EXPENSE BOT SETUP VERIFICATION ===")
    print()
    print(f"Python version: {sys.version}")
    print()

    print("--- PYTHON DEPENDENCIES ---")
    deps_ok = True
    for module_name, import_name in DEPENDENCIES:
        deps_ok &= check_dependency(module_name, import_name)
    print()

    print("--- ENVIRONMENT VARIABLES ---")
    try:
        settings = load_settings(env)
        print("SET: DISCORD_BOT_TOKEN, DISCORD_CLIENT_ID, GUILD_ID, GEMINI_API_KEY")
        print(f"SET: spreadsheet {settings.spreadsheet_id}")
        env_ok = True
    except ConfigError as e:
        print(f"FAILED: {e}")
        settings = None
        env_ok = False
    print()

    print("--- FILES ---")
    files_ok = True
    if settings is not None:
        if settings.service_account_json:
            print("SET: GOOGLE_SERVICE_ACCOUNT_CREDENTIALS_JSON")
        else:
            files_ok &= check_file(settings.service_account_file)
        if settings.categories_file:
            if not os.path.exists(settings.categories_file):
                print(f"NEW: {settings.categories_file} will be created on first /category add")
    print()

    print("=== OVERALL STATUS ===")
    if deps_ok and env_ok and files_ok:
        print("SUCCESS: All checks passed - Bot ready to run!")
        return 0
    print("FAILED: Some checks failed - Fix issues above")
    return 1


if __name__ == "__main__":
    sys.exit(main())

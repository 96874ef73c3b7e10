# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", validation_alias="REDIS_URL"
    )
    PERSISTENCE_TTL_SECONDS: int = Field(
        default=24 * 60 * 60, validation_alias="PERSISTENCE_TTL_SECONDS"
    )

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(
        default="http://localhost:3000", validation_alias="ALLOWED_ORIGIN"
    )
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    MAX_FILE_MB: int = Field(default=50, validation_alias="MAX_FILE_MB")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Documents
    PDF_IMPORT_DIR: str = Field(default="pdfs", validation_alias="PDF_IMPORT_DIR")

    # Search
    SEARCH_RESULT_LIMIT: int = Field(default=8, validation_alias="SEARCH_RESULT_LIMIT")
    DIRECT_RESULT_LIMIT: int = Field(default=5, validation_alias="DIRECT_RESULT_LIMIT")

    # Anthropic Settings
    ANTHROPIC_API_URL: str = Field(
        default="https://api.anthropic.com/v1/messages",
        validation_alias="ANTHROPIC_API_URL",
    )
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-haiku-20240307", validation_alias="ANTHROPIC_MODEL"
    )
    ANTHROPIC_VERSION: str = Field(
        default="2023-06-01", validation_alias="ANTHROPIC_VERSION"
    )
    ANTHROPIC_API_KEY: str = Field(default="", validation_alias="ANTHROPIC_API_KEY")
    ANSWER_MAX_TOKENS: int = Field(default=150, validation_alias="ANSWER_MAX_TOKENS")
    ANSWER_RETRIES: int = Field(default=3, validation_alias="ANSWER_RETRIES")

    # Logging knobs
    LOGGER_NAME: str = "techdoc"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    ANSWER_SYSTEM_PROMPT: str = (
        "You are a technical documentation assistant for heavy equipment service manuals.\n"
        "\n"
        "RULES:\n"
        "- Answer ONLY from the parts and context provided; never invent part numbers.\n"
        "- An item reference is a 3-4 digit callout (e.g. 8843). An orderable part number is "
        "an alphanumeric code (e.g. RE508960). Never present an item reference as a part number.\n"
        "- Always cite the page the part was found on.\n"
        "- Be brief: under 40 words unless the user must choose between components.\n"
        "- When several different components match, list them and ask which one is meant.\n"
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)

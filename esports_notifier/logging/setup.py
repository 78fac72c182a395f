import re
import sys
import logging
from typing import Any

from loguru import logger

from esports_notifier.config.settings import settings

# Discord/Slack style webhook URLs carry their secret in the last path segment.
WEBHOOK_TOKEN_PATTERN = re.compile(
    r"(https?://[^\s/]+/api/webhooks/\d+/)([\w-]+)"
    r"|(https?://hooks\.slack\.com/services/[\w/]+?/)([\w-]+)(?=\s|$)"
)


def mask_webhook_tokens(text: str) -> str:
    """Replace webhook tokens in a string with a fixed mask."""

    def _mask(match: re.Match) -> str:
        prefix = match.group(1) or match.group(3)
        return f"{prefix}********"

    return WEBHOOK_TOKEN_PATTERN.sub(_mask, text)


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter function to mask webhook secrets in log records."""
    record["message"] = mask_webhook_tokens(record["message"])

    extra = record.get("extra")
    if isinstance(extra, dict):
        for key, value in extra.items():
            if isinstance(value, str):
                extra[key] = mask_webhook_tokens(value)

    return True  # Keep the record after filtering/masking


class InterceptHandler(logging.Handler):
    """Route standard logging records (uvicorn, httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging() -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,  # Locals may contain webhook URLs
        filter=sensitive_data_filter,
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # httpx logs full request URLs (webhook tokens included) at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.info("Standard logging intercepted.")

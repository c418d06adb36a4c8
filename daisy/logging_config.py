"""
Logging configuration for the Daisy SDK.

Provides structured logging for production use and keeps secret keys and
private keys out of log output.
"""

import copy
import logging
import logging.config
import re
from typing import Optional

from .config import DaisySettings, get_settings


class CredentialRedactionFilter(logging.Filter):
    """
    Filter that redacts credentials from log records.

    - Ethereum private keys (0x followed by 64 hex chars)
    - secret/secretKey/password/privateKey assignments

    Transaction hashes share the private key shape, so anything logged as
    a 32-byte hex value is masked too.
    """

    PRIVATE_KEY_PATTERN = re.compile(r'0x[0-9a-fA-F]{64}\b')
    SECRET_PATTERN = re.compile(
        r'((?:secret_?key|secret|password|private_?key)["\']?\s*[:=]\s*["\']?)[^\s"\',)]+',
        re.IGNORECASE
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = self._redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._redact(str(arg)) for arg in record.args)

        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)

        return True

    def _redact(self, text: str) -> str:
        if not text:
            return text
        text = self.PRIVATE_KEY_PATTERN.sub('0x[REDACTED]', text)
        return self.SECRET_PATTERN.sub(r'\1[REDACTED]', text)


DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "redact": {
            "()": CredentialRedactionFilter
        }
    },
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "detailed": {
            "format": (
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d "
                "- %(message)s (%(funcName)s)"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "standard",
            "filters": ["redact"],
            "stream": "ext://sys.stdout"
        }
    },
    "loggers": {
        "daisy": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False
        }
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"]
    }
}


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False,
    settings: Optional[DaisySettings] = None
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); defaults to `settings.log_level`
        log_file: Optional log file path (rotating, 10MB x 5)
        json_format: Use JSON formatting
        settings: Settings to read the default level from
    """
    config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)

    level = level or (settings or get_settings()).log_level
    config["loggers"]["daisy"]["level"] = level.upper()

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filters": ["redact"],
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5
        }
        config["loggers"]["daisy"]["handlers"].append("file")

    if json_format:
        for handler in config["handlers"].values():
            handler["formatter"] = "json"

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance under the `daisy` namespace.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"daisy.{name}")

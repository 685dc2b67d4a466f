"""
Logging configuration that keeps signed tokens out of log output.
"""

import logging
import logging.config
import re
from typing import Any, Dict, Optional

# header.payload.signature of a JSON Web Token
JWT_PATTERN = re.compile(r"\b(eyJ[\w-]*\.eyJ[\w-]*)\.[\w-]+")


class TokenRedactionFilter(logging.Filter):
    """Filter to mask token signatures in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Replace the signature segment of any token in the message."""
        message = record.getMessage()
        redacted = JWT_PATTERN.sub(r"\1.<redacted>", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True  # Never drop records


def get_logging_config(level: str = "INFO", logfile: Optional[str] = None) -> Dict[str, Any]:
    """Get logging configuration with token redaction."""
    level = level.upper()
    handlers = ["default"]

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "token_redaction": {
                "()": TokenRedactionFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
                "filters": ["token_redaction"]
            }
        },
        "loggers": {
            "autosign": {
                "handlers": handlers,
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"]
        }
    }

    if logfile:
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": logfile,
            "filters": ["token_redaction"]
        }
        handlers.append("file")

    return config


def configure_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Apply the autosign logging configuration."""
    logging.config.dictConfig(get_logging_config(level, logfile))

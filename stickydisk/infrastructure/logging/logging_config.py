"""
Logging configuration for stickydisk.

Configures structlog for human-readable text logging (default), JSON
logging, or GitHub Actions workflow commands so that warnings surface as
job annotations.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict

# Color codes for terminal output
COLORS = {
    "debug": "\033[36m",     # Cyan
    "info": "\033[32m",      # Green
    "warning": "\033[33m",   # Yellow
    "error": "\033[31m",     # Red
    "critical": "\033[35m",  # Magenta
    "reset": "\033[0m",      # Reset
}

# Workflow command prefix per log method; info is printed as-is
GITHUB_COMMANDS = {
    "debug": "::debug::",
    "warning": "::warning::",
    "error": "::error::",
    "critical": "::error::",
    "exception": "::error::",
}


def add_color(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ANSI color codes to log level for better console readability.
    """
    level_color = COLORS.get(method_name, COLORS["reset"])
    if "level" in event_dict:
        event_dict["level"] = f"{level_color}{event_dict['level'].upper()}{COLORS['reset']}"
    return event_dict


def _format_pairs(event_dict: EventDict) -> list:
    parts = []
    for key, value in sorted(event_dict.items()):
        if key in ("exc_info", "stack_info", "exception"):
            continue
        if isinstance(value, (str, int, float, bool)):
            parts.append(f"{key}={value}")
        else:
            parts.append(f"{key}={repr(value)}")
    return parts


def human_readable_renderer(
    logger: Any,
    method_name: str,
    event_dict: EventDict
) -> str:
    """
    Human-readable log format renderer.

    Format: [timestamp] [level] [logger] message key=value key2=value2
    Example: [2025-01-14 10:30:45] [INFO] [stickydisk.mount] Sticky disk mounted expose_id=abc123
    """
    timestamp = event_dict.pop("timestamp", "")
    level = event_dict.pop("level", "INFO").upper()
    logger_name = event_dict.pop("logger_name", event_dict.pop("logger", "unknown"))
    message = event_dict.pop("event", "")
    exception = event_dict.pop("exception", None)

    parts = []
    if timestamp:
        parts.append(f"[{timestamp}]")
    parts.append(f"[{level}]")
    if logger_name != "root":
        parts.append(f"[{logger_name}]")
    parts.append(str(message))
    parts.extend(_format_pairs(event_dict))

    log_line = " ".join(parts)
    if exception:
        log_line += "\n" + exception
    return log_line


def github_actions_renderer(
    logger: Any,
    method_name: str,
    event_dict: EventDict
) -> str:
    """
    Render events as GitHub Actions workflow commands.

    Format: ::warning::message key=value
    """
    event_dict.pop("timestamp", None)
    event_dict.pop("level", None)
    event_dict.pop("logger", None)
    event_dict.pop("logger_name", None)
    message = event_dict.pop("event", "")
    exception = event_dict.pop("exception", None)

    line = " ".join([str(message)] + _format_pairs(event_dict))
    if exception:
        line += "\n" + exception
    prefix = GITHUB_COMMANDS.get(method_name, "")
    if prefix:
        # Workflow commands are single-line; escape newlines per the runner protocol
        line = line.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    return prefix + line


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "text" (default), "json" or "github"
    """
    log_format = log_format.lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )

    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    elif log_format == "github":
        processors.append(github_actions_renderer)
    else:
        processors.append(add_color)
        processors.append(human_readable_renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None, **context) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)
        **context: Additional context to bind to the logger

    Example:
        logger = get_logger(__name__, sticky_disk_key="npm-cache")
        logger.info("Mounting sticky disk", path="/nix")
    """
    if name:
        return structlog.get_logger(name, **context)
    return structlog.get_logger(**context)

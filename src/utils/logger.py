"""structlog setup for the exporter's loops and tools."""
import logging
import os
from typing import Any, Dict, List, Optional

import structlog

from src.config import config

# Scheduling context, printed ahead of everything else on a console line
LEADING_FIELDS = ("kind", "day", "start_day", "previous_day", "latest_epoch")
HIDDEN_FIELDS = {"logger", "stack", "exception"}


def json_logs_requested() -> bool:
    return os.getenv("FORCE_JSON_LOGS", "false").lower() == "true"


def setup_logger(json_logs: Optional[bool] = None, level: Optional[str] = None):
    """
    Route structlog through stdlib logging at ``level`` (LOG_LEVEL by default).

    Lines are rendered by console_renderer unless JSON output is asked for,
    either explicitly or with FORCE_JSON_LOGS=true.
    """
    if json_logs is None:
        json_logs = json_logs_requested()
    level_name = (level or config.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format="%(message)s")

    processors: List[Any] = [structlog.stdlib.filter_by_level]
    if json_logs:
        processors += [
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            console_renderer,
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def console_renderer(logger, method_name: str, event_dict: Dict[str, Any]) -> str:
    """``<time> [LEVEL] event | kind=.. day=.. other=..``"""
    head = "{} [{:<5}] {}".format(
        event_dict.pop("timestamp", ""),
        event_dict.pop("level", "info").upper(),
        event_dict.pop("event", ""),
    )

    leading = [(name, event_dict.pop(name)) for name in LEADING_FIELDS if name in event_dict]
    trailing = [(name, value) for name, value in event_dict.items() if name not in HIDDEN_FIELDS]
    context = " ".join(f"{name}={value}" for name, value in leading + trailing)

    return f"{head} | {context}" if context else head


logger = structlog.get_logger()

"""Logging setup: console output plus rotating workflow and model-call logs."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Loggers whose records also go to model_calls.log
MODEL_CALL_LOGGERS = ("agents.base_agent", "tools.agent_sdk_client", "extraction.capsule")

# Third-party loggers that are only interesting when something breaks
_NOISY_LOGGERS = ("chromadb", "httpx", "httpcore", "urllib3")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(str(path), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Configure the root logger for a CLI run.

    Args:
        level: Level for the console and workflow.log.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Whether records are also written to stderr.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(log_dir / "workflow.log", level, formatter))

    # Model calls are always logged in full, whatever the console level
    model_handler = _rotating_handler(log_dir / "model_calls.log", logging.DEBUG, formatter)
    for name in MODEL_CALL_LOGGERS:
        model_logger = logging.getLogger(name)
        model_logger.setLevel(logging.DEBUG)
        model_logger.handlers = [h for h in model_logger.handlers if not isinstance(h, RotatingFileHandler)]
        model_logger.addHandler(model_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", logging.getLevelName(level), log_dir)

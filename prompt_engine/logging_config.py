"""Logging configuration with console and rotating file handlers"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import EngineSettings

KEEP_SESSION_LOGS = 5


def setup_logging(
    log_file: str = "logs/prompt-engine.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure logging with two destinations:
    - Console: Brief logs (INFO by default)
    - File: Detailed logs (DEBUG by default) with rotation

    Rotation policy:
    - New log file per session (timestamp-based naming)
    - Keep last 5 session files (auto-cleanup on setup)
    - Auto-rotate when file reaches 10MB

    Args:
        log_file: Base path to log file
        console_level: Console logging level (INFO = brief)
        file_level: File logging level (DEBUG = verbose)

    Returns:
        Path of this session's log file
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Cleanup old session logs - keep the newest KEEP_SESSION_LOGS - 1 plus the new one
    existing_logs = sorted(log_path.parent.glob(f"{log_path.stem}_*.log"), reverse=True)
    for old_log in existing_logs[KEEP_SESSION_LOGS - 1:]:
        try:
            old_log.unlink()
        except OSError as e:
            logging.getLogger(__name__).debug(f"Could not remove old log {old_log}: {e}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    # Package logger only; host applications keep control of the root logger
    package_logger = logging.getLogger("prompt_engine")
    package_logger.setLevel(logging.DEBUG)  # Capture everything, filter in handlers

    # Remove existing handlers to avoid duplicates
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    # Console handler - brief output
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    # Rotating file handler - detailed output
    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding='utf-8',
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    ))

    package_logger.addHandler(console_handler)
    package_logger.addHandler(file_handler)

    # sentence-transformers and its download stack are chatty at INFO
    logging.getLogger("sentence_transformers").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    package_logger.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log} ({logging.getLevelName(file_level)})"
    )
    return session_log


def setup_logging_from_settings(settings: Optional[EngineSettings] = None) -> Path:
    """setup_logging using LOG_LEVEL / LOG_FILE (see EngineSettings)."""
    settings = settings or EngineSettings.from_env()
    return setup_logging(log_file=settings.log_file, console_level=settings.console_log_level)

# pg2xlsx/logging_utils.py
"""
Logging setup for the command line tool.

Log records go to stderr (stdout may carry data) and, when a log directory is
configured, to a timestamped file like ``pg2xlsx_YYYYMMDD_HHMMSS.log``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def setup_logging(
    script_name: Optional[str] = None,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    console: Optional[bool] = None
) -> Optional[str]:
    """
    Configure the root logger.

    Args:
        script_name: Base name for log files (defaults to script filename without extension)
        log_dir: Directory for log files (defaults to config setting; empty means no file)
        level: Logging level string - DEBUG, INFO, WARNING, ERROR (defaults to config or 'WARNING')
        console: Also log to stderr (defaults to config or True)

    Returns:
        Path of the log file, or None when logging to the console only

    Example
    -------
    ::
        from pg2xlsx.logging_utils import setup_logging

        setup_logging('pg2xlsx', log_dir='/var/log/exports', level='INFO')
    """
    from pg2xlsx.config import get_setting

    if script_name is None:
        script_name = Path(sys.argv[0]).stem or 'pg2xlsx'

    logging_config = get_setting('logging', {})

    log_dir = log_dir or logging_config.get('directory')
    level = (level or logging_config.get('level', 'WARNING')).upper()
    console = console if console is not None else logging_config.get('console', True)
    log_format = logging_config.get('format', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    timestamp_format = logging_config.get('timestamp_format', '%Y-%m-%d %H:%M:%S')
    filename_format = logging_config.get('filename_format', '%Y%m%d_%H%M%S')

    numeric_level = getattr(logging, level, None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format, datefmt=timestamp_format)

    log_file = None
    if log_dir:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)
        if filename_format:
            timestamp = datetime.now().strftime(filename_format)
            log_file = log_dir_path / f"{script_name}_{timestamp}.log"
        else:
            log_file = log_dir_path / f"{script_name}.log"

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        logger.info(f"Logging initialized: {log_file}")
    return str(log_file) if log_file else None

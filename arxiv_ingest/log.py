"""loguru sink setup for command-line runs."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

_STDERR_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Replace loguru's default sink with a stderr sink and an optional file sink."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_STDERR_FORMAT)
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(log_file), level=level.upper(), format=_FILE_FORMAT)

"""
autodim — автоматические размерные цепочки для видов BIM-модели.

Основной проход запускается через main.py или autodim.batch.process_views.
"""

from autodim.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)

__version__ = "1.0.0"

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]

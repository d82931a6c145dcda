"""
Utility modules for doi-quiz
"""

from .config import Config, DoiConfig, AppConfig
from .logger import get_logger, setup_logger, LogContext

__all__ = [
    "Config",
    "DoiConfig",
    "AppConfig",
    "get_logger",
    "setup_logger",
    "LogContext",
]

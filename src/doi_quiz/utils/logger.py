"""
Logging Utility Module

doi-quiz 로깅 설정. 로그는 퀴즈 화면(stdout)과 섞이지 않도록 stderr 로 보냅니다.
"""
import functools
import logging
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "doi_quiz"

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    doi_quiz 로거 설정 (호출할 때마다 핸들러를 새로 구성)

    Args:
        log_level: 콘솔 로그 레벨
        log_file: 모든 레벨을 기록할 파일 (선택사항)
    """
    level = getattr(logging, log_level.upper())
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()

    # Console 은 매번 새로 만들어 현재 sys.stderr 를 따라가게 함
    rich_handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    rich_handler.setLevel(level)
    logger.addHandler(rich_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """doi_quiz 네임스페이스 아래의 로거"""
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_execution_time(func):
    """단계별 소요 시간을 DEBUG 로 기록하는 데코레이터"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start = time.perf_counter()
        result = func(*args, **kwargs)
        logger.debug(f"{func.__qualname__} took {time.perf_counter() - start:.3f}s")
        return result

    return wrapper


class LogContext:
    """파이프라인 단계 로깅 컨텍스트 (실패 시 예외는 그대로 전파)"""

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None):
        self.operation = operation
        self.logger = logger or get_logger()
        self.start = 0.0

    def __enter__(self):
        self.start = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.perf_counter() - self.start
        if exc_type is None:
            self.logger.debug(f"Completed {self.operation} in {elapsed:.3f}s")
        else:
            self.logger.warning(f"Stopped {self.operation} after {elapsed:.3f}s: {exc_val}")
        return False

"""
doi-quiz

Did I Own It? 브랜치 변경 사항 이해도 퀴즈와 vibe debt 추적 도구
"""

__version__ = "0.1.0"
__author__ = "doi-quiz Team"

# Core modules - Version control analysis
from .core.git_analyzer import GitAnalyzer
from .core.diff_classifier import DiffClassifier

# Core modules - Quiz
from .core.quiz_planner import QuizPlanner
from .core.quiz_session import QuizSession, Verdict, run_quiz
from .core.question_generator import FileQuestionGenerator, StubQuestionGenerator
from .core.vibe_debt import VibeDebtStore

# Core modules - Data models
from .core.vcs_models import ChangedFile, DiffSummary, GitContext, GitDiff
from .core.quiz_models import MCQuestion, QuestionPlan, QuizStats

# Utility modules - Configuration and logging
from .utils.config import Config, DoiConfig
from .utils.logger import get_logger, setup_logger, LogContext
from .utils.prompt_loader import PromptLoader

from .main import DoiQuiz

__all__ = [
    # Version control analysis
    "GitAnalyzer",
    "DiffClassifier",

    # Quiz
    "QuizPlanner",
    "QuizSession",
    "Verdict",
    "run_quiz",
    "FileQuestionGenerator",
    "StubQuestionGenerator",
    "VibeDebtStore",
    "DoiQuiz",

    # Data models
    "ChangedFile",
    "DiffSummary",
    "GitContext",
    "GitDiff",
    "MCQuestion",
    "QuestionPlan",
    "QuizStats",

    # Configuration and utilities
    "Config",
    "DoiConfig",
    "get_logger",
    "setup_logger",
    "LogContext",
    "PromptLoader",

    # Convenience functions
    "create_git_analyzer",
]


def create_git_analyzer(repo_path: str = ".", default_branch: str = None) -> GitAnalyzer:
    """
    Git 저장소 분석기를 생성합니다.

    Args:
        repo_path: Git 저장소 경로 (기본값: 현재 디렉토리)
        default_branch: 비교 기준 브랜치 (기본값: None, 자동 감지)

    Returns:
        GitAnalyzer 인스턴스
    """
    return GitAnalyzer(repo_path, default_branch)


# Module metadata
__title__ = "doi-quiz"
__description__ = "브랜치 변경 사항 이해도 퀴즈와 vibe debt 추적 도구"

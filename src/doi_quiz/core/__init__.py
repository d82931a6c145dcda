"""
Core modules for doi-quiz
"""

from .git_analyzer import GitAnalyzer
from .diff_classifier import DiffClassifier
from .quiz_planner import QuizPlanner
from .quiz_session import QuizSession
from .vibe_debt import VibeDebtStore
from .vcs_models import ChangedFile, DiffSummary, GitDiff

__all__ = [
    "GitAnalyzer",
    "DiffClassifier",
    "QuizPlanner",
    "QuizSession",
    "VibeDebtStore",
    "ChangedFile",
    "DiffSummary",
    "GitDiff",
]

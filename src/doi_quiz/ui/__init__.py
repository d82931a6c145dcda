"""
Interactive quiz surface for doi-quiz
"""

from .console import RichPrompter, ScriptedPrompter

__all__ = ["RichPrompter", "ScriptedPrompter"]

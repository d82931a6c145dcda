"""
Console Prompter

퀴즈 문항을 rich 콘솔에 표시하고 응답을 받는 프롬프터 구현
"""
from typing import Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.markup import escape

from doi_quiz.core.quiz_models import MCQuestion, QuestionResult, QuestionStatus
from doi_quiz.ui.presentation import (
    ASK_MORE_LABEL,
    SHOW_ME_LABEL,
    SKIP_ALL_LABEL,
    feedback_skipped,
    format_details,
    format_feedback,
    format_question_for_presentation,
    post_incorrect_prompt,
)

# 입력 단축키: 5 / S → Show Me, 6 / X → Skip All
SHORTCUTS = {
    "1": "A", "2": "B", "3": "C", "4": "D",
    "5": SHOW_ME_LABEL, "S": SHOW_ME_LABEL,
    "6": SKIP_ALL_LABEL, "X": SKIP_ALL_LABEL,
}


class RichPrompter:
    """rich 콘솔 기반 대화형 프롬프터"""

    def __init__(self, console: Optional[Console] = None, follow_up: bool = True):
        self.console = console or Console()
        self.follow_up = follow_up

    def present(self, question: MCQuestion, number: int, total: int) -> str:
        presentation = format_question_for_presentation(question, number, total)

        body = [f"[bold]{escape(presentation.question_text)}[/bold]", ""]
        for label, description in presentation.options:
            body.append(f"  [cyan]{label:>8}[/cyan]  {escape(description)}")
        if question.related_files:
            body.append("")
            body.append(f"[dim]Related: {escape(', '.join(question.related_files))}[/dim]")

        self.console.print(Panel("\n".join(body), title=presentation.header, expand=False))
        raw = Prompt.ask("Your answer (A-D, S = show me, X = skip all)", console=self.console)
        return SHORTCUTS.get(raw.strip().upper(), raw)

    def show_result(self, result: QuestionResult) -> None:
        self.console.print(format_feedback(result))
        if self.follow_up and result.status in (QuestionStatus.INCORRECT, QuestionStatus.REVEALED):
            self._ask_follow_up(result.question)
        self.console.print()

    def _ask_follow_up(self, question: MCQuestion) -> None:
        prompt = post_incorrect_prompt()
        self.console.print(f"\n[bold]{prompt.question_text}[/bold]")
        for index, (label, description) in enumerate(prompt.options, start=1):
            self.console.print(f"  [cyan]{index}. {label}[/cyan]  {description}")

        choice = Prompt.ask(prompt.header, choices=["1", "2"], default="1", console=self.console)
        if choice == "2":
            self.console.print(Panel(format_details(question), title=ASK_MORE_LABEL, expand=False))

    def show_skipped(self, count: int) -> None:
        self.console.print(feedback_skipped(count))

    def show_invalid(self, raw_answer: str) -> None:
        self.console.print(
            f"[red]Unrecognized answer {escape(repr(raw_answer))}.[/red] "
            "Choose A, B, C, D, Show Me or Skip All."
        )


class ScriptedPrompter:
    """미리 정해진 응답을 순서대로 돌려주는 프롬프터 (테스트 및 비대화형 실행용)"""

    def __init__(self, answers: Iterable[str]):
        self._answers = list(answers)
        self.presented: List[str] = []
        self.feedback: List[str] = []

    def present(self, question: MCQuestion, number: int, total: int) -> str:
        self.presented.append(question.id)
        if not self._answers:
            return SKIP_ALL_LABEL
        return self._answers.pop(0)

    def show_result(self, result: QuestionResult) -> None:
        self.feedback.append(format_feedback(result))

    def show_skipped(self, count: int) -> None:
        self.feedback.append(feedback_skipped(count))

    def show_invalid(self, raw_answer: str) -> None:
        self.feedback.append(f"invalid: {raw_answer}")

"""
Presentation Module - 문항 및 결과 표시 형식

문항 표시 형식, 응답 피드백 템플릿, 진행률, 결과 요약을 정의합니다.
출력 문자열은 rich 마크업을 사용합니다.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from rich.markup import escape
from rich.table import Table

from doi_quiz.core.quiz_models import ANSWER_LABELS, MCQuestion, QuestionResult, QuestionStatus, QuizStats

SHOW_ME_LABEL = "Show Me"
SKIP_ALL_LABEL = "Skip All"
CONTINUE_LABEL = "Continue"
ASK_MORE_LABEL = "Ask More"

SCORE_MESSAGES = {
    "perfect": "Perfect understanding! You own this code.",
    "low": "Great job! Minor gaps to review later.",
    "moderate": "Good start. Consider reviewing the saved questions.",
    "significant": "Significant vibe debt. Schedule time to review.",
    "high": "High vibe debt. Review before merging recommended.",
}


@dataclass(frozen=True)
class QuestionPresentation:
    """화면에 표시할 문항"""
    question_text: str
    header: str
    options: List[Tuple[str, str]]


def format_question_for_presentation(
    question: MCQuestion,
    number: int,
    total: int,
) -> QuestionPresentation:
    options = [(label, question.options[label]) for label in ANSWER_LABELS]
    options.append((SHOW_ME_LABEL, "I don't know - show me the answer"))
    options.append((SKIP_ALL_LABEL, "Skip remaining questions (saves as Vibe Debt)"))

    return QuestionPresentation(
        question_text=f"Question {number}/{total}: {question.question}",
        header=f"Q{number}",
        options=options,
    )


def post_incorrect_prompt() -> QuestionPresentation:
    """오답/정답 보기 이후 다음 행동 선택"""
    return QuestionPresentation(
        question_text="Would you like to continue or learn more about this?",
        header="Next",
        options=[
            (CONTINUE_LABEL, "Move to the next question"),
            (ASK_MORE_LABEL, "I want to understand this better"),
        ],
    )


def format_details(question: MCQuestion) -> str:
    """Ask More: 보기 전체와 정답, 관련 파일"""
    lines = [f"[bold]{escape(question.question)}[/bold]", ""]
    for label in ANSWER_LABELS:
        marker = "[green]✓[/green]" if label == question.correct_answer else " "
        lines.append(f" {marker} {label}. {escape(question.options[label])}")
    lines.append("")
    lines.append(f"Category: {question.category.value} | Difficulty: {question.difficulty}")
    if question.related_files:
        lines.append("Related files:")
        lines.extend(f"  - {escape(path)}" for path in question.related_files)
    return "\n".join(lines)


def feedback_correct(explanation: str) -> str:
    return f"[green]✅ Correct![/green] {escape(explanation)}"


def feedback_incorrect(correct_answer: str, correct_text: str, explanation: str) -> str:
    return (
        f"[red]❌ Incorrect.[/red] The correct answer is [bold]{correct_answer}[/bold]: "
        f"\"{escape(correct_text)}\"\n\n{escape(explanation)}"
    )


def feedback_revealed(correct_answer: str, correct_text: str, explanation: str) -> str:
    return (
        f"[yellow]💡 Answer: {correct_answer}[/yellow] - \"{escape(correct_text)}\"\n\n"
        f"{escape(explanation)}"
    )


def feedback_skipped(remaining: int) -> str:
    plural = "s" if remaining != 1 else ""
    return (
        f"⏭️  Skipped {remaining} remaining question{plural}. "
        "These will be saved as Vibe Debt for later review."
    )


def format_feedback(result: QuestionResult) -> str:
    """채점된 문항의 피드백 (코드 스니펫이 있으면 함께 표시)"""
    question = result.question

    if result.status == QuestionStatus.CORRECT:
        text = feedback_correct(question.explanation)
    elif result.status == QuestionStatus.REVEALED:
        text = feedback_revealed(question.correct_answer, question.correct_text, question.explanation)
    elif result.status == QuestionStatus.SKIPPED:
        text = feedback_skipped(1)
    else:
        text = feedback_incorrect(question.correct_answer, question.correct_text, question.explanation)

    snippet = question.code_snippet
    if snippet and result.status != QuestionStatus.SKIPPED:
        text += f"\n\n[bold]Relevant code:[/bold]\n{escape(snippet.code)}"
        if snippet.description:
            text += f"\n{escape(snippet.description)}"
    return text


def progress_bar(completed: int, total: int, width: int = 20) -> str:
    if total <= 0:
        filled = width
    else:
        filled = min(width, (2 * completed * width + total) // (2 * total))
    return "[" + "=" * filled + " " * (width - filled) + "]"


def format_progress(stats: QuizStats) -> str:
    answered = stats.correct + stats.incorrect
    return (
        f"Progress: {escape(progress_bar(answered, stats.total_questions))} "
        f"{answered}/{stats.total_questions} | "
        f"Correct: {stats.correct} | Incorrect: {stats.incorrect}"
    )


def score_message(vibe_debt_percent: int) -> str:
    if vibe_debt_percent == 0:
        return SCORE_MESSAGES["perfect"]
    if vibe_debt_percent <= 25:
        return SCORE_MESSAGES["low"]
    if vibe_debt_percent <= 50:
        return SCORE_MESSAGES["moderate"]
    if vibe_debt_percent <= 75:
        return SCORE_MESSAGES["significant"]
    return SCORE_MESSAGES["high"]


def results_table(stats: QuizStats, branch_name: str) -> Table:
    table = Table(title=f"Quiz Results: {branch_name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Total Questions", str(stats.total_questions))
    table.add_row("Correct", f"[green]{stats.correct}[/green]")
    table.add_row("Incorrect", f"[red]{stats.incorrect}[/red]")
    table.add_row("Skipped", f"[yellow]{stats.skipped}[/yellow]")
    table.add_row("Vibe Debt", f"[bold]{stats.vibe_debt_percent}%[/bold]")
    return table


def results_summary(stats: QuizStats, vibe_debt_file: Optional[str] = None) -> str:
    lines = [
        f"[bold]Vibe Debt Score: {stats.vibe_debt_percent}%[/bold]",
        score_message(stats.vibe_debt_percent),
    ]
    if vibe_debt_file:
        lines.append(f"Vibe Debt saved to: {escape(str(vibe_debt_file))}")
    return "\n".join(lines)

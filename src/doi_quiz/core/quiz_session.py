"""
Quiz Session Module - 퀴즈 진행 상태 관리

NOT_STARTED → IN_PROGRESS → FINISHED 상태 전이와 문항별 판정(verdict)에 따른
통계 갱신을 담당합니다. 세션 상태는 전역 객체가 아니라 명시적으로 전달되는 값입니다.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol

from .exceptions import QuizStateError
from .quiz_models import (
    ANSWER_LABELS,
    MCQuestion,
    QuestionResult,
    QuestionStatus,
    QuizStats,
)
from doi_quiz.utils.logger import get_logger

logger = get_logger(__name__)

SHOW_ME = "show me"
SKIP_ALL = "skip all"


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Verdict(str, Enum):
    """외부에서 전달되는 문항별 판정"""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    REVEALED = "revealed"
    SKIPPED = "skipped"


VERDICT_STATUS = {
    Verdict.CORRECT: QuestionStatus.CORRECT,
    Verdict.INCORRECT: QuestionStatus.INCORRECT,
    Verdict.REVEALED: QuestionStatus.REVEALED,
    Verdict.SKIPPED: QuestionStatus.SKIPPED,
}


@dataclass(frozen=True)
class Answer:
    """프롬프터 응답 해석 결과 (verdict 가 None 이면 skip all)"""
    verdict: Optional[Verdict]
    user_answer: Optional[str] = None

    @property
    def skip_all(self) -> bool:
        return self.verdict is None


def verdict_for_answer(question: MCQuestion, raw_answer: str) -> Answer:
    """
    프롬프터 응답(A-D, "show me", "skip all")을 판정으로 변환

    Raises:
        ValueError: 알 수 없는 응답
    """
    answer = (raw_answer or "").strip()
    normalized = " ".join(answer.lower().replace("_", " ").replace("-", " ").split())

    if answer.upper() in ANSWER_LABELS:
        label = answer.upper()
        verdict = Verdict.CORRECT if label == question.correct_answer else Verdict.INCORRECT
        return Answer(verdict, label)
    if normalized == SHOW_ME:
        return Answer(Verdict.REVEALED)
    if normalized == SKIP_ALL:
        return Answer(None)

    raise ValueError(f"Unrecognized answer: {raw_answer!r}")


class QuizSession:
    """퀴즈 세션 상태 머신"""

    def __init__(self, questions: List[MCQuestion]):
        self.results: List[QuestionResult] = [QuestionResult(question=q) for q in questions]
        self.stats = QuizStats(total_questions=len(self.results))
        self.state = SessionState.NOT_STARTED
        self._index = 0

    def start(self) -> None:
        if self.state != SessionState.NOT_STARTED:
            raise QuizStateError(f"Cannot start a session in state {self.state.value}")
        self.state = SessionState.IN_PROGRESS
        if not self.results:
            self.state = SessionState.FINISHED

    @property
    def current_index(self) -> Optional[int]:
        if self.state != SessionState.IN_PROGRESS:
            return None
        return self._index

    @property
    def current_question(self) -> Optional[MCQuestion]:
        index = self.current_index
        return self.results[index].question if index is not None else None

    @property
    def remaining(self) -> int:
        return sum(1 for r in self.results if not r.is_terminal)

    def _find(self, question_id: str) -> QuestionResult:
        for result in self.results:
            if result.question.id == question_id:
                return result
        raise QuizStateError(f"Unknown question id: {question_id}")

    def _advance(self) -> None:
        pending = [i for i, r in enumerate(self.results) if not r.is_terminal]
        if pending:
            self._index = pending[0]
        else:
            self.state = SessionState.FINISHED

    def score(
        self,
        question_id: str,
        verdict: Verdict,
        user_answer: Optional[str] = None,
    ) -> QuestionResult:
        """
        특정 문항 채점

        Raises:
            QuizStateError: 세션이 진행 중이 아니거나 이미 채점된 문항인 경우
        """
        if self.state != SessionState.IN_PROGRESS:
            raise QuizStateError(
                f"Cannot score question {question_id} in state {self.state.value}"
            )

        result = self._find(question_id)
        if result.is_terminal:
            raise QuizStateError(
                f"Question {question_id} was already scored as {result.status.value}"
            )

        verdict = Verdict(verdict)
        result.status = VERDICT_STATUS[verdict]
        result.user_answer = user_answer if verdict in (Verdict.CORRECT, Verdict.INCORRECT) else None

        if verdict == Verdict.CORRECT:
            self.stats.correct += 1
        elif verdict in (Verdict.INCORRECT, Verdict.REVEALED):
            # revealed 는 오답과 같은 무게의 이해 공백
            self.stats.incorrect += 1
        else:
            self.stats.skipped += 1

        logger.debug(
            f"{question_id}: {verdict.value} "
            f"(vibe debt {self.stats.vibe_debt_percent}%)"
        )
        self._advance()
        return result

    def record(self, verdict: Verdict, user_answer: Optional[str] = None) -> QuestionResult:
        """현재 문항 채점"""
        question = self.current_question
        if question is None:
            raise QuizStateError(f"No current question in state {self.state.value}")
        return self.score(question.id, verdict, user_answer)

    def skip_remaining(self) -> int:
        """남은 문항을 모두 skipped 로 처리하고 세션 종료"""
        if self.state != SessionState.IN_PROGRESS:
            raise QuizStateError(f"Cannot skip remaining questions in state {self.state.value}")

        pending = [r for r in self.results if not r.is_terminal]
        for result in pending:
            result.status = QuestionStatus.SKIPPED
            result.user_answer = None

        self.stats.skipped += len(pending)
        self.state = SessionState.FINISHED
        logger.info(f"Skipped {len(pending)} remaining questions")
        return len(pending)

    @property
    def outstanding(self) -> List[QuestionResult]:
        """vibe debt 가 되는 결과 (incorrect, revealed, skipped)"""
        return [
            r for r in self.results
            if r.status in (QuestionStatus.INCORRECT, QuestionStatus.REVEALED, QuestionStatus.SKIPPED)
        ]


class Prompter(Protocol):
    """한 번에 한 문항을 보여주고 정확히 하나의 응답을 돌려주는 대화형 인터페이스"""

    def present(self, question: MCQuestion, number: int, total: int) -> str:
        ...

    def show_result(self, result: QuestionResult) -> None:
        ...

    def show_skipped(self, count: int) -> None:
        ...

    def show_invalid(self, raw_answer: str) -> None:
        ...


def run_quiz(session: QuizSession, prompter: Prompter) -> QuizSession:
    """
    동기식 퀴즈 루프

    문항 하나를 보여주고 응답 하나를 받을 때까지 대기합니다.
    "skip all" 응답이 오면 남은 문항을 skipped 로 처리하고 종료합니다.
    """
    if session.state == SessionState.NOT_STARTED:
        session.start()

    total = len(session.results)
    while session.state == SessionState.IN_PROGRESS:
        index = session.current_index
        question = session.current_question
        raw_answer = prompter.present(question, index + 1, total)

        try:
            answer = verdict_for_answer(question, raw_answer)
        except ValueError:
            prompter.show_invalid(raw_answer)
            continue

        if answer.skip_all:
            prompter.show_skipped(session.skip_remaining())
            break

        prompter.show_result(session.record(answer.verdict, answer.user_answer))

    return session

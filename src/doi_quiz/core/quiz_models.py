"""
Quiz 데이터 모델

문항, 문항 계획(QuestionPlan), 세션 통계(QuizStats) 등을 정의합니다.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


ANSWER_LABELS = ("A", "B", "C", "D")


class QuestionCategory(str, Enum):
    """이해도 문항 카테고리 (선언 순서가 출제 순서)"""
    WHY = "why"          # 변경 목적
    HOW = "how"          # 구현 방식
    WHAT_IF = "what-if"  # 엣지 케이스, 오류 처리
    IMPACT = "impact"    # 다른 코드에 대한 영향


class QuestionStatus(str, Enum):
    """문항 상태"""
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    SKIPPED = "skipped"
    REVEALED = "revealed"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_question_id(category: QuestionCategory, index: int) -> str:
    """문항 ID 생성 (형식: q_<category>_<index>)"""
    return f"q_{QuestionCategory(category).value}_{index}"


@dataclass(frozen=True)
class CodeSnippet:
    code: str
    language: str
    description: str = ""


@dataclass
class MCQuestion:
    """4지선다 문항"""
    id: str
    question: str
    options: Dict[str, str]
    correct_answer: str
    explanation: str
    category: QuestionCategory
    related_files: List[str] = field(default_factory=list)
    difficulty: str = "medium"
    code_snippet: Optional[CodeSnippet] = None

    def __post_init__(self):
        self.category = QuestionCategory(self.category)
        if set(self.options) != set(ANSWER_LABELS):
            raise ValueError(f"Question {self.id} must have exactly options A-D")
        if self.correct_answer not in ANSWER_LABELS:
            raise ValueError(
                f"Question {self.id} has invalid correct answer '{self.correct_answer}'"
            )

    @property
    def correct_text(self) -> str:
        return self.options[self.correct_answer]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MCQuestion':
        snippet = data.get('codeSnippet')
        return cls(
            id=data['id'],
            question=data['question'],
            options={label: data['options'][label] for label in ANSWER_LABELS},
            correct_answer=data['correctAnswer'],
            explanation=data.get('explanation', ''),
            category=QuestionCategory(data['category']),
            related_files=list(data.get('relatedFiles', [])),
            difficulty=data.get('difficulty', 'medium'),
            code_snippet=CodeSnippet(
                code=snippet['code'],
                language=snippet.get('language', ''),
                description=snippet.get('description', ''),
            ) if snippet else None,
        )


@dataclass(frozen=True)
class QuestionPlan:
    """문항 수와 카테고리별 분배 계획"""
    recommended_count: int
    category_distribution: Dict[QuestionCategory, int]
    complexity_score: int

    def slots(self) -> List[Tuple[QuestionCategory, int]]:
        """분배를 (카테고리, 카테고리 내 순번) 슬롯 목록으로 펼침"""
        slots = []
        for category in QuestionCategory:
            for index in range(1, self.category_distribution.get(category, 0) + 1):
                slots.append((category, index))
        return slots

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendedCount": self.recommended_count,
            "categoryDistribution": {
                category.value: self.category_distribution.get(category, 0)
                for category in QuestionCategory
            },
            "complexityScore": self.complexity_score,
        }


@dataclass
class QuizStats:
    """퀴즈 진행 통계"""
    total_questions: int
    correct: int = 0
    incorrect: int = 0
    skipped: int = 0

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect + self.skipped

    @property
    def vibe_debt_percent(self) -> int:
        if self.total_questions <= 0:
            return 0
        # round_half_up(debt * 100 / total) 의 정수 연산
        debt = self.incorrect + self.skipped
        return (debt * 200 + self.total_questions) // (self.total_questions * 2)

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalQuestions": self.total_questions,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuizStats':
        return cls(
            total_questions=int(data['totalQuestions']),
            correct=int(data.get('correct', 0)),
            incorrect=int(data.get('incorrect', 0)),
            skipped=int(data.get('skipped', 0)),
        )


@dataclass
class QuestionResult:
    """문항 하나의 결과"""
    question: MCQuestion
    status: QuestionStatus = QuestionStatus.PENDING
    user_answer: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != QuestionStatus.PENDING

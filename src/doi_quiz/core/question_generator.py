"""
Question Generator Module - 문항 생성기 인터페이스

문항 내용 생성은 외부 협력자(LLM 세션 등)가 담당합니다.
이 모듈은 생성기 인터페이스, 테스트용 결정적 stub, 외부에서 작성한
문항 파일을 읽는 생성기, 그리고 외부 생성기에 넘길 프롬프트 렌더링을 제공합니다.
"""
import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import yaml

from .exceptions import QuestionSetError
from .quiz_models import (
    ANSWER_LABELS,
    MCQuestion,
    QuestionCategory,
    QuestionPlan,
    generate_question_id,
)
from .vcs_models import DiffSummary
from doi_quiz.utils.logger import get_logger
from doi_quiz.utils.prompt_loader import PromptLoader

logger = get_logger(__name__)

PROMPT_TEMPLATE = "question_generation"


class QuestionGenerator(Protocol):
    """generate(plan, summary) -> 문항 목록"""

    def generate(self, plan: QuestionPlan, summary: DiffSummary) -> List[MCQuestion]:
        ...


def validate_questions(plan: QuestionPlan, questions: List[MCQuestion]) -> None:
    """
    문항 수와 카테고리 분배가 계획과 일치하는지 확인

    문항 내용의 품질은 검증하지 않습니다.

    Raises:
        QuestionSetError: 개수, 카테고리 분배, ID 중복 문제가 있을 때
    """
    if len(questions) != plan.recommended_count:
        raise QuestionSetError(
            f"Expected {plan.recommended_count} questions, got {len(questions)}"
        )

    ids = Counter(q.id for q in questions)
    duplicates = sorted(qid for qid, n in ids.items() if n > 1)
    if duplicates:
        raise QuestionSetError(f"Duplicate question ids: {', '.join(duplicates)}")

    actual = Counter(q.category for q in questions)
    for category in QuestionCategory:
        expected = plan.category_distribution.get(category, 0)
        if actual.get(category, 0) != expected:
            raise QuestionSetError(
                f"Expected {expected} '{category.value}' questions, "
                f"got {actual.get(category, 0)}"
            )


def order_by_plan(questions: List[MCQuestion]) -> List[MCQuestion]:
    """카테고리 순서(why → how → what-if → impact)로 정렬, 카테고리 내 순서는 유지"""
    order = list(QuestionCategory)
    return sorted(questions, key=lambda q: order.index(q.category))


class StubQuestionGenerator:
    """계획 모양에 맞는 결정적 합성 문항 생성기 (테스트 및 오프라인 실행용)"""

    def __init__(self, correct_answer: str = "A"):
        if correct_answer not in ANSWER_LABELS:
            raise ValueError(f"Invalid answer label: {correct_answer}")
        self.correct_answer = correct_answer

    def generate(self, plan: QuestionPlan, summary: DiffSummary) -> List[MCQuestion]:
        questions = []
        key_files = list(summary.key_files) or list(summary.files_changed)

        for position, (category, index) in enumerate(plan.slots()):
            related = [key_files[position % len(key_files)]] if key_files else []
            target = related[0] if related else "this branch"
            questions.append(MCQuestion(
                id=generate_question_id(category, index),
                question=f"[{category.value}] Question {index} about {target}",
                options={label: f"Option {label}" for label in ANSWER_LABELS},
                correct_answer=self.correct_answer,
                explanation=f"Synthetic explanation for {category.value} question {index}.",
                category=category,
                related_files=related,
            ))

        logger.debug(f"Stub generator produced {len(questions)} questions")
        return questions


class FileQuestionGenerator:
    """
    외부 생성기가 작성한 문항 파일(JSON/YAML)을 읽는 생성기

    파일 형식은 문항 객체의 배열이거나 {"questions": [...]} 형태입니다.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise QuestionSetError(f"Question file not found: {self.path}")

        text = self.path.read_text(encoding='utf-8')
        try:
            if self.path.suffix.lower() in ('.yaml', '.yml'):
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise QuestionSetError(f"Could not parse question file {self.path}: {e}")

        if isinstance(data, dict):
            data = data.get('questions')
        if not isinstance(data, list):
            raise QuestionSetError(f"Question file {self.path} has no question list")
        return data

    def generate(self, plan: QuestionPlan, summary: DiffSummary) -> List[MCQuestion]:
        questions = []
        for position, item in enumerate(self._load(), start=1):
            try:
                questions.append(MCQuestion.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                raise QuestionSetError(f"Invalid question #{position} in {self.path}: {e}")

        validate_questions(plan, questions)
        logger.info(f"Loaded {len(questions)} questions from {self.path}")
        return order_by_plan(questions)


def _format_distribution(plan: QuestionPlan) -> str:
    return "\n".join(
        f"- {category.value}: {plan.category_distribution.get(category, 0)}"
        for category in QuestionCategory
    )


def _format_changes(summary: DiffSummary) -> str:
    lines = []
    for change in summary.changes:
        lines.append(f"- {change.category.value}: {change.description}")
        lines.extend(f"  - {path}" for path in change.files)
    return "\n".join(lines)


def build_generation_prompt(
    plan: QuestionPlan,
    summary: DiffSummary,
    raw_diff: str = "",
    loader: Optional[PromptLoader] = None,
    max_diff_chars: int = 60000,
) -> str:
    """외부 문항 생성기에 넘길 프롬프트 렌더링"""
    loader = loader or PromptLoader()
    diff_text = raw_diff[:max_diff_chars]
    if len(raw_diff) > max_diff_chars:
        diff_text += "\n... [diff truncated] ..."

    system_prompt, human_prompt = loader.get_prompt(
        PROMPT_TEMPLATE,
        overview=summary.overview,
        intent=summary.inferred_intent,
        key_files="\n".join(f"- {path}" for path in summary.key_files),
        changes=_format_changes(summary),
        question_count=plan.recommended_count,
        distribution=_format_distribution(plan),
        complexity=plan.complexity_score,
        diff=diff_text,
    )
    return f"{system_prompt.strip()}\n\n{human_prompt.strip()}".strip()

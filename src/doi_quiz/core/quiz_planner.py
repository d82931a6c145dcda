"""
Quiz Planner Module - 문항 수 및 카테고리 분배 계산

diff 크기와 변경 카테고리로부터 출제할 문항 수와
why / how / what-if / impact 카테고리별 문항 수를 결정합니다.
같은 입력이면 항상 같은 계획이 나옵니다.
"""
from typing import Dict, Optional, Sequence

from .exceptions import PlanInvariantError
from .quiz_models import QuestionCategory, QuestionPlan
from .vcs_models import CategorizedChange, ChangeCategory, DiffStats, DiffSummary
from doi_quiz.utils.config import DoiConfig
from doi_quiz.utils.logger import get_logger

logger = get_logger(__name__)

LOGIC_CATEGORIES = (ChangeCategory.NEW_FEATURE, ChangeCategory.MODIFIED_LOGIC)
IMPACT_CATEGORIES = (
    ChangeCategory.REFACTORING,
    ChangeCategory.DELETION,
    ChangeCategory.MODIFIED_LOGIC,
)

# 로직 변경이 없는 diff 의 문항 수 축소 비율 (3/5 = 0.6)
LOW_LOGIC_SCALE = (3, 5)


def _ceil_ratio(value: int, numerator: int, denominator: int) -> int:
    """ceil(value * numerator / denominator) 를 정수 연산으로 계산"""
    return -(-value * numerator // denominator)


def _has_category(changes: Sequence[CategorizedChange], categories) -> bool:
    return any(change.category in categories for change in changes)


def base_question_count(total_lines: int) -> int:
    """
    변경 라인 수에 따른 기본 문항 수

    | total_lines | 기본 문항 수 |
    | ≤ 50        | 2 |
    | 51-200      | 4 + (total-50) // 50 |
    | 201-500     | 6 + (total-200) // 150 |
    | > 500       | 8 + min(2, (total-500) // 250) |
    """
    if total_lines <= 50:
        return 2
    if total_lines <= 200:
        return 4 + (total_lines - 50) // 50
    if total_lines <= 500:
        return 6 + (total_lines - 200) // 150
    return 8 + min(2, (total_lines - 500) // 250)


def recommend_question_count(
    stats: DiffStats,
    changes: Sequence[CategorizedChange],
    min_questions: int = 2,
    max_questions: int = 10,
) -> int:
    """
    추천 문항 수

    new-feature / modified-logic 파일이 없으면 기본 문항 수에 0.6 을 곱해 내림한 뒤
    [min_questions, max_questions] 범위로 제한합니다.
    """
    count = base_question_count(stats.total_lines)

    if not _has_category(changes, LOGIC_CATEGORIES):
        numerator, denominator = LOW_LOGIC_SCALE
        count = count * numerator // denominator

    return max(min_questions, min(max_questions, count))


def distribute_question_categories(
    total_questions: int,
    changes: Sequence[CategorizedChange],
) -> Dict[QuestionCategory, int]:
    """
    카테고리별 문항 수 분배

    - why: 항상 ceil(25%)
    - how: 로직 변경이 있으면 남은 수의 ceil(40%)
    - what-if: 로직 변경이 있으면 그 다음 남은 수의 ceil(50%)
    - 나머지: refactoring/deletion/modified-logic 이 있으면 impact, 없으면 how

    Raises:
        PlanInvariantError: 분배 합계가 total_questions 와 다를 때
    """
    distribution = {category: 0 for category in QuestionCategory}
    has_logic = _has_category(changes, LOGIC_CATEGORIES)
    remaining = max(0, total_questions)

    distribution[QuestionCategory.WHY] = min(remaining, _ceil_ratio(remaining, 1, 4))
    remaining -= distribution[QuestionCategory.WHY]

    if has_logic:
        distribution[QuestionCategory.HOW] = min(remaining, _ceil_ratio(remaining, 2, 5))
        remaining -= distribution[QuestionCategory.HOW]

        distribution[QuestionCategory.WHAT_IF] = min(remaining, _ceil_ratio(remaining, 1, 2))
        remaining -= distribution[QuestionCategory.WHAT_IF]

    if _has_category(changes, IMPACT_CATEGORIES):
        distribution[QuestionCategory.IMPACT] = remaining
    else:
        distribution[QuestionCategory.HOW] += remaining

    allocated = sum(distribution.values())
    if allocated != max(0, total_questions):
        raise PlanInvariantError(expected=total_questions, actual=allocated)

    return distribution


class QuizPlanner:
    """DiffSummary 로부터 QuestionPlan 생성"""

    def __init__(self, config: Optional[DoiConfig] = None):
        """
        Args:
            config: 문항 수 범위 설정 (None 이면 기본값)
        """
        self.config = config or DoiConfig()

    def plan(self, summary: DiffSummary, complexity_score: int = 0) -> QuestionPlan:
        count = recommend_question_count(
            summary.stats,
            summary.changes,
            self.config.min_questions,
            self.config.max_questions,
        )
        distribution = distribute_question_categories(count, summary.changes)

        logger.info(
            f"Planned {count} questions: "
            + ", ".join(f"{c.value}={n}" for c, n in distribution.items() if n)
        )

        return QuestionPlan(
            recommended_count=count,
            category_distribution=distribution,
            complexity_score=max(0, min(100, int(complexity_score))),
        )

"""
doi-quiz 예외 계층

Context errors 는 호출자에게 보고되고 실행이 중단되며,
State violations 는 결함(defect)으로 취급됩니다.
"""
from pathlib import Path
from typing import Optional, Union


class DoiError(Exception):
    """doi-quiz 기본 예외"""

    pass


class GitContextError(DoiError):
    """분석 전제 조건 실패 (브랜치 식별 불가, 기본 브랜치와 동일, 변경 없음)"""

    def __init__(self, message: str, precondition: str):
        super().__init__(message)
        self.precondition = precondition


class QuizStateError(DoiError):
    """퀴즈 세션 상태 위반 (이미 채점된 문항 재채점 등)"""

    pass


class PlanInvariantError(QuizStateError):
    """카테고리 분배 합계가 계획된 문항 수와 다름"""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Category distribution sums to {actual}, expected {expected}"
        )
        self.expected = expected
        self.actual = actual


class QuestionSetError(DoiError):
    """외부 생성기가 돌려준 문항이 계획과 맞지 않음"""

    pass


class VibeDebtPersistenceError(DoiError):
    """Vibe debt 레코드 읽기/쓰기 실패"""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        if path is not None:
            message = f"{message}: {path}"
        super().__init__(message)
        self.path = Path(path) if path is not None else None

"""
Vibe Debt Module - 이해 부채 레코드 생성 및 저장

퀴즈에서 정답을 맞히지 못한 문항(incorrect, revealed, skipped)을
브랜치별 JSON 파일(VibeDebt/<branch>_<YYYY-MM-DD>.json)로 저장하고,
이후 복습(remediation) 결과에 따라 레코드를 다시 쓰거나 삭제합니다.
"""
import json
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import date as Date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .exceptions import VibeDebtPersistenceError
from .quiz_models import (
    ANSWER_LABELS,
    MCQuestion,
    QuestionCategory,
    QuestionResult,
    QuestionStatus,
    QuizStats,
)
from .vcs_models import DiffSummary
from doi_quiz.utils.config import DoiConfig
from doi_quiz.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1
DEBT_STATUSES = (QuestionStatus.SKIPPED, QuestionStatus.INCORRECT, QuestionStatus.REVEALED)

_UNSAFE_CHARS = re.compile(r'[/\\:*?"<>|\s]')


def sanitize_branch_name(branch_name: str) -> str:
    """파일 이름에 쓸 수 없는 문자를 '-' 로 치환"""
    return _UNSAFE_CHARS.sub('-', branch_name.strip())


def _iso_date(value: Union[str, Date]) -> str:
    return value if isinstance(value, str) else value.isoformat()


def record_path(config: DoiConfig, branch_name: str, date: Union[str, Date]) -> Path:
    return Path(config.vibe_debt_path) / f"{sanitize_branch_name(branch_name)}_{_iso_date(date)}.json"


@dataclass
class VibeDebtQuestion:
    """저장된 부채 문항"""
    id: str
    question: str
    options: Dict[str, str]
    correct_answer: str
    explanation: str
    status: QuestionStatus
    category: QuestionCategory
    user_answer: Optional[str] = None
    related_files: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.status = QuestionStatus(self.status)
        self.category = QuestionCategory(self.category)
        if self.status not in DEBT_STATUSES:
            raise ValueError(f"Question {self.id} has non-debt status '{self.status.value}'")
        if self.correct_answer not in ANSWER_LABELS:
            raise ValueError(f"Question {self.id} has invalid correct answer '{self.correct_answer}'")
        if self.user_answer is not None and self.user_answer not in ANSWER_LABELS:
            raise ValueError(f"Question {self.id} has invalid user answer '{self.user_answer}'")

    @classmethod
    def from_result(cls, result: QuestionResult) -> 'VibeDebtQuestion':
        question = result.question
        return cls(
            id=question.id,
            question=question.question,
            options=dict(question.options),
            correct_answer=question.correct_answer,
            explanation=question.explanation,
            status=result.status,
            category=question.category,
            user_answer=result.user_answer,
            related_files=list(question.related_files),
        )

    def to_question(self) -> MCQuestion:
        """복습 퀴즈용 문항으로 변환"""
        return MCQuestion(
            id=self.id,
            question=self.question,
            options=dict(self.options),
            correct_answer=self.correct_answer,
            explanation=self.explanation,
            category=self.category,
            related_files=list(self.related_files),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "options": {label: self.options[label] for label in ANSWER_LABELS},
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "status": self.status.value,
            "userAnswer": self.user_answer,
            "relatedFiles": list(self.related_files),
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VibeDebtQuestion':
        return cls(
            id=data['id'],
            question=data['question'],
            options={label: data['options'][label] for label in ANSWER_LABELS},
            correct_answer=data['correctAnswer'],
            explanation=data.get('explanation', ''),
            status=data['status'],
            category=data['category'],
            user_answer=data.get('userAnswer'),
            related_files=list(data.get('relatedFiles', [])),
        )


@dataclass
class VibeDebtRecord:
    """브랜치별 vibe debt 레코드"""
    branch_name: str
    date: str
    overview: str
    files_changed: List[str]
    lines_added: int
    lines_removed: int
    vibe_debt: List[VibeDebtQuestion]
    stats: QuizStats
    schema_version: int = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branchName": self.branch_name,
            "date": self.date,
            "diffSummary": {
                "overview": self.overview,
                "filesChanged": list(self.files_changed),
                "linesAdded": self.lines_added,
                "linesRemoved": self.lines_removed,
            },
            "vibeDebt": [q.to_dict() for q in self.vibe_debt],
            "stats": self.stats.to_dict(),
            "schemaVersion": self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VibeDebtRecord':
        summary = data['diffSummary']
        for key, expected in (('diffSummary', dict), ('vibeDebt', list), ('stats', dict)):
            if not isinstance(data[key], expected):
                raise TypeError(f"'{key}' must be a {expected.__name__}")
        return cls(
            branch_name=data['branchName'],
            date=data['date'],
            overview=summary.get('overview', ''),
            files_changed=list(summary.get('filesChanged', [])),
            lines_added=int(summary.get('linesAdded', 0)),
            lines_removed=int(summary.get('linesRemoved', 0)),
            vibe_debt=[VibeDebtQuestion.from_dict(q) for q in data['vibeDebt']],
            stats=QuizStats.from_dict(data['stats']),
            schema_version=int(data['schemaVersion']),
        )


def build_record(
    branch_name: str,
    date: Union[str, Date],
    summary: DiffSummary,
    results: Iterable[QuestionResult],
    stats: QuizStats,
) -> Optional[VibeDebtRecord]:
    """
    세션 결과로부터 레코드 생성

    correct 문항은 제외하며, 남는 문항이 없으면 None 을 반환합니다 (저장할 것 없음).
    """
    debt = [VibeDebtQuestion.from_result(r) for r in results if r.status in DEBT_STATUSES]
    if not debt:
        logger.info("No vibe debt to record")
        return None

    return VibeDebtRecord(
        branch_name=branch_name,
        date=_iso_date(date),
        overview=summary.overview,
        files_changed=list(summary.files_changed),
        lines_added=summary.stats.lines_added,
        lines_removed=summary.stats.lines_removed,
        vibe_debt=debt,
        stats=QuizStats(
            total_questions=stats.total_questions,
            correct=stats.correct,
            incorrect=stats.incorrect,
            skipped=stats.skipped,
        ),
    )


def stats_for_questions(questions: List[VibeDebtQuestion]) -> QuizStats:
    """남은 부채 문항만으로 통계 재계산 (correct 는 항상 0)"""
    skipped = sum(1 for q in questions if q.status == QuestionStatus.SKIPPED)
    return QuizStats(
        total_questions=len(questions),
        correct=0,
        incorrect=len(questions) - skipped,
        skipped=skipped,
    )


def apply_remediation(
    record: VibeDebtRecord,
    resolved_ids: Iterable[str],
) -> Optional[VibeDebtRecord]:
    """
    복습에서 정답 처리된 문항을 제거

    Returns:
        남은 문항과 재계산된 통계를 가진 새 레코드, 남은 문항이 없으면 None
    """
    resolved = set(resolved_ids)
    remaining = [q for q in record.vibe_debt if q.id not in resolved]
    if not remaining:
        return None

    return VibeDebtRecord(
        branch_name=record.branch_name,
        date=record.date,
        overview=record.overview,
        files_changed=list(record.files_changed),
        lines_added=record.lines_added,
        lines_removed=record.lines_removed,
        vibe_debt=remaining,
        stats=stats_for_questions(remaining),
        schema_version=record.schema_version,
    )


class RemediationAction(str, Enum):
    REWRITTEN = "rewritten"
    DELETED = "deleted"
    UNCHANGED = "unchanged"


@dataclass
class RemediationOutcome:
    """복습 결과 반영 내역"""
    action: RemediationAction
    path: Path
    resolved: int
    remaining: int
    record: Optional[VibeDebtRecord] = None


@retry(
    retry=retry_if_exception_type(PermissionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def _replace(source: str, target: Path) -> None:
    os.replace(source, target)


class VibeDebtStore:
    """VibeDebt 디렉토리의 레코드 파일 관리"""

    def __init__(self, config: Optional[DoiConfig] = None):
        self.config = config or DoiConfig()

    @property
    def directory(self) -> Path:
        return Path(self.config.vibe_debt_path)

    def path_for(self, branch_name: str, date: Union[str, Date]) -> Path:
        return record_path(self.config, branch_name, date)

    def save(self, record: VibeDebtRecord) -> Path:
        """
        레코드 저장 (같은 브랜치, 같은 날짜 파일은 덮어씀)

        임시 파일에 쓴 뒤 교체하므로 부분적으로 쓰인 파일이 남지 않습니다.

        Raises:
            VibeDebtPersistenceError: 디렉토리 생성 또는 파일 쓰기 실패
        """
        path = self.path_for(record.branch_name, record.date)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VibeDebtPersistenceError(f"Could not create directory ({e})", path.parent)

        payload = json.dumps(record.to_dict(), indent=2, ensure_ascii=False) + "\n"
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=str(path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            _replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise VibeDebtPersistenceError(f"Could not write record ({e})", path)
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info(f"Saved {len(record.vibe_debt)} vibe debt questions to {path}")
        return path

    def load(self, path: Union[str, Path]) -> VibeDebtRecord:
        """
        Raises:
            VibeDebtPersistenceError: 읽기 실패, 잘못된 형식, 지원하지 않는 schemaVersion
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except OSError as e:
            raise VibeDebtPersistenceError(f"Could not read record ({e})", path)
        except json.JSONDecodeError as e:
            raise VibeDebtPersistenceError(f"Invalid JSON ({e})", path)

        if not isinstance(data, dict) or data.get('schemaVersion') != SCHEMA_VERSION:
            version = data.get('schemaVersion') if isinstance(data, dict) else None
            raise VibeDebtPersistenceError(f"Unsupported schemaVersion {version!r}", path)

        try:
            return VibeDebtRecord.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise VibeDebtPersistenceError(f"Malformed record ({e})", path)

    def list_records(self) -> List[Path]:
        """저장된 레코드 파일 목록 (최신 날짜 우선)"""
        if not self.directory.is_dir():
            return []
        paths = [p for p in self.directory.glob("*.json") if p.is_file()]
        return sorted(paths, key=lambda p: (p.stem.rsplit('_', 1)[-1], p.name), reverse=True)

    def find_for_branch(self, branch_name: str) -> List[Path]:
        # 파일 이름은 <branch>_<date>, 브랜치 이름에도 "_" 가 들어갈 수 있음
        sanitized = sanitize_branch_name(branch_name)
        return [p for p in self.list_records() if p.stem.rsplit('_', 1)[0] == sanitized]

    def delete(self, path: Union[str, Path]) -> None:
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug(f"Record already removed: {path}")
        except OSError as e:
            raise VibeDebtPersistenceError(f"Could not delete record ({e})", path)
        else:
            logger.info(f"Deleted vibe debt record {path}")

    def remediate(self, path: Union[str, Path], resolved_ids: Iterable[str]) -> RemediationOutcome:
        """복습 결과를 반영해 레코드를 다시 쓰거나 삭제"""
        path = Path(path)
        record = self.load(path)
        resolved = {q.id for q in record.vibe_debt} & set(resolved_ids)

        if not resolved:
            return RemediationOutcome(
                RemediationAction.UNCHANGED, path, 0, len(record.vibe_debt), record
            )

        updated = apply_remediation(record, resolved)
        if updated is None:
            self.delete(path)
            return RemediationOutcome(RemediationAction.DELETED, path, len(resolved), 0)

        # 원래 파일 위치에 그대로 다시 씀
        saved = self._save_to(updated, path)
        return RemediationOutcome(
            RemediationAction.REWRITTEN, saved, len(resolved), len(updated.vibe_debt), updated
        )

    def _save_to(self, record: VibeDebtRecord, path: Path) -> Path:
        target = self.path_for(record.branch_name, record.date)
        if target == path:
            return self.save(record)
        # 파일 이름이 설정과 다른 위치에 있는 레코드
        store = VibeDebtStore(self.config.with_overrides(vibe_debt_path=path.parent))
        saved = store.save(record)
        if saved != path:
            self.delete(path)
        return saved

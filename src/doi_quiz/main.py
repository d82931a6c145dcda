"""
Main Integration Logic - 전체 워크플로우 통합

Git diff 추출 → 분류/점수화 → 문항 계획 → 퀴즈 진행 → Vibe debt 저장의
전체 파이프라인을 관리합니다. 각 단계는 이전 단계가 끝난 뒤 순서대로 실행됩니다.
"""
from datetime import date as Date
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from doi_quiz.core.diff_classifier import DiffClassifier
from doi_quiz.core.exceptions import VibeDebtPersistenceError
from doi_quiz.core.git_analyzer import GitAnalyzer
from doi_quiz.core.question_generator import QuestionGenerator, build_generation_prompt, validate_questions
from doi_quiz.core.quiz_models import QuestionPlan, QuestionStatus
from doi_quiz.core.quiz_planner import QuizPlanner
from doi_quiz.core.quiz_session import Prompter, QuizSession, run_quiz
from doi_quiz.core.vcs_models import DiffSummary, GitDiff
from doi_quiz.core.vibe_debt import (
    RemediationOutcome,
    VibeDebtRecord,
    VibeDebtStore,
    build_record,
)
from doi_quiz.utils.config import Config
from doi_quiz.utils.logger import LogContext, get_logger
from doi_quiz.utils.prompt_loader import PromptLoader

logger = get_logger(__name__)


class AnalysisResult:
    """브랜치 분석 결과"""

    def __init__(self, diff: GitDiff, summary: DiffSummary, complexity: int, plan: QuestionPlan):
        self.diff = diff
        self.summary = summary
        self.complexity = complexity
        self.plan = plan

    @property
    def branch_name(self) -> str:
        return self.diff.context.current_branch

    def to_summary_dict(self) -> Dict[str, Any]:
        """요약 딕셔너리 변환"""
        return {
            "branch": self.branch_name,
            "base_branch": self.diff.context.default_branch,
            "merge_base": self.diff.context.merge_base,
            "overview": self.summary.overview,
            "inferred_intent": self.summary.inferred_intent,
            "key_files": list(self.summary.key_files),
            "changes": {
                change.category.value: list(change.files) for change in self.summary.changes
            },
            "commits": len(self.diff.commits),
            "plan": self.plan.to_dict(),
        }


class QuizRunResult:
    """퀴즈 실행 결과"""

    def __init__(self, analysis: AnalysisResult, session: QuizSession):
        self.analysis = analysis
        self.session = session
        self.record: Optional[VibeDebtRecord] = None
        self.record_path: Optional[Path] = None
        self.errors: List[str] = []
        self.execution_time: Optional[float] = None

    def add_error(self, error: str):
        """오류 추가"""
        self.errors.append(error)
        logger.error(error)

    @property
    def stats(self):
        return self.session.stats

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "branch": self.analysis.branch_name,
            "stats": self.stats.to_dict(),
            "vibe_debt_percent": self.stats.vibe_debt_percent,
            "vibe_debt_questions": len(self.record.vibe_debt) if self.record else 0,
            "record_path": str(self.record_path) if self.record_path else None,
            "execution_time_seconds": self.execution_time,
            "errors": self.errors,
            "success": len(self.errors) == 0,
        }


class ReviewResult:
    """Vibe debt 복습 결과"""

    def __init__(self, session: QuizSession, outcome: RemediationOutcome):
        self.session = session
        self.outcome = outcome


class DoiQuiz:
    """doi-quiz 메인 클래스"""

    def __init__(self, config: Optional[Config] = None, classifier: Optional[DiffClassifier] = None):
        """
        초기화

        Args:
            config: 애플리케이션 설정
            classifier: diff 분류기 (None 이면 기본 설정)
        """
        self.config = config or Config()
        self.classifier = classifier or DiffClassifier()
        self.planner = QuizPlanner(self.config.doi)
        self.store = VibeDebtStore(self.config.doi)
        self.prompt_loader = PromptLoader()

    def analyze(self, repo_path: Union[str, Path] = ".") -> AnalysisResult:
        """
        현재 브랜치 분석 및 문항 계획

        Raises:
            GitContextError: 분석 전제 조건이 충족되지 않은 경우
        """
        with LogContext(f"Analyzing repository: {repo_path}"):
            analyzer = GitAnalyzer(str(repo_path), self.config.doi.main_branch)
            diff = analyzer.get_diff()

            summary = self.classifier.summarize(diff)
            complexity = self.classifier.complexity(diff)
            plan = self.planner.plan(summary, complexity)

        logger.info(f"{summary.overview} (complexity {complexity})")
        return AnalysisResult(diff, summary, complexity, plan)

    def generation_prompt(self, analysis: AnalysisResult) -> str:
        """외부 문항 생성기에 넘길 프롬프트"""
        return build_generation_prompt(
            analysis.plan, analysis.summary, analysis.diff.raw_diff, loader=self.prompt_loader
        )

    def run(
        self,
        repo_path: Union[str, Path],
        generator: QuestionGenerator,
        prompter: Prompter,
        today: Optional[Date] = None,
        analysis: Optional[AnalysisResult] = None,
    ) -> QuizRunResult:
        """
        분석부터 vibe debt 저장까지 전체 퀴즈 실행

        Args:
            repo_path: Git 저장소 경로
            generator: 문항 생성기
            prompter: 대화형 프롬프터
            today: 레코드 날짜 (None 이면 오늘)
            analysis: 미리 계산한 분석 결과

        Returns:
            퀴즈 실행 결과 (저장 실패는 errors 에 기록)
        """
        start_time = datetime.now()
        analysis = analysis or self.analyze(repo_path)

        questions = generator.generate(analysis.plan, analysis.summary)
        validate_questions(analysis.plan, questions)

        session = run_quiz(QuizSession(questions), prompter)
        result = QuizRunResult(analysis, session)

        record = build_record(
            analysis.branch_name,
            today or Date.today(),
            analysis.summary,
            session.results,
            session.stats,
        )
        if record is not None:
            result.record = record
            try:
                result.record_path = self.store.save(record)
            except VibeDebtPersistenceError as e:
                result.add_error(str(e))

        result.execution_time = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Quiz finished on {analysis.branch_name}: "
            f"{session.stats.correct}/{session.stats.total_questions} correct, "
            f"vibe debt {session.stats.vibe_debt_percent}%"
        )
        return result

    def review(self, path: Union[str, Path], prompter: Prompter) -> ReviewResult:
        """저장된 vibe debt 레코드로 복습 퀴즈 실행"""
        record = self.store.load(path)

        with LogContext(f"Reviewing {len(record.vibe_debt)} vibe debt questions"):
            session = run_quiz(QuizSession([q.to_question() for q in record.vibe_debt]), prompter)
            resolved = [r.question.id for r in session.results if r.status == QuestionStatus.CORRECT]
            outcome = self.store.remediate(path, resolved)

        logger.info(
            f"Review of {path}: {outcome.resolved} resolved, {outcome.remaining} remaining "
            f"({outcome.action.value})"
        )
        return ReviewResult(session, outcome)

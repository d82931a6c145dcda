"""
Diff Classifier Module - 변경 분류 및 복잡도 산정

변경 파일을 카테고리별 그룹으로 나누고, 핵심 파일 순위, 복잡도 점수,
브랜치 의도(intent)를 계산하여 DiffSummary 를 만듭니다.
"""
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from .quiz_models import round_half_up
from .vcs_models import (
    BranchCommit,
    CategorizedChange,
    ChangeCategory,
    ChangedFile,
    ChangeType,
    DiffStats,
    DiffSummary,
    GitDiff,
)
from doi_quiz.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


def _compile(patterns: Iterable[str]) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


CONFIG_PATTERNS = (
    r'(^|/)(package(-lock)?\.json|yarn\.lock|pnpm-lock\.yaml|npm-shrinkwrap\.json)$',
    r'(^|/)(requirements[^/]*\.txt|pyproject\.toml|setup\.(py|cfg)|Pipfile(\.lock)?|poetry\.lock|tox\.ini|MANIFEST\.in)$',
    r'(^|/)(Cargo\.(toml|lock)|go\.(mod|sum)|Gemfile(\.lock)?|pom\.xml|build\.gradle(\.kts)?|settings\.gradle(\.kts)?)$',
    r'(^|/)(Makefile|CMakeLists\.txt|Dockerfile[^/]*|docker-compose[^/]*\.ya?ml|Procfile|Jenkinsfile)$',
    r'(^|/)(tsconfig[^/]*\.json|\.eslintrc[^/]*|\.prettierrc[^/]*|\.babelrc|\.editorconfig|\.gitignore|\.gitattributes|\.npmrc|\.nvmrc)$',
    r'(^|/)\.env([.\w-]*)?$',
    r'(^|/)\.github/',
    r'(^|/)\.gitlab-ci\.yml$',
    r'\.(ini|cfg|conf|toml|ya?ml|properties|lock)$',
    r'(^|/)[^/]*\.config\.(js|cjs|mjs|ts)$',
)

TEST_PATTERNS = (
    r'(^|/)(tests?|__tests__|specs?|testing)/',
    r'(^|/)test_[^/]*\.py$',
    r'(^|/)[^/]*_test\.(py|go|rb|exs?)$',
    r'(^|/)[^/]*\.(test|spec)\.[jt]sx?$',
    r'(^|/)[^/]*(Test|Tests|Spec)\.(java|kt|cs|swift|scala)$',
    r'(^|/)conftest\.py$',
)

DOC_PATTERNS = (
    r'\.(md|mdx|rst|adoc|txt)$',
    r'(^|/)docs?/',
    r'(^|/)(README|CHANGELOG|CHANGES|LICENSE|CONTRIBUTING|AUTHORS|NOTICE)([.\w-]*)?$',
)


@dataclass(frozen=True)
class FilePatterns:
    """경로 휴리스틱 (설정/빌드/의존성, 테스트, 문서)"""
    config: Tuple[Pattern, ...] = field(default_factory=lambda: _compile(CONFIG_PATTERNS))
    test: Tuple[Pattern, ...] = field(default_factory=lambda: _compile(TEST_PATTERNS))
    docs: Tuple[Pattern, ...] = field(default_factory=lambda: _compile(DOC_PATTERNS))

    @staticmethod
    def _matches(path: str, patterns: Sequence[Pattern]) -> bool:
        return any(p.search(path) for p in patterns)

    def is_config(self, path: str) -> bool:
        return self._matches(path, self.config)

    def is_test(self, path: str) -> bool:
        return self._matches(path, self.test)

    def is_doc(self, path: str) -> bool:
        return self._matches(path, self.docs)

    def is_source(self, path: str) -> bool:
        return not (self.is_config(path) or self.is_test(path) or self.is_doc(path))


@dataclass(frozen=True)
class ComplexityWeights:
    """
    복잡도 점수 가중치

    값을 바꾸면 복잡도 점수가 달라지므로 골든 값 테스트도 함께 갱신해야 합니다.
    """
    per_file: float = 2.5
    lines_divisor: float = 20.0
    per_extension: float = 5.0
    churn_multiplier: float = 15.0
    factor_cap: float = 25.0
    max_score: int = 100


@dataclass(frozen=True)
class ClassifierSettings:
    """분류 규칙 임계값"""
    trivial_change_lines: int = 20
    refactor_ratio_low: float = 0.5
    refactor_ratio_high: float = 2.0
    key_file_limit: int = 5
    source_bonus: int = 100
    added_bonus: int = 50


CATEGORY_DESCRIPTIONS: Dict[ChangeCategory, str] = {
    ChangeCategory.NEW_FEATURE: "New functionality added",
    ChangeCategory.MODIFIED_LOGIC: "Changes to existing behavior",
    ChangeCategory.REFACTORING: "Restructuring without behavior change",
    ChangeCategory.DELETION: "Removed code",
    ChangeCategory.CONFIGURATION: "Configuration, build or dependency changes",
    ChangeCategory.DOCUMENTATION: "Documentation changes",
    ChangeCategory.TESTING: "Test additions or changes",
}

# 브랜치 접두어 → 의도
BRANCH_INTENTS: Dict[str, str] = {
    "feat": "Adds a feature",
    "feature": "Adds a feature",
    "fix": "Fixes a bug",
    "bugfix": "Fixes a bug",
    "hotfix": "Fixes a bug",
    "refactor": "Restructures code",
    "docs": "Updates documentation",
    "doc": "Updates documentation",
    "test": "Improves tests",
    "tests": "Improves tests",
    "perf": "Improves performance",
    "chore": "Maintains tooling and dependencies",
    "build": "Maintains tooling and dependencies",
    "ci": "Maintains tooling and dependencies",
}

_CONVENTIONAL_COMMIT = re.compile(r'^(\w+)(\([^)]*\))?!?:\s')


def classify_file(
    file: ChangedFile,
    patterns: Optional[FilePatterns] = None,
    settings: Optional[ClassifierSettings] = None,
) -> ChangeCategory:
    """
    파일 하나의 변경 카테고리 결정 (먼저 맞는 규칙 적용)

    1. 설정/빌드/의존성 경로 → configuration
    2. 테스트 경로 → testing
    3. 문서 경로 → documentation
    4. 삭제 → deletion
    5. 추가 → new-feature
    6. 변경량이 큰 수정 → modified-logic
    7. 추가/삭제 비율이 균형 잡힌 작은 수정 → refactoring, 그 외 modified-logic
    """
    patterns = patterns or FilePatterns()
    settings = settings or ClassifierSettings()
    path = file.new_path or file.path

    if patterns.is_config(path):
        return ChangeCategory.CONFIGURATION
    if patterns.is_test(path):
        return ChangeCategory.TESTING
    if patterns.is_doc(path):
        return ChangeCategory.DOCUMENTATION
    if file.change_type == ChangeType.DELETED:
        return ChangeCategory.DELETION
    if file.change_type == ChangeType.ADDED:
        return ChangeCategory.NEW_FEATURE

    # 내용 변경 없는 순수 rename
    if file.change_type == ChangeType.RENAMED and file.total_lines == 0:
        return ChangeCategory.REFACTORING

    if file.total_lines > settings.trivial_change_lines:
        return ChangeCategory.MODIFIED_LOGIC

    if file.lines_added > 0 and file.lines_removed > 0:
        ratio = file.lines_removed / file.lines_added
        if settings.refactor_ratio_low <= ratio <= settings.refactor_ratio_high:
            return ChangeCategory.REFACTORING

    return ChangeCategory.MODIFIED_LOGIC


def categorize_changes(
    files: Sequence[ChangedFile],
    patterns: Optional[FilePatterns] = None,
    settings: Optional[ClassifierSettings] = None,
) -> List[CategorizedChange]:
    """파일을 카테고리별 그룹으로 분할 (모든 파일이 정확히 한 그룹에 속함)"""
    groups: Dict[ChangeCategory, List[str]] = {}
    for file in files:
        category = classify_file(file, patterns, settings)
        groups.setdefault(category, [])
        if file.path not in groups[category]:
            groups[category].append(file.path)

    changes = []
    for category in ChangeCategory:
        paths = groups.get(category)
        if not paths:
            continue
        noun = "file" if len(paths) == 1 else "files"
        changes.append(CategorizedChange(
            category=category,
            description=f"{CATEGORY_DESCRIPTIONS[category]} ({len(paths)} {noun})",
            files=tuple(paths),
        ))
    return changes


def rank_key_files(
    files: Sequence[ChangedFile],
    patterns: Optional[FilePatterns] = None,
    settings: Optional[ClassifierSettings] = None,
) -> List[str]:
    """소스 여부, 변경량, 신규 여부로 점수를 매겨 상위 N 개 파일 반환"""
    patterns = patterns or FilePatterns()
    settings = settings or ClassifierSettings()

    def score(file: ChangedFile) -> int:
        value = file.total_lines
        if patterns.is_source(file.new_path or file.path):
            value += settings.source_bonus
        if file.change_type == ChangeType.ADDED:
            value += settings.added_bonus
        return value

    ranked = sorted(files, key=lambda f: (-score(f), f.path))
    key_files: List[str] = []
    for file in ranked:
        if file.path not in key_files:
            key_files.append(file.path)
        if len(key_files) >= settings.key_file_limit:
            break
    return key_files


def _extension(path: str) -> str:
    return PurePosixPath(path).suffix.lower()


def calculate_complexity(
    files: Sequence[ChangedFile],
    stats: DiffStats,
    weights: Optional[ComplexityWeights] = None,
) -> int:
    """
    복잡도 점수 (0-100)

    파일 수, 변경 라인 수, 확장자 다양성, churn(삭제/추가 비율) 네 요소를
    각각 상한을 두어 합산합니다.
    """
    weights = weights or ComplexityWeights()
    cap = weights.factor_cap

    score = min(cap, len(files) * weights.per_file)
    score += min(cap, stats.total_lines / weights.lines_divisor)
    score += min(cap, len({_extension(f.path) for f in files}) * weights.per_extension)

    # linesAdded 가 0 이면 churn 요소는 0
    if stats.lines_added > 0:
        churn_ratio = stats.lines_removed / stats.lines_added
        score += min(cap, churn_ratio * weights.churn_multiplier)

    return max(0, min(weights.max_score, round_half_up(score)))


def _topic_from_branch(remainder: str) -> str:
    topic = re.sub(r'[-_/]+', ' ', remainder).strip()
    return re.sub(r'^\d+\s+', '', topic)


def _dominant_category(changes: Sequence[CategorizedChange]) -> Optional[ChangeCategory]:
    if not changes:
        return None
    order = list(ChangeCategory)
    return max(changes, key=lambda c: (len(c.files), -order.index(c.category))).category


def infer_intent(
    branch_name: str,
    changes: Sequence[CategorizedChange],
    commits: Sequence[BranchCommit] = (),
) -> str:
    """
    브랜치 의도 추론 (참고용 텍스트)

    브랜치 접두어 → conventional commit 접두어 → 주요 카테고리 순으로 시도합니다.
    """
    prefix, _, remainder = (branch_name or "").partition('/')
    intent = BRANCH_INTENTS.get(prefix.lower()) if remainder else None
    if intent:
        topic = _topic_from_branch(remainder)
        return f"{intent}: {topic}" if topic else intent

    commit_types = Counter()
    for commit in commits:
        match = _CONVENTIONAL_COMMIT.match(commit.message)
        if match and match.group(1).lower() in BRANCH_INTENTS:
            commit_types[BRANCH_INTENTS[match.group(1).lower()]] += 1
    if commit_types:
        # Counter.most_common 은 동률이면 먼저 나온 값을 유지
        return commit_types.most_common(1)[0][0]

    dominant = _dominant_category(changes)
    if dominant is None:
        return "No changes detected"
    return f"Mostly {CATEGORY_DESCRIPTIONS[dominant].lower()}"


def build_overview(branch_name: str, stats: DiffStats, changes: Sequence[CategorizedChange]) -> str:
    noun = "file" if stats.files_changed == 1 else "files"
    parts = ", ".join(f"{len(c.files)} {c.category.value}" for c in changes)
    subject = f"Branch {branch_name}" if branch_name else "This branch"
    overview = (
        f"{subject} changes {stats.files_changed} {noun} "
        f"(+{stats.lines_added}/-{stats.lines_removed})"
    )
    return f"{overview}: {parts}" if parts else overview


class DiffClassifier:
    """GitDiff 를 DiffSummary 로 변환하는 분류기"""

    def __init__(
        self,
        patterns: Optional[FilePatterns] = None,
        settings: Optional[ClassifierSettings] = None,
        weights: Optional[ComplexityWeights] = None,
    ):
        self.patterns = patterns or FilePatterns()
        self.settings = settings or ClassifierSettings()
        self.weights = weights or ComplexityWeights()

    @log_execution_time
    def summarize(self, diff: GitDiff) -> DiffSummary:
        """GitDiff 분석 결과 요약"""
        branch = diff.context.current_branch
        changes = categorize_changes(diff.files, self.patterns, self.settings)
        summary = DiffSummary(
            overview=build_overview(branch, diff.stats, changes),
            changes=tuple(changes),
            inferred_intent=infer_intent(branch, changes, diff.commits),
            key_files=tuple(rank_key_files(diff.files, self.patterns, self.settings)),
            stats=diff.stats,
            files_changed=tuple(f.path for f in diff.files),
        )
        logger.debug(
            f"Classified {len(diff.files)} files into "
            f"{[c.category.value for c in changes]}"
        )
        return summary

    def complexity(self, diff: GitDiff) -> int:
        return calculate_complexity(diff.files, diff.stats, self.weights)


def build_summary(diff: GitDiff) -> DiffSummary:
    """기본 설정으로 DiffSummary 생성"""
    return DiffClassifier().summarize(diff)

"""
Git Analyzer Module - 브랜치 변경사항 추출

현재 브랜치와 기본(base) 브랜치의 merge-base 를 찾고,
merge-base..HEAD 범위의 diff 출력을 수집하여 GitDiff 로 변환합니다.
"""
import logging
from pathlib import Path
from typing import List, Optional

import git
from git import Repo

from .diff_parser import extract_diff
from .exceptions import GitContextError
from .vcs_models import GitContext, GitDiff

# 로깅 설정
logger = logging.getLogger(__name__)

# 원격/추적 브랜치를 찾지 못했을 때 확인할 로컬 브랜치 후보
FALLBACK_BRANCHES = ("main", "master", "develop")

# 사용자 diff.renames 설정과 무관하게 rename 만 감지 (copy 감지 없음)
RENAME_OPTIONS = ("-M",)


class GitAnalyzer:
    """Git 저장소 분석 클래스"""

    def __init__(self, repo_path: str = ".", default_branch: Optional[str] = None):
        """
        GitAnalyzer 초기화

        Args:
            repo_path: Git 저장소 경로
            default_branch: 기본 브랜치 이름 (None 이면 자동 감지)
        """
        self.repo_path = Path(repo_path).resolve()
        self.default_branch = default_branch
        self._repo: Optional[Repo] = None
        self._initialize_repo()

    def _initialize_repo(self) -> None:
        """Git 저장소 초기화 및 검증"""
        try:
            self._repo = Repo(self.repo_path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            raise GitContextError(
                f"Not a git repository: {self.repo_path}",
                precondition="repository",
            )
        if self._repo.bare:
            raise GitContextError(
                f"Cannot analyze bare repository at {self.repo_path}",
                precondition="repository",
            )
        logger.debug(f"Initialized repository at {self._repo.working_dir}")

    @property
    def repo(self) -> Repo:
        """Git 저장소 객체 반환"""
        if self._repo is None:
            self._initialize_repo()
        return self._repo

    def _git(self, *args: str) -> str:
        """git 명령 실행 (실패 시 빈 문자열)"""
        try:
            return self.repo.git.execute(["git", *args])
        except git.GitCommandError as e:
            logger.debug(f"git {' '.join(args)} failed: {e.stderr.strip() if e.stderr else e}")
            return ""

    def get_current_branch(self) -> str:
        """현재 브랜치 이름 (detached HEAD 이면 빈 문자열)"""
        branch = self._git("rev-parse", "--abbrev-ref", "HEAD").strip()
        return "" if branch == "HEAD" else branch

    def _branch_exists(self, ref: str) -> bool:
        return bool(self._git("rev-parse", "--verify", "--quiet", ref))

    def _remote_default_branch(self) -> str:
        ref = self._git("symbolic-ref", "refs/remotes/origin/HEAD").strip()
        prefix = "refs/remotes/origin/"
        return ref[len(prefix):] if ref.startswith(prefix) else ""

    def _upstream_branch(self, current_branch: str) -> str:
        merge_ref = self._git("config", "--get", f"branch.{current_branch}.merge").strip()
        prefix = "refs/heads/"
        upstream = merge_ref[len(prefix):] if merge_ref.startswith(prefix) else merge_ref
        # 같은 이름의 원격 브랜치를 추적하는 경우는 base 가 아님
        return "" if upstream == current_branch else upstream

    def _closest_ancestor_branch(self, current_branch: str) -> str:
        """merge-base 이후 커밋 수가 가장 적은 원격 브랜치"""
        candidates: List[tuple] = []
        remote_refs = self._git("for-each-ref", "--format=%(refname)", "refs/remotes")
        for ref in remote_refs.splitlines():
            # refs/remotes/<remote>/<branch>
            name = ref.split("/", 3)[-1] if ref.count("/") >= 3 else ""
            if not name or name in ("HEAD", current_branch):
                continue
            merge_base = self._git("merge-base", "HEAD", ref).strip()
            if not merge_base:
                continue
            distance = self._git("rev-list", "--count", f"{merge_base}..HEAD").strip()
            if distance.isdigit():
                candidates.append((int(distance), name))

        if not candidates:
            return ""
        candidates.sort()
        return candidates[0][1]

    def detect_default_branch(self, current_branch: str) -> str:
        """
        base 브랜치 감지

        우선순위: 설정값 → origin/HEAD → upstream 추적 브랜치
        → 가장 가까운 원격 조상 브랜치 → 로컬 main/master/develop
        """
        if self.default_branch:
            return self.default_branch

        for detect in (
            self._remote_default_branch,
            lambda: self._upstream_branch(current_branch),
            lambda: self._closest_ancestor_branch(current_branch),
        ):
            branch = detect()
            if branch:
                return branch

        for branch in FALLBACK_BRANCHES:
            if self._branch_exists(branch):
                return branch

        return ""

    def get_merge_base(self, default_branch: str) -> str:
        """기본 브랜치와 HEAD 의 merge-base"""
        for ref in (default_branch, f"origin/{default_branch}"):
            merge_base = self._git("merge-base", ref, "HEAD").strip()
            if merge_base:
                return merge_base
        return ""

    def get_context(self) -> GitContext:
        """현재 저장소의 Git 컨텍스트 추출"""
        current_branch = self.get_current_branch()
        if not current_branch:
            return GitContext("", "", "", False, error="Could not determine current branch")

        default_branch = self.detect_default_branch(current_branch)
        if not default_branch:
            return GitContext(
                current_branch, "", "", False,
                error="Could not detect a base branch. Set DOI_MAIN_BRANCH to choose one.",
            )

        if current_branch == default_branch:
            return GitContext(current_branch, default_branch, "", False)

        merge_base = self.get_merge_base(default_branch)
        if not merge_base:
            return GitContext(
                current_branch, default_branch, "", False,
                error=f"No common ancestor between {current_branch} and {default_branch}",
            )

        has_changes = bool(self._git("diff", "--name-only", f"{merge_base}..HEAD").strip())
        return GitContext(current_branch, default_branch, merge_base, has_changes)

    def get_diff(self, context: Optional[GitContext] = None) -> GitDiff:
        """
        merge-base..HEAD 범위의 diff 수집

        Args:
            context: 미리 계산한 컨텍스트 (None 이면 새로 계산)

        Returns:
            파싱된 GitDiff

        Raises:
            GitContextError: 분석 전제 조건이 충족되지 않은 경우
        """
        context = context or self.get_context()
        validate_context(context)

        commit_range = f"{context.merge_base}..HEAD"
        logger.info(
            f"Analyzing {context.current_branch} against {context.default_branch} "
            f"({context.merge_base[:8]})"
        )

        return extract_diff(
            context=context,
            numstat_output=self._git("diff", "--numstat", *RENAME_OPTIONS, commit_range),
            name_status_output=self._git("diff", "--name-status", *RENAME_OPTIONS, commit_range),
            commit_log_output=self._git("log", commit_range, "--oneline"),
            raw_diff=self._git("diff", commit_range),
        )


def validate_context(context: GitContext) -> None:
    """
    분석 전제 조건 검증

    Raises:
        GitContextError: 실패한 전제 조건을 메시지에 담아 발생
    """
    if context.error:
        raise GitContextError(context.error, precondition="context")

    if not context.current_branch:
        raise GitContextError(
            "Could not determine current branch", precondition="current-branch"
        )

    if context.current_branch == context.default_branch:
        raise GitContextError(
            f"Already on {context.default_branch} branch. "
            "Switch to a feature branch to analyze changes.",
            precondition="feature-branch",
        )

    if not context.has_changes:
        raise GitContextError(
            f"No changes found between current branch and {context.default_branch}. "
            "Nothing to analyze.",
            precondition="has-changes",
        )

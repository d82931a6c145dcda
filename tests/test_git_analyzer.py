"""
Git Analyzer Unit Tests

GitAnalyzer 클래스의 단위 테스트 (임시 Git 저장소 사용)
"""
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import commit_file
from doi_quiz import create_git_analyzer
from doi_quiz.core.exceptions import GitContextError
from doi_quiz.core.git_analyzer import GitAnalyzer, validate_context
from doi_quiz.core.vcs_models import ChangeType, GitContext


class TestGitAnalyzer:
    """GitAnalyzer 테스트 클래스"""

    def test_init_valid_repo(self, temp_repo):
        """유효한 저장소로 GitAnalyzer 초기화 테스트"""
        analyzer = GitAnalyzer(temp_repo.working_dir)

        assert analyzer.repo_path == Path(temp_repo.working_dir).resolve()
        assert analyzer.default_branch is None
        assert analyzer.repo is not None

    def test_init_invalid_repo(self, tmp_path):
        """Git 저장소가 아닌 경로"""
        with pytest.raises(GitContextError) as exc_info:
            GitAnalyzer(str(tmp_path / "missing"))
        assert exc_info.value.precondition == "repository"

    def test_create_git_analyzer(self, temp_repo):
        """편의 함수 테스트"""
        analyzer = create_git_analyzer(temp_repo.working_dir, "main")
        assert analyzer.default_branch == "main"

    def test_current_branch(self, feature_repo):
        analyzer = GitAnalyzer(feature_repo.working_dir)
        assert analyzer.get_current_branch() == "feature/login"

    def test_detached_head(self, feature_repo):
        feature_repo.git.checkout(feature_repo.head.commit.hexsha)
        analyzer = GitAnalyzer(feature_repo.working_dir)

        assert analyzer.get_current_branch() == ""
        context = analyzer.get_context()
        assert context.error == "Could not determine current branch"

    def test_default_branch_falls_back_to_local_main(self, feature_repo):
        analyzer = GitAnalyzer(feature_repo.working_dir)
        assert analyzer.detect_default_branch("feature/login") == "main"

    def test_default_branch_override(self, feature_repo):
        analyzer = GitAnalyzer(feature_repo.working_dir, default_branch="develop")
        assert analyzer.detect_default_branch("feature/login") == "develop"

    def test_upstream_branch_is_preferred(self, feature_repo):
        feature_repo.git.checkout("main")
        feature_repo.git.checkout("-b", "release")
        feature_repo.git.checkout("feature/login")
        feature_repo.git.config("branch.feature/login.merge", "refs/heads/release")

        analyzer = GitAnalyzer(feature_repo.working_dir)

        assert analyzer.detect_default_branch("feature/login") == "release"

    def test_remote_default_branch_wins(self, feature_repo):
        analyzer = GitAnalyzer(feature_repo.working_dir)
        with patch.object(analyzer, "_remote_default_branch", return_value="trunk"):
            assert analyzer.detect_default_branch("feature/login") == "trunk"

    def test_context_on_feature_branch(self, feature_repo):
        analyzer = GitAnalyzer(feature_repo.working_dir)
        main_sha = feature_repo.commit("main").hexsha

        context = analyzer.get_context()

        assert context.current_branch == "feature/login"
        assert context.default_branch == "main"
        assert context.merge_base == main_sha
        assert context.has_changes is True
        assert context.error is None

    def test_missing_base_branch_is_reported(self, feature_repo):
        analyzer = GitAnalyzer(feature_repo.working_dir, default_branch="develop")

        context = analyzer.get_context()

        assert context.error is not None
        with pytest.raises(GitContextError) as exc_info:
            validate_context(context)
        assert exc_info.value.precondition == "context"

    def test_get_diff(self, feature_repo):
        commit_file(feature_repo, "src/app.py", "def main():\n    return 2\n", "fix: change return")
        commit_file(feature_repo, "README.md", "# Demo\n", "docs: add readme")

        diff = GitAnalyzer(feature_repo.working_dir).get_diff()

        files = {f.path: f for f in diff.files}
        assert set(files) == {"src/login.py", "src/app.py", "README.md"}
        assert files["src/login.py"].change_type == ChangeType.ADDED
        assert files["src/login.py"].lines_added == 30
        assert files["src/app.py"].change_type == ChangeType.MODIFIED
        assert (files["src/app.py"].lines_added, files["src/app.py"].lines_removed) == (1, 1)
        assert diff.stats.files_changed == 3
        assert diff.stats.lines_added == 32
        assert [c.message for c in diff.commits] == [
            "docs: add readme", "fix: change return", "feat: add login module",
        ]
        assert "src/login.py" in diff.raw_diff

    def test_copy_detection_setting_does_not_change_output(self, temp_repo):
        """diff.renames=copies 설정이 있어도 사본은 새 경로의 added"""
        temp_repo.config_writer().set_value("diff", "renames", "copies").release()
        temp_repo.git.checkout("-b", "feature/copy")
        commit_file(temp_repo, "src/app_copy.py", "def main():\n    return 1\n", "chore: copy app")
        commit_file(temp_repo, "src/app.py", "def main():\n    return 2\n", "fix: change return")

        diff = GitAnalyzer(temp_repo.working_dir).get_diff()

        files = {f.path: f for f in diff.files}
        assert set(files) == {"src/app.py", "src/app_copy.py"}
        assert files["src/app_copy.py"].change_type == ChangeType.ADDED
        assert files["src/app_copy.py"].lines_added == 2
        assert files["src/app.py"].change_type == ChangeType.MODIFIED

    def test_get_diff_on_main_branch(self, temp_repo):
        with pytest.raises(GitContextError) as exc_info:
            GitAnalyzer(temp_repo.working_dir).get_diff()

        assert exc_info.value.precondition == "feature-branch"
        assert "Already on main branch" in str(exc_info.value)

    def test_get_diff_without_changes(self, temp_repo):
        temp_repo.git.checkout("-b", "feature/empty")

        with pytest.raises(GitContextError) as exc_info:
            GitAnalyzer(temp_repo.working_dir).get_diff()

        assert exc_info.value.precondition == "has-changes"
        assert "Nothing to analyze" in str(exc_info.value)

    def test_git_failure_returns_empty_output(self, temp_repo):
        analyzer = GitAnalyzer(temp_repo.working_dir)
        assert analyzer._git("rev-parse", "--verify", "--quiet", "no-such-ref") == ""


class TestValidateContext:
    """전제 조건 검증 테스트"""

    @pytest.mark.parametrize("context, precondition", [
        (GitContext("", "", "", False), "current-branch"),
        (GitContext("main", "main", "", False), "feature-branch"),
        (GitContext("feature/x", "main", "abc", False), "has-changes"),
        (GitContext("feature/x", "", "", False, error="boom"), "context"),
    ])
    def test_failures(self, context, precondition):
        with pytest.raises(GitContextError) as exc_info:
            validate_context(context)
        assert exc_info.value.precondition == precondition

    def test_valid_context(self):
        validate_context(GitContext("feature/x", "main", "abc", True))

"""
CLI Integration Tests

click CliRunner 로 명령줄 인터페이스 전체 흐름을 테스트
"""
import json
from datetime import date

import pytest
from click.testing import CliRunner

from conftest import make_question
from doi_quiz.cli import cli
from doi_quiz.core.quiz_models import QuestionResult, QuestionStatus, QuizStats
from doi_quiz.core.vcs_models import DiffStats, DiffSummary
from doi_quiz.core.vibe_debt import VibeDebtStore, build_record
from doi_quiz.utils.config import DoiConfig


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def debt_dir(tmp_path):
    return tmp_path / "VibeDebt"


def _invoke(runner, repo, debt_dir, *args):
    return runner.invoke(cli, [
        "--repo", repo.working_dir,
        "--vibe-debt-path", str(debt_dir),
        "--log-level", "ERROR",
        *args,
    ])


class TestAnalyzeCommand:
    """analyze / prompt 명령 테스트"""

    def test_analyze_json(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "analyze", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["branch"] == "feature/login"
        assert data["base_branch"] == "main"
        assert data["changes"] == {"new-feature": ["src/login.py"]}
        assert data["plan"]["recommendedCount"] == 2
        assert data["inferred_intent"] == "Adds a feature: login"

    def test_analyze_table(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "analyze")

        assert result.exit_code == 0, result.output
        assert "new-feature" in result.output
        assert "2 questions" in result.output

    def test_context_error_exits_with_status_1(self, runner, temp_repo, debt_dir):
        result = _invoke(runner, temp_repo, debt_dir, "analyze")

        assert result.exit_code == 1
        assert "Already on main" in result.output

    def test_prompt(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "prompt")

        assert result.exit_code == 0, result.output
        assert "Write exactly 2 questions" in result.output
        assert "src/login.py" in result.output


class TestQuizCommand:
    """quiz 명령 테스트"""

    def test_stub_quiz_saves_debt(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "quiz", "--stub", "--answers", "A,B")

        assert result.exit_code == 0, result.output
        records = list(debt_dir.glob("feature-login_*.json"))
        assert len(records) == 1
        data = json.loads(records[0].read_text(encoding="utf-8"))
        assert data["stats"] == {"totalQuestions": 2, "correct": 1, "incorrect": 1, "skipped": 0}
        assert [q["id"] for q in data["vibeDebt"]] == ["q_how_1"]
        assert data["vibeDebt"][0]["userAnswer"] == "B"

    def test_perfect_quiz_writes_nothing(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "quiz", "--stub", "--answers", "A,A")

        assert result.exit_code == 0, result.output
        assert "Perfect understanding" in result.output
        assert not debt_dir.exists()

    def test_skip_all(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "quiz", "--stub", "--answers", "skip all")

        assert result.exit_code == 0, result.output
        data = json.loads(next(debt_dir.glob("*.json")).read_text(encoding="utf-8"))
        assert data["stats"]["skipped"] == 2
        assert {q["status"] for q in data["vibeDebt"]} == {"skipped"}

    def test_question_file_mismatch(self, runner, feature_repo, debt_dir, tmp_path):
        path = tmp_path / "questions.json"
        path.write_text("[]", encoding="utf-8")

        result = _invoke(runner, feature_repo, debt_dir, "quiz", "--questions", str(path))

        assert result.exit_code == 1
        assert "Expected 2 questions" in result.output

    def test_requires_exactly_one_source(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "quiz")
        assert result.exit_code == 1


class TestDebtCommands:
    """review / debt / check-config 명령 테스트"""

    def _save_record(self, debt_dir, count=2):
        results = [
            QuestionResult(make_question(f"q_why_{i}"), QuestionStatus.SKIPPED)
            for i in range(1, count + 1)
        ]
        summary = DiffSummary("overview", (), "intent", (), DiffStats(1, 1, 0, 1), ("a.py",))
        record = build_record(
            "feature/login", date(2024, 3, 9), summary, results,
            QuizStats(total_questions=count, skipped=count),
        )
        return VibeDebtStore(DoiConfig(vibe_debt_path=debt_dir)).save(record)

    def test_review_resolves_everything(self, runner, feature_repo, debt_dir):
        path = self._save_record(debt_dir)

        result = _invoke(runner, feature_repo, debt_dir, "review", str(path), "--answers", "A,A")

        assert result.exit_code == 0, result.output
        assert not path.exists()

    def test_review_defaults_to_current_branch_record(self, runner, feature_repo, debt_dir):
        path = self._save_record(debt_dir)

        result = _invoke(runner, feature_repo, debt_dir, "review", "--answers", "A,C")

        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [q["id"] for q in data["vibeDebt"]] == ["q_why_2"]
        assert data["vibeDebt"][0]["status"] == "skipped"
        assert data["stats"] == {"totalQuestions": 1, "correct": 0, "incorrect": 0, "skipped": 1}

    def test_review_without_records(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "review")

        assert result.exit_code == 0
        assert "No vibe debt to review" in result.output

    def test_debt_listing(self, runner, feature_repo, debt_dir):
        assert "No vibe debt records" in _invoke(runner, feature_repo, debt_dir, "debt").output

        self._save_record(debt_dir)
        result = _invoke(runner, feature_repo, debt_dir, "debt")

        assert result.exit_code == 0, result.output
        assert "2024-03-09" in result.output

    def test_debt_listing_survives_malformed_record(self, runner, feature_repo, debt_dir):
        self._save_record(debt_dir)
        (debt_dir / "broken_2024-01-01.json").write_text(
            json.dumps({"schemaVersion": 1, "diffSummary": []}), encoding="utf-8"
        )

        result = _invoke(runner, feature_repo, debt_dir, "debt")

        assert result.exit_code == 0, result.output
        assert "2024-03-09" in result.output
        assert result.exception is None

    def test_review_ignores_other_branch_with_same_prefix(self, runner, feature_repo, debt_dir):
        path = self._save_record(debt_dir)
        other = path.with_name("feature-login_extra_2024-03-10.json")
        other.write_text(path.read_text(encoding="utf-8"), encoding="utf-8")

        result = _invoke(runner, feature_repo, debt_dir, "review", "--answers", "A,A")

        assert result.exit_code == 0, result.output
        assert not path.exists()
        assert other.exists()

    def test_check_config(self, runner, feature_repo, debt_dir):
        result = _invoke(runner, feature_repo, debt_dir, "--min-questions", "3", "check-config")

        assert result.exit_code == 0, result.output
        assert "DOI_MIN_QUESTIONS" in result.output

    def test_invalid_bounds(self, runner, feature_repo, debt_dir):
        result = _invoke(
            runner, feature_repo, debt_dir, "--min-questions", "5", "--max-questions", "3", "debt"
        )
        assert result.exit_code == 1

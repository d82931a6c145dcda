"""
Question Generator Unit Tests

문항 생성기, 문항 파일 로딩, 생성 프롬프트 테스트
"""
import json

import pytest
import yaml

from conftest import make_question
from doi_quiz.core.exceptions import QuestionSetError
from doi_quiz.core.question_generator import (
    FileQuestionGenerator,
    StubQuestionGenerator,
    build_generation_prompt,
    order_by_plan,
    validate_questions,
)
from doi_quiz.core.quiz_models import MCQuestion, QuestionCategory, QuestionPlan
from doi_quiz.core.vcs_models import CategorizedChange, ChangeCategory, DiffStats, DiffSummary
from doi_quiz.utils.prompt_loader import PromptLoader

WHY = QuestionCategory.WHY
HOW = QuestionCategory.HOW
IMPACT = QuestionCategory.IMPACT


@pytest.fixture
def plan():
    return QuestionPlan(
        recommended_count=3,
        category_distribution={WHY: 1, HOW: 1, QuestionCategory.WHAT_IF: 0, IMPACT: 1},
        complexity_score=37,
    )


@pytest.fixture
def summary():
    return DiffSummary(
        overview="Branch feature/login changes 2 files (+40/-5): 1 new-feature, 1 modified-logic",
        changes=(
            CategorizedChange(ChangeCategory.NEW_FEATURE, "New functionality added (1 file)", ("src/login.py",)),
            CategorizedChange(ChangeCategory.MODIFIED_LOGIC, "Changes to existing behavior (1 file)", ("src/auth.py",)),
        ),
        inferred_intent="Adds a feature: login",
        key_files=("src/login.py", "src/auth.py"),
        stats=DiffStats(2, 40, 5, 35),
        files_changed=("src/login.py", "src/auth.py"),
    )


def _question_dict(qid, category):
    return {
        "id": qid,
        "question": f"Why {qid}?",
        "options": {"A": "one", "B": "two", "C": "three", "D": "four"},
        "correctAnswer": "C",
        "explanation": "Because.",
        "category": category,
        "relatedFiles": ["src/login.py"],
        "difficulty": "hard",
        "codeSnippet": {"code": "def login(): ...", "language": "python", "description": "entry point"},
    }


class TestMCQuestion:
    """MCQuestion 검증 테스트"""

    def test_from_dict(self):
        question = MCQuestion.from_dict(_question_dict("q_why_1", "why"))

        assert question.category == WHY
        assert question.correct_text == "three"
        assert question.code_snippet.language == "python"
        assert question.difficulty == "hard"

    def test_rejects_missing_option(self):
        with pytest.raises(ValueError):
            MCQuestion("q", "text", {"A": "1", "B": "2", "C": "3"}, "A", "", WHY)

    def test_rejects_invalid_answer(self):
        with pytest.raises(ValueError):
            make_question("q", correct="E")


class TestValidateQuestions:
    """계획 대비 문항 검증 테스트"""

    def test_valid_set(self, plan):
        questions = [
            make_question("q_why_1", WHY),
            make_question("q_how_1", HOW),
            make_question("q_impact_1", IMPACT),
        ]
        validate_questions(plan, questions)

    def test_wrong_count(self, plan):
        with pytest.raises(QuestionSetError, match="Expected 3 questions"):
            validate_questions(plan, [make_question("q_why_1", WHY)])

    def test_wrong_distribution(self, plan):
        questions = [
            make_question("q_why_1", WHY),
            make_question("q_why_2", WHY),
            make_question("q_impact_1", IMPACT),
        ]
        with pytest.raises(QuestionSetError, match="'why'"):
            validate_questions(plan, questions)

    def test_duplicate_ids(self, plan):
        questions = [
            make_question("q_x", WHY),
            make_question("q_x", HOW),
            make_question("q_impact_1", IMPACT),
        ]
        with pytest.raises(QuestionSetError, match="Duplicate"):
            validate_questions(plan, questions)

    def test_order_by_plan(self):
        questions = [
            make_question("q_impact_1", IMPACT),
            make_question("q_why_1", WHY),
            make_question("q_how_2", HOW),
            make_question("q_how_1", HOW),
        ]

        ordered = [q.id for q in order_by_plan(questions)]

        assert ordered == ["q_why_1", "q_how_2", "q_how_1", "q_impact_1"]


class TestStubQuestionGenerator:
    """Stub 생성기 테스트"""

    def test_matches_plan(self, plan, summary):
        questions = StubQuestionGenerator().generate(plan, summary)

        validate_questions(plan, questions)
        assert [q.id for q in questions] == ["q_why_1", "q_how_1", "q_impact_1"]
        assert questions[0].related_files == ["src/login.py"]
        assert questions[1].related_files == ["src/auth.py"]
        assert all(q.correct_answer == "A" for q in questions)

    def test_deterministic(self, plan, summary):
        generator = StubQuestionGenerator(correct_answer="D")
        first = generator.generate(plan, summary)
        second = generator.generate(plan, summary)

        assert [q.question for q in first] == [q.question for q in second]
        assert first[0].correct_answer == "D"

    def test_invalid_label(self):
        with pytest.raises(ValueError):
            StubQuestionGenerator(correct_answer="Z")


class TestFileQuestionGenerator:
    """문항 파일 생성기 테스트"""

    def test_json_list_is_reordered(self, tmp_path, plan, summary):
        path = tmp_path / "questions.json"
        path.write_text(json.dumps([
            _question_dict("q_impact_1", "impact"),
            _question_dict("q_why_1", "why"),
            _question_dict("q_how_1", "how"),
        ]), encoding="utf-8")

        questions = FileQuestionGenerator(path).generate(plan, summary)

        assert [q.id for q in questions] == ["q_why_1", "q_how_1", "q_impact_1"]

    def test_yaml_mapping(self, tmp_path, plan, summary):
        path = tmp_path / "questions.yaml"
        path.write_text(yaml.safe_dump({"questions": [
            _question_dict("q_why_1", "why"),
            _question_dict("q_how_1", "how"),
            _question_dict("q_impact_1", "impact"),
        ]}), encoding="utf-8")

        questions = FileQuestionGenerator(path).generate(plan, summary)

        assert len(questions) == 3
        assert questions[2].category == IMPACT

    def test_plan_mismatch(self, tmp_path, plan, summary):
        path = tmp_path / "questions.json"
        path.write_text(json.dumps([_question_dict("q_why_1", "why")]), encoding="utf-8")

        with pytest.raises(QuestionSetError):
            FileQuestionGenerator(path).generate(plan, summary)

    @pytest.mark.parametrize("content", ["{broken", '{"items": []}', '[{"id": "q"}]'])
    def test_invalid_files(self, tmp_path, plan, summary, content):
        path = tmp_path / "questions.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(QuestionSetError):
            FileQuestionGenerator(path).generate(plan, summary)

    def test_missing_file(self, tmp_path, plan, summary):
        with pytest.raises(QuestionSetError, match="not found"):
            FileQuestionGenerator(tmp_path / "nope.json").generate(plan, summary)


class TestGenerationPrompt:
    """생성 프롬프트 렌더링 테스트"""

    def test_prompt_contents(self, plan, summary):
        prompt = build_generation_prompt(plan, summary, raw_diff="+def login():\n+    pass\n")

        assert summary.overview in prompt
        assert "Inferred intent: Adds a feature: login" in prompt
        assert "Complexity score: 37/100" in prompt
        assert "Write exactly 3 questions" in prompt
        assert "- why: 1" in prompt
        assert "- what-if: 0" in prompt
        assert "  - src/auth.py" in prompt
        assert "+def login():" in prompt
        assert '"correctAnswer": "A|B|C|D"' in prompt

    def test_long_diff_is_truncated(self, plan, summary):
        prompt = build_generation_prompt(plan, summary, raw_diff="x" * 200, max_diff_chars=50)

        assert "x" * 50 in prompt
        assert "x" * 51 not in prompt
        assert "[diff truncated]" in prompt

    def test_custom_prompt_directory(self, tmp_path, plan, summary):
        (tmp_path / "question_generation.yaml").write_text(
            "system_prompt: SYSTEM\nhuman_prompt: 'count={question_count}'\n", encoding="utf-8"
        )

        prompt = build_generation_prompt(plan, summary, loader=PromptLoader(str(tmp_path)))

        assert prompt == "SYSTEM\n\ncount=3"

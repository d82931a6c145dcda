"""
공용 테스트 픽스처
"""
from pathlib import Path

import pytest
from git import Repo

from doi_quiz.core.quiz_models import ANSWER_LABELS, MCQuestion, QuestionCategory
from doi_quiz.utils.config import Config, DoiConfig


def make_question(qid, category=QuestionCategory.WHY, correct="A", related=None):
    """테스트용 4지선다 문항"""
    return MCQuestion(
        id=qid,
        question=f"What does {qid} check?",
        options={label: f"{qid} option {label}" for label in ANSWER_LABELS},
        correct_answer=correct,
        explanation=f"Because of {qid}.",
        category=category,
        related_files=related or ["src/app.py"],
    )


def commit_file(repo, relative_path, content, message):
    """파일을 쓰고 커밋"""
    path = Path(repo.working_dir) / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([str(path)])
    return repo.index.commit(message)


@pytest.fixture
def doi_config(tmp_path):
    """임시 VibeDebt 디렉토리를 쓰는 설정"""
    return DoiConfig(vibe_debt_path=tmp_path / "VibeDebt")


@pytest.fixture
def app_config(doi_config):
    config = Config()
    config.doi = doi_config
    return config


@pytest.fixture
def temp_repo(tmp_path):
    """main 브랜치에 초기 커밋이 있는 임시 Git 저장소"""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    repo = Repo.init(repo_dir)

    # 초기 설정
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    commit_file(repo, "src/app.py", "def main():\n    return 1\n", "initial commit")
    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def feature_repo(temp_repo):
    """feature/login 브랜치에 변경 커밋이 있는 저장소"""
    repo = temp_repo
    repo.git.checkout("-b", "feature/login")
    commit_file(
        repo,
        "src/login.py",
        "".join(f"line_{i} = {i}\n" for i in range(30)),
        "feat: add login module",
    )
    return repo

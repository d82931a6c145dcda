"""
Configuration Management Module

환경 변수 및 설정 파일을 관리하는 모듈
"""
import os
import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Dict, Any, List

from dotenv import load_dotenv

# 환경 변수 로드
load_dotenv()


def _env_int(key: str, default: int) -> int:
    """정수형 환경 변수 읽기 (잘못된 값이면 기본값)"""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class DoiConfig:
    """퀴즈 설정 (Planner 와 VibeDebtStore 에 명시적으로 전달됨)"""
    main_branch: Optional[str] = None
    min_questions: int = 2
    max_questions: int = 10
    vibe_debt_path: Path = field(default_factory=lambda: Path("./VibeDebt"))

    @classmethod
    def from_env(cls) -> 'DoiConfig':
        """환경 변수에서 설정 로드"""
        return cls(
            main_branch=os.getenv('DOI_MAIN_BRANCH') or None,
            min_questions=_env_int('DOI_MIN_QUESTIONS', 2),
            max_questions=_env_int('DOI_MAX_QUESTIONS', 10),
            vibe_debt_path=Path(os.getenv('DOI_VIBE_DEBT_PATH', './VibeDebt')),
        )

    def with_overrides(self, **overrides: Any) -> 'DoiConfig':
        """None 이 아닌 값만 덮어쓴 새 설정 반환"""
        values = {k: v for k, v in overrides.items() if v is not None}
        if 'vibe_debt_path' in values:
            values['vibe_debt_path'] = Path(values['vibe_debt_path'])
        return replace(self, **values)


@dataclass
class AppConfig:
    """애플리케이션 전체 설정"""
    log_level: str
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """환경 변수에서 설정 로드"""
        return cls(
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_file=os.getenv('LOG_FILE') or None,
        )


class Config:
    """통합 설정 관리 클래스"""

    def __init__(self, config_file: Optional[str] = None):
        """
        설정 초기화

        Args:
            config_file: 설정 파일 경로 (선택사항)
        """
        # 기본 환경 변수에서 로드
        self.doi = DoiConfig.from_env()
        self.app = AppConfig.from_env()

        # 설정 파일이 있으면 오버라이드
        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """설정 파일에서 설정 로드"""
        config_path = Path(config_file)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        self._update_from_dict(data)

    def _update_from_dict(self, data: Dict[str, Any]):
        """딕셔너리에서 설정 업데이트"""
        if 'doi' in data:
            known = {k: v for k, v in data['doi'].items() if hasattr(self.doi, k)}
            self.doi = self.doi.with_overrides(**known)

        if 'app' in data:
            for key, value in data['app'].items():
                if hasattr(self.app, key):
                    setattr(self.app, key, value)

    def validate(self) -> List[str]:
        """설정 유효성 검증"""
        errors = []

        if self.doi.min_questions < 1:
            errors.append("Minimum question count must be at least 1")
        if self.doi.max_questions < self.doi.min_questions:
            errors.append(
                f"Maximum question count ({self.doi.max_questions}) is lower than "
                f"minimum ({self.doi.min_questions})"
            )

        return errors

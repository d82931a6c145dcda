from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class ChangeType(str, Enum):
    """파일 변경 유형"""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class ChangeCategory(str, Enum):
    """diff 변경 카테고리 (선언 순서가 그룹 출력 순서)"""
    NEW_FEATURE = "new-feature"
    MODIFIED_LOGIC = "modified-logic"
    REFACTORING = "refactoring"
    DELETION = "deletion"
    CONFIGURATION = "configuration"
    DOCUMENTATION = "documentation"
    TESTING = "testing"


@dataclass(frozen=True)
class ChangedFile:
    path: str
    change_type: ChangeType = ChangeType.MODIFIED
    lines_added: int = 0
    lines_removed: int = 0
    new_path: Optional[str] = None  # rename 대상 경로

    def __post_init__(self):
        if self.lines_added < 0 or self.lines_removed < 0:
            raise ValueError(f"Negative line counts for {self.path}")
        if self.change_type == ChangeType.RENAMED and not self.new_path:
            raise ValueError(f"Renamed file {self.path} has no new path")

    @property
    def total_lines(self) -> int:
        return self.lines_added + self.lines_removed


@dataclass(frozen=True)
class DiffStats:
    files_changed: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    net_change: int = 0

    @property
    def total_lines(self) -> int:
        return self.lines_added + self.lines_removed


@dataclass(frozen=True)
class BranchCommit:
    sha: str
    message: str


@dataclass
class GitContext:
    current_branch: str
    default_branch: str
    merge_base: str
    has_changes: bool
    error: Optional[str] = None


@dataclass
class GitDiff:
    context: GitContext
    raw_diff: str
    files: List[ChangedFile]
    stats: DiffStats
    commits: List[BranchCommit] = field(default_factory=list)


@dataclass(frozen=True)
class CategorizedChange:
    category: ChangeCategory
    description: str
    files: Tuple[str, ...]

    def __post_init__(self):
        if not self.files:
            raise ValueError(f"Change group '{self.category.value}' has no files")


@dataclass(frozen=True)
class DiffSummary:
    overview: str
    changes: Tuple[CategorizedChange, ...]
    inferred_intent: str
    key_files: Tuple[str, ...]
    stats: DiffStats
    files_changed: Tuple[str, ...]

    def has_category(self, *categories: ChangeCategory) -> bool:
        return any(change.category in categories for change in self.changes)

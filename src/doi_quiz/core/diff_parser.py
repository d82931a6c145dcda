"""
Diff Parser Module - git diff 출력 파싱

git diff --numstat / --name-status / git log --oneline 출력을
ChangedFile, BranchCommit 구조로 변환합니다. 판단 로직은 없고 파싱만 합니다.
잘못된 라인은 전체 파싱을 중단하지 않고 건너뜁니다.
"""
import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from .vcs_models import (
    BranchCommit,
    ChangedFile,
    ChangeType,
    DiffStats,
    GitContext,
    GitDiff,
)
from doi_quiz.utils.logger import get_logger

logger = get_logger(__name__)

# numstat 경로의 rename 표기: "src/{old => new}/file.py" 또는 "old.py => new.py"
_BRACE_RENAME = re.compile(r'\{([^{}]*) => ([^{}]*)\}')
_PLAIN_RENAME = ' => '


@dataclass(frozen=True)
class NameStatusEntry:
    """name-status 한 줄의 결과"""
    change_type: ChangeType
    new_path: Optional[str] = None


def _lines(output: str) -> List[str]:
    return [line for line in (output or "").strip().split('\n') if line.strip()]


def _collapse(path: str) -> str:
    # "{ => sub}/x" 처럼 한쪽이 비면 "//" 가 생김
    return re.sub(r'/{2,}', '/', path).lstrip('/')


def _split_rename(path: str) -> Tuple[str, Optional[str]]:
    """numstat 의 rename/copy 표기에서 (이전 경로, 새 경로) 추출"""
    if _BRACE_RENAME.search(path):
        old = _BRACE_RENAME.sub(lambda m: m.group(1), path)
        new = _BRACE_RENAME.sub(lambda m: m.group(2), path)
        return _collapse(old), _collapse(new)
    if _PLAIN_RENAME in path:
        old, new = path.split(_PLAIN_RENAME, 1)
        return old, new
    return path, None


def parse_numstat(numstat_output: str) -> List[ChangedFile]:
    """
    git diff --numstat 출력 파싱

    형식: "added<TAB>removed<TAB>path" (바이너리 파일은 "-<TAB>-<TAB>path")
    numstat 만으로는 변경 유형을 알 수 없으므로 모두 modified 로 둡니다.
    rename/copy 표기는 이전 경로를 path, 새 경로를 new_path 에 둡니다.

    Args:
        numstat_output: git diff --numstat 원본 출력

    Returns:
        라인 수가 채워진 ChangedFile 목록
    """
    files = []

    for line in _lines(numstat_output):
        parts = line.split('\t')
        if len(parts) < 3:
            logger.debug(f"Skipping malformed numstat line: {line!r}")
            continue

        try:
            lines_added = int(parts[0]) if parts[0] != '-' else 0
            lines_removed = int(parts[1]) if parts[1] != '-' else 0
        except ValueError:
            logger.debug(f"Skipping numstat line with invalid counts: {line!r}")
            continue

        if lines_added < 0 or lines_removed < 0:
            logger.debug(f"Skipping numstat line with negative counts: {line!r}")
            continue

        path, new_path = _split_rename('\t'.join(parts[2:]))
        files.append(ChangedFile(
            path=path,
            new_path=new_path,
            change_type=ChangeType.MODIFIED,
            lines_added=lines_added,
            lines_removed=lines_removed,
        ))

    return files


def parse_name_status(name_status_output: str) -> Dict[str, NameStatusEntry]:
    """
    git diff --name-status 출력 파싱

    형식: "STATUS<TAB>path" 또는 rename 의 경우 "R100<TAB>old<TAB>new".
    rename 은 이전 경로를 키로 하고 new_path 에 새 경로를 둡니다.
    copy ("C075<TAB>src<TAB>dst") 는 사본 경로를 키로 하는 added 입니다.
    알 수 없는 상태 코드는 modified 로 처리합니다.

    Args:
        name_status_output: git diff --name-status 원본 출력

    Returns:
        경로 → NameStatusEntry 매핑 (출력 순서 유지)
    """
    result: Dict[str, NameStatusEntry] = {}

    for line in _lines(name_status_output):
        parts = line.split('\t')
        status = parts[0].strip()

        if len(parts) < 2 or not status:
            logger.debug(f"Skipping malformed name-status line: {line!r}")
            continue

        if status.startswith('R'):
            if len(parts) < 3:
                logger.debug(f"Skipping rename line without new path: {line!r}")
                continue
            old_path, new_path = parts[1], parts[2]
            result[old_path] = NameStatusEntry(ChangeType.RENAMED, new_path)
        elif status.startswith('C'):
            if len(parts) < 3:
                logger.debug(f"Skipping copy line without new path: {line!r}")
                continue
            result[parts[2]] = NameStatusEntry(ChangeType.ADDED)
        elif status == 'A':
            result[parts[1]] = NameStatusEntry(ChangeType.ADDED)
        elif status == 'D':
            result[parts[1]] = NameStatusEntry(ChangeType.DELETED)
        else:
            # M 및 그 외 상태 코드
            result[parts[1]] = NameStatusEntry(ChangeType.MODIFIED)

    return result


def parse_commit_log(log_output: str) -> List[BranchCommit]:
    """
    git log --oneline 출력 파싱

    형식: "sha message". 공백이 없는 라인은 버립니다.
    """
    commits = []

    for line in _lines(log_output):
        line = line.strip()
        space_index = line.find(' ')
        if space_index > 0:
            commits.append(BranchCommit(
                sha=line[:space_index],
                message=line[space_index + 1:],
            ))
        else:
            logger.debug(f"Skipping commit line without message: {line!r}")

    return commits


def merge_file_data(
    numstat_files: List[ChangedFile],
    name_status: Dict[str, NameStatusEntry],
) -> List[ChangedFile]:
    """
    numstat 결과와 name-status 결과 병합

    라인 수는 numstat, 변경 유형(및 rename 의 new_path)은 name-status 를 따릅니다.
    name-status 에만 있는 경로는 0/0 으로 추가합니다.
    """
    merged = []
    seen = set()

    for file in numstat_files:
        entry = name_status.get(file.path)
        is_rename = entry is not None and entry.new_path == file.new_path
        if file.new_path and not is_rename and file.new_path in name_status:
            # copy: numstat 은 원본 경로, name-status 는 사본 경로 기준
            file = replace(file, path=file.new_path)
            entry = name_status[file.path]

        seen.add(file.path)
        if entry:
            merged.append(replace(
                file,
                change_type=entry.change_type,
                new_path=entry.new_path,
            ))
        else:
            merged.append(replace(file, new_path=None))

    for path, entry in name_status.items():
        if path in seen:
            continue
        logger.debug(f"File {path} missing from numstat, counting 0/0 lines")
        merged.append(ChangedFile(
            path=path,
            change_type=entry.change_type,
            new_path=entry.new_path,
        ))

    return merged


def calculate_stats(files: Iterable[ChangedFile]) -> DiffStats:
    """변경 파일 목록에서 통계 집계"""
    files = list(files)
    lines_added = sum(f.lines_added for f in files)
    lines_removed = sum(f.lines_removed for f in files)

    return DiffStats(
        files_changed=len(files),
        lines_added=lines_added,
        lines_removed=lines_removed,
        net_change=lines_added - lines_removed,
    )


def extract_diff(
    context: GitContext,
    numstat_output: str,
    name_status_output: str,
    commit_log_output: str,
    raw_diff: str = "",
) -> GitDiff:
    """세 가지 git 출력을 하나의 GitDiff 로 조합"""
    files = merge_file_data(
        parse_numstat(numstat_output),
        parse_name_status(name_status_output),
    )
    stats = calculate_stats(files)
    commits = parse_commit_log(commit_log_output)

    logger.info(
        f"Extracted {stats.files_changed} files "
        f"(+{stats.lines_added}/-{stats.lines_removed}) across {len(commits)} commits"
    )

    return GitDiff(
        context=context,
        raw_diff=raw_diff,
        files=files,
        stats=stats,
        commits=commits,
    )

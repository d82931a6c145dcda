"""
doi-quiz CLI Interface

브랜치 변경 사항 이해도 퀴즈(Did I Own It?)의 명령줄 인터페이스
"""
import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from doi_quiz.core.exceptions import DoiError, GitContextError, QuestionSetError, VibeDebtPersistenceError
from doi_quiz.core.git_analyzer import GitAnalyzer
from doi_quiz.core.question_generator import FileQuestionGenerator, StubQuestionGenerator
from doi_quiz.core.quiz_models import QuestionCategory
from doi_quiz.core.vibe_debt import RemediationAction
from doi_quiz.main import DoiQuiz
from doi_quiz.ui.console import RichPrompter, ScriptedPrompter
from doi_quiz.ui.presentation import format_progress, results_summary, results_table
from doi_quiz.utils.config import Config
from doi_quiz.utils.logger import setup_logger

# Rich console for pretty output
console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")
    sys.exit(1)


def _context_failure(error: GitContextError) -> None:
    _fail(f"{error} [dim]({error.precondition})[/dim]")


def _prompter(answers: Optional[str]):
    if answers is None:
        return RichPrompter(console)
    return ScriptedPrompter(a.strip() for a in answers.split(',') if a.strip())


@click.group()
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
    default=None,
    help='Set the logging level'
)
@click.option(
    '--config',
    type=click.Path(exists=True),
    help='Path to configuration file'
)
@click.option('--repo', default='.', type=click.Path(file_okay=False), help='Git repository path')
@click.option('--main-branch', default=None, help='Base branch to compare against')
@click.option('--min-questions', type=int, default=None, help='Minimum number of questions')
@click.option('--max-questions', type=int, default=None, help='Maximum number of questions')
@click.option('--vibe-debt-path', type=click.Path(file_okay=False), default=None,
              help='Directory for vibe debt records')
@click.pass_context
def cli(ctx, log_level, config, repo, main_branch, min_questions, max_questions, vibe_debt_path):
    """doi - Did I Own It? 브랜치 변경 사항 이해도 퀴즈"""
    # 설정 로드
    ctx.ensure_object(dict)
    cfg = Config(config_file=config) if config else Config()
    cfg.doi = cfg.doi.with_overrides(
        main_branch=main_branch,
        min_questions=min_questions,
        max_questions=max_questions,
        vibe_debt_path=vibe_debt_path,
    )

    # 로깅 설정
    setup_logger(log_level or cfg.app.log_level, cfg.app.log_file)

    problems = cfg.validate()
    if problems:
        _fail("; ".join(problems))

    ctx.obj['config'] = cfg
    ctx.obj['repo'] = repo


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the analysis as JSON')
@click.pass_context
def analyze(ctx, as_json):
    """현재 브랜치 변경 사항 분석 및 문항 계획 출력"""
    doi = DoiQuiz(ctx.obj['config'])
    try:
        analysis = doi.analyze(ctx.obj['repo'])
    except GitContextError as e:
        _context_failure(e)

    if as_json:
        click.echo(json.dumps(analysis.to_summary_dict(), indent=2, ensure_ascii=False))
        return

    summary = analysis.summary
    console.print(f"\n[bold]{summary.overview}[/bold]")
    console.print(f"Intent: {summary.inferred_intent}")
    console.print(f"Complexity: {analysis.complexity}/100")

    table = Table(title="Changes by category")
    table.add_column("Category", style="cyan")
    table.add_column("Files", style="yellow")
    for change in summary.changes:
        table.add_row(change.category.value, "\n".join(change.files))
    console.print(table)

    if summary.key_files:
        console.print("Key files: " + ", ".join(summary.key_files))

    plan = analysis.plan
    console.print(
        f"\n[bold]{plan.recommended_count} questions[/bold]: "
        + ", ".join(
            f"{c.value}={plan.category_distribution.get(c, 0)}"
            for c in QuestionCategory
        )
    )


@cli.command()
@click.pass_context
def prompt(ctx):
    """외부 문항 생성기에 넘길 프롬프트 출력"""
    doi = DoiQuiz(ctx.obj['config'])
    try:
        analysis = doi.analyze(ctx.obj['repo'])
    except GitContextError as e:
        _context_failure(e)
    click.echo(doi.generation_prompt(analysis))


@cli.command()
@click.option('--questions', 'questions_file', type=click.Path(exists=True, dir_okay=False),
              help='Question file (JSON/YAML) written by an external generator')
@click.option('--stub', is_flag=True, help='Use synthetic placeholder questions')
@click.option('--answers', default=None,
              help='Comma-separated answers for non-interactive runs (A-D, "show me", "skip all")')
@click.pass_context
def quiz(ctx, questions_file, stub, answers):
    """퀴즈 실행 및 vibe debt 저장"""
    if bool(questions_file) == bool(stub):
        _fail("Choose exactly one of --questions FILE or --stub")

    generator = StubQuestionGenerator() if stub else FileQuestionGenerator(questions_file)
    doi = DoiQuiz(ctx.obj['config'])

    try:
        result = doi.run(ctx.obj['repo'], generator, _prompter(answers))
    except GitContextError as e:
        _context_failure(e)
    except QuestionSetError as e:
        _fail(str(e))

    console.print(format_progress(result.stats))
    console.print(results_table(result.stats, result.analysis.branch_name))
    console.print(results_summary(
        result.stats, str(result.record_path) if result.record_path else None
    ))

    if result.errors:
        for error in result.errors:
            console.print(f"[red]✗[/red] {error}")
        sys.exit(1)


def _default_record(doi: DoiQuiz, repo: str) -> Optional[Path]:
    """현재 브랜치의 최신 레코드, 없으면 전체 중 최신 레코드"""
    try:
        branch = GitAnalyzer(repo).get_current_branch()
    except GitContextError:
        branch = ""

    if branch:
        candidates = doi.store.find_for_branch(branch)
        if candidates:
            return candidates[0]

    records = doi.store.list_records()
    return records[0] if records else None


@cli.command()
@click.argument('record_file', required=False, type=click.Path(dir_okay=False))
@click.option('--answers', default=None, help='Comma-separated answers for non-interactive runs')
@click.pass_context
def review(ctx, record_file, answers):
    """저장된 vibe debt 복습"""
    doi = DoiQuiz(ctx.obj['config'])
    path = Path(record_file) if record_file else _default_record(doi, ctx.obj['repo'])
    if path is None:
        console.print("[green]✓[/green] No vibe debt to review.")
        return

    try:
        result = doi.review(path, _prompter(answers))
    except DoiError as e:
        _fail(str(e))

    outcome = result.outcome
    if outcome.action == RemediationAction.DELETED:
        console.print(f"[green]✓[/green] All vibe debt resolved. Removed {outcome.path}")
    elif outcome.action == RemediationAction.REWRITTEN:
        console.print(
            f"Resolved {outcome.resolved}, {outcome.remaining} remaining in {outcome.path}"
        )
    else:
        console.print(f"No questions resolved. {outcome.remaining} remaining in {outcome.path}")


@cli.command()
@click.pass_context
def debt(ctx):
    """저장된 vibe debt 레코드 목록"""
    doi = DoiQuiz(ctx.obj['config'])
    paths = doi.store.list_records()
    if not paths:
        console.print(f"No vibe debt records in {doi.store.directory}")
        return

    table = Table(title="Vibe Debt")
    table.add_column("Branch", style="cyan", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Questions", justify="right")
    table.add_column("Debt", justify="right", style="yellow")
    table.add_column("File", style="dim", overflow="fold")

    for path in paths:
        try:
            record = doi.store.load(path)
        except VibeDebtPersistenceError as e:
            table.add_row("?", "?", "-", "-", f"{path} ({e})")
            continue
        table.add_row(
            record.branch_name,
            record.date,
            str(len(record.vibe_debt)),
            f"{record.stats.vibe_debt_percent}%",
            str(path),
        )

    console.print(table)


@cli.command()
@click.pass_context
def check_config(ctx):
    """환경 설정 확인"""
    cfg: Config = ctx.obj['config']
    console.print("\n[bold]환경 설정 확인[/bold]")

    table = Table(title="설정 상태")
    table.add_column("변수명", style="cyan")
    table.add_column("값", style="yellow")

    table.add_row("DOI_MAIN_BRANCH", cfg.doi.main_branch or "(auto-detect)")
    table.add_row("DOI_MIN_QUESTIONS", str(cfg.doi.min_questions))
    table.add_row("DOI_MAX_QUESTIONS", str(cfg.doi.max_questions))
    table.add_row("DOI_VIBE_DEBT_PATH", str(cfg.doi.vibe_debt_path))
    table.add_row("LOG_LEVEL", cfg.app.log_level)
    table.add_row("LOG_FILE", cfg.app.log_file or "미설정")

    console.print(table)
    console.print("\n[green]✓[/green] 설정이 올바릅니다.")


def main():
    """메인 엔트리포인트"""
    cli()


if __name__ == "__main__":
    main()

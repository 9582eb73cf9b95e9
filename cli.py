import asyncio
from typing import Any, Callable, Dict, Optional, Tuple, Type

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

# Import tasks and providers so they register themselves
import core.llm.providers  # noqa: F401
import core.tasks  # noqa: F401

from config.logic import apply_environment, apply_model_override, load_and_merge_configs, load_environment
from config.models import Config, TaskOptions
from core.contracts.models import TaskResult
from core.llm.providers.gemini import GeminiCLIProvider
from core.registry import task_registry
from utils.errors import ConfigError, GeminiToolsException, OptionsError
from utils.git import ensure_git_repository, get_current_branch_name
from utils.logger import logger, setup_logger
from utils.shell import set_default_timeout

INPUT_TASKS = ("module-review", "unit-test", "e2e-test", "doc", "refactor")

console = Console(stderr=True)


def task_options(func: Callable) -> Callable:
    """Adds the options shared by every task command."""
    decorators = [
        click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output file for the result"),
        click.option("-m", "--model", type=str, help="Model name passed to the Gemini CLI (overrides GEMINI_MODEL)"),
        click.option("-i", "--ignore", "ignores", multiple=True, help="Glob pattern of files to skip; repeatable"),
        click.option("-p", "--prompt", "prompts", multiple=True, help="Extra instruction file; repeatable"),
        click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), help="Path to a custom config file"),
        click.option("--dry-run", is_flag=True, default=False, help="Print the prompt instead of calling the Gemini CLI"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_options(options_model: Type[TaskOptions], config: Config, ignores: Tuple[str, ...],
                  prompts: Tuple[str, ...], **fields: Any) -> TaskOptions:
    """
    Validates command options, merging in the configured default ignores and prompts.

    Raises:
        OptionsError: If the options fail validation.
    """
    try:
        return options_model(
            ignores=tuple(config.defaults.ignores) + tuple(ignores),
            additional_prompts=tuple(config.defaults.additional_prompts) + tuple(prompts),
            **fields,
        )
    except ValidationError as e:
        raise OptionsError(f"Invalid options: {e}") from e


def load_runtime_config(ctx: click.Context, config_path: Optional[str], require_env: bool = True) -> Config:
    """Loads the merged config, applies the environment and configures logging and shell defaults."""
    config = load_and_merge_configs(custom_config_path=config_path)
    if config.log.file:
        setup_logger(log_level="DEBUG" if ctx.obj["verbose"] else "INFO", log_file=config.log.file)
    set_default_timeout(config.shell.timeout_sec)
    if require_env:
        return apply_environment(config, load_environment())
    return apply_model_override(config)


def run_task(ctx: click.Context, task_name: str, config_path: Optional[str], dry_run: bool,
             ignores: Tuple[str, ...], prompts: Tuple[str, ...],
             resolve_fields: Callable[[Config], Dict[str, Any]]) -> None:
    """
    Builds and runs a task, reporting failures with exit code 1.
    """
    verbose = ctx.obj.get("verbose", False)
    try:
        config = load_runtime_config(ctx, config_path, require_env=not dry_run)
        task_cls = task_registry.get(task_name)
        options = build_options(task_cls.options_model, config, ignores, prompts, **resolve_fields(config))
        task = task_cls(options, config, dry_run=dry_run)

        with console.status(f"[bold green]Running {task_name}...[/bold green]"):
            result: TaskResult = asyncio.run(task.run())

        if dry_run:
            click.echo(result.output)
            console.print("\n[yellow]Dry run: the Gemini CLI was not called.[/yellow]")
        else:
            console.print(f"[bold green]✅ {task_name} finished.[/bold green] Result: {result.output_file}")

    except GeminiToolsException as e:
        logger.opt(exception=verbose).error(f"{task_name} failed: {e}")
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        ctx.exit(1)
    except Exception as e:
        logger.opt(exception=True).error(f"Unexpected error in {task_name}: {e}")
        console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(e))}")
        ctx.exit(1)


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable debug logging",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    Code review, documentation and test generation powered by the Gemini CLI.
    """
    setup_logger(log_level="DEBUG" if verbose else "INFO")
    ctx.obj = {"verbose": verbose}


@cli.command("pr-review")
@click.option("-s", "--source", "source_branch", type=str, help="Branch with the changes (default: current branch)")
@click.option("-t", "--target", "target_branch", type=str, help="Branch the changes merge into (default from config: main)")
@task_options
@click.pass_context
def pr_review(ctx, source_branch: Optional[str], target_branch: Optional[str], output: Optional[str],
              model: Optional[str], ignores: Tuple[str, ...], prompts: Tuple[str, ...],
              config_path: Optional[str], dry_run: bool):
    """
    Review the changes of a source branch against a target branch.
    """
    def resolve_fields(config: Config) -> Dict[str, Any]:
        source = source_branch
        if not source:
            ensure_git_repository()
            source = get_current_branch_name()
            logger.info(f"Using current branch as source: {source}")
        return {
            "source_branch": source,
            "target_branch": target_branch or config.defaults.target_branch,
            "output": output,
            "model": model,
        }

    run_task(ctx, "pr-review", config_path, dry_run, ignores, prompts, resolve_fields)


def _register_input_command(task_name: str) -> None:
    task_cls = task_registry.get(task_name)

    @cli.command(task_name, help=f"{task_cls.description}\n\nINPUT is a file or a directory.")
    @click.argument("input_path", required=False, metavar="INPUT")
    @task_options
    @click.pass_context
    def command(ctx, input_path: Optional[str], output: Optional[str], model: Optional[str],
                ignores: Tuple[str, ...], prompts: Tuple[str, ...], config_path: Optional[str], dry_run: bool):
        def resolve_fields(config: Config) -> Dict[str, Any]:
            return {"input": input_path, "output": output, "model": model}

        run_task(ctx, task_name, config_path, dry_run, ignores, prompts, resolve_fields)


for _task_name in INPUT_TASKS:
    _register_input_command(_task_name)


@cli.command("check")
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), help="Path to a custom config file")
@click.pass_context
def check(ctx, config_path: Optional[str]):
    """
    Check that the Gemini CLI is installed and the environment is valid.
    """
    ok = True
    try:
        config = load_runtime_config(ctx, config_path, require_env=False)
    except GeminiToolsException as e:
        console.print(f"[bold red]Config:[/bold red] {escape(str(e))}")
        ctx.exit(1)

    try:
        env = load_environment()
        model_note = f", GEMINI_MODEL={env.GEMINI_MODEL}" if env.GEMINI_MODEL else ""
        console.print(f"[green]Environment:[/green] GEMINI_API_KEY is set{model_note}")
    except ConfigError as e:
        ok = False
        console.print(f"[bold red]Environment:[/bold red] {escape(str(e))}")

    try:
        version = GeminiCLIProvider(config.gemini).check_availability()
        console.print(f"[green]Gemini CLI:[/green] {config.gemini.binary} {version}")
    except GeminiToolsException as e:
        ok = False
        console.print(f"[bold red]Gemini CLI:[/bold red] {escape(str(e))}")

    if not ok:
        ctx.exit(1)


if __name__ == "__main__":
    cli()

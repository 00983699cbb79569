"""Task commands: create, analyze, extend and clarification answers."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import click
import pydantic
import yaml
from rich.table import Table

from davemode.cli.main import build_orchestrator, console, echo_json, fail
from davemode.errors import DaveModeError
from davemode.models.payloads import ProjectContext, Requirements, SourceFile

SKIPPED_DIRS = {".git", "node_modules", "__pycache__", ".venv", "dist", "build"}


def load_document(path: Path) -> Dict[str, Any]:
    """Read a YAML or JSON mapping from disk."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise click.BadParameter(f"{path} is not valid YAML/JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a mapping")
    return data


def load_requirements(path: Optional[Path]) -> Requirements:
    if path is None:
        return Requirements()
    try:
        return Requirements.model_validate(load_document(path))
    except pydantic.ValidationError as exc:
        raise click.BadParameter(f"Invalid requirements in {path}: {exc}") from exc


def load_source_files(paths: Iterable[Path]) -> List[SourceFile]:
    """Read files, descending into directories and skipping VCS and build output."""
    files: List[SourceFile] = []
    for root in paths:
        candidates = [root] if root.is_file() else sorted(p for p in root.rglob("*") if p.is_file())
        for path in candidates:
            if any(part in SKIPPED_DIRS for part in path.parts):
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                continue
            rel = path.relative_to(root) if root.is_dir() else Path(path.name)
            files.append(SourceFile(path=rel.as_posix(), name=path.name, content=content))
    return files


def print_result(ctx, result: Dict[str, Any]) -> None:
    if ctx.obj.get("JSON"):
        echo_json(result)
        return

    if result.get("needs_clarification"):
        console.print(f"[yellow]Clarification needed[/yellow] (interaction [cyan]{result['interaction_id']}[/cyan], "
                      f"confidence {result['confidence']:.2f})")
        for index, question in enumerate(result["questions"], start=1):
            console.print(f"  {index}. {question}")
        console.print(f"Answer with: davemode clarify answer {result['interaction_id']} -a \"...\" -a \"...\"")
        return

    if "summary" in result:
        summary = result["summary"]
        console.print(f"[green]Analysed {summary['total_files']} files[/green]: "
                      f"{summary['total_issues']} issues in {summary['files_with_issues']} files")
        table = Table(title="Recommendations")
        table.add_column("Type", style="cyan")
        table.add_column("Priority", style="magenta")
        table.add_column("Effort")
        table.add_column("Description")
        for rec in result["recommendations"]:
            table.add_row(rec["type"], rec["priority"], rec["estimated_effort"], rec["description"])
        console.print(table)
        return

    validation = result.get("validation") or {}
    if validation.get("skipped"):
        console.print("[yellow]Sandbox not configured; project was not validated[/yellow]")
    elif validation.get("success"):
        console.print("[green]Validation passed[/green]")
    else:
        console.print("[red]Validation failed[/red]")
        for error in validation.get("errors", []):
            console.print(f"  - {error}")

    if "project" in result:
        project = result["project"]
        console.print(f"Project [cyan]{project['name']}[/cyan] ({project['type']}), "
                      f"{len(project['files'])} files, id {result['project_id']}")
    else:
        console.print(f"{len(result.get('new_files', []))} new files, "
                      f"{len(result.get('modified_files', []))} modified files")


@click.command()
@click.option("--requirements", "-r", "requirements_path", type=click.Path(exists=True, path_type=Path),
              help="YAML/JSON file with project requirements")
@click.pass_context
def create(ctx, requirements_path):
    """Create a new program from requirements."""
    requirements = load_requirements(requirements_path)
    try:
        result = build_orchestrator().create_program(requirements)
    except DaveModeError as exc:
        fail(exc)
        return
    print_result(ctx, result)


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--focus", help="Analysis focus (performance, security, code quality, ...)")
@click.option("--concerns", help="Specific issues or concerns")
@click.option("--goal", help="What the analysis should achieve")
@click.pass_context
def analyze(ctx, paths, focus, concerns, goal):
    """Analyze existing code."""
    files = load_source_files(paths)
    context = ProjectContext(analysis_focus=focus, concerns=concerns, analysis_goal=goal)
    try:
        result = build_orchestrator().analyze_existing_code(files, context)
    except DaveModeError as exc:
        fail(exc)
        return
    print_result(ctx, result)


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--requirements", "-r", "requirements_path", type=click.Path(exists=True, path_type=Path),
              help="YAML/JSON file with the features to add")
@click.option("--type", "project_type", help="Project type (web-app, api, mobile-app)")
@click.pass_context
def extend(ctx, paths, requirements_path, project_type):
    """Extend an existing project with new features."""
    files = load_source_files(paths)
    requirements = load_requirements(requirements_path)
    try:
        result = build_orchestrator().extend_existing_project(files, requirements, ProjectContext(type=project_type))
    except DaveModeError as exc:
        fail(exc)
        return
    print_result(ctx, result)


@click.group()
def clarify():
    """Clarification commands."""
    pass


@clarify.command("answer")
@click.argument("interaction_id")
@click.option("--answer", "-a", "answers", multiple=True, help="Answer, in question order (repeatable)")
@click.pass_context
def clarify_answer(ctx, interaction_id, answers):
    """Answer the questions of a pending interaction."""
    try:
        result = build_orchestrator().submit_clarification_response(interaction_id, list(answers))
    except DaveModeError as exc:
        fail(exc)
        return
    print_result(ctx, result)


@clarify.command("history")
@click.argument("project_type")
@click.pass_context
def clarify_history(ctx, project_type):
    """Show answered creation clarifications for a project type."""
    try:
        entries = build_orchestrator().get_clarification_history(project_type)
    except DaveModeError as exc:
        fail(exc)
        return

    if ctx.obj.get("JSON"):
        echo_json([
            {
                "interaction_id": e.interaction_id,
                "questions": e.questions,
                "responses": e.responses,
                "timestamp": e.timestamp,
            }
            for e in entries
        ])
        return

    if not entries:
        console.print("No clarifications found.")
        return
    table = Table(title=f"Clarifications for {project_type}")
    table.add_column("Interaction", style="cyan")
    table.add_column("Question")
    table.add_column("Answer", style="green")
    for entry in entries:
        for question, answer in zip(entry.questions, entry.responses):
            table.add_row(entry.interaction_id, question, answer or "")
    console.print(table)

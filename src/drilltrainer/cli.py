from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core import feature_flags
from .core.errors import GraphError
from .core.pathfinding import find_best_path, find_max_score_path, max_total_score
from .core.validation import iter_graph_errors, lint
from .data.content_loader import ContentLoaderConfig, DrillDocument, DrillRepository, default_directory
from .engine_play import run_play

logger = logging.getLogger(__name__)


def _repository(args: argparse.Namespace) -> DrillRepository:
    if args.content_dir:
        return DrillRepository(ContentLoaderConfig(directory=Path(args.content_dir)))
    return DrillRepository()


def _cmd_list(args: argparse.Namespace, console: Console) -> int:
    repo = _repository(args)
    table = Table(title="Drills", show_header=True, header_style="bold blue")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Difficulty")
    table.add_column("Duration")
    table.add_column("Nodes", justify="right")
    for drill in repo.all():
        table.add_row(drill.id, escape(drill.title), drill.difficulty, drill.duration, str(len(drill.graph.nodes)))
    console.print(table)
    return 0


def _validate_file(path: Path, console: Console) -> bool:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        drill = DrillDocument.model_validate(data).to_drill()
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        console.print(f"[red]✗ {escape(str(path))}[/]: {escape(str(exc))}")
        return False

    errors: list[GraphError] = list(iter_graph_errors(drill.graph))
    if errors:
        console.print(f"[red]✗ {escape(str(path))}[/] ({drill.id}): {len(errors)} error(s)")
        for error in errors:
            console.print(f"  [red]{type(error).__name__}[/]: {escape(str(error))}")
        return False

    console.print(f"[green]✓ {escape(str(path))}[/] ({drill.id})")
    for warning in lint(drill.graph):
        console.print(f"  [yellow]warning[/]: {escape(warning)}")
    return True


def _cmd_validate(args: argparse.Namespace, console: Console) -> int:
    if args.paths:
        paths = [Path(p) for p in args.paths]
    else:
        directory = _repository_directory(args)
        paths = sorted(directory.glob("*.json"))
    logger.info("Validating %d drill file(s)", len(paths))
    results = [_validate_file(path, console) for path in paths]
    return 0 if all(results) else 1


def _repository_directory(args: argparse.Namespace) -> Path:
    if args.content_dir:
        return Path(args.content_dir)
    return default_directory()


def _cmd_path(args: argparse.Namespace, console: Console) -> int:
    drill = _repository(args).get(args.drill)
    graph = drill.graph
    steps = find_max_score_path(graph) if args.global_optimum else find_best_path(graph)
    kind = "Highest-scoring path" if args.global_optimum else "Greedy best path"
    table = Table(title=f"{escape(drill.title)}: {kind}", show_header=True, header_style="bold blue")
    table.add_column("#", justify="right")
    table.add_column("Node", style="cyan")
    table.add_column("Choice", overflow="fold")
    table.add_column("XP", justify="right")
    total = 0
    for i, step in enumerate(steps, 1):
        if step.choice_text is None:
            table.add_row(str(i), step.node_id, "[dim](ending)[/]", "")
            continue
        total += step.xp_delta or 0
        table.add_row(str(i), step.node_id, escape(step.choice_text), f"{step.xp_delta:+d}")
    console.print(table)
    best = max_total_score(graph)
    console.print(f"Path total: {total} XP • declared max: {graph.max_possible_score} • best achievable: {best}")
    return 0


def _cmd_play(args: argparse.Namespace, _console: Console) -> int:
    run_play(args.drill, repository=_repository(args), no_color=args.no_color)
    return 0


def _add_play_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("drill", help="Drill id, e.g. fire")
    p.add_argument("--no-color", action="store_true", help="Disable colored output (default is colored)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="drill-trainer", description="Branching-scenario safety drills (CLI)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    parser.add_argument("--content-dir", default=None, help="Directory of drill JSON files (default: bundled drills)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List available drills").set_defaults(handler=_cmd_list)

    validate = sub.add_parser("validate", help="Check drill files for structural errors")
    validate.add_argument("paths", nargs="*", help="Drill JSON files (default: every drill in the content directory)")
    validate.set_defaults(handler=_cmd_validate)

    path = sub.add_parser("path", help="Show the reference path through a drill")
    path.add_argument("drill", help="Drill id, e.g. fire")
    path.add_argument(
        "--global",
        dest="global_optimum",
        action="store_true",
        help="Show the highest-scoring path instead of the greedy one",
    )
    path.set_defaults(handler=_cmd_path)

    play = sub.add_parser("play", help="Play a drill interactively")
    _add_play_args(play)
    play.set_defaults(handler=_cmd_play)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    logger.debug("Feature flags", extra={"flags": sorted(feature_flags.enabled_flags())})

    console = Console(force_terminal=False, color_system=None) if getattr(args, "no_color", False) else Console()
    try:
        return args.handler(args, console)
    except KeyError as exc:
        console.print(f"[red]{escape(str(exc.args[0]) if exc.args else str(exc))}[/]")
        return 2
    except (ValidationError, GraphError) as exc:
        console.print(f"[red]Invalid drill content[/]: {escape(str(exc))}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

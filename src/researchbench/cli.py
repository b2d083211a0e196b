#!/usr/bin/env python3
"""researchbench CLI for running benchmarks and inspecting the stores."""

import argparse
import logging
import sys

import questionary
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError
from rich.console import Console
from rich.markup import escape

from researchbench import db
from researchbench.benchmark import BenchmarkError, BenchmarkOptions, run_benchmarks
from researchbench.benchmark.report import build_table, write_json
from researchbench.config import config
from researchbench.research import BACKENDS

console = Console()
logger = logging.getLogger(__name__)

QUICK_OPTIONS = {"warmup_iterations": 1, "measurement_iterations": 5, "iteration_time_ms": 10}


def select_backends(choice: str | None) -> list[str]:
    """Resolve --backend, prompting when it was not given."""
    if choice is None:
        choice = questionary.select(
            "Select a backend:",
            choices=[*BACKENDS, "all"],
        ).ask()
        # User pressed Ctrl+C or Escape
        if choice is None:
            return []
    return list(BACKENDS) if choice == "all" else [choice]


def run(args) -> None:
    """Run the benchmarks against each selected backend."""
    backends = select_backends(args.backend)
    if not backends:
        console.print("[dim]Cancelled.[/]")
        return

    options = BenchmarkOptions(include=args.include, **(QUICK_OPTIONS if args.quick else {}))

    results = []
    for backend in backends:
        console.print(f"[yellow]Running benchmarks against [bold]{backend}[/]...[/]")
        repository = BACKENDS[backend]()
        results.extend(run_benchmarks(repository, options, label=backend))

    console.print(build_table(results))
    if args.json:
        path = write_json(results, args.json)
        console.print(f"[green]Wrote results to {path}.[/]")


def count(args) -> None:
    """Print the number of stored records per backend."""
    for backend in select_backends(args.backend):
        console.print(f"{backend}: {BACKENDS[backend]().count()} records")


def clear(args) -> None:
    """Delete every stored record from the selected backends."""
    backends = select_backends(args.backend)
    if not backends:
        console.print("[dim]Cancelled.[/]")
        return

    if not args.yes and not questionary.confirm(f"Delete all research records from {', '.join(backends)}?").ask():
        console.print("[dim]Cancelled.[/]")
        return

    for backend in backends:
        BACKENDS[backend]().delete_all()
        console.print(f"[green]Cleared {backend}.[/]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="researchbench CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    backend_choices = [*BACKENDS, "all"]

    run_parser = subparsers.add_parser("run", help="Run the latency benchmarks")
    run_parser.add_argument("--backend", choices=backend_choices)
    run_parser.add_argument("--include", default=".*", help="Regex selecting benchmarks to run")
    run_parser.add_argument("--quick", action="store_true", help="Few, short iterations")
    run_parser.add_argument("--json", help="Write results to this JSON file")
    run_parser.set_defaults(handler=run)

    count_parser = subparsers.add_parser("count", help="Count stored research records")
    count_parser.add_argument("--backend", choices=backend_choices)
    count_parser.set_defaults(handler=count)

    clear_parser = subparsers.add_parser("clear", help="Delete all stored research records")
    clear_parser.add_argument("--backend", choices=backend_choices)
    clear_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    clear_parser.set_defaults(handler=clear)

    return parser


def main(argv: list[str] = None) -> int:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    try:
        args.handler(args)
    except (BenchmarkError, PyMongoError, RedisError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]{escape(str(exc))}[/]")
        return 1
    finally:
        db.close_clients()
    return 0


if __name__ == "__main__":
    sys.exit(main())

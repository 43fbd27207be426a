from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from .core.errors import FetchError, InvariantViolation
from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.policy import load_policy_from_env, override_policy
from .workflows.synchronizer import run_sync

app = typer.Typer(add_help_option=False, no_args_is_help=False)

EXIT_ERROR = 1
EXIT_FETCH_FAILED = 2
EXIT_INVARIANT = 3


def _minimal_help() -> str:
    return """catalog-sync

Usage:
  catalog-sync sync [--out <PATH>] [--base-url <URL>] [--concurrency <N>] [--timeout <S>] [--json] [--verbose]
  catalog-sync doctor

Common options:
  --out <PATH>       Write the catalog document here (default: data/statuses.json).
  --base-url <URL>   Source page to synchronize against.
  --concurrency <N>  Reachability workers running at once.
  --timeout <S>      Per-request timeout in seconds.
  --json             Print the document to stdout as well.
  --verbose          Debug logging (per-link decisions) on stderr.

Discoverability:
  --help-full     Expanded help + env vars + artifacts.
  --find <query>  Search commands, flags, env vars, artifacts.
  --doctor        Run environment diagnostics and exit.
"""


def _help_full() -> str:
    return """catalog-sync (single-page catalog synchronizer)

Commands:
  sync     Fetch the source page, classify links, verify tools, write the catalog.
  doctor   Print environment and dependency diagnostics.

Exit codes:
  0  Document written.
  1  Unexpected error (configuration or runtime).
  2  Source page could not be fetched; existing document left untouched.
  3  Identifier uniqueness violated; nothing written.

Artifacts:
  statuses.json  {"tools": [...], "certificates": [...]}; fully replaced each run.

Env vars (also read from .env):
  CATALOG_SYNC_BASE_URL
  CATALOG_SYNC_OUTPUT
  CATALOG_SYNC_CONCURRENCY
  CATALOG_SYNC_TIMEOUT
  CATALOG_SYNC_PROBE_DELAY
  CATALOG_SYNC_USER_AGENT
  CATALOG_SYNC_SCORING_WEIGHTS_JSON
  CATALOG_SYNC_IDENTITIES_JSON

Troubleshooting:
  - Use --verbose to see which links were dropped and why.
  - Use doctor to validate configuration without touching the network.
"""


_FIND_INDEX = [
    ("command", "sync", "Synchronize the catalog and write the document."),
    ("command", "doctor", "Print environment and dependency diagnostics."),
    ("flag", "--out", "Write the catalog document to this path."),
    ("flag", "--base-url", "Source page to synchronize against."),
    ("flag", "--concurrency", "Reachability workers running at once."),
    ("flag", "--timeout", "Per-request timeout in seconds."),
    ("flag", "--json", "Print the document to stdout."),
    ("flag", "--verbose", "Debug logging on stderr."),
    ("flag", "--help-full", "Expanded help, env vars, artifacts."),
    ("flag", "--find", "Search commands, flags, env vars, artifacts."),
    ("flag", "--doctor", "Run environment diagnostics and exit."),
    ("env", "CATALOG_SYNC_BASE_URL", "Source page URL."),
    ("env", "CATALOG_SYNC_OUTPUT", "Output document path."),
    ("env", "CATALOG_SYNC_CONCURRENCY", "Reachability worker count."),
    ("env", "CATALOG_SYNC_TIMEOUT", "Per-request timeout (seconds)."),
    ("env", "CATALOG_SYNC_PROBE_DELAY", "Pause between probes per worker (seconds)."),
    ("env", "CATALOG_SYNC_USER_AGENT", "User-Agent header."),
    ("env", "CATALOG_SYNC_SCORING_WEIGHTS_JSON", "Override link selection weights."),
    ("env", "CATALOG_SYNC_IDENTITIES_JSON", "Replace the known tool identity table."),
    ("artifact", "statuses.json", "Catalog document consumed by the site."),
]


def _run_find(query: str) -> str:
    """Index entries matching every whitespace-separated term, in index order."""

    terms = (query or "").lower().split()
    if not terms:
        return ""
    hits = [
        (kind, name, desc)
        for kind, name, desc in _FIND_INDEX
        if all(term in f"{kind} {name} {desc}".lower() for term in terms)
    ]
    width = max((len(name) for _, name, _ in hits), default=0)
    return "\n".join(f"{kind:<8} {name:<{width}}  {desc}" for kind, name, desc in hits)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    # no-op when the host (or a test runner) already installed handlers
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
    find: Optional[str] = typer.Option(None, "--find", is_eager=True, help="Search commands, flags, env vars, artifacts."),
    doctor: bool = typer.Option(False, "--doctor", is_eager=True, help="Run environment diagnostics and exit."),
) -> None:
    load_dotenv()
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if find is not None:
        output = _run_find(find)
        if output:
            typer.echo(output)
        raise typer.Exit(code=0)
    if doctor:
        report = build_doctor_report()
        typer.echo(format_doctor_report(report))
        raise typer.Exit(code=0 if report.get("ok", True) else 2)
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)


@app.command("doctor", add_help_option=True)
def doctor_cmd() -> None:
    """Print environment and dependency diagnostics."""
    report = build_doctor_report()
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)


@app.command("sync", add_help_option=True)
def sync_cmd(
    out: Optional[Path] = typer.Option(None, "--out", help="Write the catalog document to this path."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Source page to synchronize against."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Reachability workers running at once."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    json_out: bool = typer.Option(False, "--json", help="Print the document to stdout."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    """Synchronize the catalog and write the document."""
    _configure_logging(verbose)
    try:
        policy = override_policy(
            load_policy_from_env(),
            base_url=base_url,
            output_path=out,
            concurrency=concurrency,
            timeout=timeout,
        )
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    try:
        result = run_sync(policy)
    except FetchError as exc:
        typer.echo(f"fatal: could not fetch source page: {exc}", err=True)
        raise typer.Exit(code=EXIT_FETCH_FAILED)
    except InvariantViolation as exc:
        typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVARIANT)
    except Exception as exc:
        typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    if json_out:
        sys.stdout.write(result.document.to_json() + "\n")
    else:
        typer.echo(f"Wrote {result.output_path}")
        typer.echo(f"tools: {result.tool_count}, certificates: {result.certificate_count}")
    raise typer.Exit(code=0)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    app()

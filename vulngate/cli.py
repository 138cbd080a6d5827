"""CLI entry point: vulngate.

Subcommands:
    vulngate check org/acme/lib/1.0/lib-1.0.jar   # Scan one artifact, no database
    vulngate check pkg/-/pkg-1.2.3.tgz --json
    vulngate serve --port 8000                   # Run the gate API
"""

from __future__ import annotations

import asyncio
import json
import sys

import click
import httpx

from vulngate.core.config import GateSettings, load_settings
from vulngate.core.exceptions import ConfigurationError
from vulngate.core.logging import setup_logging
from vulngate.engines.gate.cache import DecisionCache, MemoryPropertyStore
from vulngate.engines.gate.models import ArtifactKey, CachedDecision, GateOutcome, Verdict
from vulngate.engines.gate.orchestrator import ScanOrchestrator
from vulngate.engines.gate.scanners import build_scanners
from vulngate.engines.snyk.client import SnykClient

EXIT_CODES = {
    Verdict.ALLOW: 0,
    Verdict.DENY: 1,
    Verdict.ERROR: 2,
}


async def run_check(
    settings: GateSettings,
    key: ArtifactKey,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[GateOutcome, CachedDecision | None]:
    """Evaluate one artifact against an in-memory property store."""
    cache = DecisionCache(MemoryPropertyStore())
    async with SnykClient.from_settings(settings, transport=transport) as client:
        orchestrator = ScanOrchestrator(cache, build_scanners(client, settings), lambda: settings)
        outcome = await orchestrator.evaluate(None, key)
    return outcome, await cache.read(None, key)


def _load(config: str | None) -> GateSettings:
    try:
        return load_settings(config)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CODES[Verdict.ERROR])


@click.group()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Properties file (defaults to $VULNGATE_CONFIG)",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """VulnGate: block artifact downloads with known vulnerabilities or license issues."""
    setup_logging(level="DEBUG" if verbose else None)
    ctx.obj = {"config": config}


@main.command("check")
@click.argument("path")
@click.option("--repo-key", default="local", show_default=True, help="Repository key")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check(ctx: click.Context, path: str, repo_key: str, as_json: bool) -> None:
    """Scan the artifact at PATH and print the gate decision."""
    settings = _load(ctx.obj["config"])
    key = ArtifactKey.normalized(repo_key, path)
    outcome, cached = asyncio.run(run_check(settings, key))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "artifact": str(key),
                    "verdict": outcome.verdict.value,
                    "status_code": outcome.status_code,
                    "reason": outcome.reason,
                    "vulnerabilities": cached.vulnerability_summary if cached else None,
                    "licenses": cached.license_summary if cached else None,
                    "issue_url": cached.issue_url if cached else None,
                },
                indent=2,
            )
        )
    else:
        click.echo(f"{key}: {outcome.verdict.value.upper()}")
        if outcome.reason:
            click.echo(f"  reason:          {outcome.reason}")
        if cached is not None:
            click.echo(f"  vulnerabilities: {cached.vulnerability_summary}")
            click.echo(f"  licenses:        {cached.license_summary}")
            click.echo(f"  details:         {cached.issue_url}")

    sys.exit(EXIT_CODES[outcome.verdict])


@main.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the gate API."""
    import uvicorn

    from vulngate.api import create_app

    try:
        app = create_app(ctx.obj["config"])
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CODES[Verdict.ERROR])
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()

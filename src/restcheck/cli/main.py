"""CLI entry point - Click commands for restcheck."""

from __future__ import annotations

import dataclasses
import sys

import click

from restcheck import __version__
from restcheck.cli._output import (
    format_json,
    format_rules_json,
    format_rules_text,
    format_text,
)
from restcheck.core._types import Severity
from restcheck.core.capture import CaptureError, load_capture
from restcheck.core.checker import check as run_check
from restcheck.core.config import BUILTIN_PROFILES, ConfigError, RestcheckConfig, load_config
from restcheck.rules import ALL_RULES

_SEVERITIES = [str(s) for s in Severity]


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", message="restcheck %(version)s")
def cli() -> None:
    """restcheck - REST API guideline conformance checker."""


@cli.command()
@click.argument("capture", type=click.Path(dir_okay=False))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--exclude-rules", default="", help="Comma-separated rule IDs to exclude.")
@click.option(
    "--min-severity",
    type=click.Choice(_SEVERITIES),
    default="info",
    help="Minimum severity to report.",
)
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Evaluation threads.")
@click.option("--all-findings", is_flag=True, help="Include passing findings in JSON output.")
@click.option("--no-color", is_flag=True, envvar="NO_COLOR", help="Disable ANSI colors.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to .restcheck.toml or pyproject.toml config file.",
)
@click.option(
    "--profile",
    type=click.Choice(list(BUILTIN_PROFILES)),
    default=None,
    help="Rule filter profile (overrides config file profile).",
)
def check(
    capture: str,
    fmt: str,
    exclude_rules: str,
    min_severity: str,
    workers: int | None,
    all_findings: bool,
    no_color: bool,
    config_path: str | None,
    profile: str | None,
) -> None:
    """Check a capture file of HTTP exchanges against the REST guidelines.

    Exits 1 when any error-severity rule failed.
    """
    try:
        config: RestcheckConfig = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: invalid config: {exc}", err=True)
        sys.exit(2)

    if profile is not None:
        base = BUILTIN_PROFILES[profile]
        # --profile overrides filter settings; exclusions stay additive.
        config = dataclasses.replace(
            config,
            min_severity=base.min_severity,
            include_rules=base.include_rules,
            categories=base.categories,
            exclude_rules=base.exclude_rules | config.exclude_rules,
        )

    if exclude_rules:
        excluded = {r.strip() for r in exclude_rules.split(",") if r.strip()}
        config = dataclasses.replace(config, exclude_rules=config.exclude_rules | excluded)

    try:
        records = load_capture(capture)
    except CaptureError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    report = run_check(records, config=config, max_workers=workers)
    severity = Severity(min_severity)

    if fmt == "json":
        click.echo(
            format_json(
                report, capture=capture, min_severity=severity, all_findings=all_findings
            )
        )
    else:
        click.echo(format_text(report, capture=capture, min_severity=severity, no_color=no_color))

    if report.has_errors:
        sys.exit(1)


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--no-color", is_flag=True, envvar="NO_COLOR", help="Disable ANSI colors.")
@click.option(
    "--layer",
    default=None,
    type=click.Choice(["method", "envelope", "status", "headers", "pagination", "security"]),
    help="Filter by layer.",
)
@click.option(
    "--severity",
    "sev",
    default=None,
    type=click.Choice(_SEVERITIES),
    help="Filter by severity.",
)
def rules(fmt: str, no_color: bool, layer: str | None, sev: str | None) -> None:
    """List all conformance rules."""
    filtered = list(ALL_RULES)
    if layer is not None:
        filtered = [r for r in filtered if r.layer == layer or r.layer.startswith(layer + ".")]
    if sev is not None:
        severity = Severity(sev)
        filtered = [r for r in filtered if r.severity == severity]

    total = len(ALL_RULES) if (layer is not None or sev is not None) else None

    if fmt == "json":
        click.echo(format_rules_json(filtered))
    else:
        click.echo(format_rules_text(filtered, no_color=no_color, total=total))

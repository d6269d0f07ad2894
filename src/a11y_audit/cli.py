"""CLI interface for a11y-audit."""

import json
import logging
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from . import __version__
from .analysis import compare_audit, project_evolution
from .config import DEFAULT_AUDIT_LIMIT, DEFAULT_PERIOD, PERIOD_DAYS
from .engine import calculate_score
from .engine.comparison import classify_overall_trend, delta_tone, format_delta
from .engine.health import get_health_label
from .errors import A11yAuditError
from .models import (
    ComparisonResult,
    EvolutionResult,
    InsightType,
    ScoreData,
    SEVERITY_ORDER,
    TrendDirection,
    ViolationChangeType,
)
from .sources import get_configured_source
from .utils import to_jsonable


console = Console()


def tone_style(tone: str) -> str:
    """Get Rich style for a delta tone."""
    return {
        "positive": "green",
        "negative": "red",
        "neutral": "dim",
    }.get(tone, "white")


def insight_style(insight_type: InsightType) -> str:
    return {
        InsightType.POSITIVE: "green",
        InsightType.NEGATIVE: "red",
        InsightType.WARNING: "yellow",
        InsightType.NEUTRAL: "blue",
    }.get(insight_type, "white")


def insight_icon(insight_type: InsightType) -> str:
    return {
        InsightType.POSITIVE: "✓",
        InsightType.NEGATIVE: "✗",
        InsightType.WARNING: "⚠",
        InsightType.NEUTRAL: "ℹ",
    }.get(insight_type, "•")


def trend_arrow(direction: TrendDirection) -> str:
    return {
        TrendDirection.UP: "↑",
        TrendDirection.DOWN: "↓",
        TrendDirection.STABLE: "→",
    }[direction]


def score_color(score: int) -> str:
    """Get color for a score value."""
    if score >= 90:
        return "green"
    elif score >= 70:
        return "yellow"
    elif score >= 50:
        return "orange1"
    else:
        return "red"


def print_score_bar(score: int, width: int = 20) -> Text:
    """Create a visual score bar."""
    filled = int((score / 100) * width)
    empty = width - filled
    color = score_color(score)

    bar = Text()
    bar.append("█" * filled, style=color)
    bar.append("░" * empty, style="dim")
    bar.append(f" {score}/100", style=f"bold {color}")
    return bar


def print_insights(insights) -> None:
    if not insights:
        return
    console.print("\n[bold]Insights:[/bold]\n")
    for insight in insights:
        style = insight_style(insight.type)
        params = ", ".join(f"{k}={v}" for k, v in insight.params.items())
        console.print(f"  [{style}]{insight_icon(insight.type)}[/] {insight.key}"
                      + (f" [dim]({params})[/dim]" if params else ""))


def print_footer() -> None:
    console.print()
    console.print("[dim]─" * 50 + "[/dim]")
    console.print(f"[dim]a11y-audit v{__version__}[/dim]")
    console.print()


def print_score(data: ScoreData) -> None:
    console.print()
    console.print("  Accessibility Score: ", end="")
    console.print(print_score_bar(data.score, width=25))
    console.print(f"  [dim]{get_health_label(data.score)}[/dim]")
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Severity", style="cyan")
    table.add_column("Passed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Impact", justify="right")

    for severity in SEVERITY_ORDER:
        impact = data.score_impact[severity]
        table.add_row(
            severity.value,
            str(data.passed_rules.get(severity)),
            str(data.failed_rules.get(severity)),
            f"[{'red' if impact < 0 else 'dim'}]{impact}[/]",
        )

    console.print(table)
    console.print(f"  [dim]Weighted passed {data.weighted_passed} • weighted failed {data.weighted_failed}[/dim]")
    print_footer()


def print_comparison(result: ComparisonResult, verbose: bool = False) -> None:
    current = result.current

    console.print()
    console.print(Panel(
        f"[bold]Audit {current.id}[/bold]\n"
        f"[dim]{current.created_at:%Y-%m-%d %H:%M} • {current.pages_audited} pages[/dim]",
        title="♿ Audit Comparison",
        border_style="blue"
    ))
    console.print()
    console.print("  Health Score: ", end="")
    console.print(print_score_bar(current.health_score, width=25))

    if not result.has_baseline:
        console.print("\n[yellow]No previous audit to compare with.[/yellow]")
        print_insights(result.insights)
        print_footer()
        return

    previous = result.previous
    console.print(f"  [dim]Compared with {previous.id} ({previous.created_at:%Y-%m-%d}) • "
                  f"{classify_overall_trend(result.delta).value}[/dim]")
    console.print()

    delta = result.delta
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Previous", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Change", justify="right")

    def add_row(label, before, after, value, kind):
        style = tone_style(delta_tone(value, kind))
        table.add_row(label, str(before), str(after), f"[{style}]{format_delta(value, kind)}[/]")

    add_row("Health score", previous.health_score, current.health_score, delta.health_score, "score")
    for severity in SEVERITY_ORDER:
        add_row(
            severity.value.capitalize(),
            previous.summary.get(severity) if previous.summary else 0,
            current.summary.get(severity) if current.summary else 0,
            delta.get(severity),
            "violations",
        )
    add_row(
        "Total",
        previous.summary.total if previous.summary else 0,
        current.summary.total if current.summary else 0,
        delta.total,
        "violations",
    )
    add_row("Pages audited", previous.pages_audited, current.pages_audited, delta.pages_audited, "pages")
    add_row("Broken pages", previous.broken_pages_count, current.broken_pages_count, delta.broken_pages, "violations")
    console.print(table)

    counts = result.violations.counts
    console.print("  " + " • ".join(f"{name}: [bold]{count}[/bold]" for name, count in counts.items()))

    print_insights(result.insights)

    if verbose:
        for change_type in ViolationChangeType:
            details = result.violations.bucket(change_type)
            if not details:
                continue
            console.print(f"\n[bold]{change_type.value.capitalize()} ({len(details)}):[/bold]\n")
            for detail in details:
                style = tone_style(delta_tone(detail.delta.occurrences))
                console.print(
                    f"  [{style}]{format_delta(detail.delta.occurrences)}[/] "
                    f"[cyan]{detail.rule_id}[/cyan] [dim]{detail.impact.value}[/dim]"
                )
                if detail.help:
                    console.print(f"    [dim]{detail.help}[/dim]")

    print_footer()


def print_evolution(result: EvolutionResult, period: str) -> None:
    console.print()
    console.print(Panel(
        f"[bold]{len(result.audits)} audits[/bold]\n[dim]Period: {period}[/dim]",
        title="📈 Evolution",
        border_style="blue"
    ))
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("First", justify="right")
    table.add_column("Last", justify="right")
    table.add_column("Trend")
    table.add_column("Change", justify="right")

    for metric in ("health_score", "critical", "serious", "moderate", "minor", "total"):
        trend = result.trends.get(metric)
        kind = "score" if metric == "health_score" else "violations"
        first = trend.values[0].value if trend.values else "-"
        last = trend.values[-1].value if trend.values else "-"
        style = tone_style(delta_tone(trend.change_absolute, kind))
        table.add_row(
            metric.replace("_", " ").capitalize(),
            str(first),
            str(last),
            f"[{style}]{trend_arrow(trend.direction)}[/]",
            f"[{style}]{format_delta(trend.change_absolute)} ({trend.change_percent}%)[/]",
        )

    console.print(table)
    print_insights(result.insights)
    print_footer()


def parse_counts(ctx, param, values) -> dict[str, int]:
    """Parse repeated SEVERITY=COUNT options."""
    counts: dict[str, int] = {}
    for value in values:
        name, sep, count = value.partition("=")
        if not sep:
            raise click.BadParameter(f"expected SEVERITY=COUNT, got {value!r}")
        try:
            counts[name.strip().lower()] = int(count)
        except ValueError:
            raise click.BadParameter(f"count must be an integer in {value!r}") from None
    return counts


def fail(error: Exception) -> None:
    console.print(f"\n[red]Error:[/red] {error}")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx, debug: bool):
    """a11y-audit - Accessibility audit scores, comparisons and trends.

    \b
    Quick start:
        a11y-audit score -p critical=10 -f critical=2
        a11y-audit compare AUDIT_ID --source export.json
        a11y-audit evolution PROJECT_ID --period 90d

    \b
    Audits are read from an export file (--source) or from Supabase
    (SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY).
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("-p", "--passed", multiple=True, callback=parse_counts, metavar="SEVERITY=COUNT",
              help="Passed rules for a severity (repeatable)")
@click.option("-f", "--failed", multiple=True, callback=parse_counts, metavar="SEVERITY=COUNT",
              help="Failed rules for a severity (repeatable)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def score(passed: dict[str, int], failed: dict[str, int], json_output: bool):
    """Calculate the weighted accessibility score.

    \b
    Examples:
        a11y-audit score -p critical=10 -p serious=15 -f critical=2
        a11y-audit score -p minor=30 -f minor=8 --json
    """
    try:
        data = calculate_score(passed, failed)
    except A11yAuditError as e:
        fail(e)

    if json_output:
        click.echo(json.dumps(to_jsonable(data), indent=2))
    else:
        print_score(data)


@cli.command()
@click.argument("audit_id")
@click.option("-w", "--with", "compare_with", help="Baseline audit id (default: previous audit)")
@click.option("-s", "--source", type=click.Path(dir_okay=False), help="Audit export JSON file")
@click.option("-v", "--verbose", is_flag=True, help="List every changed violation")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def compare(audit_id: str, compare_with: str | None, source: str | None, verbose: bool, json_output: bool):
    """Compare an audit with a previous one.

    \b
    Examples:
        a11y-audit compare 3f2c... --source export.json
        a11y-audit compare 3f2c... --with 1a9b... --verbose
    """
    try:
        audit_source = get_configured_source(source)
        if json_output:
            result = compare_audit(audit_source, audit_id, compare_with)
        else:
            with console.status(f"[bold blue]Comparing {audit_id}...[/bold blue]"):
                result = compare_audit(audit_source, audit_id, compare_with)
    except A11yAuditError as e:
        fail(e)

    if json_output:
        click.echo(json.dumps(to_jsonable(result), indent=2))
    else:
        print_comparison(result, verbose=verbose)


@cli.command()
@click.argument("project_id")
@click.option("--period", type=click.Choice(list(PERIOD_DAYS)), default=DEFAULT_PERIOD,
              help="Time window")
@click.option("--limit", type=click.IntRange(1, None), default=DEFAULT_AUDIT_LIMIT,
              help="Maximum number of audits")
@click.option("-s", "--source", type=click.Path(dir_okay=False), help="Audit export JSON file")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def evolution(project_id: str, period: str, limit: int, source: str | None, json_output: bool):
    """Show score and violation trends for a project.

    \b
    Examples:
        a11y-audit evolution 7d1e... --period 90d
        a11y-audit evolution 7d1e... --source export.json --json
    """
    try:
        audit_source = get_configured_source(source)
        result = project_evolution(audit_source, project_id, period=period, limit=limit)
    except A11yAuditError as e:
        fail(e)

    if json_output:
        click.echo(json.dumps(to_jsonable(result), indent=2))
    else:
        print_evolution(result, period)


def main():
    """Entry point for the a11y-audit command."""
    cli()


if __name__ == "__main__":
    main()

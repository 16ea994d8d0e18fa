"""Main CLI entry point for the leadqual command."""

import json
import click
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from typing import Any, Dict, List, Optional

from ..core.config import JsonRuleConfigStore
from ..core.errors import ConfigurationError
from ..core.rules import Category
from ..engine import LeadScoringEngine
from ..team.roster import AgentProfile, StaticAgentRoster

console = Console()

STAGE_COLORS = {
    "new": "dim",
    "contacted": "blue",
    "qualified": "magenta",
    "opportunity": "green",
    "negotiation": "yellow",
    "closed": "bold green",
}
TREND_ICONS = {"improving": "📈", "declining": "📉", "stable": "➡️"}


def get_store(config_path: Optional[str] = None) -> JsonRuleConfigStore:
    """Get config store instance."""
    return JsonRuleConfigStore(Path(config_path) if config_path else None)


def load_leads(path: str) -> List[Dict[str, Any]]:
    """Read a JSON file holding a list of leads (or {"leads": [...]})."""
    with open(path, 'r') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("leads", [data])
    return [lead for lead in data if isinstance(lead, dict)]


def load_agents(path: Optional[str]) -> List[AgentProfile]:
    if not path:
        return []
    with open(path, 'r') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("agents", [])
    return [AgentProfile.from_dict(a) for a in data]


def build_engine(config_path: Optional[str], agents_path: Optional[str] = None) -> LeadScoringEngine:
    return LeadScoringEngine(
        config_store=get_store(config_path),
        roster=StaticAgentRoster(load_agents(agents_path)),
    )


@click.group()
@click.version_option(version="1.0.0", prog_name="leadqual")
def cli():
    """Lead Qualifier - score leads, assign stages and predict outcomes.

    \b
    Quick Start:
      leadqual score leads.json                  # Score leads from a JSON file
      leadqual explain leads.json LEAD_ID        # Explain one lead's score
      leadqual benchmarks leads.json             # Population statistics
      leadqual config show                       # Active weights and stages
    """
    pass


@cli.command()
@click.argument("leads_file", type=click.Path(exists=True))
@click.option("--agents", "agents_path", type=click.Path(exists=True), help="Agent roster JSON")
@click.option("--limit", "-n", default=20, help="Number of leads to show")
@click.option("--json", "as_json", is_flag=True, help="Print score records as JSON")
@click.option("--config", "config_path", help="Custom scoring config path")
def score(leads_file: str, agents_path: Optional[str], limit: int, as_json: bool,
          config_path: Optional[str]):
    """Score every lead in a JSON file."""
    with build_engine(config_path, agents_path) as engine:
        leads = load_leads(leads_file)
        result = engine.rescore_all(leads)

        if as_json:
            payload = []
            for lead_id, record in engine.scores.items():
                prediction = engine.get_prediction(lead_id)
                payload.append({
                    "stage": engine.get_stage(lead_id),
                    "record": record.to_dict(),
                    "prediction": prediction.to_dict() if prediction else None,
                })
            click.echo(json.dumps(payload, indent=2))
            return

        top = engine.top_leads(limit)
        table = Table(title=f"Scored Leads ({result.processed})")
        table.add_column("Lead", style="cyan")
        table.add_column("Score", justify="right", style="bold")
        table.add_column("Stage", justify="center")
        table.add_column("Conversion", justify="right")
        table.add_column("Est. Revenue", justify="right")
        table.add_column("Trend", justify="center")
        table.add_column("Top Factors", max_width=40)

        for row in top:
            record = engine.get_score(row["lead_id"])
            stage_style = STAGE_COLORS.get(row["stage"], "")
            conversion = row["conversion_probability"]
            revenue = row["estimated_revenue"]
            table.add_row(
                row["lead_id"],
                f"{row['score']:.1f}",
                f"[{stage_style}]{row['stage']}[/{stage_style}]" if stage_style else row["stage"],
                f"{conversion:.0%}" if conversion is not None else "-",
                f"${revenue:,}" if revenue is not None else "-",
                TREND_ICONS.get(row["trend"], row["trend"]),
                record.summary if record else "",
            )

        console.print(table)


@cli.command()
@click.argument("leads_file", type=click.Path(exists=True))
@click.argument("lead_id")
@click.option("--config", "config_path", help="Custom scoring config path")
def explain(leads_file: str, lead_id: str, config_path: Optional[str]):
    """Explain how one lead's score was built."""
    with build_engine(config_path) as engine:
        leads = [lead for lead in load_leads(leads_file) if str(lead.get("id")) == lead_id]
        if not leads:
            console.print(f"[red]Lead {lead_id} not found in {leads_file}[/red]")
            raise SystemExit(1)

        engine.calculate_score(leads[0])
        prediction = engine.get_prediction(lead_id)
        console.print(Panel(Text(engine.explain(lead_id)), title=engine.leads.get(lead_id).display_name))

        if prediction:
            contact = prediction.best_contact_time.primary
            revenue = prediction.revenue_forecast
            console.print(
                f"Conversion probability: [bold]{prediction.conversion_probability:.0%}[/bold]\n"
                f"Best contact time: {contact.day} at {contact.hour}:00\n"
                f"Revenue forecast: ${revenue.estimated:,} (${revenue.low:,} - ${revenue.high:,})"
            )
            for rec in prediction.recommendations:
                console.print(f"  • {rec}")


@cli.command()
@click.argument("leads_file", type=click.Path(exists=True))
@click.option("--config", "config_path", help="Custom scoring config path")
def benchmarks(leads_file: str, config_path: Optional[str]):
    """Show score benchmarks and the stage funnel for a set of leads."""
    with build_engine(config_path) as engine:
        engine.rescore_all(load_leads(leads_file))
        bench = engine.get_benchmarks()

        console.print(Panel.fit(
            f"[bold]Leads:[/bold]   {bench.count}\n"
            f"[bold]Average:[/bold] {bench.average:.1f}\n"
            f"[bold]Median:[/bold]  {bench.median:.1f}\n"
            f"[bold]P25:[/bold]     {bench.p25:.1f}\n"
            f"[bold]P75:[/bold]     {bench.p75:.1f}",
            title="Benchmarks"
        ))

        table = Table(title="Stage Funnel")
        table.add_column("Stage")
        table.add_column("Leads", justify="right")
        table.add_column("%", justify="right")
        for row in engine.stage_funnel():
            table.add_row(row["name"], str(row["count"]), f"{row['percentage']:.1f}")
        console.print(table)


@cli.group()
def config():
    """Manage scoring weights and custom rules."""
    pass


@config.command("show")
@click.option("--config", "config_path", help="Custom scoring config path")
def config_show(config_path: Optional[str]):
    """Display the active scoring configuration."""
    cfg = get_store(config_path).load_config()

    table = Table(title=f"Category Weights (v{cfg.version})")
    table.add_column("Category")
    table.add_column("Weight", justify="right")
    for name, weight in cfg.weights.items():
        table.add_row(name, f"{weight:.0%}")
    console.print(table)

    stages = Table(title="Qualification Stages")
    stages.add_column("Stage")
    stages.add_column("Name")
    stages.add_column("Min Score", justify="right")
    for stage in cfg.stages:
        stages.add_row(stage.id, stage.name, f"{stage.min_score:g}")
    console.print(stages)

    if cfg.custom_rules:
        rules = Table(title="Custom Rules")
        rules.add_column("ID", style="dim")
        rules.add_column("Category")
        rules.add_column("Factor")
        rules.add_column("Value")
        rules.add_column("Points", justify="right")
        for rule in cfg.custom_rules:
            rules.add_row(rule.id, rule.category, rule.factor, rule.value, f"{rule.points:g}")
        console.print(rules)


@config.command("set-weights")
@click.option("--demographic", type=float, help="Demographic weight (0-1)")
@click.option("--behavioral", type=float, help="Behavioral weight (0-1)")
@click.option("--source", type=float, help="Source weight (0-1)")
@click.option("--intent", type=float, help="Intent weight (0-1)")
@click.option("--config", "config_path", help="Custom scoring config path")
def set_weights(demographic: Optional[float], behavioral: Optional[float], source: Optional[float],
                intent: Optional[float], config_path: Optional[str]):
    """Update category weights. They must sum to 1."""
    updates = {
        name: value
        for name, value in (("demographic", demographic), ("behavioral", behavioral),
                            ("source", source), ("intent", intent))
        if value is not None
    }
    if not updates:
        console.print("[yellow]No weights given.[/yellow]")
        return

    with build_engine(config_path) as engine:
        try:
            cfg = engine.update_weights(updates)
        except ConfigurationError as e:
            console.print(f"[red]Rejected: {e}[/red]")
            raise SystemExit(1)
    console.print(f"[green]✓ Weights saved (config v{cfg.version})[/green]")


@config.command("add-rule")
@click.argument("category", type=click.Choice([c.value for c in Category]))
@click.argument("factor")
@click.argument("value")
@click.argument("points", type=float)
@click.option("--config", "config_path", help="Custom scoring config path")
def add_rule(category: str, factor: str, value: str, points: float, config_path: Optional[str]):
    """Map a factor value to points (0-10)."""
    with build_engine(config_path) as engine:
        try:
            rule = engine.add_scoring_rule(category, factor, value, points)
        except ConfigurationError as e:
            console.print(f"[red]Rejected: {e}[/red]")
            raise SystemExit(1)
    console.print(f"[green]✓ Added rule {rule.id}: {category}.{rule.factor}={rule.value} -> {points:g}[/green]")


def main():
    cli()


if __name__ == "__main__":
    main()

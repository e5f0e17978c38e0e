"""budget-tree CLI - view and reallocate a hierarchical budget."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console

from budget_tree import __version__
from budget_tree.aggregation import find_subtotal_mismatches
from budget_tree.config import (
    BudgetTreeConfig,
    ConfigLoadError,
    ConfigValidationError,
    generate_config_template,
    get_config,
    get_global_config_path,
    get_home,
    get_project_config_path,
    load_config_file,
)
from budget_tree.render import OutputFormat, render_session
from budget_tree.session import AllocationResult, AllocationSession, AllocationStatus
from budget_tree.tree.loader import TreeLoadError, dump_tree, load_tree

console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

TREE_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
OUTPUT_FILE = click.Path(dir_okay=False, path_type=Path)

# Lets a negative amount reach the session as a value instead of an option
AMOUNT_CONTEXT = {"ignore_unknown_options": True}


def _get_config(ctx: click.Context) -> BudgetTreeConfig:
    """Resolve the effective config, applying CLI flags last."""
    try:
        config = get_config(home=ctx.obj["home"])
    except (ConfigLoadError, ConfigValidationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if ctx.obj.get("output_format"):
        config.defaults.output_format = ctx.obj["output_format"]
    if ctx.obj.get("quiet"):
        config.defaults.quiet = True
    return config


def _load_session(tree_file: Path, config: BudgetTreeConfig) -> AllocationSession:
    try:
        tree = load_tree(tree_file)
    except TreeLoadError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    return AllocationSession(tree, rounding=config.rounding_policy())


def _render(
    session: AllocationSession,
    config: BudgetTreeConfig,
    depth: int | None = None,
) -> str:
    return render_session(
        session,
        format=OutputFormat(config.defaults.output_format),
        depth=depth,
        value_places=config.display.value_places,
        variance_places=config.display.variance_places,
        width=config.display.width,
    )


def _output_result(
    result: AllocationResult,
    session: AllocationSession,
    config: BudgetTreeConfig,
) -> None:
    """Output an allocation result and the resulting table.

    JSON goes to stdout as a single document. Text format uses the rich
    console for the status line and prints the table unless quiet.
    """
    places = config.display.value_places

    if config.defaults.output_format == "json":
        data = json.loads(_render(session, config))
        data["result"] = result.to_dict()
        click.echo(json.dumps(data, indent=2))
        return

    if result.status == AllocationStatus.APPLIED:
        console.print(
            f"[green]OK:[/green] {result.node_id}: "
            f"{result.previous_value:.{places}f} -> {result.new_value:.{places}f}"
        )
    elif result.status == AllocationStatus.NO_CHANGE:
        console.print(f"[yellow]Warning:[/yellow] {result.message}")
    else:
        console.print(f"[red]Error:[/red] {result.message}")
        return

    if not config.defaults.quiet:
        click.echo(_render(session, config), nl=False)


def _finish(
    result: AllocationResult,
    session: AllocationSession,
    config: BudgetTreeConfig,
    output: Path | None,
) -> None:
    _output_result(result, session, config)

    if result.status == AllocationStatus.REJECTED:
        raise SystemExit(1)

    if output is not None and result.success:
        dump_tree(session.tree, output)
        if config.defaults.output_format != "json" and not config.defaults.quiet:
            console.print(f"[dim]Wrote {output}[/dim]")


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="BUDGET_TREE_LOG_LEVEL",
    help="Logging level (default: WARNING)",
)
@click.option("--home", envvar="BUDGET_TREE_HOME", help="Override project home directory")
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Output format: text (default) or json",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str,
    home: str | None,
    output_format: str | None,
    quiet: bool,
) -> None:
    """budget-tree - hierarchical budget allocation.

    Push a percentage increase or an absolute value onto any row of a
    budget tree; children are rescaled and subtotals re-derived.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["home"] = get_home(home)
    ctx.obj["output_format"] = output_format
    ctx.obj["quiet"] = quiet


@main.command()
def version() -> None:
    """Show version."""
    console.print(f"budget-tree {__version__}")


@main.command()
@click.argument("tree_file", type=TREE_FILE)
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None, help="Maximum depth to show")
@click.pass_context
def show(ctx: click.Context, tree_file: Path, depth: int | None) -> None:
    """Show the budget table with variance and grand total."""
    config = _get_config(ctx)
    session = _load_session(tree_file, config)
    click.echo(_render(session, config, depth=depth), nl=False)


@main.command(context_settings=AMOUNT_CONTEXT)
@click.argument("tree_file", type=TREE_FILE)
@click.argument("node_id")
@click.argument("percentage")
@click.option("--output", "-o", type=OUTPUT_FILE, help="Write the resulting tree to this file")
@click.pass_context
def percent(
    ctx: click.Context,
    tree_file: Path,
    node_id: str,
    percentage: str,
    output: Path | None,
) -> None:
    """Increase NODE_ID by PERCENTAGE percent.

    The node's children are rescaled in proportion to their current
    values and every subtotal above the node is re-derived.
    """
    config = _get_config(ctx)
    session = _load_session(tree_file, config)
    result = session.apply_percentage(node_id, percentage)
    _finish(result, session, config, output)


@main.command(context_settings=AMOUNT_CONTEXT)
@click.argument("tree_file", type=TREE_FILE)
@click.argument("node_id")
@click.argument("amount")
@click.option("--yes", "-y", is_flag=True, help="Confirm setting a value to 0 without prompting")
@click.option("--output", "-o", type=OUTPUT_FILE, help="Write the resulting tree to this file")
@click.pass_context
def value(
    ctx: click.Context,
    tree_file: Path,
    node_id: str,
    amount: str,
    yes: bool,
    output: Path | None,
) -> None:
    """Set NODE_ID to AMOUNT.

    Setting a node to 0 asks for confirmation unless --yes is given.
    """
    config = _get_config(ctx)
    session = _load_session(tree_file, config)
    result = session.apply_value(node_id, amount, confirmed=yes)

    if result.status == AllocationStatus.CONFIRMATION_REQUIRED:
        label = session.tree.get(node_id).label
        if not click.confirm(
            f"Set '{label}' to 0? This clears the row and its children.",
            default=False,
            err=True,
        ):
            console.print("[yellow]Aborted:[/yellow] value left unchanged")
            raise SystemExit(1)
        result = session.apply_value(node_id, amount, confirmed=True)

    _finish(result, session, config, output)


@main.command()
@click.argument("tree_file", type=TREE_FILE)
@click.pass_context
def total(ctx: click.Context, tree_file: Path) -> None:
    """Show the grand total (sum of all leaf values)."""
    config = _get_config(ctx)
    session = _load_session(tree_file, config)
    places = config.display.value_places

    if config.defaults.output_format == "json":
        click.echo(json.dumps({"grandTotal": round(session.grand_total, places)}))
    else:
        console.print(f"Grand Total: {session.grand_total:.{places}f}")


@main.command()
@click.argument("tree_file", type=TREE_FILE)
@click.option("--tolerance", type=float, default=None, help="Allowed difference (default: 0.01 per child)")
@click.pass_context
def check(ctx: click.Context, tree_file: Path, tolerance: float | None) -> None:
    """Check that every subtotal equals the sum of its children.

    Exits with code 0 if consistent, non-zero if mismatches are found.
    """
    config = _get_config(ctx)
    session = _load_session(tree_file, config)
    mismatches = find_subtotal_mismatches(session.tree, tolerance=tolerance)

    if config.defaults.output_format == "json":
        click.echo(json.dumps({
            "consistent": not mismatches,
            "mismatches": [
                {
                    "id": m.node_id,
                    "label": m.label,
                    "storedValue": m.stored_value,
                    "childrenSum": m.children_sum,
                }
                for m in mismatches
            ],
        }, indent=2))
    elif mismatches:
        for m in mismatches:
            console.print(
                f"[red]Mismatch:[/red] {m.node_id} ({m.label}) "
                f"stored {m.stored_value:.2f}, children sum {m.children_sum:.2f}"
            )
    else:
        console.print(f"[green]OK:[/green] {len(session.tree)} nodes, all subtotals consistent")

    if mismatches:
        raise SystemExit(1)


@main.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show effective configuration (merged from all sources).

    Output is JSON format for easy parsing.
    """
    effective = _get_config(ctx)
    click.echo(json.dumps(effective.to_dict(), indent=2))


@config.command("init")
@click.option("--global", "is_global", is_flag=True, help="Create global config at ~/.budget_tree_config.json")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing config file")
@click.pass_context
def config_init(ctx: click.Context, is_global: bool, force: bool) -> None:
    """Initialize a configuration file with template.

    By default, creates project config in .budget_tree/config.json.
    Use --global to create ~/.budget_tree_config.json instead.
    """
    if is_global:
        config_path = get_global_config_path()
    else:
        config_path = get_project_config_path(ctx.obj["home"])

    if config_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {config_path}")
        console.print("Use --force to overwrite")
        raise SystemExit(1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(generate_config_template(), indent=2))

    console.print(f"[green]Created config file:[/green] {config_path}")


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate configuration files.

    Checks both global and project config files for valid JSON, known
    field names and valid values. Exits with code 0 if valid, non-zero if
    errors found.
    """
    errors = []
    validated = []

    sources = [
        ("Global config", get_global_config_path()),
        ("Project config", get_project_config_path(ctx.obj["home"])),
    ]
    for name, path in sources:
        if not path.exists():
            continue
        try:
            load_config_file(path, strict=True).validate()
            validated.append(f"{name}: {path}")
        except (ConfigLoadError, ConfigValidationError) as e:
            errors.append(f"{name} ({path}): {e}")

    for v in validated:
        console.print(f"[green]Valid:[/green] {v}")

    if errors:
        for e in errors:
            console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if not validated:
        console.print("[dim]No config files found to validate[/dim]")
    else:
        console.print("\n[green]All config files are valid![/green]")


if __name__ == "__main__":
    main()

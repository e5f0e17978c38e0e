"""Renderers for the allocation table."""

from budget_tree.render.base import OutputFormat, SessionRenderer
from budget_tree.render.json_renderer import JSONRenderer
from budget_tree.render.table import TableRenderer
from budget_tree.session import AllocationSession


def render_session(
    session: AllocationSession,
    *,
    format: OutputFormat = OutputFormat.TEXT,
    depth: int | None = None,
    value_places: int = 2,
    variance_places: int = 2,
    **options,
) -> str:
    """Render a session to the specified format.

    Args:
        session: The session to render
        format: Output format (TEXT or JSON)
        depth: Maximum tree depth to render
        value_places: Decimal places shown for values
        variance_places: Decimal places shown for variance
        **options: Format-specific options

    Returns:
        Rendered output
    """
    if format == OutputFormat.JSON:
        renderer: SessionRenderer = JSONRenderer()
    else:
        renderer = TableRenderer()

    return renderer.render(
        session,
        depth=depth,
        value_places=value_places,
        variance_places=variance_places,
        **options,
    )


__all__ = [
    "JSONRenderer",
    "OutputFormat",
    "SessionRenderer",
    "TableRenderer",
    "render_session",
]

"""Table renderer using Rich for terminal output."""

import io

from rich.console import Console
from rich.table import Table
from rich.text import Text

from budget_tree.allocation.variance import format_variance
from budget_tree.render.base import OutputFormat
from budget_tree.session import AllocationSession, RowView

INDENT = "  "


class TableRenderer:
    """Renders a session as an indented table with a grand total row."""

    format = OutputFormat.TEXT

    def render(
        self,
        session: AllocationSession,
        *,
        depth: int | None = None,
        value_places: int = 2,
        variance_places: int = 2,
        **options,
    ) -> str:
        """Render the table as plain text.

        Args:
            session: The session to render
            depth: Maximum depth to render
            value_places: Decimal places shown for values
            variance_places: Decimal places shown for variance
            **options: Additional options (width, title)

        Returns:
            Text representation of the table
        """
        table = self.build_table(
            session,
            depth=depth,
            value_places=value_places,
            variance_places=variance_places,
            title=options.get("title"),
        )

        buffer = io.StringIO()
        console = Console(
            file=buffer,
            force_terminal=False,
            width=options.get("width") or 120,
        )
        console.print(table)
        return buffer.getvalue()

    def build_table(
        self,
        session: AllocationSession,
        *,
        depth: int | None = None,
        value_places: int = 2,
        variance_places: int = 2,
        title: str | None = None,
    ) -> Table:
        """Build the Rich Table for a session."""
        table = Table(title=title, show_footer=False)
        table.add_column("Label")
        table.add_column("Value", justify="right")
        table.add_column("Original", justify="right", style="dim")
        table.add_column("Variance %", justify="right")

        for row in session.rows():
            if depth is not None and row.depth > depth:
                continue
            table.add_row(
                self._label(row),
                f"{row.value:.{value_places}f}",
                f"{row.original_value:.{value_places}f}",
                self._variance(row.variance, variance_places),
            )

        table.add_section()
        table.add_row(
            Text("Grand Total", style="bold"),
            Text(f"{session.grand_total:.{value_places}f}", style="bold"),
            "",
            "",
        )
        return table

    def _label(self, row: RowView) -> Text:
        style = "" if row.is_leaf else "bold"
        return Text(f"{INDENT * row.depth}{row.label}", style=style)

    def _variance(self, value: float, places: int) -> Text:
        text = format_variance(value, places)
        if value > 0:
            return Text(text, style="green")
        if value < 0:
            return Text(text, style="red")
        return Text(text, style="dim")

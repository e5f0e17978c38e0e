"""Base renderer and output format definitions."""

from enum import Enum
from typing import Protocol

from budget_tree.session import AllocationSession


class OutputFormat(str, Enum):
    """Output format for rendering."""

    TEXT = "text"
    JSON = "json"


class SessionRenderer(Protocol):
    """Protocol for session renderers."""

    format: OutputFormat

    def render(
        self,
        session: AllocationSession,
        *,
        depth: int | None = None,
        value_places: int = 2,
        variance_places: int = 2,
        **options,
    ) -> str:
        """Render the session's current table.

        Args:
            session: The session to render
            depth: Maximum depth to render (None for unlimited)
            value_places: Decimal places shown for values
            variance_places: Decimal places shown for variance
            **options: Additional format-specific options

        Returns:
            Rendered output
        """
        ...

"""JSON renderer for allocation sessions."""

import json

from budget_tree.render.base import OutputFormat
from budget_tree.session import AllocationSession


class JSONRenderer:
    """Renders a session's rows and grand total as JSON."""

    format = OutputFormat.JSON

    def render(
        self,
        session: AllocationSession,
        *,
        depth: int | None = None,
        value_places: int = 2,
        variance_places: int = 2,
        **options,
    ) -> str:
        """Render the table as JSON.

        Values are rounded to the display precision; the unrounded numbers
        stay available from the session itself.
        """
        rows = []
        for row in session.rows():
            if depth is not None and row.depth > depth:
                continue
            rows.append({
                "id": row.id,
                "label": row.label,
                "depth": row.depth,
                "value": round(row.value, value_places),
                "originalValue": round(row.original_value, value_places),
                "variance": round(row.variance, variance_places),
                "isLeaf": row.is_leaf,
            })

        data = {
            "rows": rows,
            "grandTotal": round(session.grand_total, value_places),
        }
        indent = options.get("indent", 2)
        return json.dumps(data, indent=indent)

from __future__ import annotations

import re
from typing import Any

from insightflow.errors import NotFoundError
from insightflow.modules.widgets.domain.values import to_text

_UNSAFE_FILENAME = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def _quote(value: Any) -> str:
    return '"' + to_text(value).replace('"', '""') + '"'


def export_csv(rows: list[dict[str, Any]]) -> str:
    """Header from the first row's keys, every value double-quoted, no trailing newline."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_quote(row.get(header)) for header in headers))
    return "\n".join(lines)


def export_filename(title: str | None) -> str:
    return _UNSAFE_FILENAME.sub("_", title or "export").lower() + ".csv"


def drill_down(rows: list[dict[str, Any]], index: int) -> dict[str, Any]:
    if not 0 <= index < len(rows):
        raise NotFoundError("data_point", str(index))
    return dict(rows[index])


def embed_snippet(base_url: str, dashboard_id: str) -> str:
    base = base_url.split("#", 1)[0]
    return (
        f'<iframe src="{base}#/embed/{dashboard_id}" width="100%" height="100%" '
        'frameborder="0" style="border:none; overflow:hidden;"></iframe>'
    )

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .table import GridView

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_grid_html(view: GridView, *, title: str | None = None) -> str:
    """Render a grid view as an HTML fragment (filter bar, table, dialogs)."""
    template = _env.get_template("grid.html")
    return template.render(view=view, title=title)

# Index page rendering.
# Created: 2026-10-16

from __future__ import annotations

from functools import lru_cache
from importlib.resources import files

from dufs.listing import IndexData, PathEntry

STYLE_PLACEHOLDER = "__STYLE__"
DATA_PLACEHOLDER = "__DATA__"


@lru_cache(maxsize=1)
def load_assets() -> tuple[str, str]:
    """Return the packaged ``(index.html, index.css)`` pair."""
    assets = files("dufs") / "assets"
    html = (assets / "index.html").read_text(encoding="utf-8")
    css = (assets / "index.css").read_text(encoding="utf-8")
    return html, css


def render_index(
    breadcrumb: str,
    paths: list[PathEntry],
    readonly: bool,
    template: str | None = None,
    css: str | None = None,
) -> str:
    """Fill the template's style and data placeholders."""
    if template is None or css is None:
        default_template, default_css = load_assets()
        template = default_template if template is None else template
        css = default_css if css is None else css

    data = IndexData(breadcrumb=breadcrumb, paths=paths, readonly=readonly)
    # "<" is escaped so a file name cannot terminate the enclosing <script>.
    payload = data.model_dump_json().replace("<", "\\u003c")

    output = template.replace(STYLE_PLACEHOLDER, f"<style>\n{css}</style>")
    return output.replace(DATA_PLACEHOLDER, payload)

"""Static widget markup served as MCP resources.

The three surfaces are built ahead of time into
`<widgets_dir>/<slug>/index.html` and loaded once at startup.
"""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .enums import Widget
from .errors import UnknownResourceError, WidgetNotFoundError

WIDGET_MIME_TYPE = "text/html+skybridge"

_DESCRIPTIONS = {
    Widget.MENU_CAROUSEL: ("Menu Carousel Widget", "Interactive menu carousel widget markup"),
    Widget.LOGIN: ("Login Widget", "User authentication widget"),
    Widget.BASKET: ("Basket Widget", "Shopping basket widget with checkout"),
}


@dataclass(frozen=True)
class WidgetResource:
    widget: Widget
    name: str
    description: str
    html: str
    mime_type: str = WIDGET_MIME_TYPE

    @property
    def uri(self) -> str:
        return self.widget.value

    @property
    def meta(self) -> dict:
        return self.widget.meta


class WidgetResolver:
    """Maps widget URIs to their pre-built markup."""

    def __init__(self, widgets_dir: Path):
        self.widgets_dir = Path(widgets_dir)
        self._resources = {widget.value: self._load(widget) for widget in Widget}

    def _load(self, widget: Widget) -> WidgetResource:
        html_path = self.widgets_dir / widget.slug / "index.html"
        if not html_path.is_file():
            raise WidgetNotFoundError(f"Widget HTML not found: {html_path}")
        name, description = _DESCRIPTIONS[widget]
        logger.debug("Loaded widget {} from {}", widget.slug, html_path)
        return WidgetResource(
            widget=widget,
            name=name,
            description=description,
            html=html_path.read_text(encoding="utf-8"),
        )

    def resources(self) -> list[WidgetResource]:
        return list(self._resources.values())

    def read(self, uri: str) -> WidgetResource:
        try:
            return self._resources[str(uri)]
        except KeyError:
            raise UnknownResourceError(f"Unknown resource: {uri}") from None

# src/vuelatour_site/widgets.py

from typing import Dict, Optional, Protocol

from markupsafe import Markup, escape


class WidgetPlugin(Protocol):
    """Optional third-party embed. Pages render without any plugin registered."""

    name: str

    def render(self, locale: str) -> str:
        ...


class WidgetRegistry:
    def __init__(self):
        self._plugins: Dict[str, WidgetPlugin] = {}

    def register(self, plugin: WidgetPlugin) -> None:
        self._plugins[plugin.name] = plugin

    def get(self, name: str) -> Optional[WidgetPlugin]:
        return self._plugins.get(name)

    def render(self, name: str, locale: str) -> Markup:
        plugin = self._plugins.get(name)
        if plugin is None:
            return Markup("")
        try:
            return Markup(plugin.render(locale))
        except Exception as e:
            # A broken embed must not take the page down with it
            print(f"SITE: Widget '{name}' failed to render: {e}")
            return Markup("")


class TripAdvisorRatingWidget:
    name = "tripadvisor_rating"

    def __init__(self, location_id: str):
        self.location_id = location_id

    def render(self, locale: str) -> str:
        lang = "es_MX" if locale == "es" else "en_US"
        src = (
            "https://www.tripadvisor.com/WidgetEmbed-cdsratingsonlywide"
            f"?locationId={escape(self.location_id)}&amp;lang={lang}&amp;border=true&amp;display_version=2"
        )
        return (
            f'<iframe src="{src}" width="100%" height="80" frameborder="0" scrolling="no" '
            f'style="max-width: 300px" title="TripAdvisor Rating"></iframe>'
        )

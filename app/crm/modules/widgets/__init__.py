"""
Dashboard widgets and the renderer that mounts them per page.

Widgets are looked up by identifier in a WidgetRegistry. Each identifier maps
to an import path that is loaded on first use.
"""

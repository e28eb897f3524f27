"""Export-Modul: Terminal-Darstellung des Monatskalenders (Rich)."""

from export.tui_renderer import print_month, render_day_rows, render_month_rows

__all__ = ["print_month", "render_day_rows", "render_month_rows"]

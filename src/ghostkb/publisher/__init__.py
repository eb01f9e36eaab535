"""Rendering of generated notes written back into the primary collection."""

from .report import relative_time, render_index_report, write_index_report

__all__ = ["relative_time", "render_index_report", "write_index_report"]

"""Gradio dashboard for filesearch."""

from .app import FileSearchAPIClient, build_interface, launch

__all__ = ["FileSearchAPIClient", "build_interface", "launch"]

"""Server-rendered HTML pages."""

from reware.pages.shell import render_shell_page

__all__ = ["render_shell_page"]

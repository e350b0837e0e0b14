"""
Leveled, coloured console output for the installer.
"""
from typing import Iterable, Optional
import click


class Console:
    """
    Writes tagged status lines to the terminal.

    Colour is left to click, which strips ANSI codes when the output is not
    a terminal.
    """
    LEVELS = {
        "info": ("[INFO]", "blue"),
        "success": ("[SUCCESS]", "green"),
        "warning": ("[WARNING]", "yellow"),
        "error": ("[ERROR]", "red"),
        "container": ("[CONTAINER]", "magenta"),
    }

    def __init__(self, color: Optional[bool] = None):
        self.color = color

    def _log(self, level: str, message: str):
        tag, fg = self.LEVELS[level]
        click.echo(f"{click.style(tag, fg=fg)} {message}", color=self.color)

    def info(self, message: str):
        self._log("info", message)

    def success(self, message: str):
        self._log("success", message)

    def warning(self, message: str):
        self._log("warning", message)

    def error(self, message: str):
        self._log("error", message)

    def container(self, message: str):
        self._log("container", message)

    def echo(self, message: str = ""):
        click.echo(message, color=self.color)

    def heading(self, title: str, fg: str = "blue"):
        rule = "=" * max(len(title) + 8, 40)
        click.secho(rule, fg=fg, color=self.color)
        click.secho(f"    {title}", fg=fg, color=self.color)
        click.secho(rule, fg=fg, color=self.color)

    def steps(self, items: Iterable[str], numbered: bool = True):
        """
        Prints an indented list, numbered by default.
        """
        for idx, item in enumerate(items, 1):
            prefix = f"{idx}." if numbered else "-"
            click.echo(f"  {prefix} {item}", color=self.color)

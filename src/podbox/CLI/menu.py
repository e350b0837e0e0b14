"""
Interactive management menu.
"""
from typing import Callable, List, NamedTuple
import click
from ..MANAGERS.sandbox_orchestrator import SandboxOrchestrator


class MenuOption(NamedTuple):
    key: str
    label: str
    action: Callable[[], object]


class ManagementMenu:
    """
    Numbered command dispatcher. Reads one selection per iteration and runs
    the matching operation; only the exit option ends the loop.
    """
    EXIT_KEY = "10"

    def __init__(self,
                 sandbox: SandboxOrchestrator,
                 prompt: Callable[..., str] = click.prompt,
                 pause: Callable[[], None] = click.pause,
                 clear: Callable[[], None] = click.clear):
        """
        :param sandbox: Wired components the options act on.
        :param prompt: Reads the selection.
        :param pause: Waits for the operator after each operation.
        :param clear: Clears the screen before the menu is shown again.
        """
        self.sandbox = sandbox
        self.console = sandbox.console
        self.prompt = prompt
        self.pause = pause
        self.clear = clear
        lifecycle = sandbox.lifecycle
        self.options: List[MenuOption] = [
            MenuOption("1", "Build container", sandbox.build),
            MenuOption("2", "Start container", lifecycle.start),
            MenuOption("3", "Stop container", lifecycle.stop),
            MenuOption("4", "Log in to container", lifecycle.login),
            MenuOption("5", "Container status", lifecycle.status),
            MenuOption("6", "Container logs", lifecycle.logs),
            MenuOption("7", "Open web interfaces", lifecycle.open_web_interfaces),
            MenuOption("8", "Clean up container", lifecycle.cleanup),
            MenuOption("9", "Network troubleshooting", sandbox.installer.troubleshoot_network),
        ]

    def show(self):
        self.console.heading(f"{self.sandbox.config.container_name} management")
        for option in self.options:
            self.console.echo(f"{option.key}) {option.label}")
        self.console.echo(f"{self.EXIT_KEY}) Exit")
        self.console.echo()

    def dispatch(self, choice: str) -> bool:
        """
        Runs the option selected by ``choice``.

        :return: False when the exit option was chosen, True otherwise.
        """
        choice = choice.strip()
        if choice == self.EXIT_KEY:
            self.console.echo("Goodbye!")
            return False
        for option in self.options:
            if option.key == choice:
                self.sandbox.guarded(option.action)
                return True
        self.console.error(f"Invalid option: {choice}")
        return True

    def run(self):
        while True:
            self.show()
            choice = str(self.prompt(f"Choose an option (1-{self.EXIT_KEY})", default="", show_default=False))
            if not self.dispatch(choice):
                break
            self.console.echo()
            self.pause()
            self.clear()

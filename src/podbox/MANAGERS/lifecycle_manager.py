# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Lifecycle operations for the named sandbox container: start, stop, status,
logs, login and cleanup. Every operation is idempotent and reports failure
through its return value.
"""
import shutil
from typing import Callable, Optional
import click
from tenacity import retry, retry_if_result, stop_after_delay, wait_fixed

from ..MODELS.container_state import ContainerState, NetworkMode, StartResult
from ..MODELS.sandbox_config import SandboxConfig
from ..RUNNERS.runtime_client import RuntimeClient
from ..UTILS.console import Console
from .state_store import StateStore

SERVICE_PROBE = """
echo 'Container services:'
ps aux | grep -E '(mcp_server|streamlit|app.py)' | grep -v grep
echo
echo 'Listening ports:'
ss -tln 2>/dev/null || echo "ss not available"
echo
echo 'Files in /app:'
ls -la /app/
echo
echo 'Press Enter for a shell...'
read _
"""

CONTAINER_HELP = [
    "python terminal_client.py    interactive MCP client",
    "python mcp_server.py         start the MCP server by hand",
    "ls -la /app/                 container files",
    "ps aux                       running processes",
    "exit                         leave the container",
]


class LoginEntry:
    """Entry points offered by ``login``."""

    SHELL = "1"
    TERMINAL_CLIENT = "2"
    SERVICE_STATUS = "3"
    HELP = "4"
    CANCEL = "5"

    LABELS = {
        SHELL: "Bash shell",
        TERMINAL_CLIENT: "Terminal client",
        SERVICE_STATUS: "Check service status, then shell",
        HELP: "Show help, then shell",
        CANCEL: "Cancel",
    }


class LifecycleManager:
    """
    Manages the single named container built from the sandbox image.
    """
    def __init__(self,
                 config: SandboxConfig,
                 runtime: RuntimeClient,
                 console: Console,
                 store: StateStore,
                 confirm: Callable[..., bool] = click.confirm,
                 prompt: Callable[..., str] = click.prompt,
                 launch: Callable[[str], int] = click.launch,
                 poll_interval: float = 1.0):
        """
        Initializes the lifecycle manager.

        :param config: Sandbox configuration.
        :param runtime: Container runtime client.
        :param console: Output sink.
        :param store: Persisted sandbox state.
        :param confirm: Yes/no question callback.
        :param prompt: Free-text question callback.
        :param launch: Opens a URL in the desktop browser.
        :param poll_interval: Seconds between state polls while waiting for startup.
        """
        self.config = config
        self.runtime = runtime
        self.console = console
        self.store = store
        self.confirm = confirm
        self.prompt = prompt
        self.launch = launch
        self.poll_interval = poll_interval

    @property
    def name(self) -> str:
        return self.config.container_name

    def state(self) -> ContainerState:
        return self.runtime.container_state(self.name)

    def is_running(self) -> bool:
        return self.state() == ContainerState.RUNNING

    # start / stop

    def _remove_existing(self):
        record = self.runtime.find_container(self.name)
        if record is None:
            return
        if record.is_running:
            self.console.warning("Container is already running, stopping it first...")
            self.runtime.stop(self.name)
        self.console.info("Removing old container...")
        if not self.runtime.remove(self.name).ok:
            self.console.warning(f"Could not remove container {self.name}")

    def start(self) -> StartResult:
        """
        Replaces any existing instance and launches a new one, trying the host
        network first and a bridge network with static port mappings second.
        """
        self.console.info(f"Starting container {self.name}...")
        self._remove_existing()

        self.console.info("Trying host network...")
        if self.runtime.run_detached(self.name, self.config.image_ref, network="host").ok:
            return self._started(NetworkMode.HOST)

        self.console.warning("Host network failed, trying bridge network with port mapping...")
        if self.runtime.find_container(self.name) is not None:
            self.runtime.remove(self.name)
        ports = {port: port for port in self.config.ports}
        if self.runtime.run_detached(self.name, self.config.image_ref, ports=ports).ok:
            return self._started(NetworkMode.BRIDGE)

        self.console.error("Failed to start the container")
        self.console.echo("Debugging commands:")
        self.console.steps([
            f"{self.runtime.binary} logs {self.name}",
            f"{self.runtime.binary} system info",
            f"sudo modprobe {self.config.kernel_module}",
        ], numbered=False)
        return StartResult(success=False)

    def _started(self, mode: NetworkMode) -> StartResult:
        label = "host (direct access)" if mode == NetworkMode.HOST else "bridge (port mapping)"
        self.console.success(f"Container started with network mode: {label}")
        self._print_urls()
        self.console.echo(f"Container name: {self.name}")
        self.store.record_start(mode)
        return StartResult(success=True, network_mode=mode)

    def wait_until_running(self, timeout: Optional[float] = None) -> bool:
        """
        Polls the container state until it is running or the timeout expires.
        """
        timeout = self.config.startup_wait if timeout is None else timeout

        @retry(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda state: state != ContainerState.RUNNING),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        def poll():
            return self.state()

        return poll() == ContainerState.RUNNING

    def stop(self) -> bool:
        self.console.info(f"Stopping container {self.name}...")
        if not self.is_running():
            self.console.warning("Container is not running")
            return True
        if self.runtime.stop(self.name).ok:
            self.console.success("Container stopped")
            return True
        self.console.error(f"Could not stop {self.name}")
        return False

    # status / logs

    def status(self) -> ContainerState:
        """
        Prints the container status; for a running container also its runtime
        state, port mappings and recent log lines.
        """
        self.console.heading("Container status")
        record = self.runtime.find_container(self.name)

        if record is not None and record.is_running:
            state = ContainerState.RUNNING
            self.console.echo(click.style("Status: RUNNING", fg="green"))
            self.console.echo()
            self.console.echo("Details:")
            self.console.echo(self.runtime.inspect(self.name, "{{.State.Status}}").stdout.rstrip())
            self.console.echo()
            self.console.echo("Port mappings:")
            self.console.echo(self.runtime.port(self.name).stdout.rstrip())
            self.console.echo()
            self.console.echo("Recent logs:")
            self.console.echo(self.runtime.logs(self.name, tail=self.config.log_tail_lines).stdout.rstrip())
        else:
            state = ContainerState.STOPPED
            self.console.echo(click.style("Status: STOPPED", fg="red"))

        saved = self.store.load()
        if saved.build_method is not None:
            self.console.echo()
            line = f"Image {saved.image_ref} built via {saved.build_method.value}"
            if saved.degraded:
                line += " (reduced definition: OS-level helpers missing)"
            self.console.echo(line)
        return state

    def logs(self) -> bool:
        result = self.runtime.logs(self.name)
        self.console.echo(result.stdout.rstrip())
        if not result.ok:
            self.console.error(result.stderr.strip() or f"No logs for {self.name}")
        return result.ok

    # login

    def _ensure_running_for_login(self) -> bool:
        if self.is_running():
            return True
        self.console.error(f"Container '{self.name}' is not running!")
        if not self.confirm("Start the container now?", default=False):
            return False
        if not self.start().success:
            return False
        return self.wait_until_running()

    def show_info(self):
        self.console.echo(f"Container: {self.name}")
        status = self.runtime.inspect(self.name, "{{.State.Status}}").stdout.strip()
        started = self.runtime.inspect(self.name, "{{.State.StartedAt}}").stdout.strip()
        self.console.echo(f"Status: {status}")
        self.console.echo(f"Started: {started}")
        ports = [line for line in self.runtime.port(self.name).stdout.splitlines() if line.strip()]
        if ports:
            self.console.echo("Ports:")
            self.console.steps(ports, numbered=False)
        self._print_urls()

    def choose_login_entry(self) -> str:
        self.console.echo("Login options:")
        for key, label in LoginEntry.LABELS.items():
            self.console.echo(f"{key}) {label}")
        choice = str(self.prompt("Choose an option (1-5)", default=LoginEntry.SHELL)).strip()
        if choice not in LoginEntry.LABELS:
            self.console.warning("Invalid option, using the shell")
            return LoginEntry.SHELL
        return choice

    def login(self, entry: Optional[str] = None) -> bool:
        """
        Attaches an interactive session to the running container.

        :param entry: Login option; asked interactively when omitted.
        :return: False when the container is not running or the session failed.
        """
        if not self._ensure_running_for_login():
            return False

        self.show_info()
        entry = entry or self.choose_login_entry()
        if entry == LoginEntry.CANCEL:
            self.console.info("Login cancelled")
            return True

        if entry == LoginEntry.TERMINAL_CLIENT:
            self.console.info("Starting the terminal client ('help' lists commands, 'quit' leaves)")
            result = self.runtime.exec_interactive(self.name, ["python", "terminal_client.py"])
        else:
            if entry == LoginEntry.SERVICE_STATUS:
                self.runtime.exec_interactive(self.name, ["/bin/bash", "-c", SERVICE_PROBE])
            elif entry == LoginEntry.HELP:
                self.console.echo("Useful commands inside the container:")
                self.console.steps(CONTAINER_HELP, numbered=False)
            self.console.info("Starting bash ('exit' leaves the container)")
            result = self.runtime.exec_interactive(self.name, ["/bin/bash"])

        self.console.success("Login session ended")
        if shutil.which("xdg-open") and self.confirm("Open the web interfaces in the browser?", default=False):
            self.open_web_interfaces()
        return result.ok

    # browser

    def _print_urls(self):
        for name, url in self.config.web_urls().items():
            self.console.echo(f"  {name}: {url}")

    def open_web_interfaces(self) -> bool:
        if not self.is_running():
            self.console.error("Container is not running!")
            return False
        if not shutil.which("xdg-open"):
            self.console.echo("Open manually:")
            self._print_urls()
            return True
        for url in self.config.web_urls().values():
            self.launch(url)
        self.console.success("Browser tabs opened")
        return True

    # cleanup

    def cleanup(self) -> bool:
        """
        Stops and removes the container and prunes dangling images. Each step
        runs regardless of the others.

        :return: True when every attempted step succeeded.
        """
        self.console.info("Cleaning up...")
        ok = True
        record = self.runtime.find_container(self.name)
        if record is not None and record.is_running:
            if not self.runtime.stop(self.name).ok:
                self.console.warning(f"Could not stop {self.name}")
                ok = False
        if self.runtime.find_container(self.name) is not None:
            if not self.runtime.remove(self.name).ok:
                self.console.warning(f"Could not remove {self.name}")
                ok = False
        if not self.runtime.prune_images().ok:
            self.console.warning("Could not prune dangling images")
            ok = False

        if ok:
            self.console.success("Cleanup finished")
        else:
            self.console.error("Cleanup finished with errors")
        return ok

"""
Thin wrapper around the Podman command line.
"""
import json
import shutil
from typing import List, Optional, Dict
from pydantic import ValidationError
from .command_runner import CommandRunner, CommandResult
from ..MODELS.container_state import ContainerRecord, ContainerState


class RuntimeClient:
    """
    Issues container runtime commands against named images and containers.
    Only exit status is interpreted, except for ``ps`` which is parsed into
    typed records.
    """
    def __init__(self, runner: CommandRunner, binary: str = "podman"):
        """
        :param runner: Runner used for every runtime invocation.
        :param binary: Name of the runtime executable.
        """
        self.runner = runner
        self.binary = binary

    def _run(self, *args: str, capture: bool = True, interactive: bool = False) -> CommandResult:
        return self.runner.run([self.binary, *args], capture=capture, interactive=interactive)

    def is_installed(self) -> bool:
        return shutil.which(self.binary) is not None

    # Images

    def build(self, image_ref: str, context_dir: str,
              definition: Optional[str] = None,
              network: Optional[str] = None) -> CommandResult:
        """
        Builds an image, streaming the build output to the terminal.

        :param image_ref: Name and tag of the resulting image.
        :param context_dir: Build context directory.
        :param definition: Path of the Containerfile, relative to the context.
        :param network: Network mode for RUN steps, e.g. ``host``.
        """
        args = ["build"]
        if network:
            args += ["--network", network]
        if definition:
            args += ["-f", definition]
        args += ["-t", image_ref, context_dir]
        return self._run(*args, capture=False)

    def prune_images(self) -> CommandResult:
        return self._run("image", "prune", "-f")

    # Containers

    def list_containers(self) -> List[ContainerRecord]:
        """
        Lists all containers, running or not.

        :return: Parsed records; an empty list when the runtime call fails.
        """
        result = self._run("ps", "-a", "--format", "json")
        if not result.ok or not result.stdout.strip():
            return []
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            return []
        records = []
        for item in data or []:
            try:
                records.append(ContainerRecord.model_validate(item))
            except ValidationError:
                continue
        return records

    def find_container(self, name: str) -> Optional[ContainerRecord]:
        for record in self.list_containers():
            if record.has_name(name):
                return record
        return None

    def container_state(self, name: str) -> ContainerState:
        record = self.find_container(name)
        if record is None:
            return ContainerState.ABSENT
        return ContainerState.RUNNING if record.is_running else ContainerState.STOPPED

    def run_detached(self, name: str, image_ref: str,
                     network: Optional[str] = None,
                     ports: Optional[Dict[int, int]] = None) -> CommandResult:
        """
        Launches a detached container.

        :param name: Container name.
        :param image_ref: Image to run.
        :param network: Network mode, e.g. ``host``.
        :param ports: Mapping from host port to container port.
        """
        args = ["run", "-d", "--name", name]
        if network:
            args += ["--network", network]
        for host_port, container_port in (ports or {}).items():
            args += ["-p", f"{host_port}:{container_port}"]
        args.append(image_ref)
        return self._run(*args)

    def stop(self, name: str) -> CommandResult:
        return self._run("stop", name)

    def remove(self, name: str) -> CommandResult:
        return self._run("rm", name)

    def inspect(self, name: str, fmt: str) -> CommandResult:
        return self._run("inspect", name, "--format", fmt)

    def port(self, name: str) -> CommandResult:
        return self._run("port", name)

    def logs(self, name: str, tail: Optional[int] = None) -> CommandResult:
        args = ["logs"]
        if tail is not None:
            args += ["--tail", str(tail)]
        args.append(name)
        return self._run(*args)

    def exec_interactive(self, name: str, command: List[str]) -> CommandResult:
        return self._run("exec", "-it", name, *command, interactive=True)

    # System

    def system_reset(self) -> CommandResult:
        return self._run("system", "reset", "--force")

    def system_info(self) -> CommandResult:
        return self._run("system", "info")

"""
Shared fixtures: a scripted stand-in for the host's command line.
"""
import json
from collections import namedtuple
import pytest
from podbox.RUNNERS.command_runner import CommandResult
from podbox.MODELS.sandbox_config import SandboxConfig
from podbox.MANAGERS.sandbox_orchestrator import SandboxOrchestrator
from podbox.UTILS.console import Console


Uids = namedtuple("Uids", "real effective saved")


class FakeRunner:
    """
    Records every command and answers from scripted rules. Podman container
    commands (ps, run, stop, rm) act on an in-memory container table.
    """
    def __init__(self):
        self.calls = []
        self.rules = []
        self.containers = {}

    def fail(self, *prefix, returncode=1, stderr="", times=None):
        self.rules.append({"prefix": list(prefix), "returncode": returncode,
                           "stdout": "", "stderr": stderr, "times": times})

    def respond(self, *prefix, stdout="", returncode=0, times=None):
        self.rules.append({"prefix": list(prefix), "returncode": returncode,
                           "stdout": stdout, "stderr": "", "times": times})

    def add_container(self, name, state="running", image="localhost/mcp-server:latest"):
        self.containers[name] = {"Id": f"id-{name}", "Names": [name], "Image": image, "State": state}

    def commands(self, *prefix):
        return [c for c in self.calls if c[:len(prefix)] == list(prefix)]

    def _match(self, command):
        for rule in self.rules:
            if command[:len(rule["prefix"])] == rule["prefix"] and rule["times"] != 0:
                if rule["times"] is not None:
                    rule["times"] -= 1
                return rule
        return None

    def run(self, command, capture=True, interactive=False, input_text=None, cwd=None):
        command = list(command)
        self.calls.append(command)

        if command[:2] == ["podman", "ps"]:
            return CommandResult(command, 0, json.dumps(list(self.containers.values())))

        rule = self._match(command)
        if rule is not None:
            result = CommandResult(command, rule["returncode"], rule["stdout"], rule["stderr"])
        else:
            result = CommandResult(command, 0)

        if result.ok and command[:1] == ["podman"]:
            self._apply(command[1:])
        return result

    def _apply(self, args):
        if args[:2] == ["run", "-d"]:
            name = args[args.index("--name") + 1]
            self.add_container(name, image=args[-1])
        elif args[:1] == ["stop"] and args[1] in self.containers:
            self.containers[args[1]]["State"] = "exited"
        elif args[:1] == ["rm"]:
            self.containers.pop(args[1], None)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def config(tmp_path):
    return SandboxConfig(workspace=str(tmp_path / "workspace"), startup_wait=0)


@pytest.fixture
def sandbox(config, fake_runner):
    return SandboxOrchestrator(
        config,
        runner=fake_runner,
        console=Console(color=False),
        confirm=lambda *a, **kw: False,
        prompt=lambda *a, **kw: "1",
        launch=lambda url: 0,
        poll_interval=0,
    )


class FakeProcess:
    """Stands in for ``psutil.Process`` with a fixed effective UID."""
    def __init__(self, effective):
        self.effective = effective

    def uids(self):
        return Uids(1000, self.effective, self.effective)


@pytest.fixture
def fake_process():
    return FakeProcess

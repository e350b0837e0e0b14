"""
Wrappers for the host commands used during provisioning: pacman, usermod,
modprobe and systemd user units.
"""
import os
from typing import List, Sequence
from .command_runner import CommandRunner, CommandResult


class PackageManager:
    """
    Pacman front end. Mutating calls go through sudo.
    """
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def upgrade(self) -> CommandResult:
        return self.runner.run(["sudo", "pacman", "-Syu", "--noconfirm"], capture=False)

    def install(self, packages: Sequence[str]) -> CommandResult:
        """
        Installs packages, skipping those already up to date.
        """
        return self.runner.run(
            ["sudo", "pacman", "-S", "--needed", "--noconfirm", *packages],
            capture=False,
        )

    def missing(self, packages: Sequence[str]) -> List[str]:
        """
        Returns the packages that are not installed.

        ``pacman -T`` prints every unsatisfied dependency and exits with 127
        when there is at least one.
        """
        if not packages:
            return []
        result = self.runner.run(["pacman", "-T", *packages])
        if result.ok:
            return []
        reported = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        return reported or list(packages)


class HostSystem:
    """
    Kernel module, subordinate ID and systemd user unit management.
    """
    def __init__(self, runner: CommandRunner,
                 subuid_file: str = "/etc/subuid",
                 sys_module_dir: str = "/sys/module"):
        self.runner = runner
        self.subuid_file = subuid_file
        self.sys_module_dir = sys_module_dir

    # Kernel modules

    def module_loaded(self, module: str) -> bool:
        return os.path.isdir(os.path.join(self.sys_module_dir, module))

    def load_module(self, module: str) -> CommandResult:
        return self.runner.run(["sudo", "modprobe", module])

    def module_persisted(self, module: str, modules_load_file: str) -> bool:
        try:
            with open(modules_load_file, 'r') as f:
                return module in (line.strip() for line in f)
        except OSError:
            return False

    def persist_module(self, module: str, modules_load_file: str) -> CommandResult:
        return self.runner.run(["sudo", "tee", "-a", modules_load_file], input_text=f"{module}\n")

    # Subordinate IDs

    def has_subordinate_ids(self, user: str) -> bool:
        try:
            with open(self.subuid_file, 'r') as f:
                return any(line.split(':', 1)[0] == user for line in f)
        except OSError:
            return False

    def grant_subordinate_ids(self, user: str, id_range: str) -> CommandResult:
        return self.runner.run([
            "sudo", "usermod",
            "--add-subuids", id_range,
            "--add-subgids", id_range,
            user,
        ])

    # systemd --user

    def unit_enabled(self, unit: str) -> bool:
        return self.runner.run(["systemctl", "--user", "is-enabled", "--quiet", unit]).ok

    def unit_active(self, unit: str) -> bool:
        return self.runner.run(["systemctl", "--user", "is-active", "--quiet", unit]).ok

    def enable_unit(self, unit: str) -> CommandResult:
        return self.runner.run(["systemctl", "--user", "enable", unit])

    def start_unit(self, unit: str) -> CommandResult:
        return self.runner.run(["systemctl", "--user", "start", unit])

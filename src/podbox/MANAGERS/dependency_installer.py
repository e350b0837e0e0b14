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
Provisioning of the host: OS packages, rootless Podman, kernel networking
support and the user-level runtime socket.
"""
import getpass
from ..MODELS.sandbox_config import SandboxConfig
from ..RUNNERS.package_manager import PackageManager, HostSystem
from ..RUNNERS.runtime_client import RuntimeClient
from ..UTILS.console import Console
from ..errors import DependencyInstallError


class DependencyInstaller:
    """
    Ensures every member of the dependency set is present. Each member is
    checked before acting, so a second run performs no mutations.
    """
    def __init__(self,
                 config: SandboxConfig,
                 packages: PackageManager,
                 host: HostSystem,
                 runtime: RuntimeClient,
                 console: Console,
                 user: str = None):
        """
        Initializes the installer.

        :param config: Sandbox configuration.
        :param packages: Package manager front end.
        :param host: Kernel module, subordinate ID and systemd helpers.
        :param runtime: Container runtime client.
        :param console: Output sink.
        :param user: Account that receives the subordinate ID range.
        """
        self.config = config
        self.packages = packages
        self.host = host
        self.runtime = runtime
        self.console = console
        self.user = user or getpass.getuser()

    def install(self):
        """
        Runs every provisioning step in order.

        :raises DependencyInstallError: If a required package cannot be installed.
        """
        self.install_system_packages()
        self.install_runtime()
        self.ensure_kernel_module()
        self.ensure_network_helper()
        self.enable_runtime_socket()
        self.reset_runtime_network()
        self.console.success("Podman installed and configured")

    def install_system_packages(self):
        self.console.info("Installing system dependencies...")
        if self.config.upgrade_system:
            if not self.packages.upgrade().ok:
                self.console.warning("System upgrade failed, continuing")

        missing = self.packages.missing(self.config.system_packages)
        if not missing:
            self.console.success("System packages already installed")
            return
        if not self.packages.install(missing).ok:
            raise DependencyInstallError(
                f"Failed to install system packages: {' '.join(missing)}",
                remediation=[f"sudo pacman -S --needed {' '.join(missing)}"],
            )
        self.console.success("System dependencies installed")

    def install_runtime(self):
        """
        Installs the runtime package set and grants subordinate IDs, once.
        """
        self.console.info("Installing Podman...")
        if self.runtime.is_installed():
            self.console.success("Podman is already installed")
        else:
            if not self.packages.install(self.config.runtime_packages).ok:
                raise DependencyInstallError(
                    "Failed to install Podman",
                    remediation=[f"sudo pacman -S --needed {' '.join(self.config.runtime_packages)}"],
                )
        self.ensure_subordinate_ids()

    def ensure_subordinate_ids(self):
        if self.host.has_subordinate_ids(self.user):
            return
        id_range = self.config.subordinate_ids.as_usermod_range()
        self.console.info(f"Granting subordinate IDs {id_range} to {self.user}")
        if not self.host.grant_subordinate_ids(self.user, id_range).ok:
            self.console.warning("Could not configure subordinate UID/GID ranges")

    def ensure_kernel_module(self):
        """
        Loads and persists the kernel module. Failures only degrade networking.
        """
        module = self.config.kernel_module
        self.console.info("Configuring network modules...")
        if not self.host.module_loaded(module):
            if not self.host.load_module(module).ok:
                self.console.warning(f"{module.upper()} module could not be loaded")

        if not self.host.module_persisted(module, self.config.modules_load_file):
            if not self.host.persist_module(module, self.config.modules_load_file).ok:
                self.console.warning(f"Could not persist {module} in {self.config.modules_load_file}")

    def ensure_network_helper(self):
        helper = self.config.network_helper
        if not helper or not self.packages.missing([helper]):
            return
        if not self.packages.install([helper]).ok:
            self.console.warning(f"{helper} could not be installed")

    def enable_runtime_socket(self):
        unit = self.config.runtime_socket
        if not self.host.unit_enabled(unit):
            if not self.host.enable_unit(unit).ok:
                self.console.warning(f"Could not enable {unit}")
        if not self.host.unit_active(unit):
            if not self.host.start_unit(unit).ok:
                self.console.warning(f"Could not start {unit}")

    def reset_runtime_network(self):
        """
        Best-effort reset of the runtime's network state.
        """
        if not self.runtime.system_reset().ok:
            self.console.info("Podman network state already clean")

    def prepare_build_network(self):
        """
        Reloads the kernel module ahead of a build.
        """
        if not self.host.load_module(self.config.kernel_module).ok:
            self.console.warning(f"{self.config.kernel_module.upper()} module already loaded or unavailable")

    def troubleshoot_network(self) -> bool:
        """
        Best-effort repair of container networking, reporting every step.
        """
        module = self.config.kernel_module
        helper = self.config.network_helper

        self.console.info(f"1. Loading the {module.upper()} module...")
        if self.host.load_module(module).ok:
            self.console.success(f"{module.upper()} module loaded")
        else:
            self.console.error(f"{module.upper()} module could not be loaded")

        self.console.info("2. Resetting the Podman network state...")
        if self.runtime.system_reset().ok:
            self.console.success("Podman reset")
        else:
            self.console.error("Podman reset failed")

        self.console.info(f"3. Checking {helper}...")
        if not self.packages.missing([helper]):
            self.console.success(f"{helper} is available")
        elif self.packages.install([helper]).ok:
            self.console.success(f"{helper} installed")
        else:
            self.console.error(f"{helper} could not be installed")

        self.console.info("4. Podman network information:")
        info = self.runtime.system_info()
        lines = info.stdout.splitlines()
        for idx, line in enumerate(lines):
            if "network" in line.lower():
                self.console.echo("\n".join(lines[max(0, idx - 5):idx + 6]))
                break

        self.console.echo()
        self.console.info("Now try starting the container again")
        return info.ok

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
Wiring of the provisioning components and the end-to-end install flow.
"""
from typing import Optional
from ..MODELS.build_attempt import BuildResult
from ..MODELS.sandbox_config import SandboxConfig
from ..RUNNERS.command_runner import CommandRunner
from ..RUNNERS.runtime_client import RuntimeClient
from ..RUNNERS.package_manager import PackageManager, HostSystem
from ..BUILDERS.asset_materializer import AssetMaterializer
from ..BUILDERS.image_builder import ImageBuilder
from ..UTILS.console import Console
from .preflight import PreflightChecker
from .dependency_installer import DependencyInstaller
from .lifecycle_manager import LifecycleManager
from .instance_lock import InstanceLock
from .state_store import StateStore
from ..errors import PodboxError


class SandboxOrchestrator:
    """
    Owns one instance of every component, all sharing the same configuration,
    runner and console.
    """
    def __init__(self,
                 config: SandboxConfig,
                 runner: Optional[CommandRunner] = None,
                 console: Optional[Console] = None,
                 preflight: Optional[PreflightChecker] = None,
                 **lifecycle_options):
        """
        Initializes the orchestrator.

        :param config: Sandbox configuration.
        :param runner: Command runner shared by all components.
        :param console: Output sink.
        :param preflight: Identity check, defaults to the current process.
        :param lifecycle_options: Extra keyword arguments for ``LifecycleManager``.
        """
        self.config = config
        self.runner = runner or CommandRunner()
        self.console = console or Console()

        self.runtime = RuntimeClient(self.runner, config.runtime_binary)
        self.store = StateStore(config.state_dir)
        self.preflight = preflight or PreflightChecker()
        self.installer = DependencyInstaller(
            config,
            PackageManager(self.runner),
            HostSystem(self.runner),
            self.runtime,
            self.console,
        )
        self.materializer = AssetMaterializer(config)
        self.builder = ImageBuilder(config, self.runtime, self.console)
        self.lifecycle = LifecycleManager(config, self.runtime, self.console, self.store,
                                          **lifecycle_options)

    def lock(self) -> InstanceLock:
        return InstanceLock(f"{self.config.state_dir}/podbox.pid")

    def materialize(self):
        self.console.info(f"Writing container files to {self.config.workspace}")
        for path in self.materializer.materialize():
            self.console.echo(f"  {path}")
        self.console.success("Container files created")

    def build(self) -> BuildResult:
        """
        Reloads the kernel networking module, builds the image and records the
        tier that produced it.

        :raises BuildFailedError: If every tier fails.
        """
        self.console.container("Preparing the image build...")
        self.installer.prepare_build_network()
        result = self.builder.build()
        self.store.record_build(result)
        return result

    def install(self, login: bool = True) -> bool:
        """
        Full provisioning flow: preflight, dependencies, assets, build, start,
        status and login.

        :param login: Attach to the container once it runs.
        :return: False when the container could not be started.
        :raises PodboxError: On preflight rejection, a held lock, a failed
            package install or a failed build.
        """
        self.console.heading("Podbox sandbox installer")
        self.preflight.check()

        with self.lock():
            self.installer.install()
            self.materialize()
            self.build()

            self.console.info("Starting the container...")
            if not self.lifecycle.start().success:
                self.console.error("Automatic container start failed!")
                self.console.steps([
                    f"sudo modprobe {self.config.kernel_module}",
                    f"{self.config.runtime_binary} system reset --force",
                    "podbox start",
                ])
                return False

            self.console.info(f"Waiting up to {self.config.startup_wait:g}s for the container...")
            if not self.lifecycle.wait_until_running():
                self.console.warning("Container is not reporting 'running' yet")
            self.lifecycle.status()

        if login:
            self.lifecycle.login()
        return True

    def guarded(self, operation, *args, **kwargs):
        """
        Runs an operation, turning installer errors into a printed report.

        :return: The operation's result, or False if it raised.
        """
        try:
            return operation(*args, **kwargs)
        except PodboxError as e:
            self.report(e)
            return False

    def report(self, error: PodboxError):
        self.console.error(str(error))
        if error.remediation:
            self.console.echo("Troubleshooting steps:")
            self.console.steps(error.remediation)

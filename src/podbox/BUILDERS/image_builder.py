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
Builds the sandbox image, escalating through progressively weaker build
strategies until one succeeds.
"""
import os
from enum import Enum
from typing import Dict, List, Tuple
from ..PARSERS.dockerfile_parser import DockerfileParser
from ..MODELS.dockerfile_ast import DockerfileAST
from ..MODELS.build_attempt import BuildAttempt, BuildMethod, BuildOutcome, BuildResult
from ..MODELS.sandbox_config import SandboxConfig
from ..RUNNERS.runtime_client import RuntimeClient
from ..UTILS.console import Console
from ..errors import BuildFailedError

OS_PACKAGE_MANAGERS = ("apt-get", "apt", "apk", "dnf", "yum", "microdnf", "pacman", "zypper")

REMEDIATION = [
    "sudo modprobe tun",
    "sudo pacman -S linux-headers",
    "Reboot the system",
    "podman system reset --force",
]


class BuildState(str, Enum):
    """States of the build sequence."""

    ATTEMPT_DEFAULT = "attempt-default"
    ATTEMPT_HOST_NETWORK = "attempt-host-network"
    ATTEMPT_REDUCED = "attempt-reduced"
    SUCCESS = "success"
    FAILED = "failed"


# state -> (method tried in that state, state entered when it fails)
TRANSITIONS: Dict[BuildState, Tuple[BuildMethod, BuildState]] = {
    BuildState.ATTEMPT_DEFAULT: (BuildMethod.DEFAULT_NETWORK, BuildState.ATTEMPT_HOST_NETWORK),
    BuildState.ATTEMPT_HOST_NETWORK: (BuildMethod.HOST_NETWORK, BuildState.ATTEMPT_REDUCED),
    BuildState.ATTEMPT_REDUCED: (BuildMethod.REDUCED_DEFINITION, BuildState.FAILED),
}


class ImageBuilder:
    """
    Runs the three-tier build: default network, then host network, then a
    reduced definition without OS package installation. Every tier drops a
    constraint instead of repeating the previous attempt.
    """
    def __init__(self, config: SandboxConfig, runtime: RuntimeClient, console: Console):
        """
        Initializes the ImageBuilder.

        :param config: Sandbox configuration (image, workspace, definition names).
        :param runtime: Container runtime client.
        :param console: Output sink.
        """
        self.config = config
        self.runtime = runtime
        self.console = console
        self.parser = DockerfileParser()

    @property
    def definition_path(self) -> str:
        return os.path.join(self.config.workspace, self.config.build_definition)

    @property
    def reduced_definition_path(self) -> str:
        return os.path.join(self.config.workspace, self.config.reduced_build_definition)

    def reduce_definition(self, ast: DockerfileAST) -> DockerfileAST:
        """
        Drops every RUN step that installs OS-level packages. Interpreter-level
        installs and file copies are kept.
        """
        kept = [inst for inst in ast.instructions if not inst.invokes_any(OS_PACKAGE_MANAGERS)]
        return DockerfileAST(instructions=kept)

    def write_reduced_definition(self) -> str:
        """
        Derives the reduced definition from the full one and writes it next to it.

        :return: Path of the reduced definition.
        """
        reduced = self.reduce_definition(self.parser.parse(self.definition_path))
        with open(self.reduced_definition_path, 'w') as f:
            f.write(reduced.render())
        return self.reduced_definition_path

    def _attempt(self, method: BuildMethod) -> bool:
        image_ref = self.config.image_ref
        context = self.config.workspace

        if method == BuildMethod.DEFAULT_NETWORK:
            self.console.container("Building image with the default network...")
            result = self.runtime.build(image_ref, context, definition=self.definition_path)
        elif method == BuildMethod.HOST_NETWORK:
            self.console.warning("Default build failed, retrying with the host network...")
            result = self.runtime.build(image_ref, context, definition=self.definition_path,
                                        network="host")
        else:
            self.console.warning("Host network build failed, retrying with a reduced definition...")
            try:
                definition = self.write_reduced_definition()
            except (OSError, ValueError) as e:
                self.console.error(f"Could not derive the reduced definition: {e}")
                return False
            result = self.runtime.build(image_ref, context, definition=definition)
        return result.ok

    def build(self) -> BuildResult:
        """
        Runs the build sequence, stopping at the first successful tier.

        :return: The successful build, with all attempts in order.
        :raises BuildFailedError: If all three tiers fail.
        """
        attempts: List[BuildAttempt] = []
        state = BuildState.ATTEMPT_DEFAULT
        method = None

        while state not in (BuildState.SUCCESS, BuildState.FAILED):
            method, on_failure = TRANSITIONS[state]
            ok = self._attempt(method)
            attempts.append(BuildAttempt(
                method=method,
                outcome=BuildOutcome.SUCCESS if ok else BuildOutcome.FAILURE,
            ))
            state = BuildState.SUCCESS if ok else on_failure

        if state == BuildState.FAILED:
            self.console.error("All build attempts failed!")
            raise BuildFailedError("All build attempts failed", attempts, remediation=REMEDIATION)

        result = BuildResult(
            image_ref=self.config.image_ref,
            method=method,
            attempts=attempts,
            definition=(self.reduced_definition_path if method == BuildMethod.REDUCED_DEFINITION
                        else self.definition_path),
        )
        if result.degraded:
            self.console.success("Image built from the reduced definition")
            self.console.warning("OS-level helpers such as curl are not available inside the image")
        elif method == BuildMethod.HOST_NETWORK:
            self.console.success("Image built with the host network")
        else:
            self.console.success("Image built")
        self.console.info(f"Image: {result.image_ref}")
        return result

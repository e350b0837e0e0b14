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
Execution of external commands with exit-status reporting.
"""
import subprocess
from typing import List, Optional
from dataclasses import dataclass

MISSING_EXECUTABLE = 127


@dataclass
class CommandResult:
    """Outcome of one external command."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs one external command at a time and blocks until it returns.
    """
    def __init__(self, dry_run: bool = False):
        """
        Initializes the command runner.

        Args:
            dry_run (bool): Print commands instead of executing them.
        """
        self.dry_run = dry_run

    def run(self,
            command: List[str],
            capture: bool = True,
            interactive: bool = False,
            input_text: Optional[str] = None,
            cwd: Optional[str] = None) -> CommandResult:
        """
        Runs a command.

        Args:
            command (List[str]): Command and arguments to execute.
            capture (bool): Collect stdout/stderr instead of streaming them.
            interactive (bool): Attach the command to the current terminal.
            input_text (Optional[str]): Text fed to the command's stdin.
            cwd (Optional[str]): Directory to run the command in.

        Returns:
            CommandResult: Exit status and captured output. A missing
            executable is reported as exit status 127.
        """
        if self.dry_run:
            print(f"[dry-run] {' '.join(command)}")
            return CommandResult(list(command), 0)

        if interactive:
            capture = False

        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                input=input_text,
                capture_output=capture,
                text=True,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(list(command), MISSING_EXECUTABLE, stderr=str(e))

        return CommandResult(
            list(command),
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )

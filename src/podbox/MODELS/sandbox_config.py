"""
Models for the sandbox configuration shared by every component.
"""
import os
from typing import List, Dict
from pydantic import BaseModel, ConfigDict, Field


def default_workspace() -> str:
    return os.path.join(os.path.expanduser("~"), "mcp-container-workspace")


class SubordinateIdRange(BaseModel):
    """
    Block of user/group IDs delegated to the invoking user for rootless
    user-namespace mapping.
    """
    model_config = ConfigDict(frozen=True)

    start: int = 100000
    count: int = 65536

    @property
    def end(self) -> int:
        return self.start + self.count - 1

    def as_usermod_range(self) -> str:
        return f"{self.start}-{self.end}"


class SandboxConfig(BaseModel):
    """
    Immutable configuration of the sandbox, constructed once at startup and
    handed to every component.
    """
    model_config = ConfigDict(frozen=True)

    # Container resource
    container_name: str = "mcp-server"
    image_name: str = "mcp-server"
    image_tag: str = "latest"
    ports: List[int] = Field(default_factory=lambda: [6247, 8501, 8080, 5000])
    web_interfaces: Dict[str, int] = Field(
        default_factory=lambda: {
            "MCP Inspector": 6247,
            "Web Client": 8501,
            "API Server": 5000,
        }
    )

    # Filesystem
    workspace: str = Field(default_factory=default_workspace)
    build_definition: str = "Dockerfile"
    reduced_build_definition: str = "Dockerfile.simple"

    # Host dependencies
    runtime_binary: str = "podman"
    runtime_packages: List[str] = Field(
        default_factory=lambda: ["podman", "podman-compose", "slirp4netns"]
    )
    system_packages: List[str] = Field(
        default_factory=lambda: [
            "python", "python-pip", "python-virtualenv",
            "nodejs", "npm",
            "git", "curl", "wget",
            "base-devel",
            "sqlite",
            "podman", "buildah", "slirp4netns",
            "linux-headers",
        ]
    )
    network_helper: str = "slirp4netns"
    kernel_module: str = "tun"
    modules_load_file: str = "/etc/modules-load.d/podman.conf"
    runtime_socket: str = "podman.socket"
    subordinate_ids: SubordinateIdRange = Field(default_factory=SubordinateIdRange)
    upgrade_system: bool = False

    # Lifecycle
    log_tail_lines: int = 10
    startup_wait: float = 5.0

    @property
    def image_ref(self) -> str:
        return f"{self.image_name}:{self.image_tag}"

    @property
    def state_dir(self) -> str:
        return os.path.join(self.workspace, ".podbox")

    def web_urls(self) -> Dict[str, str]:
        """
        Returns the browser URLs of the web interfaces published by the container.
        """
        return {name: f"http://localhost:{port}" for name, port in self.web_interfaces.items()}

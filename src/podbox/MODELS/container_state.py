"""
Models describing the runtime state of the sandbox container.
"""
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ContainerState(str, Enum):
    """
    Coarse state of the named container.
    """
    RUNNING = "running"
    STOPPED = "stopped"
    ABSENT = "absent"


class NetworkMode(str, Enum):
    """
    Network mode a container was launched with.
    """
    HOST = "host"
    BRIDGE = "bridge"


class ContainerRecord(BaseModel):
    """
    One entry of ``podman ps -a --format json``.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="Id")
    names: List[str] = Field(default_factory=list, alias="Names")
    image: str = Field(default="", alias="Image")
    state: str = Field(default="", alias="State")

    def has_name(self, name: str) -> bool:
        return name in self.names

    @property
    def is_running(self) -> bool:
        return self.state.lower() == "running"


class StartResult(BaseModel):
    """
    Outcome of launching the container.
    """
    success: bool
    network_mode: Optional[NetworkMode] = None

"""
Persisted record of the last build and launch of the sandbox.
"""
from typing import Optional
from pydantic import BaseModel
from .build_attempt import BuildMethod
from .container_state import NetworkMode


class SandboxState(BaseModel):
    """
    What the installer learned about the sandbox on earlier runs.
    """
    image_ref: Optional[str] = None
    build_method: Optional[BuildMethod] = None
    degraded: bool = False
    built_at: Optional[str] = None

    network_mode: Optional[NetworkMode] = None
    started_at: Optional[str] = None

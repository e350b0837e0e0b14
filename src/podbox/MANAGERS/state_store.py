"""
YAML persistence for the sandbox state.
"""
import os
from datetime import datetime, timezone
import yaml
from pydantic import ValidationError
from ..MODELS.sandbox_state import SandboxState
from ..MODELS.build_attempt import BuildResult
from ..MODELS.container_state import NetworkMode


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class StateStore:
    """
    Reads and writes ``state.yml`` in the workspace state directory.
    """
    FILENAME = "state.yml"

    def __init__(self, state_dir: str):
        self.path = os.path.join(state_dir, self.FILENAME)

    def load(self) -> SandboxState:
        """
        Loads the stored state; a missing or unreadable file yields an empty state.
        """
        if not os.path.exists(self.path):
            return SandboxState()
        try:
            with open(self.path, 'r') as f:
                data = yaml.safe_load(f) or {}
            return SandboxState.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError):
            return SandboxState()

    def save(self, state: SandboxState):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, 'w') as f:
            yaml.safe_dump(state.model_dump(mode="json"), f, sort_keys=False)

    def record_build(self, result: BuildResult) -> SandboxState:
        state = self.load().model_copy(update={
            "image_ref": result.image_ref,
            "build_method": result.method,
            "degraded": result.degraded,
            "built_at": _now(),
        })
        self.save(state)
        return state

    def record_start(self, mode: NetworkMode) -> SandboxState:
        state = self.load().model_copy(update={
            "network_mode": mode,
            "started_at": _now(),
        })
        self.save(state)
        return state

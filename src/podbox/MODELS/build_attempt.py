"""
Models for image build attempts and their aggregated result.
"""
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel


class BuildMethod(str, Enum):
    """
    Build tiers, ordered from the strongest to the weakest constraint set.
    """
    DEFAULT_NETWORK = "default-network"
    HOST_NETWORK = "host-network"
    REDUCED_DEFINITION = "reduced-definition"


class BuildOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class BuildAttempt(BaseModel):
    """
    A single invocation of the runtime's build command.
    """
    method: BuildMethod
    outcome: BuildOutcome

    @property
    def succeeded(self) -> bool:
        return self.outcome == BuildOutcome.SUCCESS


class BuildResult(BaseModel):
    """
    Result of a successful build sequence.
    """
    image_ref: str
    method: BuildMethod
    attempts: List[BuildAttempt] = []
    definition: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """True when the image was produced from the reduced definition."""
        return self.method == BuildMethod.REDUCED_DEFINITION

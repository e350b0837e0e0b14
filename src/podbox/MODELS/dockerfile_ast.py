"""
Models for the Containerfile Abstract Syntax Tree.
"""
import re
from typing import List, Iterable
from pydantic import BaseModel


class Instruction(BaseModel):
    """
    Represents a single instruction in a Containerfile.
    """
    instruction: str
    arguments: List[str]
    raw: str

    def shell_words(self) -> List[str]:
        """
        Splits the arguments into words, with shell operators as separators.
        """
        return re.split(r'[\s;&|()]+', " ".join(self.arguments))

    def invokes_any(self, programs: Iterable[str]) -> bool:
        """
        Checks whether a RUN step calls one of the given programs.
        """
        if self.instruction != "RUN":
            return False
        words = set(self.shell_words())
        return any(p in words for p in programs)


class DockerfileAST(BaseModel):
    """
    Represents the complete Abstract Syntax Tree of a Containerfile.
    """
    instructions: List[Instruction] = []

    def render(self) -> str:
        """
        Serializes the instructions back into Containerfile text, one per line.
        """
        return "\n".join(inst.raw for inst in self.instructions) + "\n"

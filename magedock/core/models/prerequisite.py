"""
Prerequisite models — what the system has, and what a command needs.

``Prerequisite`` is one entry of the system snapshot (an installed
binary or a running service). ``CommandPrerequisites`` is the
declaration a command carries, naming entries of that snapshot.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class PrerequisiteKind(str, Enum):
    BINARY = "binary"
    SERVICE = "service"


class Prerequisite(BaseModel):
    """A named external dependency and whether it is currently satisfied.

    Status is computed once per process and read-only afterwards.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: PrerequisiteKind
    mandatory: bool = True
    status: bool = False

    def failure_message(self) -> str:
        """User-facing message naming the missing prerequisite and the remedy."""
        if self.kind is PrerequisiteKind.BINARY:
            return f"{self.name} is necessary to use this command, please install it."
        return (
            f"{self.name} is not running, the environment must be started "
            "to use this command."
        )


class CommandPrerequisites(BaseModel):
    """Prerequisite names a command depends on, split by kind.

    Declaration order is kept: the gate reports the first unsatisfied
    name in that order.
    """

    model_config = ConfigDict(frozen=True)

    binary: tuple[str, ...] = ()
    service: tuple[str, ...] = ()

    @field_validator("binary", "service", mode="before")
    @classmethod
    def _dedupe(cls, value: object) -> object:
        if isinstance(value, str):
            value = (value,)
        if isinstance(value, (list, tuple, set, frozenset)):
            return tuple(dict.fromkeys(value))
        return value

    def names(self, kind: PrerequisiteKind) -> tuple[str, ...]:
        if kind is PrerequisiteKind.BINARY:
            return self.binary
        return self.service

    @property
    def empty(self) -> bool:
        return not self.binary and not self.service

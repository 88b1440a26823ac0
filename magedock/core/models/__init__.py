"""
Domain models — Pydantic types for magedock.

    from magedock.core.models import CommandPrerequisites, Prerequisite, PrerequisiteKind
"""

from magedock.core.models.prerequisite import (
    CommandPrerequisites,
    Prerequisite,
    PrerequisiteKind,
)

__all__ = [
    "CommandPrerequisites",
    "Prerequisite",
    "PrerequisiteKind",
]

"""
Prerequisite gate — decides whether a command may run at all.

Before a command body executes, the dispatcher hands the gate the
command's declared prerequisites. For each kind (binaries, then
services) the gate:

    1. rejects names the system registry does not know
       (``UndefinedPrerequisite``, a wiring bug);
    2. walks the names in declaration order and raises
       ``EnvironmentNotReady`` on the first unsatisfied mandatory one.

Unsatisfied optional prerequisites are reported as warnings and do not
block. The gate only reads the registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from magedock.core.exceptions import EnvironmentNotReady, UndefinedPrerequisite
from magedock.core.models.prerequisite import (
    CommandPrerequisites,
    Prerequisite,
    PrerequisiteKind,
)
from magedock.core.services.system import SystemPrerequisites

logger = logging.getLogger(__name__)


@dataclass
class GateResult:
    """A passed gate check, with any optional prerequisites that were missing."""

    warnings: list[Prerequisite] = field(default_factory=list)


class PrerequisiteGate:
    """Checks a command's declared prerequisites against the system snapshot."""

    def __init__(self, system: SystemPrerequisites):
        self._system = system

    def check(self, declared: CommandPrerequisites) -> GateResult:
        """Validate *declared* against the registry.

        Raises:
            UndefinedPrerequisite: A declared name is unknown to the registry.
            EnvironmentNotReady: A declared mandatory prerequisite is unsatisfied.
        """
        result = GateResult()
        for kind in (PrerequisiteKind.BINARY, PrerequisiteKind.SERVICE):
            names = declared.names(kind)
            if not names:
                continue

            known = self._system.prerequisites(kind)
            undefined = [name for name in names if name not in known]
            if undefined:
                raise UndefinedPrerequisite(kind.value, undefined)

            for name in names:
                prerequisite = known[name]
                if prerequisite.status:
                    continue
                if prerequisite.mandatory:
                    logger.debug("Blocking dispatch: %s %s unsatisfied", kind.value, name)
                    raise EnvironmentNotReady(prerequisite)
                logger.warning("Optional %s prerequisite missing: %s", kind.value, name)
                result.warnings.append(prerequisite)

        return result

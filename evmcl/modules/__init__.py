"""Module registry.

``MODULES`` lists the modules a script can ``load`` by name. The ``std``
module is always available and is not part of the registry.
"""

from typing import Dict, Type

from evmcl.modules.aragonos import AragonOS
from evmcl.modules.base import (
    ArityConstraint,
    Command,
    ComparisonType,
    ExecutionContext,
    Helper,
    Module,
)
from evmcl.modules.std import Std

MODULES: Dict[str, Type[Module]] = {
    AragonOS.name: AragonOS,
}

__all__ = [
    "MODULES",
    "AragonOS",
    "ArityConstraint",
    "Command",
    "ComparisonType",
    "ExecutionContext",
    "Helper",
    "Module",
    "Std",
]

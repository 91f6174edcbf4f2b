"""Public Python API for evmcl.

Scripts are parsed with :func:`parse_script` and interpreted with
:class:`Interpreter` (or the :func:`run_script` shortcut) into a list of
contract-call actions.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from evmcl.actions import (
    ANY_ENTITY,
    Action,
    ProviderAction,
    ScriptEncodedAction,
    is_provider_action,
)
from evmcl.bindings import BindingsManager, BindingsSpace
from evmcl.errors import (
    ArityError,
    BindingError,
    CommandError,
    HelperError,
    ParseError,
    ResolutionError,
    ScriptError,
)
from evmcl.exporter import actions_to_dict, export_actions
from evmcl.interpreter import Interpreter, interpret_script, run_script
from evmcl.parser import parse_script
from evmcl.resolvers import (
    AppSpec,
    PermissionSpec,
    StaticAppResolver,
    StaticNameResolver,
    StaticSigner,
)

try:
    __version__: str = version("evmcl")
except PackageNotFoundError:  # pragma: no cover - editable local fallback
    __version__ = "0.1.0"


__all__ = [
    "__version__",
    "ANY_ENTITY",
    "Action",
    "AppSpec",
    "ArityError",
    "BindingError",
    "BindingsManager",
    "BindingsSpace",
    "CommandError",
    "HelperError",
    "Interpreter",
    "ParseError",
    "PermissionSpec",
    "ProviderAction",
    "ResolutionError",
    "ScriptEncodedAction",
    "ScriptError",
    "StaticAppResolver",
    "StaticNameResolver",
    "StaticSigner",
    "actions_to_dict",
    "export_actions",
    "interpret_script",
    "is_provider_action",
    "parse_script",
    "run_script",
]

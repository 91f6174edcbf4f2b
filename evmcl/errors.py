import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

if TYPE_CHECKING:
    from evmcl.modules.base import ArityConstraint


_CURRENT_SCRIPT_SOURCE: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "evmcl_current_script_source", default=None
)
_CURRENT_SCRIPT_NODE: contextvars.ContextVar[Optional[Any]] = contextvars.ContextVar(
    "evmcl_current_script_node", default=None
)


def _line_from_source(source: str, line_no: int) -> Optional[str]:
    if line_no <= 0:
        return None
    lines = source.splitlines()
    if line_no > len(lines):
        return None
    return lines[line_no - 1].strip()


def _format_with_context(
    message: str,
    *,
    source: Optional[str] = None,
    node: Optional[Any] = None,
) -> str:
    source = source if source is not None else _CURRENT_SCRIPT_SOURCE.get()
    node = node if node is not None else _CURRENT_SCRIPT_NODE.get()
    loc = getattr(node, "loc", None)
    if loc is None:
        return message

    details = [f"Location: line {loc.start_line}, column {loc.start_col + 1}"]
    if source is not None:
        code = _line_from_source(source, loc.start_line)
        if code:
            details.append(f"Code: {code}")
    return f"{message}\n" + "\n".join(details)


def format_diagnostic(message: str, *, node: Optional[Any] = None) -> str:
    """Attach best-effort source context to a warning string."""
    return _format_with_context(message, node=node)


@contextmanager
def script_source_context(source: Optional[str]) -> Iterator[None]:
    token = _CURRENT_SCRIPT_SOURCE.set(source)
    try:
        yield
    finally:
        _CURRENT_SCRIPT_SOURCE.reset(token)


@contextmanager
def node_context(node: Optional[Any]) -> Iterator[None]:
    token = _CURRENT_SCRIPT_NODE.set(node)
    try:
        yield
    finally:
        _CURRENT_SCRIPT_NODE.reset(token)


class ScriptError(Exception):
    """Base error for everything raised while parsing or interpreting scripts."""

    def __init__(self, message: str, *, node: Optional[Any] = None):
        self.message = message
        super().__init__(_format_with_context(message, node=node))


class ParseError(ScriptError):
    """A syntax error. The parser collects these instead of raising them."""

    def __init__(self, message: str, *, line: int, column: int):
        self.line = line
        self.column = column
        self.message = message
        Exception.__init__(self, f"{message}\nLocation: line {line}, column {column}")


class ArityError(ScriptError):
    def __init__(
        self,
        name: str,
        constraint: "ArityConstraint",
        got: int,
        *,
        node: Optional[Any] = None,
    ):
        self.name = name
        self.constraint = constraint
        self.got = got
        super().__init__(
            f"{name}: invalid number of arguments. "
            f"Expected {constraint.describe()} arguments, but got {got}",
            node=node,
        )


class BindingError(ScriptError):
    """Raised when an identifier, variable, module or alias can't be resolved."""


class CommandError(ScriptError):
    def __init__(self, command: str, message: str, *, node: Optional[Any] = None):
        self.command = command
        super().__init__(f"{command}: {message}", node=node)
        self.message = message


class HelperError(ScriptError):
    def __init__(self, helper: str, message: str, *, node: Optional[Any] = None):
        self.helper = helper
        super().__init__(f"@{helper}: {message}", node=node)
        self.message = message


class ResolutionError(ScriptError):
    """Raised when an external collaborator (ENS, app registry) fails."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from evmcl.actions import AnyAction
from evmcl.bindings import BindingsManager
from evmcl.errors import CommandError, HelperError

if TYPE_CHECKING:
    from evmcl.interpreter import Interpreter
    from evmcl.nodes import CommandExpression, Expression, HelperFunctionCall


class ComparisonType(Enum):
    EQUAL = "equal"
    GREATER = "greater"
    LESS = "less"
    BETWEEN = "between"


@dataclass(frozen=True)
class ArityConstraint:
    type: ComparisonType
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    @classmethod
    def equal(cls, count: int) -> "ArityConstraint":
        return cls(ComparisonType.EQUAL, min_value=count, max_value=count)

    @classmethod
    def greater(cls, minimum: int) -> "ArityConstraint":
        return cls(ComparisonType.GREATER, min_value=minimum)

    @classmethod
    def less(cls, maximum: int) -> "ArityConstraint":
        return cls(ComparisonType.LESS, max_value=maximum)

    @classmethod
    def between(cls, minimum: int, maximum: int) -> "ArityConstraint":
        if minimum > maximum:
            raise ValueError("Arity lower bound can't exceed the upper bound.")
        return cls(ComparisonType.BETWEEN, min_value=minimum, max_value=maximum)

    def check(self, count: int) -> bool:
        if self.min_value is not None and count < self.min_value:
            return False
        if self.max_value is not None and count > self.max_value:
            return False
        return True

    def describe(self) -> str:
        if self.type == ComparisonType.EQUAL:
            return f"exactly {self.min_value}"
        if self.type == ComparisonType.GREATER:
            return f"at least {self.min_value}"
        if self.type == ComparisonType.LESS:
            return f"at most {self.max_value}"
        return f"between {self.min_value} and {self.max_value}"


CommandRun = Callable[["Module", "ExecutionContext", List[Any]], Awaitable[List[AnyAction]]]
HelperRun = Callable[["Module", "ExecutionContext", List[Any]], Awaitable[Any]]


@dataclass(frozen=True)
class Command:
    name: str
    arity: ArityConstraint
    run: CommandRun
    block: bool = False
    lazy: bool = False


@dataclass(frozen=True)
class Helper:
    name: str
    arity: ArityConstraint
    run: HelperRun


class Module:
    """A named set of commands and helpers loaded into an interpreter run.

    Subclasses declare ``name``, ``commands`` and ``helpers`` as class-level
    tables; per-run state lives on the instance.
    """

    name: str = ""
    commands: Dict[str, Command] = {}
    helpers: Dict[str, Helper] = {}

    def __init__(self, alias: Optional[str] = None):
        self.alias = alias or self.name

    def get_command(self, name: str) -> Optional[Command]:
        return self.commands.get(name)

    def get_helper(self, name: str) -> Optional[Helper]:
        return self.helpers.get(name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alias={self.alias!r})"


def command_table(*commands: Command) -> Dict[str, Command]:
    return {command.name: command for command in commands}


def helper_table(*helpers: Helper) -> Dict[str, Helper]:
    return {helper.name: helper for helper in helpers}


@dataclass
class ExecutionContext:
    """What a command or helper sees of the interpreter while it runs."""

    interpreter: "Interpreter"
    node: Any
    module: Module

    @property
    def bindings(self) -> BindingsManager:
        return self.interpreter.bindings

    @property
    def command(self) -> "CommandExpression":
        return self.node

    @property
    def helper(self) -> "HelperFunctionCall":
        return self.node

    async def evaluate(self, expression: "Expression") -> Any:
        return await self.interpreter.evaluate(expression)

    async def interpret_block(self) -> List[AnyAction]:
        block = getattr(self.node, "block", None)
        if block is None:
            return []
        return await self.interpreter.interpret_block(block, default_module=self.module)

    def command_error(self, message: str) -> CommandError:
        return CommandError(self.node.name, message)

    def helper_error(self, message: str) -> HelperError:
        return HelperError(self.node.name, message)

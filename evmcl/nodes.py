from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional, Union


@dataclass(frozen=True)
class Span:
    start_line: int
    start_col: int
    end_line: int
    end_col: int


# Expressions

class Expression:
    pass


@dataclass(frozen=True)
class StringLiteral(Expression):
    value: str
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class NumberLiteral(Expression):
    value: Union[int, Decimal]
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class BoolLiteral(Expression):
    value: bool
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class AddressLiteral(Expression):
    value: str
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class BytesLiteral(Expression):
    value: str
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    items: List[Expression]
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class ProbableIdentifier(Expression):
    value: str
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class VariableIdentifier(Expression):
    name: str
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class HelperFunctionCall(Expression):
    name: str
    args: List[Expression]
    loc: Optional[Span] = field(default=None, compare=False)


# Statements

@dataclass(frozen=True)
class CommandExpression:
    name: str
    args: List[Expression]
    module: Optional[str] = None
    block: Optional[List["CommandExpression"]] = None
    loc: Optional[Span] = field(default=None, compare=False)

    @property
    def qualified_name(self) -> str:
        if self.module:
            return f"{self.module}:{self.name}"
        return self.name

    def has_block(self) -> bool:
        return self.block is not None


@dataclass
class ScriptAST:
    body: List[CommandExpression]
    source: Optional[str] = None

    def iter_commands(self) -> Iterable[CommandExpression]:
        """Yield every command in document order, nested ones included."""
        stack = list(reversed(self.body))
        while stack:
            command = stack.pop()
            yield command
            if command.block:
                stack.extend(reversed(command.block))

    def get_command_at_line(self, line: int) -> Optional[CommandExpression]:
        """Return the innermost command whose span covers ``line``."""
        found: Optional[CommandExpression] = None
        for command in self.iter_commands():
            loc = command.loc
            if loc is not None and loc.start_line <= line <= loc.end_line:
                found = command
        return found

    def get_commands_until_line(
        self,
        line: int,
        names: Optional[Iterable[str]] = None,
    ) -> List[CommandExpression]:
        """Return commands starting at or before ``line``, optionally filtered by name."""
        allowed = set(names) if names is not None else None
        out: List[CommandExpression] = []
        for command in self.iter_commands():
            if command.loc is None or command.loc.start_line > line:
                continue
            if allowed is not None and command.name not in allowed:
                continue
            out.append(command)
        return out

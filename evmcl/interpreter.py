from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from evmcl.actions import AnyAction, normalize_address
from evmcl.bindings import BindingsManager, BindingsSpace
from evmcl.errors import (
    ArityError,
    BindingError,
    CommandError,
    node_context,
    script_source_context,
)
from evmcl.modules import MODULES
from evmcl.modules.base import Command, ExecutionContext, Helper, Module
from evmcl.modules.std import Std
from evmcl.nodes import (
    AddressLiteral,
    ArrayLiteral,
    BoolLiteral,
    BytesLiteral,
    CommandExpression,
    Expression,
    HelperFunctionCall,
    NumberLiteral,
    ProbableIdentifier,
    ScriptAST,
    StringLiteral,
    VariableIdentifier,
)
from evmcl.parser import parse_script
from evmcl.resolvers import AppResolver, NameResolver, Signer

logger = logging.getLogger(__name__)


class Interpreter:
    """Walks a :class:`ScriptAST` and returns the actions it produces.

    Collaborators are injected once and shared by every run; bindings and
    loaded modules are rebuilt at the start of each :meth:`interpret` call.
    """

    def __init__(
        self,
        *,
        signer: Optional[Signer] = None,
        app_resolver: Optional[AppResolver] = None,
        name_resolver: Optional[NameResolver] = None,
        modules: Optional[Mapping[str, Type[Module]]] = None,
    ):
        self.signer = signer
        self.app_resolver = app_resolver
        self.name_resolver = name_resolver
        self.module_registry: Dict[str, Type[Module]] = dict(
            modules if modules is not None else MODULES
        )
        self.bindings = BindingsManager()
        self.std = Std()
        self.loaded_modules: Dict[str, Module] = {}

    def get_module(self, name: str) -> Optional[Module]:
        """Return the module loaded as ``name`` during the last run."""
        return self.loaded_modules.get(name)

    async def interpret(self, script: ScriptAST) -> List[AnyAction]:
        self.bindings = BindingsManager()
        self.std = Std()
        self.loaded_modules = {}
        with script_source_context(script.source):
            return await self.interpret_block(script.body)

    async def interpret_block(
        self,
        statements: Sequence[CommandExpression],
        *,
        default_module: Optional[Module] = None,
    ) -> List[AnyAction]:
        actions: List[AnyAction] = []
        for statement in statements:
            actions.extend(
                await self.interpret_command(statement, default_module=default_module)
            )
        return actions

    async def interpret_command(
        self,
        node: CommandExpression,
        *,
        default_module: Optional[Module] = None,
    ) -> List[AnyAction]:
        with node_context(node):
            module, command = self._resolve_command(node, default_module)
            if node.block is not None and not command.block:
                raise CommandError(node.name, "does not accept a commands block")

            if command.lazy:
                args: List[Any] = list(node.args)
            else:
                args = [await self.evaluate(arg) for arg in node.args]

            count = len(node.args) + (1 if node.block is not None else 0)
            if not command.arity.check(count):
                raise ArityError(node.name, command.arity, count)

            logger.debug("Running %s:%s", module.alias, node.name)
            context = ExecutionContext(self, node, module)
            if node.block is None:
                return list(await command.run(module, context, args))
            with self.bindings.scope():
                return list(await command.run(module, context, args))

    def _resolve_module_reference(self, reference: str) -> Module:
        if reference == self.std.name:
            return self.std
        module = self.bindings.get_binding(BindingsSpace.MODULE, reference)
        if module is None:
            alias = self.bindings.get_binding(BindingsSpace.ALIAS, reference)
            if alias is not None:
                module = self.bindings.get_binding(BindingsSpace.MODULE, alias)
        if module is None:
            raise BindingError(f"module {reference} not found")
        return module

    def _resolve_command(
        self,
        node: CommandExpression,
        default_module: Optional[Module],
    ) -> Tuple[Module, Command]:
        if node.module is not None:
            module = self._resolve_module_reference(node.module)
            command = module.get_command(node.name)
            if command is None:
                raise BindingError(f"command {node.name} not found on module {node.module}")
            return module, command

        for candidate in (default_module, self.std):
            if candidate is None:
                continue
            command = candidate.get_command(node.name)
            if command is not None:
                return candidate, command
        raise BindingError(f"command {node.name} not found")

    def _resolve_helper(self, name: str) -> Tuple[Module, Helper]:
        helper = self.std.get_helper(name)
        if helper is not None:
            return self.std, helper
        for module in self.bindings.get_all_bindings(BindingsSpace.MODULE).values():
            helper = module.get_helper(name)
            if helper is not None:
                return module, helper
        raise BindingError(f"helper @{name} not found")

    async def evaluate(self, expression: Expression) -> Any:
        """Evaluate an argument expression to a plain value.

        Array items and helper arguments are evaluated strictly left to right;
        helper calls may suspend on external resolvers.
        """
        if isinstance(expression, (StringLiteral, NumberLiteral, BoolLiteral)):
            return expression.value
        if isinstance(expression, AddressLiteral):
            return normalize_address(expression.value)
        if isinstance(expression, BytesLiteral):
            return expression.value
        if isinstance(expression, ProbableIdentifier):
            return expression.value
        if isinstance(expression, ArrayLiteral):
            return [await self.evaluate(item) for item in expression.items]
        if isinstance(expression, VariableIdentifier):
            if not self.bindings.has_binding(BindingsSpace.USER, expression.name):
                raise BindingError(f"{expression.name} is not defined")
            return self.bindings.get_binding(BindingsSpace.USER, expression.name)
        if isinstance(expression, HelperFunctionCall):
            return await self._evaluate_helper(expression)
        raise TypeError(f"Unsupported expression node: {type(expression).__name__}")

    async def _evaluate_helper(self, node: HelperFunctionCall) -> Any:
        with node_context(node):
            module, helper = self._resolve_helper(node.name)
            args = [await self.evaluate(arg) for arg in node.args]
            if not helper.arity.check(len(args)):
                raise ArityError(f"@{node.name}", helper.arity, len(args))
            return await helper.run(module, ExecutionContext(self, node, module), args)


async def interpret_script(
    source: str,
    *,
    signer: Optional[Signer] = None,
    app_resolver: Optional[AppResolver] = None,
    name_resolver: Optional[NameResolver] = None,
    modules: Optional[Mapping[str, Type[Module]]] = None,
) -> List[AnyAction]:
    """Parse and interpret ``source``.

    Raises:
        ParseError: The first syntax error, if the script has any.
        ScriptError: Any interpretation error.
    """
    script, errors = parse_script(source)
    if errors:
        raise errors[0]
    interpreter = Interpreter(
        signer=signer,
        app_resolver=app_resolver,
        name_resolver=name_resolver,
        modules=modules,
    )
    return await interpreter.interpret(script)


def run_script(source: str, **kwargs: Any) -> List[AnyAction]:
    """Synchronous wrapper around :func:`interpret_script`."""
    return asyncio.run(interpret_script(source, **kwargs))

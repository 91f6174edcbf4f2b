from typing import Any, List

from eth_abi.exceptions import EncodingError
from eth_utils import encode_hex, keccak

from evmcl.actions import AnyAction, ProviderAction, encode_action, normalize_address
from evmcl.bindings import BindingsSpace
from evmcl.errors import BindingError
from evmcl.modules.base import (
    ArityConstraint,
    Command,
    ExecutionContext,
    Helper,
    Module,
    command_table,
    helper_table,
)
from evmcl.nodes import VariableIdentifier

SWITCH_CHAIN_METHOD = "wallet_switchEthereumChain"

NETWORK_CHAIN_IDS = {
    "mainnet": 1,
    "goerli": 5,
    "sepolia": 11155111,
    "optimism": 10,
    "gnosis": 100,
    "xdai": 100,
    "polygon": 137,
    "arbitrum": 42161,
}


async def _load(module: Module, context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    module_name = args[0]
    if len(args) == 2 or (len(args) == 3 and args[1] != "as"):
        raise context.command_error("invalid alias syntax. Expected: load <module> [as <alias>]")
    alias = args[2] if len(args) == 3 else module_name
    if not isinstance(module_name, str) or not isinstance(alias, str):
        raise context.command_error("module name and alias must be identifiers")

    interpreter = context.interpreter
    if context.bindings.has_binding(BindingsSpace.MODULE, alias):
        raise context.command_error(f"module {alias} already loaded")
    module_cls = interpreter.module_registry.get(module_name)
    if module_cls is None:
        raise context.command_error(f"module {module_name} not found")

    instance = module_cls(alias)
    context.bindings.set_binding(BindingsSpace.MODULE, alias, instance)
    context.bindings.set_binding(BindingsSpace.ALIAS, module_name, alias)
    interpreter.loaded_modules[module_name] = instance
    return []


async def _set(module: Module, context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    target, expression = args
    if not isinstance(target, VariableIdentifier):
        raise context.command_error(
            "invalid variable. Expected a $variable as first argument"
        )
    value = await context.evaluate(expression)
    context.bindings.set_binding(BindingsSpace.USER, target.name, value)
    return []


async def _switch(module: Module, context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    network = args[0]
    if isinstance(network, str) and network.lower() in NETWORK_CHAIN_IDS:
        chain_id = NETWORK_CHAIN_IDS[network.lower()]
    elif isinstance(network, int) and not isinstance(network, bool) and network > 0:
        chain_id = network
    else:
        raise context.command_error(
            f"invalid network. Expected a chain id or a known network name, but got {network}"
        )
    return [ProviderAction(SWITCH_CHAIN_METHOD, [{"chainId": hex(chain_id)}])]


def _resolve_bound_addresses(context: ExecutionContext, value: Any) -> Any:
    # App names bound by ``connect`` stand for their addresses.
    if isinstance(value, list):
        return [_resolve_bound_addresses(context, item) for item in value]
    if isinstance(value, str) and normalize_address(value) is None:
        bound = context.bindings.get_binding(BindingsSpace.ADDR, value)
        if bound is not None:
            return bound
    return value


async def _exec(module: Module, context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    target, signature, *params = args
    address = normalize_address(target)
    if address is None and isinstance(target, str):
        address = normalize_address(context.bindings.get_binding(BindingsSpace.ADDR, target))
    if address is None:
        raise context.command_error(f"invalid target. Expected an address, but got {target}")
    if not isinstance(signature, str):
        raise context.command_error(
            f"invalid signature. Expected a string, but got {signature}"
        )
    params = [_resolve_bound_addresses(context, param) for param in params]
    try:
        return [encode_action(address, signature, params)]
    except (EncodingError, ValueError, TypeError, OverflowError) as exc:
        raise context.command_error(f"error encoding {signature}: {exc}") from exc


async def _me(module: Module, context: ExecutionContext, args: List[Any]) -> str:
    signer = context.interpreter.signer
    if signer is None:
        raise BindingError("@me is unavailable: no signer was provided")
    return normalize_address(await signer.get_address())


async def _id(module: Module, context: ExecutionContext, args: List[Any]) -> str:
    text = args[0]
    if not isinstance(text, str):
        raise context.helper_error(f"invalid value. Expected a string, but got {text}")
    return encode_hex(keccak(text=text))


class Std(Module):
    """Commands and helpers available in every script without ``load``."""

    name = "std"
    commands = command_table(
        Command("load", ArityConstraint.between(1, 3), _load),
        Command("set", ArityConstraint.equal(2), _set, lazy=True),
        Command("switch", ArityConstraint.equal(1), _switch),
        Command("exec", ArityConstraint.greater(2), _exec),
    )
    helpers = helper_table(
        Helper("me", ArityConstraint.equal(0), _me),
        Helper("id", ArityConstraint.equal(1), _id),
    )

from typing import Any, List, Optional

from evmcl.actions import normalize_address
from evmcl.errors import ResolutionError
from evmcl.modules.base import ArityConstraint, ExecutionContext, Helper, Module


async def resolve_ens_name(
    context: ExecutionContext,
    name: str,
    registry: Optional[str] = None,
) -> str:
    """Resolve ``name`` through the interpreter's name resolver.

    Raises:
        ResolutionError: If no resolver is configured, the resolver fails, or
            the name has no address.
    """
    resolver = context.interpreter.name_resolver
    if resolver is None:
        raise ResolutionError(f"No name resolver available to resolve {name}")
    try:
        resolved = await resolver.resolve(name, registry)
    except ResolutionError:
        raise
    except Exception as exc:
        raise ResolutionError(f"Failed to resolve ENS name {name}: {exc}") from exc

    address = normalize_address(resolved)
    if address is None:
        raise ResolutionError(f"ENS name {name} couldn't be resolved")
    return address


async def _aragon_ens(module: Module, context: ExecutionContext, args: List[Any]) -> str:
    name = args[0]
    registry = args[1] if len(args) > 1 else None
    if not isinstance(name, str):
        raise context.helper_error(f"invalid ENS name. Expected a string, but got {name}")
    if registry is not None and normalize_address(registry) is None:
        raise context.helper_error(
            f"invalid ENS registry. Expected an address, but got {registry}"
        )
    return await resolve_ens_name(context, name, normalize_address(registry) if registry else None)


ARAGON_ENS = Helper("aragonEns", ArityConstraint.between(1, 2), _aragon_ens)

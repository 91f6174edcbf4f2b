from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING, Any, List, Optional

from evmcl.actions import ANY_ENTITY, AnyAction, encode_action, normalize_address, role_hash
from evmcl.bindings import BindingsSpace
from evmcl.errors import format_diagnostic
from evmcl.modules.base import ArityConstraint, Command, ExecutionContext

from .dao import DAO, App, normalize_app_identifier
from .forwarding import encode_forwarding_action
from .helpers import resolve_ens_name

if TYPE_CHECKING:
    from .module import AragonOS

logger = logging.getLogger(__name__)

ARAGON_ID_SUFFIX = ".aragonid.eth"

CREATE_PERMISSION = "createPermission(address,address,bytes32,address)"
GRANT_PERMISSION = "grantPermission(address,address,bytes32)"
REVOKE_PERMISSION = "revokePermission(address,address,bytes32)"
REMOVE_PERMISSION_MANAGER = "removePermissionManager(address,bytes32)"


def _describe_app_reference(reference: Any) -> str:
    if isinstance(reference, str):
        address = normalize_address(reference)
        if address is not None:
            return address
        return normalize_app_identifier(reference) or reference
    return str(reference)


def _resolve_entity(context: ExecutionContext, dao: DAO, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    if value == "ANY_ENTITY":
        return ANY_ENTITY
    address = normalize_address(value)
    if address is not None:
        return address
    app = dao.resolve_app(value)
    if app is not None:
        return app.address
    return normalize_address(context.bindings.get_binding(BindingsSpace.ADDR, value))


def _require_dao(module: "AragonOS", context: ExecutionContext) -> DAO:
    dao = module.current_dao
    if dao is None:
        raise context.command_error('must be used within a "connect" command')
    return dao


def _require_app(context: ExecutionContext, dao: DAO, reference: Any) -> App:
    app = dao.resolve_app(reference) if isinstance(reference, str) else None
    if app is None:
        raise context.command_error(f"{_describe_app_reference(reference)} is not a DAO's app")
    return app


def _require_role(context: ExecutionContext, app: App, app_reference: Any, role: Any) -> str:
    if not isinstance(role, str):
        raise context.command_error(f"invalid role. Expected a role name, but got {role}")
    hashed = role_hash(role)
    if not app.has_role(hashed):
        raise context.command_error(
            f"given permission doesn't exists on app {app_reference}"
        )
    return hashed


def _require_acl(context: ExecutionContext, dao: DAO) -> App:
    acl = dao.acl
    if acl is None:
        raise context.command_error(f"DAO {dao.kernel_address} has no ACL app")
    return acl


async def _resolve_kernel(context: ExecutionContext, reference: Any) -> str:
    if not isinstance(reference, str):
        raise context.command_error(
            f"invalid DAO reference. Expected an address or a name, but got {reference}"
        )
    address = normalize_address(reference)
    if address is not None:
        return address
    bound = normalize_address(context.bindings.get_binding(BindingsSpace.ADDR, reference))
    if bound is not None:
        return bound
    name = reference if "." in reference else f"{reference}{ARAGON_ID_SUFFIX}"
    return await resolve_ens_name(context, name)


async def _connect(module: "AragonOS", context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    if context.command.block is None:
        raise context.command_error("a commands block is required")

    dao_reference, *forwarder_references = args
    kernel = await _resolve_kernel(context, dao_reference)
    if module.connections.is_connected(kernel):
        raise context.command_error(
            f"trying to connect to an already connected DAO ({kernel})"
        )

    dao = await module.load_dao(context.interpreter.app_resolver, kernel)
    forwarders = [
        _require_app(context, dao, reference) for reference in forwarder_references
    ]

    logger.debug("Connecting to DAO %s at nesting index %d", kernel, dao.nesting_index)
    with module.connections.connected(dao):
        for app in dao.apps.values():
            context.bindings.set_binding(BindingsSpace.ADDR, app.identifier, app.address)
            if app.index == 0:
                context.bindings.set_binding(BindingsSpace.ADDR, app.name, app.address)
        actions = await context.interpret_block()
    logger.debug("Disconnected from DAO %s", kernel)

    return encode_forwarding_action(
        actions,
        forwarders,
        [str(reference) for reference in forwarder_references],
    )


async def _grant(module: "AragonOS", context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    entity_reference, app_reference, role_reference, *rest = args
    dao = _require_dao(module, context)
    app = _require_app(context, dao, app_reference)
    role = _require_role(context, app, app_reference, role_reference)

    entity = _resolve_entity(context, dao, entity_reference)
    if entity is None:
        raise context.command_error(
            f"invalid entity. Expected an address, but got {entity_reference}"
        )
    acl = _require_acl(context, dao)
    permission = app.get_permission(role)

    if not permission.exists():
        if not rest:
            raise context.command_error("permission manager missing")
        manager = _resolve_entity(context, dao, rest[0])
        if manager is None:
            raise context.command_error(
                f"invalid permission manager. Expected an address, but got {rest[0]}"
            )
        permission.grantees.add(entity)
        permission.manager = manager
        return [encode_action(acl.address, CREATE_PERMISSION, [entity, app.address, role, manager])]

    if rest:
        raise context.command_error(
            f"permission already created; unexpected permission manager {rest[0]}"
        )
    if entity in permission.grantees:
        warnings.warn(
            format_diagnostic(
                f"{entity} already has {role_reference} on app {app_reference}; "
                "no grant action emitted."
            ),
            stacklevel=2,
        )
        return []

    permission.grantees.add(entity)
    return [encode_action(acl.address, GRANT_PERMISSION, [entity, app.address, role])]


async def _revoke(module: "AragonOS", context: ExecutionContext, args: List[Any]) -> List[AnyAction]:
    grantee_reference, app_reference, role_reference, *rest = args
    dao = _require_dao(module, context)
    app = _require_app(context, dao, app_reference)

    grantee = _resolve_entity(context, dao, grantee_reference)
    if grantee is None:
        raise context.command_error(
            f"grantee must be a valid address, got {grantee_reference}"
        )
    remove_manager = rest[0] if rest else False
    if not isinstance(remove_manager, bool):
        raise context.command_error(
            "invalid remove manager flag. Expected boolean but got "
            f"{type(remove_manager).__name__}"
        )

    role = _require_role(context, app, app_reference, role_reference)
    permission = app.permissions.get(role)
    if permission is None or grantee not in permission.grantees:
        raise context.command_error(f"grantee {grantee} doesn't have the given permission")

    acl = _require_acl(context, dao)
    permission.grantees.discard(grantee)
    actions: List[AnyAction] = [
        encode_action(acl.address, REVOKE_PERMISSION, [grantee, app.address, role])
    ]
    if remove_manager:
        permission.manager = None
        actions.append(encode_action(acl.address, REMOVE_PERMISSION_MANAGER, [app.address, role]))
    return actions


CONNECT = Command("connect", ArityConstraint.greater(2), _connect, block=True)
GRANT = Command("grant", ArityConstraint.between(3, 4), _grant)
REVOKE = Command("revoke", ArityConstraint.between(3, 4), _revoke)

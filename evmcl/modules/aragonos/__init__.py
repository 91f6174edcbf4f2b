from evmcl.modules.aragonos.dao import (
    DAO,
    App,
    ConnectionStack,
    Permission,
    normalize_app_identifier,
    parse_app_identifier,
)
from evmcl.modules.aragonos.forwarding import encode_forwarding_action
from evmcl.modules.aragonos.module import AragonOS

__all__ = [
    "AragonOS",
    "App",
    "ConnectionStack",
    "DAO",
    "Permission",
    "encode_forwarding_action",
    "normalize_app_identifier",
    "parse_app_identifier",
]

"""External collaborators consumed by the interpreter.

Signers, app registries and name services live outside the interpreter; it
only sees them through the small async protocols below. The static
implementations back the command line and the test-suite.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

from evmcl.actions import normalize_address


class Signer(Protocol):
    async def get_address(self) -> str: ...

    async def get_chain_id(self) -> int: ...


class AppResolver(Protocol):
    async def resolve_apps(self, kernel: str) -> List["AppSpec"]: ...


class NameResolver(Protocol):
    async def resolve(self, name: str, registry: Optional[str] = None) -> Optional[str]: ...


@dataclass(frozen=True)
class PermissionSpec:
    grantees: List[str] = field(default_factory=list)
    manager: Optional[str] = None


@dataclass(frozen=True)
class AppSpec:
    """One installed app as reported by an app registry.

    ``roles`` lists the role names (or raw 32-byte hashes) the app defines;
    ``permissions`` maps role names to the permission state already on chain.
    """

    name: str
    address: str
    roles: List[str] = field(default_factory=list)
    permissions: Dict[str, PermissionSpec] = field(default_factory=dict)
    index: Optional[int] = None


class StaticSigner:
    def __init__(self, address: str, chain_id: int = 1):
        checksummed = normalize_address(address)
        if checksummed is None:
            raise ValueError(f"Invalid signer address: {address}")
        self.address = checksummed
        self.chain_id = chain_id

    async def get_address(self) -> str:
        return self.address

    async def get_chain_id(self) -> int:
        return self.chain_id


class StaticAppResolver:
    """Serves app lists from memory, keyed by kernel address."""

    def __init__(self, daos: Mapping[str, List[AppSpec]]):
        self._daos: Dict[str, List[AppSpec]] = {}
        for kernel, apps in daos.items():
            checksummed = normalize_address(kernel)
            if checksummed is None:
                raise ValueError(f"Invalid kernel address: {kernel}")
            self._daos[checksummed] = list(apps)

    async def resolve_apps(self, kernel: str) -> List[AppSpec]:
        checksummed = normalize_address(kernel)
        if checksummed is None or checksummed not in self._daos:
            raise LookupError(f"No apps found for DAO {kernel}")
        return list(self._daos[checksummed])

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StaticAppResolver":
        """Build a resolver from ``{kernel: {"apps": [...]}}`` payloads."""
        daos: Dict[str, List[AppSpec]] = {}
        for kernel, entry in payload.items():
            raw_apps = entry.get("apps", []) if isinstance(entry, dict) else entry
            daos[kernel] = [_app_spec_from_dict(raw) for raw in raw_apps]
        return cls(daos)

    @classmethod
    def from_json(cls, path: str) -> "StaticAppResolver":
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


class StaticNameResolver:
    def __init__(self, names: Optional[Mapping[str, str]] = None):
        self._names = {name.lower(): address for name, address in (names or {}).items()}

    async def resolve(self, name: str, registry: Optional[str] = None) -> Optional[str]:
        return normalize_address(self._names.get(name.lower()))

    @classmethod
    def from_json(cls, path: str) -> "StaticNameResolver":
        return cls(json.loads(Path(path).read_text(encoding="utf-8")))


def _app_spec_from_dict(raw: Mapping[str, Any]) -> AppSpec:
    if "name" not in raw or "address" not in raw:
        raise ValueError("App entries require 'name' and 'address'.")
    permissions = {
        role: PermissionSpec(
            grantees=list(entry.get("grantees", [])),
            manager=entry.get("manager"),
        )
        for role, entry in dict(raw.get("permissions", {})).items()
    }
    return AppSpec(
        name=raw["name"],
        address=raw["address"],
        roles=list(raw.get("roles", [])),
        permissions=permissions,
        index=raw.get("index"),
    )

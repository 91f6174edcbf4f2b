import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from evmcl.actions import normalize_address, role_hash
from evmcl.resolvers import AppSpec

_APP_IDENTIFIER_RE = re.compile(r"^([a-z0-9][a-z0-9\-]*(?:\.[a-z0-9\-]+)*)(?::(\d+))?$")


def parse_app_identifier(reference: str) -> Optional[Tuple[str, int]]:
    """Split ``name[:index]`` into its name and instance index (default 0)."""
    match = _APP_IDENTIFIER_RE.match(reference)
    if match is None:
        return None
    name, index = match.groups()
    return name, int(index) if index is not None else 0


def normalize_app_identifier(reference: str) -> Optional[str]:
    parsed = parse_app_identifier(reference)
    if parsed is None:
        return None
    return f"{parsed[0]}:{parsed[1]}"


@dataclass
class Permission:
    grantees: Set[str] = field(default_factory=set)
    manager: Optional[str] = None

    def exists(self) -> bool:
        return self.manager is not None or bool(self.grantees)


@dataclass
class App:
    name: str
    index: int
    address: str
    roles: Set[str] = field(default_factory=set)
    permissions: Dict[str, Permission] = field(default_factory=dict)

    @property
    def identifier(self) -> str:
        return f"{self.name}:{self.index}"

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def get_permission(self, role: str) -> Permission:
        """Return the permission tracked for ``role``, creating an unset one."""
        if role not in self.permissions:
            self.permissions[role] = Permission()
        return self.permissions[role]

    @classmethod
    def from_spec(cls, spec: AppSpec, index: int) -> "App":
        address = normalize_address(spec.address)
        if address is None:
            raise ValueError(f"App {spec.name} has an invalid address: {spec.address}")

        permissions: Dict[str, Permission] = {}
        for role, permission_spec in spec.permissions.items():
            grantees = set()
            for grantee in permission_spec.grantees:
                checksummed = normalize_address(grantee)
                if checksummed is None:
                    raise ValueError(f"Invalid grantee {grantee} for role {role}")
                grantees.add(checksummed)
            permissions[role_hash(role)] = Permission(
                grantees=grantees,
                manager=normalize_address(permission_spec.manager),
            )

        roles = {role_hash(role) for role in spec.roles} | set(permissions)
        return cls(
            name=spec.name.lower(),
            index=index,
            address=address,
            roles=roles,
            permissions=permissions,
        )


class DAO:
    """One connected DAO: a kernel address plus the apps installed under it."""

    def __init__(self, kernel_address: str, apps: Dict[str, App], nesting_index: int = 0):
        kernel = normalize_address(kernel_address)
        if kernel is None:
            raise ValueError(f"Invalid kernel address: {kernel_address}")
        self.kernel_address = kernel
        self.apps = apps
        self.nesting_index = nesting_index

    @classmethod
    def from_app_specs(
        cls,
        kernel_address: str,
        specs: Sequence[AppSpec],
        nesting_index: int = 0,
    ) -> "DAO":
        apps: Dict[str, App] = {}
        next_index: Dict[str, int] = {}
        for spec in specs:
            name = spec.name.lower()
            index = spec.index if spec.index is not None else next_index.get(name, 0)
            next_index[name] = max(next_index.get(name, 0), index + 1)
            app = App.from_spec(spec, index)
            apps[app.identifier] = app
        return cls(kernel_address, apps, nesting_index=nesting_index)

    def resolve_app(self, reference: str) -> Optional[App]:
        """Find an app by identifier (``vault``, ``vault:1``) or by address."""
        address = normalize_address(reference)
        if address is not None:
            for app in self.apps.values():
                if app.address == address:
                    return app
            return None
        identifier = normalize_app_identifier(reference)
        if identifier is None:
            return None
        return self.apps.get(identifier)

    @property
    def acl(self) -> Optional[App]:
        return self.resolve_app("acl")

    def __repr__(self) -> str:
        return f"DAO(kernel={self.kernel_address!r}, nesting_index={self.nesting_index})"


class ConnectionStack:
    """The chain of DAOs connected by the ``connect`` blocks currently running."""

    def __init__(self):
        self._daos: List[DAO] = []

    def __len__(self) -> int:
        return len(self._daos)

    def __iter__(self) -> Iterator[DAO]:
        return iter(self._daos)

    @property
    def current(self) -> Optional[DAO]:
        return self._daos[-1] if self._daos else None

    def is_connected(self, kernel_address: str) -> bool:
        kernel = normalize_address(kernel_address)
        return any(dao.kernel_address == kernel for dao in self._daos)

    def push(self, dao: DAO) -> None:
        if self.is_connected(dao.kernel_address):
            raise ValueError(f"DAO {dao.kernel_address} is already connected.")
        self._daos.append(dao)

    def pop(self) -> DAO:
        return self._daos.pop()

    @contextmanager
    def connected(self, dao: DAO) -> Iterator[DAO]:
        self.push(dao)
        try:
            yield dao
        finally:
            self.pop()

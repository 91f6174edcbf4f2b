import logging
from typing import Dict, Optional

from evmcl.actions import normalize_address
from evmcl.errors import ResolutionError
from evmcl.modules.base import Module, command_table, helper_table
from evmcl.resolvers import AppResolver

from .commands import CONNECT, GRANT, REVOKE
from .dao import DAO, ConnectionStack
from .helpers import ARAGON_ENS

logger = logging.getLogger(__name__)


class AragonOS(Module):
    """Connects to AragonOS DAOs and manages their ACL permissions."""

    name = "aragonos"
    commands = command_table(CONNECT, GRANT, REVOKE)
    helpers = helper_table(ARAGON_ENS)

    def __init__(self, alias: Optional[str] = None):
        super().__init__(alias)
        self.connections = ConnectionStack()
        self._daos: Dict[str, DAO] = {}

    @property
    def current_dao(self) -> Optional[DAO]:
        return self.connections.current

    def get_connected_dao(self, kernel_address: str) -> Optional[DAO]:
        """Return the last DAO connected under ``kernel_address`` in this run."""
        kernel = normalize_address(kernel_address)
        if kernel is None:
            return None
        return self._daos.get(kernel)

    async def load_dao(self, app_resolver: Optional[AppResolver], kernel: str) -> DAO:
        """Build the DAO for a new ``connect`` block.

        Apps are fetched once per kernel; connecting to the same kernel again
        later in the script reuses the app graph built the first time.
        """
        nesting_index = len(self.connections)
        previous = self._daos.get(kernel)
        if previous is not None:
            dao = DAO(kernel, previous.apps, nesting_index=nesting_index)
        else:
            if app_resolver is None:
                raise ResolutionError(f"No app resolver available to fetch apps of DAO {kernel}")
            try:
                specs = await app_resolver.resolve_apps(kernel)
            except ResolutionError:
                raise
            except Exception as exc:
                raise ResolutionError(f"Failed to fetch apps of DAO {kernel}: {exc}") from exc
            try:
                dao = DAO.from_app_specs(kernel, specs, nesting_index=nesting_index)
            except ValueError as exc:
                raise ResolutionError(f"Invalid apps returned for DAO {kernel}: {exc}") from exc
            logger.debug("Fetched %d app(s) for DAO %s", len(dao.apps), kernel)
        self._daos[kernel] = dao
        return dao

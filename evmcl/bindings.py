import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from evmcl.errors import BindingError

logger = logging.getLogger(__name__)


class BindingsSpace(Enum):
    USER = "user"
    ADDR = "addr"
    MODULE = "module"
    ALIAS = "alias"


@dataclass
class _ScopeFrame:
    parent: Optional[int]
    bindings: Dict[Tuple[BindingsSpace, str], Any] = field(default_factory=dict)


class BindingsManager:
    """
    Chained-scope key/value store partitioned into binding spaces.

    Frames are kept in an explicit list; ``_current`` indexes the innermost
    one. Lookups walk the parent chain outward, writes always land in the
    innermost frame.
    """

    def __init__(self):
        self._frames: List[_ScopeFrame] = [_ScopeFrame(parent=None)]
        self._current = 0

    @property
    def depth(self) -> int:
        return len(self._frames) - 1

    def enter_scope(self) -> None:
        self._frames.append(_ScopeFrame(parent=self._current))
        self._current = len(self._frames) - 1
        logger.debug("Entered scope %d", self.depth)

    def exit_scope(self) -> None:
        if self._current == 0:
            raise BindingError("Cannot exit the root scope.")
        frame = self._frames.pop()
        self._current = frame.parent if frame.parent is not None else 0
        logger.debug("Exited scope %d", self.depth + 1)

    @contextmanager
    def scope(self) -> Iterator[None]:
        self.enter_scope()
        try:
            yield
        finally:
            self.exit_scope()

    def _chain(self) -> Iterator[_ScopeFrame]:
        index: Optional[int] = self._current
        while index is not None:
            frame = self._frames[index]
            yield frame
            index = frame.parent

    def get_binding(self, space: BindingsSpace, identifier: str) -> Optional[Any]:
        for frame in self._chain():
            key = (space, identifier)
            if key in frame.bindings:
                return frame.bindings[key]
        return None

    def has_binding(self, space: BindingsSpace, identifier: str) -> bool:
        key = (space, identifier)
        return any(key in frame.bindings for frame in self._chain())

    def set_binding(self, space: BindingsSpace, identifier: str, value: Any) -> None:
        self._frames[self._current].bindings[(space, identifier)] = value

    def get_all_identifiers(self, space: Optional[BindingsSpace] = None) -> Set[str]:
        identifiers: Set[str] = set()
        for frame in self._chain():
            for binding_space, identifier in frame.bindings:
                if space is None or binding_space == space:
                    identifiers.add(identifier)
        return identifiers

    def get_all_bindings(self, space: BindingsSpace) -> Dict[str, Any]:
        """Return the visible bindings of ``space``; inner scopes win."""
        out: Dict[str, Any] = {}
        for frame in self._chain():
            for (binding_space, identifier), value in frame.bindings.items():
                if binding_space == space and identifier not in out:
                    out[identifier] = value
        return out

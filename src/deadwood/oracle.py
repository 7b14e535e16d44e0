"""Interface oracles: answer questions about interfaces and modules outside the project."""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterfaceInfo:
    """Direct requirements and parents of an external interface."""

    members: frozenset[str] = frozenset()
    parents: frozenset[str] = frozenset()


class InterfaceOracle(Protocol):
    """Source of truth for symbols defined outside the analyzed project."""

    def requirements(self, name: str) -> InterfaceInfo | None:
        """Direct members and parents of an interface, or None if unknown."""
        ...

    def exported_symbols(self, module: str) -> set[str] | None:
        """Public symbols a module exports, or None if unknown."""
        ...


class NullOracle:
    """An oracle that knows nothing."""

    def requirements(self, name: str) -> InterfaceInfo | None:
        return None

    def exported_symbols(self, module: str) -> set[str] | None:
        return None


@dataclass
class JsonInterfaceOracle:
    """Oracle backed by an interface metadata document.

    The document looks like::

        {
          "interfaces": {"Equatable": {"requirements": ["=="], "parents": []}},
          "modules": {"UIKit": ["UIView", "UIViewController"]}
        }
    """

    interfaces: dict[str, InterfaceInfo] = field(default_factory=dict)
    modules: dict[str, set[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "JsonInterfaceOracle":
        interfaces = {
            name: InterfaceInfo(
                members=frozenset(entry.get("requirements", [])),
                parents=frozenset(entry.get("parents", [])),
            )
            for name, entry in data.get("interfaces", {}).items()
        }
        modules = {name: set(symbols) for name, symbols in data.get("modules", {}).items()}
        return cls(interfaces=interfaces, modules=modules)

    @classmethod
    def load(cls, path: Path) -> "JsonInterfaceOracle":
        """Load oracle data from a JSON file."""
        if not path.exists():
            raise FileNotFoundError(f"Interface data not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def requirements(self, name: str) -> InterfaceInfo | None:
        return self.interfaces.get(name)

    def exported_symbols(self, module: str) -> set[str] | None:
        symbols = self.modules.get(module)
        return set(symbols) if symbols is not None else None


class CachingOracle:
    """Memoizes another oracle per name. Safe to share between threads."""

    def __init__(self, inner: InterfaceOracle) -> None:
        self._inner = inner
        self._lock = threading.Lock()
        self._interfaces: dict[str, InterfaceInfo | None] = {}
        self._modules: dict[str, frozenset[str] | None] = {}

    def requirements(self, name: str) -> InterfaceInfo | None:
        with self._lock:
            if name in self._interfaces:
                return self._interfaces[name]
        info = self._inner.requirements(name)
        with self._lock:
            return self._interfaces.setdefault(name, info)

    def exported_symbols(self, module: str) -> set[str] | None:
        with self._lock:
            cached = self._modules.get(module, False)
        if cached is False:
            symbols = self._inner.exported_symbols(module)
            with self._lock:
                cached = self._modules.setdefault(
                    module, frozenset(symbols) if symbols is not None else None
                )
        return set(cached) if cached is not None else None

    @property
    def cached_names(self) -> set[str]:
        with self._lock:
            return set(self._interfaces)

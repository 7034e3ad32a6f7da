from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from aipart.partition.oracle import AnnotatedTensorOracle, OpTypeOracle


@dataclass
class RegisteredComponent:
    kind: str
    name: str
    factory: Callable[..., Any]


class Registry:
    def __init__(self) -> None:
        self._items: dict[str, RegisteredComponent] = {}

    def register(self, kind: str, name: str, factory: Callable[..., Any]) -> None:
        key = f"{kind}:{name}"
        self._items[key] = RegisteredComponent(kind=kind, name=name, factory=factory)

    def get(self, kind: str, name: str) -> RegisteredComponent | None:
        return self._items.get(f"{kind}:{name}")

    def names(self, kind: str) -> list[str]:
        return sorted(item.name for item in self._items.values() if item.kind == kind)

    def create(self, kind: str, name: str, **kwargs: Any) -> Any:
        item = self.get(kind, name)
        if not item:
            raise KeyError(f"Component not found: {kind}:{name}")
        return item.factory(**kwargs)


def register_builtin_oracles(registry: Registry) -> None:
    registry.register("oracle", "optype", OpTypeOracle)
    registry.register("oracle", "annotations", AnnotatedTensorOracle.from_json)


global_registry = Registry()
register_builtin_oracles(global_registry)

"""Hydra ConfigStore registration and target resolution."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from hydra.core.config_store import ConfigStore
from hydra.utils import get_class
from loguru import logger

T = TypeVar("T", bound=type)


def target_path(cls: type[Any]) -> str:
    """Dotted import path usable as a Hydra ``_target_``."""
    return f"{cls.__module__}.{cls.__qualname__}"


def resolve_target(path: str) -> type[Any]:
    """Inverse of :func:`target_path`."""
    return get_class(path)


def register(*, group: str, name: str, **defaults: Any) -> Callable[[T], T]:
    """Register the decorated class in Hydra's ConfigStore.

    The stored node is ``{"_target_": <class path>, **defaults}`` under
    ``group/name``, so a root config can select it through its defaults
    list (``- model: resnet18``).
    """

    def _decorator(cls: T) -> T:
        node: dict[str, Any] = {"_target_": target_path(cls)}
        node.update(defaults)
        logger.debug(f"Registering {cls.__name__} as '{group}/{name}'")
        ConfigStore.instance().store(group=group, name=name, node=node)
        return cls

    return _decorator

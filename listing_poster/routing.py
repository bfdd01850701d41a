"""Category to destination-channel routing."""

from __future__ import annotations

from .config import RoutingConfig
from .core.types import Category


def route(category: Category | str, cfg: RoutingConfig) -> dict[str, list[str]]:
    """Return platform name -> ordered destination names for a category.

    Categories without an entry resolve to the ``general`` entry. The
    returned lists are copies; callers may not mutate the configuration.
    """
    key = category.value if isinstance(category, Category) else str(category)
    mapping = cfg.mappings.get(key)
    if mapping is None:
        mapping = cfg.mappings[Category.GENERAL.value]
    return {platform: list(destinations) for platform, destinations in mapping.items()}

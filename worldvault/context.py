"""
worldvault/context.py -- Everything a note renderer may read.

A ``MapContext`` is built once, after loading and before any note task
starts, and is shared read-only by every task.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from worldvault.index_builder import (
    RouteNetwork,
    build_biome_table,
    build_marker_index,
    build_route_adjacency,
)
from worldvault.models.entities import Biome, Marker
from worldvault.models.world import WorldDataset
from worldvault.resolver import ReferenceResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapContext:
    dataset: WorldDataset
    resolver: ReferenceResolver
    biomes: tuple[Biome, ...]
    routes: RouteNetwork
    marker_index: Mapping[int, Marker] = field(default_factory=dict)

    @property
    def settings(self):
        return self.dataset.settings


def build_map_context(dataset: WorldDataset) -> MapContext:
    """Derive every index from *dataset* and wrap it in a ``MapContext``."""
    biomes = tuple(build_biome_table(dataset))
    context = MapContext(
        dataset=dataset,
        resolver=ReferenceResolver(dataset, biomes),
        biomes=biomes,
        routes=build_route_adjacency(dataset),
        marker_index=build_marker_index(dataset),
    )
    logger.info(
        "Indexed %d biomes, %d route-linked cells, %d marked cells",
        len(biomes), context.routes.graph.number_of_nodes(), len(context.marker_index),
    )
    return context

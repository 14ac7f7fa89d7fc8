"""
worldvault/index_builder.py -- Indices derived from a loaded world.

Builds, once per run and before any note is rendered:

    - the biome table, turning the generator's parallel biome columns into
      one ``Biome`` row per biome id;
    - the route network, an undirected graph linking consecutive distinct
      cells of every route, each edge tagged with its route id;
    - the marker index, mapping a cell id to the marker placed on it.

Usage:
    from worldvault.index_builder import build_route_adjacency

    network = build_route_adjacency(dataset)
    network.links_at(1204)        # {1205: 3, 1188: 3, 977: 12}
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

try:
    import networkx as nx
except ImportError:
    raise ImportError(
        "The 'networkx' package is required but not installed. "
        "Install it with: pip install networkx"
    )

from worldvault.errors import MapValidationError
from worldvault.models.entities import Biome, Marker
from worldvault.models.world import WorldDataset

# Columns copied into every biome row: (BiomesData attribute, Biome field).
_BIOME_COLUMNS = (
    ("name", "name"),
    ("color", "color"),
    ("habitability", "habitability"),
    ("cost", "cost"),
    ("icons_density", "icons_density"),
    ("icons", "icons"),
)

ROAD_GROUP = "roads"


# ---------------------------------------------------------------------------
# Biome table
# ---------------------------------------------------------------------------

def build_biome_table(dataset: WorldDataset) -> list[Biome]:
    """Rebuild per-biome rows from the columnar ``biomesData`` arrays.

    Row *n* takes every field from index *n* of every column, where *n* is
    the biome id listed in ``biomesData.i``.  Columns that are absent (legacy
    saves carry only colour, habitability and name) leave the field ``None``.

    Raises
    ------
    MapValidationError
        If a present column is too short for one of the listed ids.
    """
    data = dataset.biomes_data
    if data is None:
        return []

    table = []
    for biome_id in data.ids:
        row = {"id": biome_id}
        for attribute, field in _BIOME_COLUMNS:
            column = getattr(data, attribute)
            if column is None:
                row[field] = None
                continue
            if biome_id < 0 or biome_id >= len(column):
                raise MapValidationError(
                    f"Biome column '{attribute}' has {len(column)} entries; "
                    f"no value for biome {biome_id}",
                    field=f"biomesData.{attribute}",
                )
            row[field] = column[biome_id]
        table.append(Biome(**row))
    return table


# ---------------------------------------------------------------------------
# Route network
# ---------------------------------------------------------------------------

class RouteNetwork:
    """Cell-to-cell links created by routes.

    Parameters
    ----------
    graph : networkx.Graph
        Nodes are cell ids; every edge carries ``route`` (route id) and
        ``group`` (route group) attributes.  The graph is frozen.
    """

    def __init__(self, graph: Optional[nx.Graph] = None):
        self.graph: nx.Graph = nx.freeze(graph if graph is not None else nx.Graph())

    def __contains__(self, cell_id) -> bool:
        return cell_id in self.graph

    def links_at(self, cell_id: int) -> dict[int, int]:
        """Return ``{neighbour cell id: route id}`` for *cell_id*."""
        if cell_id not in self.graph:
            return {}
        return {
            neighbour: data["route"]
            for neighbour, data in self.graph.adj[cell_id].items()
        }

    def routes_at(self, cell_id: int) -> set[int]:
        """Return the ids of every route linked at *cell_id*."""
        return set(self.links_at(cell_id).values())

    def route_between(self, a: int, b: int) -> Optional[int]:
        data = self.graph.get_edge_data(a, b)
        return data["route"] if data else None

    def edges(self) -> Iterator[tuple[int, int, int]]:
        for a, b, route_id in self.graph.edges(data="route"):
            yield a, b, route_id

    def is_crossroad(self, cell_id: int) -> bool:
        """Return True if routes meet at *cell_id*.

        A cell is a crossroad when it links to more than three neighbours,
        or to more than two along roads.
        """
        if cell_id not in self.graph:
            return False
        links = self.graph.adj[cell_id]
        if len(links) > 3:
            return True
        roads = sum(1 for data in links.values() if data.get("group") == ROAD_GROUP)
        return roads > 2

    def to_dict(self) -> dict[int, dict[int, int]]:
        """Return the full adjacency as nested plain dicts."""
        return {cell_id: self.links_at(cell_id) for cell_id in self.graph.nodes}


def build_route_adjacency(dataset: WorldDataset) -> RouteNetwork:
    """Link every pair of consecutive, distinct cells along each route.

    Links are symmetric.  A route whose points never leave one cell adds
    nothing.  When two routes share a link, the later route's id is kept.
    """
    graph = nx.Graph()
    for route in dataset.routes:
        cells = route.cell_ids
        for current, following in zip(cells, cells[1:]):
            if current == following:
                continue
            graph.add_edge(current, following, route=route.id, group=route.group)

    logger.debug(
        "Route network: %d linked cells, %d links from %d routes",
        graph.number_of_nodes(), graph.number_of_edges(), len(dataset.routes),
    )
    return RouteNetwork(graph)


# ---------------------------------------------------------------------------
# Marker index
# ---------------------------------------------------------------------------

def build_marker_index(dataset: WorldDataset) -> dict[int, Marker]:
    """Map each cell id to the marker placed on it (first marker wins)."""
    index: dict[int, Marker] = {}
    for marker in dataset.markers:
        if marker.cell in index:
            logger.debug(
                "Cell %d already holds marker %d; marker %d not indexed",
                marker.cell, index[marker.cell].id, marker.id,
            )
            continue
        index[marker.cell] = marker
    return index

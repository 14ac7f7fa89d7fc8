"""
worldvault/route_tracer.py -- What a route passes by, through and across.

``trace_passages`` walks a route's cells in order and collects, for every
cell it visits for the first time, the burg and marker on that cell, the
river crossing it, the state, province, culture and religion owning it,
its biome, and any other route meeting it there.  Each related entity is
recorded once, however many cells it covers.

Off-map cells (ids with no packed cell) are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from worldvault.index_builder import RouteNetwork
from worldvault.models.entities import Marker, Note, Route
from worldvault.resolver import ReferenceResolver


@dataclass(frozen=True)
class MarkerPassage:
    marker: Marker
    note: Optional[Note] = None


@dataclass
class RoutePassages:
    """Entities related to one route, each keyed by its id."""

    route: Route
    cells: list[int] = field(default_factory=list)
    crossroads: list[int] = field(default_factory=list)
    burgs: dict = field(default_factory=dict)
    markers: dict = field(default_factory=dict)
    rivers: dict = field(default_factory=dict)
    states: dict = field(default_factory=dict)
    provinces: dict = field(default_factory=dict)
    cultures: dict = field(default_factory=dict)
    religions: dict = field(default_factory=dict)
    biomes: dict = field(default_factory=dict)
    routes: dict = field(default_factory=dict)


def trace_passages(
    route: Route,
    resolver: ReferenceResolver,
    network: RouteNetwork,
    marker_index: Mapping[int, Marker],
) -> RoutePassages:
    """Collect everything *route* passes through.

    Parameters
    ----------
    route : Route
        The route to walk.
    resolver : ReferenceResolver
        Resolves the ids found on each cell.
    network : RouteNetwork
        Used to find other routes linked at each visited cell.
    marker_index : mapping
        Cell id to the marker placed on that cell.

    Returns
    -------
    RoutePassages
        ``cells`` lists visited cells in visit order; every other
        collection maps entity id to entity.
    """
    passages = RoutePassages(route=route)
    visited: set[int] = set()

    for cell_id in route.cell_ids:
        if cell_id in visited:
            continue
        visited.add(cell_id)
        cell = resolver.pack_cell(cell_id)
        if cell is None:
            continue
        passages.cells.append(cell_id)

        # Ownership id 0 means "none" for every kind except biomes.
        _record(passages.burgs, cell.burg, resolver.burg)
        _record(passages.rivers, cell.river, resolver.river)
        _record(passages.states, cell.state, resolver.state)
        _record(passages.provinces, cell.province, resolver.province)
        _record(passages.cultures, cell.culture, resolver.culture)
        _record(passages.religions, cell.religion, resolver.religion)

        biome = resolver.biome(cell.biome)
        if biome is not None:
            passages.biomes.setdefault(biome.id, biome)

        marker = marker_index.get(cell_id)
        if marker is not None and marker.id not in passages.markers:
            passages.markers[marker.id] = MarkerPassage(marker, resolver.marker_note(marker))

        for other_id in network.routes_at(cell_id):
            if other_id == route.id:
                continue
            _record(passages.routes, other_id, resolver.route, allow_zero=True)

        if network.is_crossroad(cell_id):
            passages.crossroads.append(cell_id)

    return passages


def _record(bucket: dict, entity_id: int, lookup, allow_zero: bool = False) -> None:
    if entity_id in bucket or (entity_id == 0 and not allow_zero):
        return
    entity = lookup(entity_id)
    if entity is not None and not getattr(entity, "is_placeholder", False):
        bucket[entity_id] = entity

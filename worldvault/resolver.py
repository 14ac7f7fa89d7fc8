"""
worldvault/resolver.py -- Look up any map entity by kind and id.

Every collection is indexed by its records' own ids once, when the
resolver is built, so all lookups are dictionary hits.  Unknown ids,
negative ids and non-integers resolve to ``None``; nothing here raises
for an absent entity except ``require_cell``, which is used for the
references a note cannot be rendered without.

Id 0 of cultures, states and religions resolves to the placeholder
variant (``WildCulture``, ``NeutralState``, ``NoReligion``).  Burgs and
provinces have no entity at id 0.

Usage::

    resolver = ReferenceResolver(dataset, build_biome_table(dataset))
    resolver.resolve(EntityKind.CULTURE, 0)      # -> WildCulture
    resolver.resolve(EntityKind.BURG, 0)         # -> None
    resolver.cell(1204)                          # -> CellView | None
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from worldvault.errors import MissingReferenceError
from worldvault.models.entities import (
    Biome,
    EntityKind,
    GridCell,
    Marker,
    Note,
    PackCell,
)
from worldvault.models.world import WorldDataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellView:
    """A packed cell joined with its climate-grid cell."""

    pack: PackCell
    grid: GridCell

    @property
    def id(self) -> int:
        return self.pack.id


def _index(records: Iterable[Any]) -> dict[Any, Any]:
    index = {}
    for record in records:
        if record.id in index:
            logger.warning(
                "Duplicate %s id %r; keeping the first record",
                type(record).__name__, record.id,
            )
            continue
        index[record.id] = record
    return index


class ReferenceResolver:
    """Id-indexed view over a ``WorldDataset``.

    Parameters
    ----------
    dataset : WorldDataset
        The loaded world.
    biomes : iterable of Biome
        The biome table built by ``index_builder.build_biome_table``.
    """

    def __init__(self, dataset: WorldDataset, biomes: Iterable[Biome] = ()):
        self.dataset = dataset
        self._by_kind: dict[EntityKind, dict[int, Any]] = {
            EntityKind.CULTURE: _index(dataset.cultures),
            EntityKind.BURG: _index(dataset.burgs),
            EntityKind.STATE: _index(dataset.states),
            EntityKind.PROVINCE: _index(dataset.provinces),
            EntityKind.RELIGION: _index(dataset.religions),
            EntityKind.RIVER: _index(dataset.rivers),
            EntityKind.ROUTE: _index(dataset.routes),
            EntityKind.MARKER: _index(dataset.markers),
            EntityKind.BIOME: _index(biomes),
            EntityKind.NAME_BASE: _index(dataset.name_bases),
            EntityKind.FEATURE: _index(dataset.features),
        }
        # Burg and province slot 0 is never an entity, even if a source
        # record claims that id.
        self._by_kind[EntityKind.BURG].pop(0, None)
        self._by_kind[EntityKind.PROVINCE].pop(0, None)

        self._pack_cells: dict[int, PackCell] = _index(dataset.cells)
        self._grid_cells: dict[int, GridCell] = _index(dataset.grid_cells)
        self._notes: dict[str, Note] = _index(dataset.notes)

    # ------------------------------------------------------------------
    # Generic lookup
    # ------------------------------------------------------------------

    def resolve(self, kind: EntityKind, entity_id) -> Optional[Any]:
        """Return the entity of *kind* with *entity_id*, or ``None``."""
        if not _is_id(entity_id):
            return None
        return self._by_kind[EntityKind(kind)].get(entity_id)

    def all(self, kind: EntityKind) -> list[Any]:
        """Return every entity of *kind*, in id order."""
        index = self._by_kind[EntityKind(kind)]
        return [index[key] for key in sorted(index)]

    @staticmethod
    def is_placeholder(entity) -> bool:
        return bool(getattr(entity, "is_placeholder", False))

    # ------------------------------------------------------------------
    # Typed shortcuts
    # ------------------------------------------------------------------

    def culture(self, culture_id):
        return self.resolve(EntityKind.CULTURE, culture_id)

    def burg(self, burg_id):
        return self.resolve(EntityKind.BURG, burg_id)

    def state(self, state_id):
        return self.resolve(EntityKind.STATE, state_id)

    def province(self, province_id):
        return self.resolve(EntityKind.PROVINCE, province_id)

    def religion(self, religion_id):
        return self.resolve(EntityKind.RELIGION, religion_id)

    def river(self, river_id):
        return self.resolve(EntityKind.RIVER, river_id)

    def route(self, route_id):
        return self.resolve(EntityKind.ROUTE, route_id)

    def marker(self, marker_id):
        return self.resolve(EntityKind.MARKER, marker_id)

    def biome(self, biome_id) -> Optional[Biome]:
        return self.resolve(EntityKind.BIOME, biome_id)

    def name_base(self, base_id):
        return self.resolve(EntityKind.NAME_BASE, base_id)

    def feature(self, feature_id):
        return self.resolve(EntityKind.FEATURE, feature_id)

    # ------------------------------------------------------------------
    # Cells and notes
    # ------------------------------------------------------------------

    def pack_cell(self, cell_id) -> Optional[PackCell]:
        if not _is_id(cell_id):
            return None
        return self._pack_cells.get(cell_id)

    def cell(self, cell_id) -> Optional[CellView]:
        """Return the packed cell joined with its grid cell.

        ``None`` if either half is missing.
        """
        pack = self.pack_cell(cell_id)
        if pack is None:
            return None
        grid = self._grid_cells.get(pack.grid_id)
        if grid is None:
            return None
        return CellView(pack=pack, grid=grid)

    def require_cell(self, cell_id, owner: str) -> CellView:
        """Like ``cell`` but raise ``MissingReferenceError`` when absent."""
        cell = self.cell(cell_id)
        if cell is None:
            raise MissingReferenceError("cell", cell_id, owner)
        return cell

    def note(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    def marker_note(self, marker: Marker) -> Optional[Note]:
        """Return the annotation attached to *marker*, if any."""
        return self._notes.get(marker.note_id)


def _is_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0

"""
worldvault/vault.py -- Where notes live inside the vault and how they link.

Layout (directory names configurable through ``VaultOptions``)::

    <root>/
        1. World/                 world homepage and table-of-contents pages
            Biomes/ Burgs/ Cultures/ NameBases/ PointsOfInterest/
            Provinces/ Religions/ Rivers/ Routes/ States/
        z_Assets/                 map image
        z_Map/                    copies of the source map files
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from worldvault.models.entities import EntityKind
from worldvault.utils import normalize_file_name

logger = logging.getLogger(__name__)

KIND_DIRECTORIES = {
    EntityKind.CULTURE: "Cultures",
    EntityKind.BIOME: "Biomes",
    EntityKind.BURG: "Burgs",
    EntityKind.NAME_BASE: "NameBases",
    EntityKind.PROVINCE: "Provinces",
    EntityKind.STATE: "States",
    EntityKind.RELIGION: "Religions",
    EntityKind.RIVER: "Rivers",
    EntityKind.ROUTE: "Routes",
    EntityKind.MARKER: "PointsOfInterest",
}


@dataclass(frozen=True)
class VaultLink:
    """A link target: vault-relative path (no suffix) plus display text."""

    relative_path: PurePosixPath
    display_name: str

    def to_markdown(self) -> str:
        return f"[[{self.relative_path}|{self.display_name}]]"


class VaultLayout:
    """Resolves note paths under a vault root.

    Parameters
    ----------
    root : str or pathlib.Path
        The vault directory.
    world_dir, assets_dir, map_dir : str
        Names of the world, asset and raw map-data directories.
    """

    def __init__(self, root, world_dir: str = "1. World",
                 assets_dir: str = "z_Assets", map_dir: str = "z_Map"):
        self.root = Path(root)
        self.world_dir = world_dir
        self.assets_dir = assets_dir
        self.map_dir = map_dir

    @property
    def world_path(self) -> Path:
        return self.root / self.world_dir

    @property
    def assets_path(self) -> Path:
        return self.root / self.assets_dir

    @property
    def map_path(self) -> Path:
        return self.root / self.map_dir

    def create_directories(self) -> None:
        """Create every vault directory (existing ones are left alone)."""
        for directory in (self.assets_path, self.map_path, self.world_path):
            directory.mkdir(parents=True, exist_ok=True)
        for name in KIND_DIRECTORIES.values():
            (self.world_path / name).mkdir(exist_ok=True)
        logger.info("Vault directories ready under %s", self.root)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def relative_note_path(self, kind: Optional[EntityKind], file_name: str) -> PurePosixPath:
        """Vault-relative path of a note, without the ``.md`` suffix.

        ``kind=None`` places the note directly in the world directory.
        """
        parts = [self.world_dir]
        if kind is not None:
            parts.append(KIND_DIRECTORIES[EntityKind(kind)])
        parts.append(normalize_file_name(file_name) or "Unnamed")
        return PurePosixPath(*parts)

    def note_path(self, relative: PurePosixPath) -> Path:
        return self.root.joinpath(*relative.parts).with_name(relative.name + ".md")

    def link(self, kind: Optional[EntityKind], file_name: str, display_name: str) -> VaultLink:
        return VaultLink(self.relative_note_path(kind, file_name), display_name)


# ---------------------------------------------------------------------------
# File names per entity kind
# ---------------------------------------------------------------------------

def culture_file_name(culture) -> str:
    return culture.name.split(" (")[0]


def route_file_name(route) -> str:
    return f"{route.group}-{route.id}"


def marker_file_name(marker, note) -> str:
    if note is not None and note.name:
        return note.name
    return f"marker-{marker.id}"


def entity_file_name(kind: EntityKind, entity, resolver=None) -> str:
    """Return the (unnormalised) file name of *entity*'s note."""
    kind = EntityKind(kind)
    if kind is EntityKind.CULTURE:
        return culture_file_name(entity)
    if kind is EntityKind.ROUTE:
        return route_file_name(entity)
    if kind is EntityKind.MARKER:
        note = resolver.marker_note(entity) if resolver is not None else None
        return marker_file_name(entity, note)
    return entity.name


def display_name(kind: EntityKind, entity, resolver=None) -> str:
    """Return the text shown for links to *entity*."""
    kind = EntityKind(kind)
    if kind is EntityKind.ROUTE:
        return entity.display_name
    if kind is EntityKind.MARKER:
        note = resolver.marker_note(entity) if resolver is not None else None
        return note.name if note is not None and note.name else f"Marker {entity.id}"
    return entity.name


def entity_link(vault: VaultLayout, kind: EntityKind, entity, resolver=None) -> Optional[VaultLink]:
    """Link to *entity*'s note, or ``None`` when *entity* is ``None``."""
    if entity is None:
        return None
    return vault.link(
        kind,
        entity_file_name(kind, entity, resolver),
        display_name(kind, entity, resolver),
    )

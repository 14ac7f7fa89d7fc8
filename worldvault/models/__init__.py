"""
worldvault/models/ -- Pydantic v2 models for Fantasy Map Generator data.

Submodules:
    entities    One model per entity kind, with placeholder variants.
    world       The WorldDataset snapshot and map-wide settings.
    validators  JSON Schema shape checks and the version gate.
"""

from worldvault.models.entities import (
    AnyCulture,
    AnyReligion,
    AnyState,
    Biome,
    BiomesData,
    Burg,
    Culture,
    EntityKind,
    Feature,
    GridCell,
    Marker,
    NameBase,
    NeutralState,
    Note,
    NoReligion,
    PackCell,
    Province,
    Religion,
    River,
    Route,
    State,
    WildCulture,
)
from worldvault.models.world import (
    MapCoordinates,
    MapInfo,
    MapOptions,
    MapSettings,
    WorldDataset,
)

__all__ = [
    "AnyCulture", "AnyReligion", "AnyState", "Biome", "BiomesData", "Burg",
    "Culture", "EntityKind", "Feature", "GridCell", "MapCoordinates",
    "MapInfo", "MapOptions", "MapSettings", "Marker", "NameBase",
    "NeutralState", "Note", "NoReligion", "PackCell", "Province",
    "Religion", "River", "Route", "State", "WildCulture", "WorldDataset",
]

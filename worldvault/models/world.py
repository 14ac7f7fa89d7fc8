"""
worldvault/models/world.py -- The canonical in-memory world.

Both input encodings are parsed into a single ``WorldDataset`` which is
frozen for the rest of the run.  Collections keep source order; entities
are looked up by id through ``worldvault.resolver``, never by position.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from worldvault.models.entities import (
    AnyCulture,
    AnyReligion,
    AnyState,
    BiomesData,
    Burg,
    Feature,
    GridCell,
    Marker,
    NameBase,
    Note,
    PackCell,
    Province,
    River,
    Route,
)


class MapInfo(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    version: str
    seed: Union[int, str] = ""
    width: float = 0
    height: float = 0
    map_name: str = Field(default="", alias="mapName")
    map_id: Optional[Union[int, str]] = Field(default=None, alias="mapId")
    description: str = ""
    exported_at: Optional[str] = Field(default=None, alias="exportedAt")


class MapOptions(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    village_max_population: float = Field(default=2000, alias="villageMaxPopulation")
    year: Optional[int] = None
    era: Optional[str] = None
    era_short: Optional[str] = Field(default=None, alias="eraShort")


class MapSettings(BaseModel):
    """Units and scales used to turn raw map values into readable ones."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    distance_unit: str = Field(default="mi", alias="distanceUnit")
    distance_scale: float = Field(default=1, alias="distanceScale")
    area_unit: str = Field(default="square", alias="areaUnit")
    height_unit: str = Field(default="ft", alias="heightUnit")
    height_exponent: float = Field(default=2, alias="heightExponent")
    temperature_scale: str = Field(default="°C", alias="temperatureScale")
    population_rate: float = Field(default=1000, alias="populationRate")
    urbanization: float = 1
    map_name: str = Field(default="", alias="mapName")
    options: MapOptions = Field(default_factory=MapOptions)


class MapCoordinates(BaseModel):
    """Latitude/longitude bounds of the map."""

    model_config = ConfigDict(extra="allow", frozen=True)

    latT: float = 0
    latN: float = 0
    latS: float = 0
    lonT: float = 0
    lonW: float = 0
    lonE: float = 0


class WorldDataset(BaseModel):
    """Everything read from one map file."""

    model_config = ConfigDict(frozen=True)

    source_format: Literal["json", "map"]
    info: MapInfo
    settings: MapSettings = Field(default_factory=MapSettings)
    coordinates: MapCoordinates = Field(default_factory=MapCoordinates)
    cells: list[PackCell] = Field(default_factory=list)
    grid_cells: list[GridCell] = Field(default_factory=list)
    features: list[Feature] = Field(default_factory=list)
    cultures: list[AnyCulture] = Field(default_factory=list)
    burgs: list[Burg] = Field(default_factory=list)
    states: list[AnyState] = Field(default_factory=list)
    provinces: list[Province] = Field(default_factory=list)
    religions: list[AnyReligion] = Field(default_factory=list)
    rivers: list[River] = Field(default_factory=list)
    routes: list[Route] = Field(default_factory=list)
    markers: list[Marker] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    name_bases: list[NameBase] = Field(default_factory=list)
    biomes_data: Optional[BiomesData] = None

    @property
    def map_name(self) -> str:
        return self.settings.map_name or self.info.map_name or "World"

    def lat_long(self, x: float, y: float) -> tuple[float, float]:
        """Convert map pixel coordinates into latitude and longitude."""
        width = self.info.width or 1
        height = self.info.height or 1
        lat = self.coordinates.latN - (y / height) * self.coordinates.latT
        lon = self.coordinates.lonW + (x / width) * self.coordinates.lonT
        return lat, lon

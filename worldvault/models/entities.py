"""
worldvault/models/entities.py -- Pydantic models for map entities.

Field names are Pythonic; the Fantasy Map Generator's short source keys
(``i``, ``g``, ``h``, ``fullName`` ...) are declared as aliases so that
raw records validate directly::

    culture = Culture.model_validate(raw_culture)
    culture.id, culture.name_base

Culture, State and Religion have a *placeholder* variant stored at id 0
(``WildCulture``, ``NeutralState``, ``NoReligion``).  Placeholders carry a
reduced field set and ignore unknown source keys, so a placeholder can
never be mistaken for, or rendered as, a full entity.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """Every kind of entity that can be resolved by id."""

    CULTURE = "culture"
    BURG = "burg"
    STATE = "state"
    PROVINCE = "province"
    RELIGION = "religion"
    RIVER = "river"
    ROUTE = "route"
    MARKER = "marker"
    BIOME = "biome"
    NAME_BASE = "name_base"
    FEATURE = "feature"


# ------------------------------------------------------------------
# Base classes
# ------------------------------------------------------------------

class MapRecord(BaseModel):
    """An id-keyed record from one of the map's entity collections."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    is_placeholder: ClassVar[bool] = False

    id: int = Field(alias="i", ge=0)


class PlaceholderRecord(MapRecord):
    """The reduced record stored at id 0 of some collections."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    is_placeholder: ClassVar[bool] = True

    id: Literal[0] = Field(alias="i")


# ------------------------------------------------------------------
# Cells
# ------------------------------------------------------------------

class PackCell(MapRecord):
    """A cell of the packed (rendered) map with its ownership ids."""

    grid_id: int = Field(alias="g")
    height: int = Field(alias="h")
    biome: int
    culture: int = 0
    state: int = 0
    province: int = 0
    religion: int = 0
    burg: int = 0
    river: int = Field(default=0, alias="r")
    feature: int = Field(default=0, alias="f")
    population: float = Field(default=0, alias="pop")
    area: float = 0


class GridCell(MapRecord):
    """A cell of the underlying climate grid."""

    height: int = Field(alias="h")
    temperature: float = Field(alias="temp")
    precipitation: float = Field(default=0, alias="prec")


class Feature(MapRecord):
    """A connected landmass or water body."""

    type: str
    land: bool = False
    border: bool = False
    group: Optional[str] = None
    name: Optional[str] = None


# ------------------------------------------------------------------
# Cultures
# ------------------------------------------------------------------

class WildCulture(PlaceholderRecord):
    """Culture placeholder: the uncivilised wildlands."""

    name: str
    name_base: int = Field(alias="base")
    origins: list[Optional[int]]
    shield: str
    area: float = 0
    cells: int = 0
    rural: float = 0
    urban: float = 0


class Culture(MapRecord):
    name: str
    name_base: int = Field(alias="base")
    origins: list[Optional[int]]
    shield: str
    center: int
    code: str
    color: str
    expansionism: float
    type: str
    area: float = 0
    cells: int = 0
    rural: float = 0
    urban: float = 0
    removed: bool = False


AnyCulture = Union[WildCulture, Culture]


# ------------------------------------------------------------------
# Burgs, states and provinces
# ------------------------------------------------------------------

class Burg(MapRecord):
    """A settlement."""

    name: str
    cell: int
    x: float
    y: float
    population: float
    culture: int
    state: int
    feature: int = 0
    type: str = "Generic"
    capital: int = 0
    port: int = 0
    citadel: int = 0
    plaza: int = 0
    walls: int = 0
    shanty: int = 0
    temple: int = 0
    removed: bool = False


class NeutralState(PlaceholderRecord):
    """State placeholder: land owned by no polity."""

    name: str
    urban: float
    rural: float
    burgs: int
    area: float
    cells: int
    neighbors: list[Any]
    diplomacy: list[Any]
    provinces: list[Any]


class State(MapRecord):
    name: str
    form: str
    form_name: str = Field(alias="formName")
    full_name: str = Field(alias="fullName")
    culture: int
    capital: int = 0
    color: Optional[str] = None
    type: Optional[str] = None
    urban: float
    rural: float
    burgs: int
    area: float
    cells: int
    neighbors: list[Any]
    diplomacy: list[Any]
    provinces: list[int]
    removed: bool = False


AnyState = Union[NeutralState, State]


class Province(MapRecord):
    name: str
    form_name: str = Field(alias="formName")
    full_name: str = Field(alias="fullName")
    state: int = 0
    center: int = 0
    burg: int = 0
    burgs: list[int] = Field(default_factory=list)
    color: Optional[str] = None
    area: float
    rural: float
    urban: float
    removed: bool = False


# ------------------------------------------------------------------
# Religions
# ------------------------------------------------------------------

class NoReligion(PlaceholderRecord):
    """Religion placeholder: no organised faith."""

    name: str
    origins: None


class Religion(MapRecord):
    name: str
    type: str
    form: str
    deity: Optional[str] = None
    code: str
    color: Optional[str] = None
    culture: int = 0
    center: int = 0
    origins: Optional[list[Optional[int]]] = None
    expansion: str
    expansionism: float = 0
    area: float = 0
    cells: int = 0
    rural: float = 0
    urban: float = 0
    removed: bool = False


AnyReligion = Union[NoReligion, Religion]


# ------------------------------------------------------------------
# Rivers, routes and markers
# ------------------------------------------------------------------

class River(MapRecord):
    name: str
    type: str = "River"
    source: int
    mouth: int
    parent: int = 0
    basin: int = 0
    cells: list[int]
    discharge: float = 0
    length: float = 0
    width: float = 0
    source_width: float = Field(default=0, alias="sourceWidth")


class Route(MapRecord):
    """A road, trail or sea lane; each point is ``(x, y, cell_id)``."""

    points: list[tuple[float, float, int]]
    feature: int
    group: str
    length: Optional[float] = None
    name: Optional[str] = None

    @property
    def cell_ids(self) -> list[int]:
        return [point[2] for point in self.points]

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        group = self.group[:-1] if self.group.endswith("s") else self.group
        return f"{group.upper()} {self.id}"


class Marker(MapRecord):
    """A point of interest placed on a cell."""

    icon: str
    x: float
    y: float
    cell: int
    type: Optional[str] = None

    @property
    def note_id(self) -> str:
        return f"marker{self.id}"


class Note(BaseModel):
    """A free-text annotation keyed by a string id."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str
    legend: str


class NameBase(BaseModel):
    """A name-generator base; the id is its position in the source list."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    id: int = Field(ge=0)
    name: str
    min: int = 0
    max: int = 0
    duplication: str = Field(default="", alias="d")
    multi_word_rate: float = Field(default=0, alias="m")
    names: str = Field(default="", alias="b")

    @property
    def sample_names(self) -> list[str]:
        return [name for name in self.names.split(",") if name]


# ------------------------------------------------------------------
# Biomes
# ------------------------------------------------------------------

class BiomesData(BaseModel):
    """The columnar biome arrays as stored by the generator."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    ids: list[int] = Field(alias="i")
    name: list[str]
    color: list[str]
    habitability: list[float]
    cost: Optional[list[float]] = None
    icons_density: Optional[list[float]] = Field(default=None, alias="iconsDensity")
    icons: Optional[list[Any]] = None


class Biome(BaseModel):
    """One row of the biome table; ``id`` is the source id, not a position."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    color: str
    habitability: float
    cost: Optional[float] = None
    icons_density: Optional[float] = None
    icons: Optional[Any] = None

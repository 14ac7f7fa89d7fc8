"""
Shared pytest fixtures for the worldvault test suite.

Provides:
    - sample_map_document: a small but complete consolidated map export
    - map_json_path / map_image_path: the export and an image written to disk
    - dataset / context: the export loaded and indexed
    - legacy_map_text: the same world as a legacy line-oriented .map save
    - vault: a VaultLayout rooted in a temporary directory

The sample world:
    cells 0-9 (cell 0 is sea); cultures Wildlands/Elari/Dunmen; states
    Neutrals/Aldara/Dunmark; provinces Westmarch/Highfold; religions
    No religion/Old Faith/Sunward Church; burgs Timber (cell 1),
    Stonegate (cell 3) and Lost Hamlet (cell 99, which does not exist);
    river Aldyn with tributary Brook; King's Road over cells
    5,5,7,7,7,9,5; a trail 1-2-5; a degenerate sea route; markers on
    cell 5 (with a note) and cell 9999 (off the map).
"""

import copy
import json
import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure worldvault/ is importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from worldvault.context import build_map_context  # noqa: E402
from worldvault.map_loader import parse_json_map  # noqa: E402
from worldvault.vault import VaultLayout  # noqa: E402


# ---------------------------------------------------------------------------
# Sample world data
# ---------------------------------------------------------------------------

def _cell(i, biome, culture=0, state=0, province=0, religion=0, burg=0, river=0, h=30):
    return {
        "i": i, "g": i, "h": h, "f": 1 if h >= 20 else 2, "biome": biome,
        "culture": culture, "state": state, "province": province,
        "religion": religion, "burg": burg, "r": river, "pop": 2.5, "area": 12,
    }


SAMPLE_CELLS = [
    _cell(0, 0, h=10),
    _cell(1, 1, culture=1, state=1, province=1, religion=1, burg=1, h=35),
    _cell(2, 1, culture=1, state=1, province=1, religion=1, river=1),
    _cell(3, 2, culture=2, state=2, province=2, burg=2, h=50),
    _cell(4, 2, culture=2, state=2, religion=2, river=1),
    _cell(5, 1, culture=1, state=1, province=1, religion=1, river=2),
    _cell(6, 1),
    _cell(7, 2, culture=2, state=2, province=2, religion=2),
    _cell(8, 1, culture=1),
    _cell(9, 2, culture=2, state=2, province=2, religion=2),
]

SAMPLE_CULTURES = [
    {"i": 0, "name": "Wildlands", "base": 0, "origins": [None], "shield": "round",
     "area": 30, "cells": 3, "rural": 4, "urban": 0},
    {"i": 1, "name": "Elari (Elf)", "base": 0, "origins": [0], "shield": "heater",
     "center": 1, "code": "EL", "color": "#5c9b3a", "expansionism": 1.2,
     "type": "Forest", "area": 100, "cells": 10, "rural": 50, "urban": 10},
    {"i": 2, "name": "Dunmen", "base": 1, "origins": [1], "shield": "french",
     "center": 3, "code": "DU", "color": "#9b5c3a", "expansionism": 0.8,
     "type": "Highland", "area": 60, "cells": 6, "rural": 20, "urban": 5},
]

SAMPLE_BURGS = [
    {},
    {"i": 1, "name": "Timber", "cell": 1, "x": 100, "y": 100, "population": 5.2,
     "culture": 1, "state": 1, "feature": 1, "capital": 1, "port": 0,
     "citadel": 1, "walls": 1, "plaza": 1, "temple": 0, "shanty": 0, "type": "Generic"},
    {"i": 2, "name": "Stonegate", "cell": 3, "x": 300, "y": 200, "population": 0.8,
     "culture": 2, "state": 2, "feature": 1, "capital": 1, "type": "Highland"},
    {"i": 3, "name": "Lost Hamlet", "cell": 99, "x": 10, "y": 10, "population": 0.1,
     "culture": 1, "state": 1, "feature": 1, "type": "Generic"},
]

SAMPLE_STATES = [
    {"i": 0, "name": "Neutrals", "urban": 0, "rural": 5, "burgs": 0, "area": 20,
     "cells": 3, "neighbors": [], "diplomacy": [], "provinces": []},
    {"i": 1, "name": "Aldara", "form": "Monarchy", "formName": "Kingdom",
     "fullName": "Kingdom of Aldara", "culture": 1, "capital": 1, "color": "#ccaa00",
     "type": "Generic", "urban": 10, "rural": 40, "burgs": 2, "area": 80, "cells": 8,
     "neighbors": [2], "diplomacy": ["x", "Neutral", "Ally"], "provinces": [1]},
    {"i": 2, "name": "Dunmark", "form": "Republic", "formName": "Free City",
     "fullName": "Free City of Dunmark", "culture": 2, "capital": 2, "color": "#0055aa",
     "type": "Highland", "urban": 5, "rural": 20, "burgs": 1, "area": 60, "cells": 6,
     "neighbors": [1], "diplomacy": ["Neutral", "x", "Ally"], "provinces": [2]},
]

SAMPLE_PROVINCES = [
    0,
    {"i": 1, "name": "Westmarch", "formName": "Duchy", "fullName": "Duchy of Westmarch",
     "state": 1, "center": 1, "burg": 1, "burgs": [1], "color": "#eedd00",
     "area": 40, "rural": 20, "urban": 5},
    {"i": 2, "name": "Highfold", "formName": "County", "fullName": "County of Highfold",
     "state": 2, "center": 3, "burg": 2, "burgs": [2], "color": "#0066bb",
     "area": 30, "rural": 10, "urban": 3},
]

SAMPLE_RELIGIONS = [
    {"i": 0, "name": "No religion", "origins": None},
    {"i": 1, "name": "Old Faith", "type": "Folk", "form": "Shamanism",
     "deity": "Sky Mother", "code": "OF", "color": "#ffffff", "culture": 1,
     "center": 1, "origins": [0], "expansion": "culture", "expansionism": 1,
     "area": 50, "cells": 5, "rural": 24, "urban": 6},
    {"i": 2, "name": "Sunward Church", "type": "Organized", "form": "Church",
     "deity": None, "code": "SC", "color": "#ffee00", "culture": 2, "center": 4,
     "origins": [1], "expansion": "global", "expansionism": 2,
     "area": 40, "cells": 4, "rural": 10, "urban": 4},
]

SAMPLE_RIVERS = [
    {"i": 1, "name": "Aldyn", "type": "River", "source": 2, "mouth": 4, "parent": 1,
     "basin": 1, "cells": [2, 4, 1], "discharge": 12, "length": 100, "width": 1.5,
     "sourceWidth": 0.5},
    {"i": 2, "name": "Brook", "type": "Brook", "source": 5, "mouth": 2, "parent": 1,
     "basin": 1, "cells": [5, 2], "discharge": 3, "length": 20, "width": 0.4,
     "sourceWidth": 0.1},
]

SAMPLE_ROUTES = [
    {"i": 0, "group": "roads", "feature": 1, "name": "King's Road", "length": 160,
     "points": [[500, 250, 5], [510, 250, 5], [600, 260, 7], [610, 260, 7],
                [620, 260, 7], [700, 300, 9], [505, 250, 5]]},
    {"i": 1, "group": "trails", "feature": 1, "length": 40,
     "points": [[100, 100, 1], [200, 150, 2], [500, 250, 5]]},
    {"i": 2, "group": "searoutes", "feature": 2,
     "points": [[10, 400, 0], [12, 402, 0]]},
]

SAMPLE_MARKERS = [
    {"i": 0, "icon": "🏰", "x": 500, "y": 250, "cell": 5, "type": "castles"},
    {"i": 1, "icon": "⛏️", "x": 990, "y": 490, "cell": 9999, "type": "mines"},
]

SAMPLE_NOTES = [
    {"id": "marker0", "name": "Old Keep", "legend": "A ruined keep watches the road."},
]


@pytest.fixture
def sample_map_document():
    """Return a valid consolidated map export as a dict."""
    return copy.deepcopy({
        "info": {
            "version": "1.105.0", "description": "A small world for tests",
            "exportedAt": "2025-01-01T00:00:00.000Z", "mapName": "Oakvale",
            "width": 1000, "height": 500, "seed": "42", "mapId": 1700000000000,
        },
        "settings": {
            "distanceUnit": "mi", "distanceScale": "3", "areaUnit": "square",
            "heightUnit": "ft", "heightExponent": "2", "temperatureScale": "°C",
            "populationRate": 1000, "urbanization": 1, "mapName": "Oakvale",
            "options": {"villageMaxPopulation": 2000, "year": 1000,
                        "era": "Age of Tests", "eraShort": "AT"},
        },
        "mapCoordinates": {"latT": 40, "latN": 60, "latS": 20,
                           "lonT": 80, "lonW": -40, "lonE": 40},
        "pack": {
            "cells": SAMPLE_CELLS,
            "features": [0,
                         {"i": 1, "land": True, "border": False, "type": "island",
                          "group": "continent"},
                         {"i": 2, "land": False, "border": True, "type": "ocean",
                          "group": "ocean"}],
            "cultures": SAMPLE_CULTURES,
            "burgs": SAMPLE_BURGS,
            "states": SAMPLE_STATES,
            "provinces": SAMPLE_PROVINCES,
            "religions": SAMPLE_RELIGIONS,
            "rivers": SAMPLE_RIVERS,
            "markers": SAMPLE_MARKERS,
            "routes": SAMPLE_ROUTES,
        },
        "grid": {
            "cells": [{"i": i, "h": c["h"], "temp": 10 + i, "prec": 20}
                      for i, c in enumerate(SAMPLE_CELLS)],
        },
        "biomesData": {
            "i": [0, 1, 2],
            "name": ["Marine", "Grassland", "Taiga"],
            "color": ["#466eab", "#c8d68f", "#4b6b32"],
            "habitability": [0, 30, 12],
            "cost": [10, 50, 200],
            "iconsDensity": [0, 40, 120],
            "icons": [[], ["grass"], ["conifer"]],
            "biomesMartix": [[1, 2], [2, 1]],
        },
        "notes": SAMPLE_NOTES,
        "nameBases": [
            {"name": "Elven", "min": 4, "max": 10, "d": "lr", "m": 0.1,
             "b": "Aelin,Caranel,Elros"},
            {"name": "Dwarven", "min": "3", "max": "8", "d": "", "m": 0,
             "b": "Durin,Thrain"},
        ],
    })


@pytest.fixture
def map_json_path(tmp_path, sample_map_document):
    """Write the sample export to ``<tmp>/input/Oakvale.json``."""
    path = tmp_path / "input" / "Oakvale.json"
    path.parent.mkdir()
    path.write_text(json.dumps(sample_map_document), encoding="utf-8")
    return path


@pytest.fixture
def map_image_path(tmp_path):
    path = tmp_path / "input" / "Oakvale.svg"
    path.parent.mkdir(exist_ok=True)
    path.write_text("<svg xmlns='http://www.w3.org/2000/svg'></svg>", encoding="utf-8")
    return path


@pytest.fixture
def dataset(sample_map_document):
    return parse_json_map(json.dumps(sample_map_document))


@pytest.fixture
def context(dataset):
    return build_map_context(dataset)


@pytest.fixture
def vault(tmp_path):
    root = tmp_path / "vault"
    root.mkdir()
    return VaultLayout(root)


@pytest.fixture
def legacy_map_text(sample_map_document):
    """Return the sample world as a legacy ``.map`` save."""
    doc = sample_map_document
    settings = [""] * 27
    settings[0] = "km"
    settings[1] = "2"
    settings[2] = "square"
    settings[3] = "m"
    settings[4] = "1.8"
    settings[5] = "°F"
    settings[12] = "1500"
    settings[13] = "1"
    settings[14] = "100"
    settings[15] = "50"
    settings[18] = "100"
    settings[19] = json.dumps({"villageMaxPopulation": 1000, "year": 55})
    settings[20] = "Legacy Land"
    settings[21] = "0"

    pack = doc["pack"]
    lines = [
        "1.105.0|File can be loaded in azgaar.github.io/Fantasy-Map-Generator|2025-01-01|42|1000|500|1700000000000",
        "|".join(settings),
        json.dumps(doc["mapCoordinates"]),
        "#466eab,#c8d68f,#4b6b32|0,30,12|Marine,Grassland,Taiga",
        json.dumps(doc["notes"]),
        "<svg xmlns='http://www.w3.org/2000/svg'><g id='viewbox'></g></svg>",
        json.dumps(pack["cultures"]),
        json.dumps(pack["burgs"]),
        json.dumps(pack["states"]),
        json.dumps(pack["provinces"]),
        json.dumps(pack["religions"]),
        json.dumps(pack["rivers"]),
        json.dumps(pack["markers"]),
        json.dumps(pack["routes"]),
        "1,2,3,4,5",
        "42",
        "",
    ]
    return "\n".join(lines)

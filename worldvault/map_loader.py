"""
worldvault/map_loader.py -- Read a map file into a WorldDataset.

Two encodings are understood:

    - the consolidated JSON export (``.json``), one document holding every
      section, validated against a JSON Schema before any record is read;
    - the legacy line-oriented save (``.map``): pipe-delimited header
      lines followed by one JSON fragment per line, each of which is
      classified into an entity kind by shape.

Every problem found here is a ``MapValidationError`` and aborts the run
before a single note is written.

Usage::

    from worldvault.map_loader import load_world

    dataset = load_world("/maps/Oakvale.json")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from worldvault.errors import MapValidationError
from worldvault.models.entities import (
    BiomesData,
    Burg,
    Culture,
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
from worldvault.models.validators import check_version, validate_map_document
from worldvault.models.world import (
    MapCoordinates,
    MapInfo,
    MapSettings,
    WorldDataset,
)

logger = logging.getLogger(__name__)

# Order in which legacy records are tried against each entity shape.  The
# first match wins, so placeholders (which only match at id 0) come before
# their full variants and the loosest shapes come last.
LEGACY_RECORD_PRIORITY: tuple[tuple[str, type[BaseModel]], ...] = (
    ("cultures", WildCulture),
    ("cultures", Culture),
    ("burgs", Burg),
    ("states", NeutralState),
    ("states", State),
    ("provinces", Province),
    ("religions", NoReligion),
    ("religions", Religion),
    ("rivers", River),
    ("routes", Route),
    ("markers", Marker),
    ("notes", Note),
)

# Positions of the fields we read from the legacy settings line.
LEGACY_SETTINGS_FIELDS = {
    0: "distanceUnit",
    1: "distanceScale",
    2: "areaUnit",
    3: "heightUnit",
    4: "heightExponent",
    5: "temperatureScale",
    12: "populationRate",
    13: "urbanization",
    20: "mapName",
}
LEGACY_OPTIONS_POSITION = 19
LEGACY_HEADER_FIELDS = ("version", "description", "createdAt", "seed", "width", "height", "mapId")


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def detect_format(text: str, path=None) -> str:
    """Return ``"json"`` or ``"map"`` for the contents of a map file.

    Content decides; the file suffix only breaks ties.

    Raises
    ------
    MapValidationError
        If neither encoding is recognised.
    """
    stripped = text.lstrip("\ufeff \t\r\n")
    if stripped.startswith("{"):
        return "json"
    first_line = stripped.split("\n", 1)[0]
    if "|" in first_line:
        return "map"
    suffix = Path(path).suffix.lower() if path else ""
    if suffix in (".json", ".map"):
        return suffix[1:]
    raise MapValidationError("Unrecognised map file format", field=None)


def load_world(path) -> WorldDataset:
    """Read and parse the map file at *path*.

    Parameters
    ----------
    path : str or pathlib.Path
        A consolidated ``.json`` export or a legacy ``.map`` save.

    Returns
    -------
    WorldDataset

    Raises
    ------
    MapValidationError
        If the file cannot be read or is not a usable map.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MapValidationError(f"Cannot read map file {path}: {exc}") from exc

    dataset = parse_world(text, detect_format(text, path))
    logger.info(
        "Loaded %s map '%s' (version %s): %d cells, %d cultures, %d burgs, "
        "%d states, %d provinces, %d religions, %d rivers, %d routes, %d markers",
        dataset.source_format, dataset.map_name, dataset.info.version,
        len(dataset.cells), len(dataset.cultures), len(dataset.burgs),
        len(dataset.states), len(dataset.provinces), len(dataset.religions),
        len(dataset.rivers), len(dataset.routes), len(dataset.markers),
    )
    return dataset


def parse_world(text: str, fmt: Optional[str] = None) -> WorldDataset:
    """Parse map *text* in the given (or detected) format."""
    fmt = fmt or detect_format(text)
    if fmt == "json":
        return parse_json_map(text)
    if fmt == "map":
        return parse_legacy_map(text)
    raise ValueError(f"Unknown map format: {fmt!r}")


# ---------------------------------------------------------------------------
# Consolidated JSON export
# ---------------------------------------------------------------------------

def parse_json_map(text: str) -> WorldDataset:
    """Parse a consolidated JSON export.

    Structural problems (missing sections, collections that are not
    arrays) are reported by ``validate_map_document``.  After that, every
    record is validated and *all* record problems are reported together.
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MapValidationError(f"Map file is not valid JSON: {exc}") from exc

    validate_map_document(document)
    check_version(document["info"]["version"])

    issues: list[str] = []
    pack = document["pack"]

    fields: dict[str, Any] = {
        "source_format": "json",
        "info": _validate_one(MapInfo, document["info"], "info", issues),
        "settings": _validate_one(MapSettings, document["settings"], "settings", issues),
        "coordinates": _validate_one(
            MapCoordinates, document["mapCoordinates"], "mapCoordinates", issues
        ),
        "cells": _validate_many(PackCell, pack["cells"], "pack.cells", issues),
        "grid_cells": _validate_many(GridCell, document["grid"]["cells"], "grid.cells", issues),
        "features": _validate_many(
            Feature,
            [f for f in pack.get("features", []) if isinstance(f, dict)],
            "pack.features",
            issues,
        ),
        "cultures": _validate_with_placeholder(
            WildCulture, Culture, pack["cultures"], "pack.cultures", issues
        ),
        "states": _validate_with_placeholder(
            NeutralState, State, pack["states"], "pack.states", issues
        ),
        "religions": _validate_with_placeholder(
            NoReligion, Religion, pack["religions"], "pack.religions", issues
        ),
        # burgs[0] and provinces[0] are empty slots, never entities.
        "burgs": _validate_many(Burg, pack["burgs"][1:], "pack.burgs", issues, start=1),
        "provinces": _validate_many(
            Province, pack["provinces"][1:], "pack.provinces", issues, start=1
        ),
        "rivers": _validate_many(River, pack["rivers"], "pack.rivers", issues),
        "routes": _validate_many(Route, pack["routes"], "pack.routes", issues),
        "markers": _validate_many(Marker, pack["markers"], "pack.markers", issues),
        "notes": _validate_many(Note, document.get("notes", []), "notes", issues),
        "name_bases": _validate_name_bases(document.get("nameBases", []), issues),
        "biomes_data": _validate_one(BiomesData, document["biomesData"], "biomesData", issues),
    }

    if issues:
        _raise_record_issues(issues)
    return WorldDataset(**fields)


def _validate_one(model, raw, label: str, issues: list[str]):
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        issues.extend(_describe(exc, label))
        return None


def _validate_many(model, raws, label: str, issues: list[str], start: int = 0) -> list:
    records = []
    for index, raw in enumerate(raws, start=start):
        record = _validate_one(model, raw, f"{label}[{index}]", issues)
        if record is not None:
            records.append(record)
    return records


def _validate_with_placeholder(placeholder, model, raws, label: str, issues: list[str]) -> list:
    if not raws:
        return []
    first = _validate_one(placeholder, raws[0], f"{label}[0]", issues)
    rest = _validate_many(model, raws[1:], label, issues, start=1)
    return ([first] if first is not None else []) + rest


def _validate_name_bases(raws, issues: list[str]) -> list[NameBase]:
    bases = []
    for index, raw in enumerate(raws):
        if not isinstance(raw, dict):
            issues.append(f"nameBases[{index}]: expected an object")
            continue
        base = _validate_one(NameBase, {**raw, "id": index}, f"nameBases[{index}]", issues)
        if base is not None:
            bases.append(base)
    return bases


def _describe(exc: ValidationError, label: str) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        where = f"{label}.{loc}" if loc else label
        messages.append(f"{where}: {err['msg']}")
    return messages


def _raise_record_issues(issues: list[str]) -> None:
    for issue in issues:
        logger.error("Invalid map record: %s", issue)
    raise MapValidationError(
        f"The map contains {len(issues)} invalid record field(s): {issues[0]}",
        field=issues[0].split(":", 1)[0],
        issues=issues,
    )


# ---------------------------------------------------------------------------
# Legacy .map save
# ---------------------------------------------------------------------------

def parse_legacy_map(text: str) -> WorldDataset:
    """Parse a legacy line-oriented ``.map`` save.

    Lines 1-4 are fixed headers (metadata, settings, coordinates, biomes).
    Every later line is decoded as JSON if possible; lines that do not
    decode are ignored.  Decoded objects are classified by
    ``classify_record`` and collected per entity kind.  Legacy saves carry
    no cell tables and no name bases in a decodable form.
    """
    lines = text.lstrip("\ufeff").splitlines()
    if len(lines) < 4:
        raise MapValidationError(
            f"Legacy map has {len(lines)} line(s); at least 4 header lines are required"
        )

    info = _parse_legacy_header(lines[0])
    settings = _parse_legacy_settings(lines[1])
    coordinates = _parse_legacy_coordinates(lines[2])
    biomes_data = _parse_legacy_biomes(lines[3])

    collections: dict[str, list] = {kind: [] for kind, _ in LEGACY_RECORD_PRIORITY}
    skipped = 0
    for line_number, line in enumerate(lines[4:], start=5):
        line = line.strip()
        if not line:
            continue
        try:
            decoded = json.loads(line)
        except ValueError:
            skipped += 1
            logger.debug("Line %d is not a JSON record; ignored", line_number)
            continue
        for value in decoded if isinstance(decoded, list) else [decoded]:
            match = classify_record(value)
            if match is not None:
                kind, record = match
                collections[kind].append(record)

    logger.debug("Skipped %d undecodable legacy line(s)", skipped)
    return WorldDataset(
        source_format="map",
        info=info,
        settings=settings,
        coordinates=coordinates,
        biomes_data=biomes_data,
        **collections,
    )


def classify_record(value) -> Optional[tuple[str, BaseModel]]:
    """Return ``(collection, record)`` for the first shape *value* matches.

    Shapes are tried in ``LEGACY_RECORD_PRIORITY`` order.  ``None`` means
    the value is not an entity record (or is an empty placeholder slot).
    """
    if not isinstance(value, dict):
        return None
    for kind, model in LEGACY_RECORD_PRIORITY:
        try:
            return kind, model.model_validate(value)
        except ValidationError:
            continue
    return None


def _parse_legacy_header(line: str) -> MapInfo:
    parts = line.split("|")
    raw = dict(zip(LEGACY_HEADER_FIELDS, parts))
    check_version(raw.get("version", ""))
    for key in ("width", "height"):
        try:
            raw[key] = float(raw.get(key, 0))
        except ValueError:
            raw[key] = 0
    try:
        return MapInfo.model_validate(raw)
    except ValidationError as exc:
        raise MapValidationError(
            f"Invalid legacy map header: {exc}", field="info"
        ) from exc


def _parse_legacy_settings(line: str) -> MapSettings:
    parts = line.split("|")
    raw: dict[str, Any] = {
        name: parts[position]
        for position, name in LEGACY_SETTINGS_FIELDS.items()
        if position < len(parts) and parts[position] != ""
    }
    if LEGACY_OPTIONS_POSITION < len(parts) and parts[LEGACY_OPTIONS_POSITION]:
        try:
            raw["options"] = json.loads(parts[LEGACY_OPTIONS_POSITION])
        except ValueError:
            logger.warning("Legacy map options are not valid JSON; using defaults")
    try:
        return MapSettings.model_validate(raw)
    except ValidationError as exc:
        raise MapValidationError(
            f"Invalid legacy map settings: {exc}", field="settings"
        ) from exc


def _parse_legacy_coordinates(line: str) -> MapCoordinates:
    try:
        return MapCoordinates.model_validate(json.loads(line))
    except (ValueError, ValidationError) as exc:
        raise MapValidationError(
            f"Invalid legacy map coordinates: {exc}", field="mapCoordinates"
        ) from exc


def _parse_legacy_biomes(line: str) -> BiomesData:
    parts = line.split("|")
    if len(parts) < 3:
        raise MapValidationError(
            "Legacy biome line must hold colour, habitability and name lists",
            field="biomesData",
        )
    colors, habitability, names = (part.split(",") for part in parts[:3])
    try:
        return BiomesData.model_validate({
            "i": list(range(len(names))),
            "name": names,
            "color": colors,
            "habitability": habitability,
        })
    except ValidationError as exc:
        raise MapValidationError(
            f"Invalid legacy biome lists: {exc}", field="biomesData"
        ) from exc

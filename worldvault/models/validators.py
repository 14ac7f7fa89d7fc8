"""
worldvault/models/validators.py -- Structural validation of input maps.

Two layers, both run before anything is written:

    - ``validate_map_document``: JSON Schema check of the consolidated
      export's overall shape (required sections, every entity collection
      an array).
    - ``check_version``: the generator version must be one we can read.

Per-record shape checks are done by the pydantic models themselves and
collected by ``worldvault.map_loader``.

Usage::

    from worldvault.models.validators import validate_map_document

    validate_map_document(document)   # raises MapValidationError
"""

from __future__ import annotations

import logging
import re

try:
    import jsonschema
except ImportError:
    raise ImportError(
        "The 'jsonschema' package is required but not installed. "
        "Install it with: pip install jsonschema"
    )

from worldvault.errors import MapValidationError

logger = logging.getLogger(__name__)

# Oldest generator release whose exports carry everything we render.
MIN_SUPPORTED_VERSION = (1, 90)
MAX_SUPPORTED_MAJOR = 1

PACK_COLLECTIONS = (
    "cells", "cultures", "burgs", "states", "provinces",
    "religions", "rivers", "markers", "routes",
)

_ARRAY = {"type": "array"}

MAP_DOCUMENT_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["info", "settings", "mapCoordinates", "pack", "grid", "biomesData"],
    "properties": {
        "info": {
            "type": "object",
            "required": ["version"],
            "properties": {"version": {"type": "string"}},
        },
        "settings": {"type": "object"},
        "mapCoordinates": {"type": "object"},
        "pack": {
            "type": "object",
            "required": list(PACK_COLLECTIONS),
            "properties": {
                **{name: _ARRAY for name in PACK_COLLECTIONS},
                "features": _ARRAY,
            },
        },
        "grid": {
            "type": "object",
            "required": ["cells"],
            "properties": {"cells": _ARRAY},
        },
        "biomesData": {
            "type": "object",
            "required": ["i", "name", "color", "habitability"],
            "properties": {
                "i": _ARRAY,
                "name": _ARRAY,
                "color": _ARRAY,
                "habitability": _ARRAY,
            },
        },
        "notes": _ARRAY,
        "nameBases": _ARRAY,
    },
}


# ------------------------------------------------------------------
# Document shape
# ------------------------------------------------------------------

def humanize_error(error) -> str:
    """Convert a ``jsonschema.ValidationError`` into plain English."""
    path = _error_path(error) or "(root)"
    msg = error.message
    if error.validator == "required":
        return f"Missing required field at {path}: {msg}"
    if error.validator == "type":
        return f"Wrong data type at '{path}': {msg}"
    return f"Problem at '{path}': {msg}"


def _error_path(error) -> str:
    return ".".join(str(p) for p in error.absolute_path)


def validate_map_document(document) -> None:
    """Validate the top-level shape of a consolidated map export.

    Parameters
    ----------
    document : object
        The decoded JSON document.

    Raises
    ------
    MapValidationError
        If any part of the shape is wrong.  ``field`` names the first
        offending path; ``issues`` lists every problem found.
    """
    validator = jsonschema.Draft202012Validator(MAP_DOCUMENT_SCHEMA)
    errors = sorted(validator.iter_errors(document), key=_error_path)
    if not errors:
        return

    issues = [humanize_error(e) for e in errors]
    for issue in issues:
        logger.error("Invalid map document: %s", issue)
    raise MapValidationError(
        f"The map file is not a valid export ({len(issues)} problem(s)): {issues[0]}",
        field=_error_path(errors[0]) or None,
        issues=issues,
    )


# ------------------------------------------------------------------
# Version gate
# ------------------------------------------------------------------

_VERSION_RE = re.compile(r"^\s*v?(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse a generator version such as ``"1.99.03"`` into a tuple.

    Raises
    ------
    MapValidationError
        If *version* does not look like a version number.
    """
    match = _VERSION_RE.match(str(version))
    if not match:
        raise MapValidationError(
            f"Unrecognised map version {version!r}", field="version"
        )
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def check_version(version: str) -> tuple[int, int, int]:
    """Return the parsed *version*, raising if this tool cannot read it."""
    parsed = parse_version(version)
    if parsed[0] > MAX_SUPPORTED_MAJOR or parsed[:2] < MIN_SUPPORTED_VERSION:
        minimum = ".".join(str(n) for n in MIN_SUPPORTED_VERSION)
        raise MapValidationError(
            f"Unsupported map version {version}: expected {minimum} or later "
            f"within major version {MAX_SUPPORTED_MAJOR}",
            field="version",
        )
    return parsed

"""
worldvault/markdown.py -- Building blocks for vault notes.

Readable number/unit formatting and the common note skeleton::

    ---
    aliases: [...]
    tags: [...]
    ...typed front-matter fields...
    ---

    <optional block before the title>

    # Title

    - **Key**: value

    <optional sections>

    %% CUSTOM-START %%

    %% CUSTOM-END %%
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional

import yaml

from worldvault.custom_content import EMPTY_CUSTOM_BLOCK
from worldvault.models.world import MapSettings

_COMPACT_SUFFIXES = ("", "K", "M", "B", "T")

# Kilometres to miles.
KM_TO_MI = 0.621371


# ---------------------------------------------------------------------------
# Readable values
# ---------------------------------------------------------------------------

def readable_number(value) -> str:
    """Compact a number to three significant digits.

    >>> readable_number(440045), readable_number(53075), readable_number(1234567)
    ('440K', '53.1K', '1.23M')
    """
    number = float(value)
    sign = "-" if number < 0 else ""
    number = abs(number)
    tier = 0
    while True:
        scaled = float(f"{number / 1000 ** tier:.3g}")
        if scaled < 1000 or tier == len(_COMPACT_SUFFIXES) - 1:
            break
        tier += 1
    return f"{sign}{scaled:g}{_COMPACT_SUFFIXES[tier]}"


def compute_area(area_px: float, settings: MapSettings) -> int:
    """Convert an area in map pixels into distance units squared."""
    return round(area_px * settings.distance_scale ** 2)


def readable_area(area_px: float, settings: MapSettings) -> str:
    if settings.area_unit == "square":
        unit = f"{settings.distance_unit}<sup>2</sup>"
    else:
        unit = settings.area_unit
    return f"{readable_number(compute_area(area_px, settings))} {unit}"


def compute_population(rural: float, urban: float, settings: MapSettings) -> dict[str, int]:
    """Convert rural/urban population points into head counts."""
    rural_people = round(rural * settings.population_rate)
    urban_people = round(urban * settings.population_rate)
    return {
        "total": rural_people + urban_people,
        "urban": urban_people,
        "rural": rural_people,
    }


def readable_population(rural: float, urban: float, settings: MapSettings) -> str:
    """``"1.2M (300K Urban, 900K Rural)"``"""
    people = compute_population(rural, urban, settings)
    return (
        f"{readable_number(people['total'])} "
        f"({readable_number(people['urban'])} Urban, "
        f"{readable_number(people['rural'])} Rural)"
    )


def burg_population(population_points: float, settings: MapSettings) -> int:
    return round(population_points * settings.population_rate * settings.urbanization)


def readable_temperature(celsius: float, settings: MapSettings) -> str:
    scale = settings.temperature_scale
    if scale == "°F":
        return f"{round(celsius * 9 / 5 + 32)}°F"
    if scale == "K":
        return f"{round(celsius + 273.15)}K"
    return f"{round(celsius)}°C"


def readable_height(height: int, settings: MapSettings) -> str:
    """Elevation (or depth, below sea level) of a cell height value.

    Heights of 20 and above are land.  Raw values are in metres; feet
    (the default) and fathoms are converted.
    """
    unit = settings.height_unit
    ratio = {"m": 1, "f": 0.5468}.get(unit, 3.281)
    if height >= 20:
        value = (height - 18) ** settings.height_exponent
    elif height > 0:
        value = (height - 20) / height * 50
    else:
        value = -990
    return f"{round(value * ratio)} {unit}"


def readable_length(length_km: Optional[float], settings: MapSettings) -> Optional[str]:
    if not length_km:
        return None
    if settings.distance_unit == "mi":
        return f"{round(length_km * KM_TO_MI)} mi"
    return f"{round(length_km)} km"


HABITABILITY_DESCRIPTORS = (
    "Uninhabitable",
    "Extremely Hostile",
    "Barely Survivable",
    "Harsh",
    "Challenging",
    "Marginal",
    "Moderate",
    "Livable",
    "Comfortable",
    "Ideal",
    "Perfect",
)


def habitability_descriptor(habitability: float) -> str:
    """Describe a 0-100 habitability score in words."""
    index = min(max(math.ceil(habitability / 10), 0), len(HABITABILITY_DESCRIPTORS) - 1)
    return HABITABILITY_DESCRIPTORS[index]


# ---------------------------------------------------------------------------
# Note skeleton
# ---------------------------------------------------------------------------

def front_matter(fields: Mapping[str, Any]) -> str:
    """Serialise *fields* as a YAML front-matter block (``None`` dropped)."""
    data = {key: value for key, value in fields.items() if value is not None}
    body = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{body}---"


def property_list(properties: Mapping[str, Optional[str]]) -> str:
    """Render ``- **Key**: value`` lines, skipping empty values."""
    return "\n".join(
        f"- **{key}**: {value}"
        for key, value in properties.items()
        if value not in (None, "")
    )


def join_links(links: Iterable[Any]) -> Optional[str]:
    rendered = [link.to_markdown() for link in links if link is not None]
    return ", ".join(rendered) if rendered else None


def create_note(
    *,
    title: str,
    note_type: str,
    properties: Optional[Mapping[str, Optional[str]]] = None,
    tags: Iterable[str] = (),
    aliases: Iterable[str] = (),
    fields: Optional[Mapping[str, Any]] = None,
    before_title: Optional[str] = None,
    sections: Iterable[str] = (),
    removed: bool = False,
) -> str:
    """Assemble a full note ending in an empty custom-content block."""
    all_tags = [note_type, *tags]
    if removed:
        all_tags.append("removed")
    matter = {
        "aliases": list(aliases) or None,
        "tags": all_tags,
        **(fields or {}),
    }

    parts = [front_matter(matter)]
    if before_title:
        parts.append(before_title)
    parts.append(f"# {title}")
    rendered_properties = property_list(properties or {})
    if rendered_properties:
        parts.append(rendered_properties)
    parts.extend(section for section in sections if section)
    parts.append(EMPTY_CUSTOM_BLOCK)
    return "\n\n".join(parts) + "\n"


def link_section(heading: str, links: Iterable[Any]) -> Optional[str]:
    """A ``## heading`` followed by one bullet per link, or ``None``."""
    lines = [f"- {link.to_markdown()}" for link in links if link is not None]
    if not lines:
        return None
    return f"## {heading}\n\n" + "\n".join(lines)

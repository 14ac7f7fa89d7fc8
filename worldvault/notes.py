"""
worldvault/notes.py -- Render one Markdown note per map entity.

Each renderer takes ``(entity, context, vault)`` and returns the complete
note text, always ending with an empty custom-content block.  Renderers
only read from the ``MapContext``; a reference a note cannot do without
(a burg's cell) raises ``MissingReferenceError``, anything else that does
not resolve is left out of the note.

``NOTE_RENDERERS`` maps each entity kind to its renderer and is what the
orchestrator uses by default.  The world homepage and the table-of-contents
pages are rendered from the paths decided for the per-entity notes.

Usage::

    text = render_burg(burg, context, vault)
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Mapping, Optional

from worldvault.context import MapContext
from worldvault.custom_content import EMPTY_CUSTOM_BLOCK
from worldvault.markdown import (
    burg_population,
    compute_area,
    compute_population,
    create_note,
    habitability_descriptor,
    join_links,
    link_section,
    property_list,
    readable_area,
    readable_height,
    readable_length,
    readable_number,
    readable_population,
    readable_temperature,
)
from worldvault.models.entities import EntityKind
from worldvault.route_tracer import trace_passages
from worldvault.vault import VaultLayout, VaultLink, entity_link

NoteRenderer = Callable[[Any, MapContext, VaultLayout], str]

_SPECIES_RE = re.compile(r"^(.*) \((.*)\)$")

BURG_FEATURES = ("citadel", "walls", "plaza", "temple", "shanty")

SAMPLE_NAME_COUNT = 20

WIKIPEDIA_PAGES = {
    "Marine": "Marine_habitat",
    "Hot desert": "Desert_climate#Hot_desert_climates",
    "Cold desert": "Desert_climate#Cold_desert_climates",
    "Savanna": "Tropical_and_subtropical_grasslands,_savannas,_and_shrublands",
    "Grassland": "Temperate_grasslands,_savannas,_and_shrublands",
    "Tropical seasonal forest": "Seasonal_tropical_forest",
    "Temperate deciduous forest": "Temperate_deciduous_forest",
    "Tropical rainforest": "Tropical_rainforest",
    "Temperate rainforest": "Temperate_rainforest",
    "Taiga": "Taiga",
    "Tundra": "Tundra",
    "Glacier": "Glacier",
    "Wetland": "Wetland",
}


def _link(context: MapContext, vault: VaultLayout, kind: EntityKind, entity) -> Optional[VaultLink]:
    return entity_link(vault, kind, entity, context.resolver)


def _links(context, vault, kind, entities: Iterable[Any]) -> list[VaultLink]:
    links = [_link(context, vault, kind, entity) for entity in entities if entity is not None]
    return sorted(links, key=lambda link: link.display_name)


def _md(link: Optional[VaultLink]) -> Optional[str]:
    return link.to_markdown() if link is not None else None


def _owner(entity) -> Optional[Any]:
    """Drop placeholder owners (id 0 of cultures, states, religions)."""
    if entity is None or getattr(entity, "is_placeholder", False):
        return None
    return entity


# ---------------------------------------------------------------------------
# Cultures
# ---------------------------------------------------------------------------

def render_culture(culture, context: MapContext, vault: VaultLayout) -> str:
    resolver = context.resolver
    settings = context.settings

    if culture.is_placeholder:
        culture_type = species = "Any"
    else:
        culture_type = culture.type
        match = _SPECIES_RE.match(culture.name)
        species = match.group(2) if match else "Any"

    name_base = resolver.name_base(culture.name_base)
    origins = [
        resolver.culture(origin) for origin in culture.origins
        if isinstance(origin, int) and origin != culture.id
    ]
    people = compute_population(culture.rural, culture.urban, settings)

    return create_note(
        title=culture.name,
        note_type="culture",
        aliases=[culture.name],
        fields={
            "names": name_base.name if name_base else "Any",
            "type": culture_type,
            "species": species,
            "area": compute_area(culture.area, settings),
            "totalPopulation": people["total"],
            "urbanPopulation": people["urban"],
            "ruralPopulation": people["rural"],
        },
        properties={
            "Names": _md(_link(context, vault, EntityKind.NAME_BASE, name_base)) or "Any",
            "Type": culture_type,
            "Species": species,
            "Area": readable_area(culture.area, settings),
            "Population": readable_population(culture.rural, culture.urban, settings),
            "Origins": join_links(_links(context, vault, EntityKind.CULTURE, origins)),
        },
        removed=getattr(culture, "removed", False),
    )


# ---------------------------------------------------------------------------
# Burgs
# ---------------------------------------------------------------------------

def render_burg(burg, context: MapContext, vault: VaultLayout) -> str:
    """Render a burg.  Its cell (and that cell's grid cell) must exist."""
    resolver = context.resolver
    settings = context.settings
    cell = resolver.require_cell(burg.cell, owner=f"Burg {burg.id} ({burg.name})")

    population = burg_population(burg.population, settings)
    is_city = population > settings.options.village_max_population
    tags = ["city" if is_city else "village"]
    if burg.capital:
        tags.append("capital")
    if burg.port:
        tags.append("port")
    if context.routes.is_crossroad(burg.cell):
        tags.append("crossroads")

    links = {
        "Biome": _link(context, vault, EntityKind.BIOME, resolver.biome(cell.pack.biome)),
        "Culture": _link(context, vault, EntityKind.CULTURE, resolver.culture(burg.culture)),
        "State": _link(context, vault, EntityKind.STATE, resolver.state(burg.state)),
        "Religion": _link(
            context, vault, EntityKind.RELIGION, _owner(resolver.religion(cell.pack.religion))
        ),
        "Province": _link(
            context, vault, EntityKind.PROVINCE, resolver.province(cell.pack.province)
        ),
    }
    latitude, longitude = context.dataset.lat_long(burg.x, burg.y)
    temperature = readable_temperature(cell.grid.temperature, settings)
    features = [name.title() for name in BURG_FEATURES if getattr(burg, name, 0)]
    routes = [resolver.route(route_id) for route_id in sorted(context.routes.routes_at(burg.cell))]

    title = f"{burg.name} ★" if burg.capital else burg.name
    return create_note(
        title=title,
        note_type="burg",
        tags=tags,
        aliases=[burg.name],
        fields={
            "population": population,
            "type": burg.type,
            "temperature": temperature,
            "culture": _md(links["Culture"]),
            "religion": _md(links["Religion"]),
            "state": _md(links["State"]),
            "province": _md(links["Province"]),
            "location": [round(latitude, 4), round(longitude, 4)],
        },
        properties={
            "Population": readable_number(population),
            "Type": burg.type,
            "Temperature": temperature,
            "Elevation": readable_height(cell.pack.height, settings),
            **{key: _md(link) for key, link in links.items()},
            "Features": ", ".join(features),
        },
        sections=[link_section("Routes", _links(context, vault, EntityKind.ROUTE, routes))],
        removed=burg.removed,
    )


# ---------------------------------------------------------------------------
# States and provinces
# ---------------------------------------------------------------------------

def render_state(state, context: MapContext, vault: VaultLayout) -> str:
    resolver = context.resolver
    settings = context.settings
    people = compute_population(state.rural, state.urban, settings)

    if state.is_placeholder:
        return create_note(
            title=state.name,
            note_type="state",
            tags=["neutral"],
            fields={"population": people["total"], "name": state.name},
            properties={
                "Population": readable_population(state.rural, state.urban, settings),
                "Area": readable_area(state.area, settings),
                "# Burgs": str(state.burgs),
            },
        )

    capital = resolver.burg(state.capital) if state.capital else None
    culture = resolver.culture(state.culture) if state.culture else None
    neighbours = [
        _owner(resolver.state(n)) for n in state.neighbors if isinstance(n, int)
    ]
    provinces = [resolver.province(p) for p in state.provinces]

    return create_note(
        title=state.full_name or state.name,
        note_type="state",
        aliases=[state.name],
        fields={
            "population": people["total"],
            "type": state.type,
            "name": state.name,
            "form": state.form,
        },
        properties={
            "Population": readable_population(state.rural, state.urban, settings),
            "Area": readable_area(state.area, settings),
            "Capital": _md(_link(context, vault, EntityKind.BURG, capital)),
            "Culture": _md(_link(context, vault, EntityKind.CULTURE, culture)),
            "Type": state.type,
            "Form": state.form_name,
            "# Burgs": str(state.burgs),
            "Neighbors": join_links(_links(context, vault, EntityKind.STATE, neighbours)),
        },
        sections=[link_section("Provinces", _links(context, vault, EntityKind.PROVINCE, provinces))],
        removed=state.removed,
    )


def render_province(province, context: MapContext, vault: VaultLayout) -> str:
    resolver = context.resolver
    settings = context.settings
    people = compute_population(province.rural, province.urban, settings)
    state = _owner(resolver.state(province.state))
    capital = resolver.burg(province.burg) if province.burg else None
    burgs = [resolver.burg(burg_id) for burg_id in province.burgs]

    return create_note(
        title=province.full_name,
        note_type="province",
        aliases=[province.full_name],
        fields={
            "population": people["total"],
            "name": province.name,
            "form": province.form_name,
        },
        properties={
            "Population": readable_population(province.rural, province.urban, settings),
            "Area": readable_area(province.area, settings),
            "State": _md(_link(context, vault, EntityKind.STATE, state)),
            "Capital": _md(_link(context, vault, EntityKind.BURG, capital)),
            "Burgs": str(len(province.burgs)),
        },
        sections=[link_section("Burgs", _links(context, vault, EntityKind.BURG, burgs))],
        removed=province.removed,
    )


# ---------------------------------------------------------------------------
# Religions
# ---------------------------------------------------------------------------

def religion_expansion(religion, culture, settings) -> str:
    """Describe how far a religion has spread."""
    if religion.expansion == "global":
        return "Global"
    culture_name = culture.name if culture is not None else "Culture"
    if culture is None:
        return f"Within {culture_name}"
    followers = compute_population(religion.rural, religion.urban, settings)["total"]
    people = compute_population(culture.rural, culture.urban, settings)["total"]
    if not people:
        return f"Within {culture_name}"
    return f"{round(followers / people * 100)}% of {culture_name}"


def render_religion(religion, context: MapContext, vault: VaultLayout) -> str:
    resolver = context.resolver
    settings = context.settings

    if religion.is_placeholder:
        return create_note(
            title=religion.name,
            note_type="religion",
            tags=["no-religion"],
            aliases=[religion.name],
            fields={"name": religion.name},
        )

    culture = resolver.culture(religion.culture)
    origins = [
        _owner(resolver.religion(origin)) for origin in religion.origins or []
        if isinstance(origin, int) and origin != religion.id
    ]
    people = compute_population(religion.rural, religion.urban, settings)

    return create_note(
        title=religion.name,
        note_type="religion",
        aliases=[religion.name],
        fields={
            "population": people["total"],
            "deity": religion.deity,
            "name": religion.name,
            "form": religion.form,
        },
        properties={
            "Type": religion.type,
            "Form": religion.form,
            "Deity": religion.deity,
            "Population": readable_population(religion.rural, religion.urban, settings),
            "Area": readable_area(religion.area, settings),
            "Culture": _md(_link(context, vault, EntityKind.CULTURE, culture)),
            "Expansion": religion_expansion(religion, culture, settings),
            "Origins": join_links(_links(context, vault, EntityKind.RELIGION, origins)),
        },
        removed=religion.removed,
    )


# ---------------------------------------------------------------------------
# Biomes
# ---------------------------------------------------------------------------

def biome_reference_url(name: str) -> str:
    page = WIKIPEDIA_PAGES.get(name)
    if page:
        return f"https://en.wikipedia.org/wiki/{page}"
    return f"https://en.wikipedia.org/w/index.php?search={name.replace(' ', '+')}"


def render_biome(biome, context: MapContext, vault: VaultLayout) -> str:
    return create_note(
        title=biome.name,
        note_type="biome",
        fields={"name": biome.name, "habitability": biome.habitability},
        properties={
            "Habitability": (
                f"{habitability_descriptor(biome.habitability)} "
                f"({biome.habitability:g}/100)"
            ),
            "Movement Cost": f"{biome.cost:g}" if biome.cost is not None else None,
            "Color": biome.color,
        },
        sections=[f"[Wikipedia]({biome_reference_url(biome.name)})"],
    )


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

def render_marker(marker, context: MapContext, vault: VaultLayout) -> str:
    """Render a point of interest.

    A marker on a cell outside the map keeps its note but loses every
    location-derived field.
    """
    resolver = context.resolver
    note = resolver.marker_note(marker)
    name = note.name if note is not None and note.name else f"Marker {marker.id}"
    latitude, longitude = context.dataset.lat_long(marker.x, marker.y)

    cell = resolver.pack_cell(marker.cell)
    owners = {}
    if cell is not None:
        owners = {
            "Nearby Burg": _link(context, vault, EntityKind.BURG, resolver.burg(cell.burg)),
            "Province": _link(context, vault, EntityKind.PROVINCE, resolver.province(cell.province)),
            "State": _link(context, vault, EntityKind.STATE, _owner(resolver.state(cell.state))),
            "Culture": _link(
                context, vault, EntityKind.CULTURE, _owner(resolver.culture(cell.culture))
            ),
            "Religion": _link(
                context, vault, EntityKind.RELIGION, _owner(resolver.religion(cell.religion))
            ),
            "Biome": _link(context, vault, EntityKind.BIOME, resolver.biome(cell.biome)),
        }

    field_names = {
        "Nearby Burg": "nearbyBurg", "Province": "province", "State": "state",
        "Culture": "culture", "Religion": "religion",
    }
    return create_note(
        title=f"{marker.icon} {name}",
        note_type="marker",
        tags=["point-of-interest"],
        aliases=[name],
        fields={
            "name": name,
            "type": marker.type,
            "location": [round(latitude, 4), round(longitude, 4)],
            **{
                field: _md(owners.get(label))
                for label, field in field_names.items()
            },
        },
        properties={
            "Type": marker.type or "Unknown",
            **{label: _md(link) for label, link in owners.items()},
        },
        sections=[note.legend if note is not None else None],
    )


# ---------------------------------------------------------------------------
# Rivers and routes
# ---------------------------------------------------------------------------

def render_river(river, context: MapContext, vault: VaultLayout) -> str:
    resolver = context.resolver
    settings = context.settings
    basin = resolver.river(river.basin) if river.basin != river.id else None
    parent = resolver.river(river.parent) if river.parent != river.id else None

    burgs = {}
    for cell_id in river.cells:
        cell = resolver.pack_cell(cell_id)
        if cell is not None and cell.burg and cell.burg not in burgs:
            burgs[cell.burg] = resolver.burg(cell.burg)

    return create_note(
        title=river.name,
        note_type="river",
        aliases=[river.name],
        fields={"name": river.name, "type": river.type},
        properties={
            "Type": river.type,
            "Basin": _md(_link(context, vault, EntityKind.RIVER, basin)),
            "Parent": _md(_link(context, vault, EntityKind.RIVER, parent)),
            "Flow": f"{river.discharge:g} m<sup>3</sup>/s",
            "Length": readable_length(river.length, settings),
        },
        sections=[link_section("Burgs", _links(context, vault, EntityKind.BURG, burgs.values()))],
    )


def render_route(route, context: MapContext, vault: VaultLayout) -> str:
    """Render a route with everything it passes through."""
    resolver = context.resolver
    feature = resolver.feature(route.feature)
    surface = None
    if feature is not None:
        surface = "Land" if feature.land else "Water"

    passages = trace_passages(route, resolver, context.routes, context.marker_index)
    marker_links = [
        _link(context, vault, EntityKind.MARKER, passage.marker)
        for passage in passages.markers.values()
    ]

    sections = [
        link_section("Burgs", _links(context, vault, EntityKind.BURG, passages.burgs.values())),
        link_section("Points of Interest", sorted(marker_links, key=lambda link: link.display_name)),
        link_section("Rivers Crossed", _links(context, vault, EntityKind.RIVER, passages.rivers.values())),
        link_section("States", _links(context, vault, EntityKind.STATE, passages.states.values())),
        link_section(
            "Provinces", _links(context, vault, EntityKind.PROVINCE, passages.provinces.values())
        ),
        link_section("Cultures", _links(context, vault, EntityKind.CULTURE, passages.cultures.values())),
        link_section(
            "Religions", _links(context, vault, EntityKind.RELIGION, passages.religions.values())
        ),
        link_section("Biomes", _links(context, vault, EntityKind.BIOME, passages.biomes.values())),
        link_section(
            "Connecting Routes", _links(context, vault, EntityKind.ROUTE, passages.routes.values())
        ),
    ]

    return create_note(
        title=route.display_name,
        note_type="route",
        aliases=[route.display_name],
        fields={"name": route.display_name, "group": route.group, "surface": surface},
        properties={
            "Group": route.group,
            "Length": readable_length(route.length, context.settings),
            "Surface": surface,
            "Crossroads": str(len(passages.crossroads)) if passages.crossroads else None,
        },
        sections=sections,
    )


# ---------------------------------------------------------------------------
# Name bases
# ---------------------------------------------------------------------------

def render_name_base(name_base, context: MapContext, vault: VaultLayout) -> str:
    cultures = [
        culture for culture in context.resolver.all(EntityKind.CULTURE)
        if culture.name_base == name_base.id
    ]
    samples = name_base.sample_names[:SAMPLE_NAME_COUNT]
    return create_note(
        title=name_base.name,
        note_type="name-base",
        fields={"name": name_base.name},
        properties={
            "Length": f"{name_base.min}-{name_base.max}" if name_base.max else None,
            "Cultures": join_links(_links(context, vault, EntityKind.CULTURE, cultures)),
        },
        sections=[f"## Sample Names\n\n{', '.join(samples)}" if samples else None],
    )


NOTE_RENDERERS: dict[EntityKind, NoteRenderer] = {
    EntityKind.CULTURE: render_culture,
    EntityKind.BURG: render_burg,
    EntityKind.STATE: render_state,
    EntityKind.PROVINCE: render_province,
    EntityKind.RELIGION: render_religion,
    EntityKind.BIOME: render_biome,
    EntityKind.MARKER: render_marker,
    EntityKind.RIVER: render_river,
    EntityKind.ROUTE: render_route,
    EntityKind.NAME_BASE: render_name_base,
}


# ---------------------------------------------------------------------------
# Summary pages
# ---------------------------------------------------------------------------

def render_homepage(
    context: MapContext,
    vault: VaultLayout,
    links: Mapping[EntityKind, list[VaultLink]],
    image_name: Optional[str] = None,
) -> str:
    """Render the world homepage.

    Parameters
    ----------
    links : mapping
        Per kind, links to every planned entity note.
    image_name : str, optional
        File name of the map image inside the assets directory.
    """
    dataset = context.dataset
    settings = context.settings
    coordinates = dataset.coordinates
    map_name = dataset.map_name
    image = f"{vault.assets_dir}/{image_name or map_name.lower() + '.svg'}"

    rural = sum(culture.rural for culture in dataset.cultures)
    urban = sum(culture.urban for culture in dataset.cultures)
    territory = sum(province.area for province in dataset.provinces)

    leaflet = "\n".join([
        "```leaflet",
        f"id: {map_name}-map",
        f"image: [[{image}]]",
        f"markerFolder: {vault.world_dir}/PointsOfInterest",
        "lock: true",
        "bounds:",
        f"  - [{coordinates.latN:g},{coordinates.lonW:g}]",
        f"  - [{coordinates.latS:g},{coordinates.lonE:g}]",
        "height: 500px",
        f"lat: {coordinates.latT / 2 + coordinates.latS:g}",
        f"long: {coordinates.lonT / 2 + coordinates.lonW:g}",
        "minZoom: 2.5",
        "maxZoom: 10",
        "defaultZoom: 2.75",
        "zoomDelta: 0.5",
        f"unit: {settings.distance_unit}",
        "scale: 1",
        "```",
    ])

    parts = [f"# {map_name}"]
    if dataset.info.description:
        parts.append(dataset.info.description)
    parts.append(leaflet)
    parts.append(property_list({
        "Population": readable_population(rural, urban, settings),
        "Territory Area": readable_area(territory, settings),
        "States": join_links(links.get(EntityKind.STATE, [])),
        "Cultures": join_links(links.get(EntityKind.CULTURE, [])),
        "Religions": join_links(links.get(EntityKind.RELIGION, [])),
    }))
    parts.append(EMPTY_CUSTOM_BLOCK)
    return "\n\n".join(parts) + "\n"


def _large_number(field: str) -> str:
    return f'regexreplace(string({field}), "[0-9](?=(?:[0-9]{{3}})+(?![0-9]))", "$& ")'


DATAVIEW_PAGES: dict[EntityKind, tuple[str, str]] = {
    EntityKind.CULTURE: (
        "Cultures",
        f'TABLE species AS "Species", {_large_number("area")} AS "Area", '
        f'{_large_number("totalPopulation")} AS "Population"\n'
        "FROM #culture\n"
        "SORT totalPopulation DESC",
    ),
    EntityKind.BURG: (
        "Burgs",
        f'TABLE {_large_number("population")} AS "Population", temperature AS "Temperature", '
        'culture AS "Culture", religion AS "Religion", state AS "State", province AS "Province"\n'
        "FROM #burg\n"
        "SORT state ASC",
    ),
    EntityKind.MARKER: (
        "Points Of Interest",
        'TABLE type AS "Type", nearbyBurg AS "Nearby Burg", province AS "Province", '
        'state AS "State", culture AS "Culture", religion AS "Religion"\n'
        "FROM #marker\n"
        "SORT type ASC",
    ),
}


def render_dataview_page(title: str, query: str) -> str:
    """A table-of-contents page backed by a Dataview query."""
    return create_note(
        title=title,
        note_type="dataview",
        sections=[f"```dataview\n{query}\n```"],
    )

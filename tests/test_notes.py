"""
Tests for worldvault/notes.py -- per-entity note rendering.

Validates:
    - Every renderer produces front matter, a title and an empty custom block
    - Cross-references become vault links; placeholders never become owners
    - A burg whose cell is missing fails with MissingReferenceError
    - Off-map markers and legacy maps render without location data
"""

import pytest
import yaml

from worldvault.context import build_map_context
from worldvault.custom_content import EMPTY_CUSTOM_BLOCK
from worldvault.errors import MissingReferenceError
from worldvault.map_loader import parse_legacy_map
from worldvault.models import EntityKind
from worldvault.notes import (
    DATAVIEW_PAGES,
    NOTE_RENDERERS,
    biome_reference_url,
    religion_expansion,
    render_biome,
    render_burg,
    render_culture,
    render_dataview_page,
    render_homepage,
    render_marker,
    render_name_base,
    render_province,
    render_religion,
    render_river,
    render_route,
    render_state,
)
from worldvault.vault import VaultLayout


def _split(text):
    """Return (front matter dict, body) of a rendered note."""
    _, matter, body = text.split("---", 2)
    return yaml.safe_load(matter), body


@pytest.fixture
def vault(tmp_path):
    return VaultLayout(tmp_path)


# ---------------------------------------------------------------------------
# Every renderer
# ---------------------------------------------------------------------------

class TestAllRenderers:
    """Shared shape of every note."""

    def test_every_entity_renders(self, context, vault):
        for kind, render in NOTE_RENDERERS.items():
            for entity in context.resolver.all(kind):
                if kind is EntityKind.BURG and entity.id == 3:
                    continue
                text = render(entity, context, vault)
                matter, body = _split(text)
                assert matter["tags"][0]
                assert "\n# " in body
                assert text.endswith(EMPTY_CUSTOM_BLOCK + "\n")

    def test_every_kind_has_a_renderer(self):
        expected = set(EntityKind) - {EntityKind.FEATURE}
        assert set(NOTE_RENDERERS) == expected


# ---------------------------------------------------------------------------
# Individual renderers
# ---------------------------------------------------------------------------

class TestCultureNote:
    """Tests for render_culture."""

    def test_species_and_links(self, context, vault):
        matter, body = _split(render_culture(context.resolver.culture(1), context, vault))
        assert matter["species"] == "Elf"
        assert matter["totalPopulation"] == 60000
        assert "# Elari (Elf)" in body
        assert "- **Names**: [[1. World/NameBases/Elven|Elven]]" in body

    def test_origins(self, context, vault):
        _, body = _split(render_culture(context.resolver.culture(2), context, vault))
        assert "- **Origins**: [[1. World/Cultures/Elari|Elari (Elf)]]" in body

    def test_wildlands(self, context, vault):
        matter, body = _split(render_culture(context.resolver.culture(0), context, vault))
        assert matter["type"] == "Any"
        assert "Origins" not in body


class TestBurgNote:
    """Tests for render_burg."""

    def test_city_capital(self, context, vault):
        matter, body = _split(render_burg(context.resolver.burg(1), context, vault))
        assert matter["tags"] == ["burg", "city", "capital"]
        assert matter["population"] == 5200
        assert matter["location"] == [52.0, -32.0]
        assert matter["temperature"] == "11°C"
        assert matter["religion"] == "[[1. World/Religions/Old Faith|Old Faith]]"
        assert "# Timber ★" in body
        assert "- **Elevation**: 948 ft" in body
        assert "- **Province**: [[1. World/Provinces/Westmarch|Westmarch]]" in body
        assert "- **Features**: Citadel, Walls, Plaza" in body
        assert "- [[1. World/Routes/trails-1|TRAIL 1]]" in body

    def test_village_without_religion(self, context, vault):
        matter, body = _split(render_burg(context.resolver.burg(2), context, vault))
        assert "village" in matter["tags"]
        assert "religion" not in matter
        assert "**Religion**" not in body

    def test_missing_cell_is_foundational(self, context, vault):
        with pytest.raises(MissingReferenceError) as excinfo:
            render_burg(context.resolver.burg(3), context, vault)
        assert excinfo.value.ref_id == 99


class TestStateNotes:
    """Tests for render_state and render_province."""

    def test_state(self, context, vault):
        matter, body = _split(render_state(context.resolver.state(1), context, vault))
        assert matter["form"] == "Monarchy"
        assert "# Kingdom of Aldara" in body
        assert "- **Capital**: [[1. World/Burgs/Timber|Timber]]" in body
        assert "- **Neighbors**: [[1. World/States/Dunmark|Dunmark]]" in body
        assert "## Provinces\n\n- [[1. World/Provinces/Westmarch|Westmarch]]" in body

    def test_neutral_state(self, context, vault):
        matter, body = _split(render_state(context.resolver.state(0), context, vault))
        assert matter["tags"] == ["state", "neutral"]
        assert "Capital" not in body

    def test_province(self, context, vault):
        matter, body = _split(render_province(context.resolver.province(2), context, vault))
        assert matter["form"] == "County"
        assert "# County of Highfold" in body
        assert "- **State**: [[1. World/States/Dunmark|Dunmark]]" in body
        assert "## Burgs\n\n- [[1. World/Burgs/Stonegate|Stonegate]]" in body


class TestReligionNote:
    """Tests for render_religion and religion_expansion."""

    def test_culture_expansion_share(self, context):
        religion = context.resolver.religion(1)
        culture = context.resolver.culture(1)
        assert religion_expansion(religion, culture, context.settings) == "50% of Elari (Elf)"

    def test_global_expansion(self, context):
        religion = context.resolver.religion(2)
        assert religion_expansion(religion, None, context.settings) == "Global"

    def test_religion(self, context, vault):
        matter, body = _split(render_religion(context.resolver.religion(1), context, vault))
        assert matter["deity"] == "Sky Mother"
        assert "- **Culture**: [[1. World/Cultures/Elari|Elari (Elf)]]" in body
        assert "Origins" not in body

    def test_origins_link_other_religions(self, context, vault):
        _, body = _split(render_religion(context.resolver.religion(2), context, vault))
        assert "- **Origins**: [[1. World/Religions/Old Faith|Old Faith]]" in body
        assert "Deity" not in body

    def test_no_religion(self, context, vault):
        matter, _ = _split(render_religion(context.resolver.religion(0), context, vault))
        assert matter["tags"] == ["religion", "no-religion"]


class TestGeographyNotes:
    """Tests for biomes, rivers, routes, markers and name bases."""

    def test_biome(self, context, vault):
        matter, body = _split(render_biome(context.resolver.biome(1), context, vault))
        assert matter["habitability"] == 30
        assert "- **Habitability**: Harsh (30/100)" in body
        assert "- **Movement Cost**: 50" in body
        assert biome_reference_url("Grassland") in body

    def test_biome_url_fallback(self):
        assert biome_reference_url("Ash plains").endswith("search=Ash+plains")

    def test_river(self, context, vault):
        _, body = _split(render_river(context.resolver.river(1), context, vault))
        assert "- **Length**: 62 mi" in body
        assert "Basin" not in body
        assert "## Burgs\n\n- [[1. World/Burgs/Timber|Timber]]" in body

    def test_tributary(self, context, vault):
        _, body = _split(render_river(context.resolver.river(2), context, vault))
        assert "- **Parent**: [[1. World/Rivers/Aldyn|Aldyn]]" in body

    def test_route(self, context, vault):
        matter, body = _split(render_route(context.resolver.route(0), context, vault))
        assert matter["surface"] == "Land"
        assert "# King's Road" in body
        assert "## Points of Interest\n\n- [[1. World/PointsOfInterest/Old Keep|Old Keep]]" in body
        assert "## Connecting Routes\n\n- [[1. World/Routes/trails-1|TRAIL 1]]" in body
        assert "## States\n\n- [[1. World/States/Aldara|Aldara]]\n- [[1. World/States/Dunmark|Dunmark]]" in body
        assert "## Burgs" not in body

    def test_sea_route(self, context, vault):
        matter, body = _split(render_route(context.resolver.route(2), context, vault))
        assert matter["surface"] == "Water"
        assert "# SEAROUTE 2" in body

    def test_marker(self, context, vault):
        matter, body = _split(render_marker(context.resolver.marker(0), context, vault))
        assert matter["name"] == "Old Keep"
        assert matter["location"] == [40.0, 0.0]
        assert matter["state"] == "[[1. World/States/Aldara|Aldara]]"
        assert "nearbyBurg" not in matter
        assert "# 🏰 Old Keep" in body
        assert "A ruined keep watches the road." in body

    def test_off_map_marker(self, context, vault):
        matter, body = _split(render_marker(context.resolver.marker(1), context, vault))
        assert matter["name"] == "Marker 1"
        assert "state" not in matter
        assert "- **Type**: mines" in body

    def test_name_base(self, context, vault):
        _, body = _split(render_name_base(context.resolver.name_base(0), context, vault))
        assert "- **Length**: 4-10" in body
        assert "[[1. World/Cultures/Wildlands|Wildlands]]" in body
        assert "## Sample Names\n\nAelin, Caranel, Elros" in body


# ---------------------------------------------------------------------------
# Legacy maps
# ---------------------------------------------------------------------------

class TestLegacyRendering:
    """Legacy saves carry no cells: burgs fail, everything else renders."""

    def test_burgs_fail_individually(self, legacy_map_text, vault):
        context = build_map_context(parse_legacy_map(legacy_map_text))
        with pytest.raises(MissingReferenceError):
            render_burg(context.resolver.burg(1), context, vault)
        render_state(context.resolver.state(1), context, vault)
        render_route(context.resolver.route(0), context, vault)

    def test_legacy_units(self, legacy_map_text, vault):
        context = build_map_context(parse_legacy_map(legacy_map_text))
        _, body = _split(render_culture(context.resolver.culture(1), context, vault))
        assert "- **Population**: 90K (15K Urban, 75K Rural)" in body
        assert "- **Area**: 400 km<sup>2</sup>" in body


# ---------------------------------------------------------------------------
# Summary pages
# ---------------------------------------------------------------------------

class TestSummaryPages:
    """Tests for render_homepage and render_dataview_page."""

    def test_homepage(self, context, vault):
        links = {EntityKind.STATE: [vault.link(EntityKind.STATE, "Aldara", "Aldara")]}
        text = render_homepage(context, vault, links, image_name="oakvale.svg")
        assert text.startswith("# Oakvale\n\nA small world for tests\n\n```leaflet\n")
        assert "image: [[z_Assets/oakvale.svg]]" in text
        assert "markerFolder: 1. World/PointsOfInterest" in text
        assert "  - [60,-40]\n  - [20,40]" in text
        assert "- **States**: [[1. World/States/Aldara|Aldara]]" in text
        assert "Cultures" not in text
        assert text.endswith(EMPTY_CUSTOM_BLOCK + "\n")

    def test_dataview_pages(self):
        for title, query in DATAVIEW_PAGES.values():
            text = render_dataview_page(title, query)
            assert f"# {title}" in text
            assert f"```dataview\n{query}\n```" in text

"""
worldvault -- Convert Fantasy Map Generator worlds into Obsidian vaults.

Submodules:
    - map_loader:      reads the consolidated JSON export or the legacy .map save
    - models:          pydantic models for every map entity kind
    - resolver:        id-indexed cross-reference lookup
    - index_builder:   biome table, route adjacency graph, marker index
    - context:         the indexed world shared by every note task
    - route_tracer:    what a route passes through
    - custom_content:  preserves user text between regenerations
    - vault:           vault directory layout, note paths and links
    - markdown, notes: note skeleton and per-entity renderers
    - orchestrator:    concurrent, failure-isolated note generation
    - config:          per-user options
    - cli:             ``worldvault convert`` command
"""

__version__ = "0.3.0"

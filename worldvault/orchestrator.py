"""
worldvault/orchestrator.py -- Write the whole vault, one task per note.

Generation runs in three phases separated by barriers:

    1. one note per entity, every destination path decided up front;
    2. summary notes (world homepage, table-of-contents pages), which link
       to the paths decided in phase 1;
    3. copies of the source map files into the vault.

Inside a phase every task runs concurrently and every task *settles*:
a failing note (a missing foundational reference, an unreadable existing
file, a failed write) is recorded and its siblings carry on.  An optional
deadline bounds the whole run; tasks still pending when it passes are
cancelled and reported as failures.  Writes are atomic, so a cancelled or
failed note leaves the previous version of the file untouched.

Usage::

    report = run_generation(context, VaultLayout("/vaults/oakvale"),
                            sources={"json": json_path}, deadline=120)
    report.status        # RunStatus.SUCCESS / PARTIAL / FAILURE
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional

from worldvault.context import MapContext
from worldvault.custom_content import merge_custom_content, read_existing_note
from worldvault.models.entities import EntityKind
from worldvault.notes import (
    DATAVIEW_PAGES,
    NOTE_RENDERERS,
    NoteRenderer,
    render_dataview_page,
    render_homepage,
)
from worldvault.utils import copy_file, normalize_file_name, safe_write_text
from worldvault.vault import KIND_DIRECTORIES, VaultLayout, VaultLink, entity_link

logger = logging.getLogger(__name__)

# Where each supporting source file is copied: (vault attribute, suffix).
SOURCE_DESTINATIONS = {
    "json": ("map_path", ".json"),
    "map": ("map_path", ".map"),
    "img": ("assets_path", None),
}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass
class TaskResult:
    label: str
    path: Optional[Path]
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PhaseReport:
    name: str
    results: list[TaskResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[TaskResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[TaskResult]:
        return [r for r in self.results if not r.ok]


@dataclass
class RunReport:
    phases: list[PhaseReport] = field(default_factory=list)

    @property
    def results(self) -> list[TaskResult]:
        return [result for phase in self.phases for result in phase.results]

    @property
    def failures(self) -> list[TaskResult]:
        return [result for result in self.results if not result.ok]

    @property
    def status(self) -> RunStatus:
        results = self.results
        failures = self.failures
        if not failures:
            return RunStatus.SUCCESS
        if len(failures) == len(results):
            return RunStatus.FAILURE
        return RunStatus.PARTIAL

    def summary(self) -> str:
        counts = ", ".join(
            f"{phase.name}: {len(phase.succeeded)} written, {len(phase.failed)} failed"
            for phase in self.phases
        )
        return f"Vault generation {self.status.value} ({counts})"


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NoteTask:
    """Render one note and write it, keeping the user's custom block."""

    label: str
    path: Path
    render: Callable[[], str]

    async def run(self) -> None:
        fresh = self.render()
        existing = await asyncio.to_thread(read_existing_note, self.path)
        merged = merge_custom_content(existing, fresh)
        await asyncio.to_thread(safe_write_text, self.path, merged)


@dataclass(frozen=True)
class CopyTask:
    """Copy a supporting source file into the vault."""

    label: str
    path: Path
    source: Path

    async def run(self) -> None:
        await asyncio.to_thread(copy_file, self.source, self.path)


@dataclass
class NotePlan:
    """Phase-one tasks plus the link to every planned note, per kind."""

    tasks: list[NoteTask] = field(default_factory=list)
    links: dict[EntityKind, list[VaultLink]] = field(default_factory=lambda: defaultdict(list))


async def _settle(task) -> TaskResult:
    try:
        await task.run()
    except Exception as exc:
        logger.warning("Could not write %s (%s): %s", task.label, task.path, exc)
        return TaskResult(task.label, task.path, exc)
    return TaskResult(task.label, task.path)


async def settle_all(tasks: Iterable, name: str = "tasks",
                     timeout: Optional[float] = None) -> PhaseReport:
    """Run *tasks* concurrently and wait for every one of them to settle.

    Parameters
    ----------
    tasks : iterable
        Objects with ``label``, ``path`` and an async ``run()``.
    name : str
        Phase name used in the report.
    timeout : float, optional
        Seconds to wait.  Tasks not finished by then are cancelled and
        reported as ``TimeoutError`` failures.

    Returns
    -------
    PhaseReport
        One result per task, in the order the tasks were given.
    """
    tasks = list(tasks)
    report = PhaseReport(name)
    if not tasks:
        return report

    running = [asyncio.create_task(_settle(task)) for task in tasks]
    _, pending = await asyncio.wait(running, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning("%s: deadline passed with %d task(s) unfinished", name, len(pending))

    for task, future in zip(tasks, running):
        if future in pending:
            report.results.append(
                TaskResult(task.label, task.path, TimeoutError("deadline passed before completion"))
            )
        else:
            report.results.append(future.result())
    return report


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def plan_entity_notes(
    context: MapContext,
    vault: VaultLayout,
    renderers: Optional[Mapping[EntityKind, NoteRenderer]] = None,
) -> NotePlan:
    """Decide the path of every entity note and build its task.

    Entities whose notes would share a path are logged; the last write to
    finish wins.
    """
    renderers = NOTE_RENDERERS if renderers is None else renderers
    resolver = context.resolver
    plan = NotePlan()
    claimed: dict[Path, str] = {}

    for kind, render in renderers.items():
        kind = EntityKind(kind)
        for entity in resolver.all(kind):
            link = entity_link(vault, kind, entity, resolver)
            path = vault.note_path(link.relative_path)
            label = f"{kind.value} {entity.id} ({link.display_name})"
            if path in claimed:
                logger.warning("%s and %s share the note %s", claimed[path], label, path)
            claimed[path] = label
            plan.tasks.append(
                NoteTask(label, path, functools.partial(render, entity, context, vault))
            )
            plan.links[kind].append(link)

    logger.info("Planned %d entity notes", len(plan.tasks))
    return plan


def plan_summary_notes(context: MapContext, vault: VaultLayout, plan: NotePlan,
                       image_name: Optional[str] = None) -> list[NoteTask]:
    """Homepage and table-of-contents tasks built from *plan*'s links.

    A summary page that lands on an entity note's path is logged; it is
    written in the later phase and replaces that note.
    """
    homepage = vault.note_path(vault.relative_note_path(None, vault.world_dir))
    tasks = [
        NoteTask(
            "homepage",
            homepage,
            functools.partial(render_homepage, context, vault, plan.links, image_name),
        )
    ]
    for kind, (title, query) in DATAVIEW_PAGES.items():
        path = vault.note_path(vault.relative_note_path(kind, KIND_DIRECTORIES[kind]))
        tasks.append(NoteTask(f"{title} index", path, functools.partial(render_dataview_page, title, query)))

    entity_paths = {task.path: task.label for task in plan.tasks}
    for task in tasks:
        if task.path in entity_paths:
            logger.warning(
                "%s and %s share the note %s", entity_paths[task.path], task.label, task.path
            )
    return tasks


def source_file_stem(context: MapContext) -> str:
    return normalize_file_name(context.dataset.map_name).lower() or "world"


def plan_source_copies(context: MapContext, vault: VaultLayout,
                       sources: Mapping[str, Path]) -> list[CopyTask]:
    """Copy tasks for the given ``{"json" | "map" | "img": path}`` sources."""
    stem = source_file_stem(context)
    tasks = []
    for key, source in sources.items():
        if source is None:
            continue
        directory, suffix = SOURCE_DESTINATIONS[key]
        source = Path(source)
        destination = getattr(vault, directory) / f"{stem}{suffix or source.suffix.lower()}"
        tasks.append(CopyTask(f"{key} source", destination, source))
    return tasks


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

async def generate_vault(
    context: MapContext,
    vault: VaultLayout,
    renderers: Optional[Mapping[EntityKind, NoteRenderer]] = None,
    sources: Optional[Mapping[str, Path]] = None,
    deadline: Optional[float] = None,
) -> RunReport:
    """Write every note of *context* into *vault*.

    Parameters
    ----------
    context : MapContext
        The loaded world and its indices.
    vault : VaultLayout
        Destination vault.
    renderers : mapping, optional
        Renderer per entity kind (default ``NOTE_RENDERERS``).
    sources : mapping, optional
        Source files to copy into the vault, keyed ``json``/``map``/``img``.
    deadline : float, optional
        Overall time budget in seconds.

    Returns
    -------
    RunReport
    """
    loop = asyncio.get_running_loop()
    expires = None if deadline is None else loop.time() + deadline

    def remaining() -> Optional[float]:
        return None if expires is None else max(0.0, expires - loop.time())

    await asyncio.to_thread(vault.create_directories)
    report = RunReport()

    plan = plan_entity_notes(context, vault, renderers)
    report.phases.append(await settle_all(plan.tasks, "notes", remaining()))

    copies = plan_source_copies(context, vault, sources or {})
    image_name = next((task.path.name for task in copies if task.label == "img source"), None)
    summaries = plan_summary_notes(context, vault, plan, image_name)
    report.phases.append(await settle_all(summaries, "summaries", remaining()))

    if copies:
        report.phases.append(await settle_all(copies, "copies", remaining()))

    logger.info(report.summary())
    return report


def run_generation(context: MapContext, vault: VaultLayout, **kwargs) -> RunReport:
    """Synchronous wrapper around ``generate_vault``."""
    return asyncio.run(generate_vault(context, vault, **kwargs))

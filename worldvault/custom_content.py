"""
worldvault/custom_content.py -- Keep user-written text across regenerations.

Every generated note ends with a block delimited by two sentinel lines::

    %% CUSTOM-START %%
    ...anything the user writes here...
    %% CUSTOM-END %%

When a note is regenerated, the text between the sentinels in the file
already on disk is carried over, byte for byte, into the freshly rendered
note.  Everything outside the block is regenerated.

A file whose sentinels are missing, duplicated or out of order contributes
no custom text (the note is simply regenerated).  A file that does not
exist yet is normal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from worldvault.utils import read_text_if_exists

logger = logging.getLogger(__name__)

CUSTOM_START = "%% CUSTOM-START %%"
CUSTOM_END = "%% CUSTOM-END %%"
EMPTY_CUSTOM_BLOCK = f"{CUSTOM_START}\n\n{CUSTOM_END}"


@dataclass(frozen=True)
class NoteDocument:
    """A note split around its custom block.

    ``preamble`` ends just before the start sentinel line and ``postamble``
    begins just after the end sentinel line.
    """

    preamble: str
    custom: str
    postamble: str

    def render(self) -> str:
        return f"{self.preamble}{CUSTOM_START}\n{self.custom}\n{CUSTOM_END}{self.postamble}"

    def with_custom(self, custom: str) -> "NoteDocument":
        return NoteDocument(self.preamble, custom, self.postamble)


def _sentinel_offsets(text: str, sentinel: str) -> list[int]:
    """Offsets of every line of *text* that is exactly *sentinel*."""
    offsets = []
    position = 0
    for line in text.split("\n"):
        if line == sentinel:
            offsets.append(position)
        position += len(line) + 1
    return offsets


def split_note(text: str) -> Optional[NoteDocument]:
    """Split *text* around its custom block, or return ``None`` if malformed.

    Well-formed means exactly one start sentinel line followed, on a later
    line, by exactly one end sentinel line.
    """
    starts = _sentinel_offsets(text, CUSTOM_START)
    ends = _sentinel_offsets(text, CUSTOM_END)
    if len(starts) != 1 or len(ends) != 1 or ends[0] <= starts[0]:
        return None

    start, end = starts[0], ends[0]
    body_start = start + len(CUSTOM_START) + 1
    # The block body is followed by the newline ending its last line.
    custom = text[body_start:end - 1] if end > body_start else ""
    return NoteDocument(
        preamble=text[:start],
        custom=custom,
        postamble=text[end + len(CUSTOM_END):],
    )


def extract_custom_content(text: str) -> str:
    """Return the custom block of *text*, or ``""`` if it cannot be found."""
    document = split_note(text)
    if document is None:
        logger.debug("Custom block sentinels missing or malformed; nothing preserved")
        return ""
    return document.custom


def merge_custom_content(existing: Optional[str], fresh: str) -> str:
    """Carry the custom block of *existing* over into *fresh*.

    Parameters
    ----------
    existing : str or None
        The note currently on disk, or ``None`` if there is none.
    fresh : str
        The newly rendered note; it must contain a custom block.

    Returns
    -------
    str
        *fresh* with its custom block replaced by the one from *existing*.

    Raises
    ------
    ValueError
        If *fresh* has no well-formed custom block.
    """
    if existing is None:
        return fresh
    document = split_note(fresh)
    if document is None:
        raise ValueError("Rendered note has no custom content block")
    return document.with_custom(extract_custom_content(existing)).render()


def read_existing_note(path) -> Optional[str]:
    """Read the note at *path*; ``None`` if it does not exist yet.

    Any other read failure propagates so that only this note fails.
    """
    return read_text_if_exists(path)

"""
worldvault/errors.py -- Exceptions raised while loading and rendering a map.
"""

from __future__ import annotations


class MapValidationError(ValueError):
    """The input map is structurally unusable; nothing may be written.

    Parameters
    ----------
    message : str
        Human-readable summary.
    field : str, optional
        Dotted path of the first offending field.
    issues : list[str], optional
        Every problem found, when validation collected more than one.
    """

    def __init__(self, message: str, field: str | None = None,
                 issues: list[str] | None = None):
        super().__init__(message)
        self.field = field
        self.issues = list(issues or [message])


class MissingReferenceError(LookupError):
    """A reference an entity cannot be rendered without does not resolve."""

    def __init__(self, kind: str, ref_id, owner: str):
        super().__init__(f"{owner} references missing {kind} {ref_id!r}")
        self.kind = kind
        self.ref_id = ref_id
        self.owner = owner

"""
Shared file helpers for worldvault.

All note writes use atomic temp-file-then-os.replace() so that a note on
disk is either the previous version or the new one, never a torn mix.
"""

import json
import logging
import os
import re
import shutil
import tempfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def safe_read_json(path, default=None):
    """Read a JSON file, returning *default* if the file is missing or corrupt.

    Parameters
    ----------
    path : str or pathlib.Path
        Path to the JSON file.
    default
        Value returned when the file cannot be read (default ``None``).

    Returns
    -------
    object
        Parsed JSON content, or *default* on failure.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return default


def read_text_if_exists(path):
    """Return the text of *path*, or ``None`` when the file does not exist.

    Every other ``OSError`` (permissions, a directory in the way, ...)
    propagates to the caller.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except FileNotFoundError:
        return None


# ---------------------------------------------------------------------------
# Writes (atomic)
# ---------------------------------------------------------------------------

def safe_write_text(path, text):
    """Atomically write *text* to *path*.

    Uses a temporary file in the same directory followed by
    ``os.replace()`` so that readers never see a partially-written file.
    Parent directories are created if they do not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Target file.
    text : str
        Full file contents.
    """
    path = str(path)
    parent = os.path.dirname(path)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def copy_file(source, destination):
    """Copy *source* over *destination* atomically, creating parents."""
    destination = str(destination)
    parent = os.path.dirname(destination)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    os.close(fd)
    try:
        shutil.copyfile(source, tmp_path)
        os.replace(tmp_path, destination)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

_UNSAFE_FILENAME_CHARS = re.compile(r'[()/<>:"\\|?*]')


def normalize_file_name(name):
    """Strip characters that are unsafe in file names on common platforms.

    >>> normalize_file_name("Port (North)")
    'Port North'
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("", str(name))
    return re.sub(r"\s{2,}", " ", cleaned).strip()

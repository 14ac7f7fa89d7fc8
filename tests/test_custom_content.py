"""
Tests for worldvault/custom_content.py -- custom block preservation.

Validates:
    - Text between the sentinels survives regeneration byte for byte
    - Merging is idempotent
    - Malformed existing notes contribute nothing (and do not raise)
    - A missing note file is normal; other read errors propagate
"""

import pytest

from worldvault.custom_content import (
    CUSTOM_END,
    CUSTOM_START,
    EMPTY_CUSTOM_BLOCK,
    extract_custom_content,
    merge_custom_content,
    read_existing_note,
    split_note,
)

FRESH = f"---\ntags:\n- burg\n---\n\n# Timber\n\n- **Type**: Generic\n\n{EMPTY_CUSTOM_BLOCK}\n"

CUSTOM = "My own notes.\n\n- the mill burned in 1012  \n\t[[Somewhere]]"


def _note_with(custom, body="# Old render\n\n- **Type**: Hamlet\n\n"):
    return f"{body}{CUSTOM_START}\n{custom}\n{CUSTOM_END}\n"


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------

class TestSplitNote:
    """Tests for split_note and extract_custom_content."""

    def test_empty_block(self):
        document = split_note(FRESH)
        assert document.custom == ""
        assert document.render() == FRESH

    def test_custom_text(self):
        assert extract_custom_content(_note_with(CUSTOM)) == CUSTOM

    def test_sentinels_must_be_whole_lines(self):
        text = f"see {CUSTOM_START} inline\n{CUSTOM_START}\nkept\n{CUSTOM_END}\n"
        assert extract_custom_content(text) == "kept"

    @pytest.mark.parametrize(
        "text",
        [
            "# No block at all\n",
            f"{CUSTOM_START}\nunterminated\n",
            f"unopened\n{CUSTOM_END}\n",
            f"{CUSTOM_END}\nbackwards\n{CUSTOM_START}\n",
            f"{CUSTOM_START}\none\n{CUSTOM_END}\n{CUSTOM_START}\ntwo\n{CUSTOM_END}\n",
        ],
    )
    def test_malformed(self, text):
        assert split_note(text) is None
        assert extract_custom_content(text) == ""


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

class TestMergeCustomContent:
    """Tests for merge_custom_content."""

    def test_no_existing_note(self):
        assert merge_custom_content(None, FRESH) == FRESH

    def test_custom_text_carried_over(self):
        merged = merge_custom_content(_note_with(CUSTOM), FRESH)
        assert extract_custom_content(merged) == CUSTOM
        assert merged.startswith("---\ntags:")
        assert "Hamlet" not in merged

    def test_idempotent(self):
        once = merge_custom_content(_note_with(CUSTOM), FRESH)
        twice = merge_custom_content(once, FRESH)
        assert twice == once

    def test_fresh_note_merged_with_itself(self):
        assert merge_custom_content(FRESH, FRESH) == FRESH

    def test_malformed_existing_fails_open(self):
        merged = merge_custom_content(f"{CUSTOM_START}\nlost\n", FRESH)
        assert merged == FRESH

    def test_fresh_without_block_rejected(self):
        with pytest.raises(ValueError):
            merge_custom_content(_note_with(CUSTOM), "# No block\n")


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

class TestReadExistingNote:
    """Tests for read_existing_note."""

    def test_missing_file(self, tmp_path):
        assert read_existing_note(tmp_path / "absent.md") is None

    def test_existing_file(self, tmp_path):
        path = tmp_path / "note.md"
        path.write_text(FRESH, encoding="utf-8")
        assert read_existing_note(path) == FRESH

    def test_unreadable_path_raises(self, tmp_path):
        (tmp_path / "dir.md").mkdir()
        with pytest.raises(OSError):
            read_existing_note(tmp_path / "dir.md")

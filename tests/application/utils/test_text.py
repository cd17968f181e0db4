"""Tests for repeater.application.utils.text."""

from repeater.application.utils.text import join_block_lines, split_frontmatter

# ---------- Frontmatter ----------


def test_no_frontmatter():
    assert split_frontmatter("Q: a\nA: b\n") == ({}, 0, None)


def test_frontmatter_parsed():
    meta, body_start, error = split_frontmatter("---\nrepeat: false\ntags: [a, b]\n---\nbody\n")
    assert meta == {"repeat": False, "tags": ["a", "b"]}
    assert body_start == 4
    assert error is None


def test_unclosed_frontmatter_is_not_frontmatter():
    assert split_frontmatter("---\nnot closed\n") == ({}, 0, None)


def test_duplicate_keys_are_rejected():
    meta, body_start, error = split_frontmatter("---\na: 1\na: 2\n---\n")
    assert meta == {}
    assert body_start == 4
    assert "duplicate key" in error


def test_non_mapping_region_is_not_frontmatter():
    assert split_frontmatter("---\n- a\n- b\n---\n") == ({}, 0, None)
    assert split_frontmatter("---\njust a sentence\n---\n") == ({}, 0, None)


def test_region_with_card_tags_is_not_frontmatter():
    assert split_frontmatter("---\nQ: 2+2?\nA: 4\n---\n") == ({}, 0, None)
    assert split_frontmatter("---\n  C: [x] marks\n---\n") == ({}, 0, None)


def test_tabs_are_tolerated():
    meta, _, error = split_frontmatter("---\nouter:\n\tinner: 1\n---\n")
    assert error is None
    assert meta == {"outer": {"inner": 1}}


def test_bom_before_frontmatter():
    meta, _, _ = split_frontmatter("\ufeff---\nrepeat: false\n---\n")
    assert meta == {"repeat": False}


# ---------- Block joining ----------


def test_join_block_lines_trims_blank_edges():
    assert join_block_lines(["", "  first  ", "", "second", "", ""]) == "first\n\nsecond"


def test_join_block_lines_empty():
    assert join_block_lines(["", "   "]) == ""

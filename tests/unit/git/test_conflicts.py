"""Tests for conflict marker parsing."""

import pytest

from backporter.git.conflicts import (
    conflicted_files,
    has_conflict_markers,
    is_unmerged,
    join_sides,
    parse,
    unmerged_paths,
)


def test_parse_simple_conflict():
    content = """line 1
line 2
<<<<<<< HEAD
our change
=======
their change
>>>>>>> abc1234 (Fix line2)
line 3
"""
    regions = parse(content)

    assert len(regions) == 1
    region = regions[0]
    assert region.ours == "our change"
    assert region.theirs == "their change"
    assert region.base is None
    assert region.ours_ref == "HEAD"
    assert region.theirs_ref == "abc1234 (Fix line2)"
    assert region.context_before == ["line 1", "line 2"]
    assert region.context_after == ["line 3"]


def test_parse_diff3_conflict():
    content = """<<<<<<< HEAD
ours
||||||| base
original
=======
theirs
>>>>>>> branch
"""
    region = parse(content)[0]

    assert region.ours == "ours"
    assert region.base == "original"
    assert region.theirs == "theirs"


def test_parse_multiple_regions_in_order():
    content = """<<<<<<< HEAD
a1
=======
b1
>>>>>>> x
middle
<<<<<<< HEAD
a2
=======
b2
>>>>>>> x
"""
    regions = parse(content)

    assert [r.ours for r in regions] == ["a1", "a2"]
    assert join_sides(regions) == ("b1\n...\nb2", "a1\n...\na2")


def test_parse_missing_end_marker():
    with pytest.raises(ValueError, match="no end marker"):
        parse("<<<<<<< HEAD\nours\n=======\ntheirs\n")


def test_parse_missing_separator():
    with pytest.raises(ValueError, match="no separator"):
        parse("<<<<<<< HEAD\nours\n>>>>>>> x\n")


def test_has_conflict_markers():
    assert has_conflict_markers("a\n<<<<<<< HEAD\nb\n")
    assert not has_conflict_markers("a\nb\n  <<<<<<< indented\n")


def test_conflicted_files_from_porcelain():
    porcelain = "\0".join([
        "UU src/app.py",
        "AA new.txt",
        "DD gone.txt",
        "M  clean.txt",
        "UD deleted_by_them.txt",
        "DU deleted_by_us.txt",
        "AU added_by_us.txt",
        "UA added_by_them.txt",
        "?? untracked.txt",
        "",
    ])

    assert conflicted_files(porcelain) == [
        "src/app.py",
        "new.txt",
        "gone.txt",
        "deleted_by_them.txt",
        "deleted_by_us.txt",
        "added_by_us.txt",
        "added_by_them.txt",
    ]


def test_conflicted_files_keeps_paths_verbatim():
    porcelain = "\0".join([
        "R  notes.txt",
        "UU-notes.txt",
        "UU docs/read me.md",
        "UU données.txt",
        "",
    ])

    # UU-notes.txt is the rename source, not a status line
    assert conflicted_files(porcelain) == ["docs/read me.md", "données.txt"]


def test_conflicted_files_empty_status():
    assert conflicted_files("") == []


@pytest.mark.parametrize(
    "code, unmerged",
    [
        ("UU", True),
        ("UD", True),
        ("DU", True),
        ("AU", True),
        ("UA", True),
        ("AA", True),
        ("DD", True),
        ("M ", False),
        ("A ", False),
        (" D", False),
        ("??", False),
    ],
)
def test_is_unmerged(code, unmerged):
    assert is_unmerged(code) is unmerged


def test_unmerged_paths_from_diff_output():
    output = "src/app.py\0docs/read me.md\0"

    assert unmerged_paths(output) == ["src/app.py", "docs/read me.md"]
    assert unmerged_paths("") == []

"""Conflict marker parsing and porcelain status inspection."""

from dataclasses import dataclass, field

OURS_MARKER = "<<<<<<<"
BASE_MARKER = "|||||||"
SEPARATOR = "======="
THEIRS_MARKER = ">>>>>>>"

# Unmerged porcelain XY codes besides those containing U
BOTH_SIDES_CODES = ("AA", "DD")


@dataclass
class ConflictRegion:
    """One marker triad inside a conflicted file."""

    ours: str
    theirs: str
    base: str | None = None
    ours_ref: str = "ours"
    theirs_ref: str = "theirs"
    context_before: list[str] = field(default_factory=list)
    context_after: list[str] = field(default_factory=list)


def has_conflict_markers(content: str) -> bool:
    """True when any line opens a conflict region."""
    return any(
        line.startswith(OURS_MARKER) for line in content.splitlines()
    )


def _find(lines: list[str], start: int, marker: str, stop: str | None = None):
    for j in range(start, len(lines)):
        if lines[j].startswith(marker):
            return j
        if stop and lines[j].startswith(stop):
            return None
    return None


def parse(content: str, context_lines: int = 3) -> list[ConflictRegion]:
    """Split file content into its conflict regions, in file order.

    Handles both merge and diff3 marker styles.

    Raises:
        ValueError: If a region is missing its separator or end marker
    """
    regions = []
    lines = content.splitlines(keepends=True)
    i = 0

    while i < len(lines):
        if not lines[i].startswith(OURS_MARKER):
            i += 1
            continue

        start = i
        ours_ref = lines[i][len(OURS_MARKER):].strip()
        base_idx = _find(lines, i + 1, BASE_MARKER, stop=SEPARATOR)
        sep_idx = _find(lines, (base_idx or i) + 1, SEPARATOR)
        if sep_idx is None:
            raise ValueError(f"Malformed conflict at line {i + 1}: no separator")
        end_idx = _find(lines, sep_idx + 1, THEIRS_MARKER)
        if end_idx is None:
            raise ValueError(f"Malformed conflict at line {i + 1}: no end marker")

        ours_end = base_idx if base_idx is not None else sep_idx
        base = (
            "".join(lines[base_idx + 1:sep_idx]).rstrip("\r\n")
            if base_idx is not None
            else None
        )
        regions.append(ConflictRegion(
            ours="".join(lines[start + 1:ours_end]).rstrip("\r\n"),
            theirs="".join(lines[sep_idx + 1:end_idx]).rstrip("\r\n"),
            base=base,
            ours_ref=ours_ref or "ours",
            theirs_ref=lines[end_idx][len(THEIRS_MARKER):].strip() or "theirs",
            context_before=[
                line.rstrip("\r\n")
                for line in lines[max(0, start - context_lines):start]
            ],
            context_after=[
                line.rstrip("\r\n")
                for line in lines[end_idx + 1:end_idx + 1 + context_lines]
            ],
        ))
        i = end_idx + 1

    return regions


def join_sides(regions: list[ConflictRegion]) -> tuple[str, str]:
    """Return (theirs, ours) with each side's segments joined in order."""
    theirs = "\n...\n".join(r.theirs for r in regions)
    ours = "\n...\n".join(r.ours for r in regions)
    return theirs, ours


def is_unmerged(code: str) -> bool:
    return "U" in code or code in BOTH_SIDES_CODES


def conflicted_files(porcelain: str) -> list[str]:
    """Unmerged paths from `git status --porcelain -z` output.

    Covers every unmerged state (UU, AA, DD, AU, UA, DU, UD). Paths are
    NUL-terminated and never quoted; a rename or copy entry is followed
    by its source path, which is skipped.
    """
    files = []
    entries = iter(porcelain.split("\0"))
    for entry in entries:
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        if "R" in code or "C" in code:
            next(entries, None)
        if is_unmerged(code):
            files.append(path)
    return files


def unmerged_paths(output: str) -> list[str]:
    """Paths from `git diff --name-only --diff-filter=U -z` output."""
    return [path for path in output.split("\0") if path]

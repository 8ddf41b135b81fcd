"""
Diff Engine - LCS line diff and its three renderings

============================================================================
USAGE
============================================================================

    >>> edits = compute_diff(['a', 'b', 'c'], ['a', 'x', 'c'])
    [common(0,0), delete(1), add(1), common(2,2)]

    >>> print(format_unified(['a', 'b', 'c'], ['a', 'x', 'c'], edits,
    ...                      'old.txt', 'new.txt', context=1))
    --- old.txt
    +++ new.txt
    @@ -1,3 +1,3 @@
     a
    -b
    +x
     c

============================================================================
ALGORITHM
============================================================================

    1. Comparison copies are normalized (case / whitespace flags) and,
       with ignore_blank_lines, blank lines are filtered out. An index map
       keeps the position of every compared line in the ORIGINAL input,
       which is what gets rendered. The filtered blank lines are merged
       back into the edit script afterwards; groups made only of them are
       not reported on their own.
    2. Common prefix and suffix are matched directly, the LCS table is
       built over the remaining middle: lcs[i][j] = LCS(a[:i], b[:j]).
    3. Backtrack from [m, n]: equal lines extend the LCS (common); else
       an add is taken when lcs[i][j-1] >= lcs[i-1][j], otherwise a delete.
       Inside a change region this yields deletes before adds in forward
       order.

============================================================================
FORMATS
============================================================================

    normal    2c2 / 3a4,5 / 4,6d3  with '< ', '> ', '---'
    unified   ---/+++ headers, '@@ -s,c +s,c @@', ' ', '-', '+'
    context   ***/--- headers, '***************', '*** a,b ****' old block,
              '--- c,d ----' new block, '  ', '- ', '+ ', '! '

    Hunks (unified / context) merge change groups separated by at most
    2 * context common lines. A side with no lines in a hunk reports the
    number of the line before it as its start (0 at top of file).
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

from .constants import DEFAULT_DIFF_CONTEXT


# ============================================================================
# DATA TYPES
# ============================================================================

class EditKind(Enum):
    COMMON = 'common'
    ADD = 'add'
    DELETE = 'delete'


@dataclass(frozen=True)
class DiffEdit:
    """
    One edit script record.

    old_index / new_index are 0-based positions in the original inputs;
    COMMON has both, DELETE only old_index, ADD only new_index. blank marks
    a DELETE / ADD of a line that ignore_blank_lines left out of the
    comparison.
    """
    kind: EditKind
    old_index: Optional[int] = None
    new_index: Optional[int] = None
    blank: bool = False

    def __repr__(self):
        if self.kind is EditKind.COMMON:
            return f"common({self.old_index},{self.new_index})"
        if self.kind is EditKind.ADD:
            return f"add({self.new_index})"
        return f"delete({self.old_index})"


class DiffFormat(Enum):
    NORMAL = 'normal'
    UNIFIED = 'unified'
    CONTEXT = 'context'


@dataclass
class DiffOptions:
    """Comparison and rendering flags (diff -i -w -b -B -u -c -q)"""
    ignore_case: bool = False
    ignore_all_space: bool = False
    ignore_space_change: bool = False
    ignore_blank_lines: bool = False
    format: DiffFormat = DiffFormat.NORMAL
    context: int = DEFAULT_DIFF_CONTEXT
    brief: bool = False


# ============================================================================
# NORMALIZATION
# ============================================================================

_WHITESPACE = re.compile(r'\s+')


def normalize_line(line: str, options: DiffOptions) -> str:
    """Comparison copy of a line"""
    if options.ignore_case:
        line = line.lower()
    if options.ignore_all_space:
        line = _WHITESPACE.sub('', line)
    elif options.ignore_space_change:
        line = _WHITESPACE.sub(' ', line).strip()
    return line


def _comparison_view(lines: Sequence[str], options: DiffOptions) -> Tuple[List[str], List[int]]:
    """(normalized lines, original index of each)"""
    view = []
    index_map = []
    for index, line in enumerate(lines):
        if options.ignore_blank_lines and not line.strip():
            continue
        view.append(normalize_line(line, options))
        index_map.append(index)
    return view, index_map


def split_lines(text: str) -> List[str]:
    """Split file content into lines, ignoring one trailing newline"""
    if text == '':
        return []
    if text.endswith('\n'):
        text = text[:-1]
    return text.split('\n')


# ============================================================================
# LCS
# ============================================================================

def compute_diff(a: Sequence[str], b: Sequence[str]) -> List[DiffEdit]:
    """
    Edit script turning a into b, in original order.

    O(m*n) time and space over the lines between the common prefix and
    suffix.
    """
    m, n = len(a), len(b)

    prefix = 0
    while prefix < m and prefix < n and a[prefix] == b[prefix]:
        prefix += 1
    suffix = 0
    while (suffix < m - prefix and suffix < n - prefix
           and a[m - 1 - suffix] == b[n - 1 - suffix]):
        suffix += 1

    mid_a = a[prefix:m - suffix]
    mid_b = b[prefix:n - suffix]
    rows, cols = len(mid_a), len(mid_b)

    lcs = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(1, rows + 1):
        row, above = lcs[i], lcs[i - 1]
        line = mid_a[i - 1]
        for j in range(1, cols + 1):
            if line == mid_b[j - 1]:
                row[j] = above[j - 1] + 1
            else:
                row[j] = row[j - 1] if row[j - 1] >= above[j] else above[j]

    backwards = []
    i, j = rows, cols
    while i > 0 or j > 0:
        if i > 0 and j > 0 and mid_a[i - 1] == mid_b[j - 1]:
            backwards.append(DiffEdit(EditKind.COMMON, prefix + i - 1, prefix + j - 1))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or lcs[i][j - 1] >= lcs[i - 1][j]):
            backwards.append(DiffEdit(EditKind.ADD, new_index=prefix + j - 1))
            j -= 1
        else:
            backwards.append(DiffEdit(EditKind.DELETE, old_index=prefix + i - 1))
            i -= 1

    edits = [DiffEdit(EditKind.COMMON, k, k) for k in range(prefix)]
    edits.extend(reversed(backwards))
    edits.extend(DiffEdit(EditKind.COMMON, m - suffix + k, n - suffix + k) for k in range(suffix))
    return edits


def diff_lines(a: Sequence[str], b: Sequence[str],
               options: Optional[DiffOptions] = None) -> List[DiffEdit]:
    """
    Edit script honouring the normalization flags.

    Indices in the result refer to the original (unnormalized) lines.
    """
    options = options or DiffOptions()
    view_a, map_a = _comparison_view(a, options)
    view_b, map_b = _comparison_view(b, options)

    remapped = []
    for edit in compute_diff(view_a, view_b):
        remapped.append(DiffEdit(
            edit.kind,
            map_a[edit.old_index] if edit.old_index is not None else None,
            map_b[edit.new_index] if edit.new_index is not None else None,
        ))
    if options.ignore_blank_lines:
        remapped = _restore_blank_lines(remapped, len(a), len(b), set(map_a), set(map_b))
    return remapped


def _restore_blank_lines(edits: Sequence[DiffEdit], old_total: int, new_total: int,
                         kept_old: Set[int], kept_new: Set[int]) -> List[DiffEdit]:
    """
    Put the lines filtered out by ignore_blank_lines back into the script.

    Filtered lines facing each other become COMMON, the rest become blank
    DELETE / ADD edits, so every original index appears exactly once and
    hunk positions line up with the real files.
    """
    restored = []
    old_next = new_next = 0

    def filtered_run(start: int, total: int, kept: Set[int]) -> int:
        end = start
        while end < total and end not in kept:
            end += 1
        return end - start

    def fill(old_upto: int, new_upto: int):
        nonlocal old_next, new_next
        while old_next < old_upto and new_next < new_upto:
            restored.append(DiffEdit(EditKind.COMMON, old_next, new_next))
            old_next += 1
            new_next += 1
        while old_next < old_upto:
            restored.append(DiffEdit(EditKind.DELETE, old_index=old_next, blank=True))
            old_next += 1
        while new_next < new_upto:
            restored.append(DiffEdit(EditKind.ADD, new_index=new_next, blank=True))
            new_next += 1

    for edit in edits:
        if edit.kind is EditKind.COMMON:
            fill(edit.old_index, edit.new_index)
            old_next = edit.old_index + 1
            new_next = edit.new_index + 1
        elif edit.kind is EditKind.DELETE:
            gap = edit.old_index - old_next
            fill(edit.old_index, new_next + min(gap, filtered_run(new_next, new_total, kept_new)))
            old_next = edit.old_index + 1
        else:
            gap = edit.new_index - new_next
            fill(old_next + min(gap, filtered_run(old_next, old_total, kept_old)), edit.new_index)
            new_next = edit.new_index + 1
        restored.append(edit)

    fill(old_total, new_total)
    return restored


def is_identical(edits: Sequence[DiffEdit]) -> bool:
    return all(edit.kind is EditKind.COMMON for edit in edits)


# ============================================================================
# GROUPING
# ============================================================================

@dataclass
class _Hunk:
    start: int              # first edit (inclusive)
    end: int                # last edit (exclusive)
    old_first: int          # 1-based first old line, or line before when empty
    old_count: int
    new_first: int
    new_count: int


def _change_groups(edits: Sequence[DiffEdit]) -> List[Tuple[int, int]]:
    """[start, end) edit ranges of consecutive non-common edits"""
    groups = []
    i = 0
    while i < len(edits):
        if edits[i].kind is EditKind.COMMON:
            i += 1
            continue
        start = i
        while i < len(edits) and edits[i].kind is not EditKind.COMMON:
            i += 1
        groups.append((start, i))
    return groups


def _reported_groups(edits: Sequence[DiffEdit]) -> List[Tuple[int, int]]:
    """Change groups that are not made only of ignored blank lines"""
    return [
        (start, end) for start, end in _change_groups(edits)
        if not all(edit.blank for edit in edits[start:end])
    ]


def _positions_before(edits: Sequence[DiffEdit], index: int) -> Tuple[int, int]:
    """Number (1-based) of the last old / new line before edits[index]"""
    old_before = new_before = 0
    for edit in reversed(edits[:index]):
        if old_before == 0 and edit.old_index is not None:
            old_before = edit.old_index + 1
        if new_before == 0 and edit.new_index is not None:
            new_before = edit.new_index + 1
        if old_before and new_before:
            break
    return old_before, new_before


def _describe(edits: Sequence[DiffEdit], start: int, end: int) -> _Hunk:
    olds = [e.old_index for e in edits[start:end] if e.old_index is not None]
    news = [e.new_index for e in edits[start:end] if e.new_index is not None]
    old_before, new_before = _positions_before(edits, start)
    return _Hunk(
        start=start,
        end=end,
        old_first=olds[0] + 1 if olds else old_before,
        old_count=len(olds),
        new_first=news[0] + 1 if news else new_before,
        new_count=len(news),
    )


def build_hunks(edits: Sequence[DiffEdit], context: int) -> List[_Hunk]:
    """
    Merge change groups closer than 2*context and pad with context.

    Blank-only groups never start a hunk but are shown when a hunk covers them.
    """
    groups = _reported_groups(edits)
    if not groups:
        return []
    context = max(context, 0)

    merged = [list(groups[0])]
    for start, end in groups[1:]:
        if start - merged[-1][1] <= 2 * context:
            merged[-1][1] = end
        else:
            merged.append([start, end])

    return [
        _describe(edits, max(0, start - context), min(len(edits), end + context))
        for start, end in merged
    ]


# ============================================================================
# RENDERERS
# ============================================================================

def _normal_range(first: int, last: int) -> str:
    return str(first) if first == last else f"{first},{last}"


def format_normal(a: Sequence[str], b: Sequence[str], edits: Sequence[DiffEdit]) -> str:
    """POSIX default diff output"""
    output = []
    for start, end in _reported_groups(edits):
        group = edits[start:end]
        deletes = [e.old_index for e in group if e.kind is EditKind.DELETE]
        adds = [e.new_index for e in group if e.kind is EditKind.ADD]
        old_before, new_before = _positions_before(edits, start)

        if deletes and adds:
            output.append(f"{_normal_range(deletes[0] + 1, deletes[-1] + 1)}c"
                          f"{_normal_range(adds[0] + 1, adds[-1] + 1)}")
        elif deletes:
            output.append(f"{_normal_range(deletes[0] + 1, deletes[-1] + 1)}d{new_before}")
        else:
            output.append(f"{old_before}a{_normal_range(adds[0] + 1, adds[-1] + 1)}")

        output.extend(f"< {a[i]}" for i in deletes)
        if deletes and adds:
            output.append('---')
        output.extend(f"> {b[i]}" for i in adds)
    return '\n'.join(output)


def format_unified(a: Sequence[str], b: Sequence[str], edits: Sequence[DiffEdit],
                   file1: str, file2: str, context: int = DEFAULT_DIFF_CONTEXT) -> str:
    hunks = build_hunks(edits, context)
    if not hunks:
        return ''

    output = [f"--- {file1}", f"+++ {file2}"]
    for hunk in hunks:
        output.append(f"@@ -{hunk.old_first},{hunk.old_count} +{hunk.new_first},{hunk.new_count} @@")
        for edit in edits[hunk.start:hunk.end]:
            if edit.kind is EditKind.COMMON:
                output.append(f" {a[edit.old_index]}")
            elif edit.kind is EditKind.DELETE:
                output.append(f"-{a[edit.old_index]}")
            else:
                output.append(f"+{b[edit.new_index]}")
    return '\n'.join(output)


def _context_range(first: int, count: int) -> str:
    # Empty side: first already holds the line before the hunk
    if count <= 1:
        return str(first)
    return f"{first},{first + count - 1}"


def format_context(a: Sequence[str], b: Sequence[str], edits: Sequence[DiffEdit],
                   file1: str, file2: str, context: int = DEFAULT_DIFF_CONTEXT) -> str:
    hunks = build_hunks(edits, context)
    if not hunks:
        return ''

    output = [f"*** {file1}", f"--- {file2}"]
    for hunk in hunks:
        window = edits[hunk.start:hunk.end]

        # Groups holding both deletes and adds are marked '!' on both sides
        changed = set()
        for start, end in _change_groups(window):
            kinds = {e.kind for e in window[start:end]}
            if len(kinds) == 2:
                changed.update(range(start, end))

        output.append('***************')
        output.append(f"*** {_context_range(hunk.old_first, hunk.old_count)} ****")
        if any(e.kind is EditKind.DELETE for e in window):
            for pos, edit in enumerate(window):
                if edit.kind is EditKind.COMMON:
                    output.append(f"  {a[edit.old_index]}")
                elif edit.kind is EditKind.DELETE:
                    marker = '!' if pos in changed else '-'
                    output.append(f"{marker} {a[edit.old_index]}")

        output.append(f"--- {_context_range(hunk.new_first, hunk.new_count)} ----")
        if any(e.kind is EditKind.ADD for e in window):
            for pos, edit in enumerate(window):
                if edit.kind is EditKind.COMMON:
                    output.append(f"  {b[edit.new_index]}")
                elif edit.kind is EditKind.ADD:
                    marker = '!' if pos in changed else '+'
                    output.append(f"{marker} {b[edit.new_index]}")
    return '\n'.join(output)


# ============================================================================
# ENTRY POINT
# ============================================================================

def diff_texts(a: Sequence[str], b: Sequence[str], file1: str = 'a', file2: str = 'b',
               options: Optional[DiffOptions] = None) -> str:
    """
    Full diff: normalization, identical short-circuit, brief, rendering.

    Returns '' when the inputs compare equal.
    """
    options = options or DiffOptions()
    view_a, _ = _comparison_view(a, options)
    view_b, _ = _comparison_view(b, options)
    if view_a == view_b:
        return ''
    if options.brief:
        return f"Files {file1} and {file2} differ"

    edits = diff_lines(a, b, options)
    if options.format is DiffFormat.UNIFIED:
        return format_unified(a, b, edits, file1, file2, options.context)
    if options.format is DiffFormat.CONTEXT:
        return format_context(a, b, edits, file1, file2, options.context)
    return format_normal(a, b, edits)

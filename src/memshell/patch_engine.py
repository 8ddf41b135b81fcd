"""
Patch Engine - parse diff output back into hunks and apply them

============================================================================
USAGE
============================================================================

    >>> patch = parse_patch(unified_text)
    >>> patch.target_file
    'new.txt'
    >>> apply_patch(['a', 'b', 'c'], patch.hunks)
    ['a', 'x', 'c']
    >>> apply_patch(['a', 'x', 'c'], patch.hunks, reverse=True)
    ['a', 'b', 'c']

============================================================================
RECOGNIZED HUNKS
============================================================================

    unified   --- old / +++ new headers, @@ -s[,c] +s[,c] @@ bodies read by
              their declared counts (a missing count means 1)
    normal    NaM[,M]  N[,N]dM  N[,N]cM[,M] with '< ' / '---' / '> ' bodies
    context   *** old / --- new headers, '***************' separators,
              '*** a[,b] ****' / '--- c[,d] ----' blocks; a block with no
              changes may be omitted

    Lines that belong to no hunk (mail headers, 'diff -u a b' lines,
    '\\ No newline at end of file') are skipped.

============================================================================
APPLICATION
============================================================================

    Every hunk is reduced to a Splice:
        old_index, old_lines  -> new_index, new_lines
    (indices 0-based; an empty side's index is the insertion point).
    Reversal swaps the two sides. Splices are applied from the highest
    old_index down so earlier indices stay valid. Each splice is tried at
    its declared index first, then at the nearest offset where old_lines
    match; no match raises HunkFailed.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .constants import PATCH_MAX_OFFSET
from .errors import HunkFailed, MalformedPatch, UnsupportedPatchFormat

logger = logging.getLogger('PatchEngine')

UNIFIED_HEADER = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')
NORMAL_HEADER = re.compile(r'^(\d+)(?:,(\d+))?([adc])(\d+)(?:,(\d+))?$')
CONTEXT_SEPARATOR = re.compile(r'^\*{15}')
CONTEXT_OLD_HEADER = re.compile(r'^\*\*\* (\d+)(?:,(\d+))? \*\*\*\*\s*$')
CONTEXT_NEW_HEADER = re.compile(r'^--- (\d+)(?:,(\d+))? ----\s*$')


# ============================================================================
# HUNK TYPES
# ============================================================================

class HunkLineKind(Enum):
    CONTEXT = 'context'
    ADD = 'add'
    DELETE = 'delete'


@dataclass
class HunkLine:
    kind: HunkLineKind
    text: str


@dataclass
class Splice:
    """Normalized hunk: replace old_lines at old_index by new_lines"""
    old_index: int
    old_lines: List[str]
    new_index: int
    new_lines: List[str]

    def reversed(self) -> 'Splice':
        return Splice(self.new_index, self.new_lines, self.old_index, self.old_lines)


def _index(start: int, count: int) -> int:
    # Empty sides name the line AFTER which content goes
    return start - 1 if count > 0 else start


@dataclass
class UnifiedHunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: List[HunkLine] = field(default_factory=list)

    def to_splice(self) -> Splice:
        old = [l.text for l in self.lines if l.kind is not HunkLineKind.ADD]
        new = [l.text for l in self.lines if l.kind is not HunkLineKind.DELETE]
        return Splice(_index(self.old_start, len(old)), old, _index(self.new_start, len(new)), new)


@dataclass
class NormalHunk:
    operation: str                  # 'a', 'd' or 'c'
    old_start: int
    old_end: int
    new_start: int
    new_end: int
    old_lines: List[str] = field(default_factory=list)
    new_lines: List[str] = field(default_factory=list)

    def to_splice(self) -> Splice:
        return Splice(
            _index(self.old_start, len(self.old_lines)), list(self.old_lines),
            _index(self.new_start, len(self.new_lines)), list(self.new_lines),
        )


@dataclass
class ContextHunk:
    old_start: int
    old_end: int
    new_start: int
    new_end: int
    old_lines: List[HunkLine] = field(default_factory=list)
    new_lines: List[HunkLine] = field(default_factory=list)

    def to_splice(self) -> Splice:
        old_block = self.old_lines
        new_block = self.new_lines
        # An omitted block equals the other block's context lines
        if not old_block:
            old_block = [l for l in new_block if l.kind is HunkLineKind.CONTEXT]
        if not new_block:
            new_block = [l for l in old_block if l.kind is HunkLineKind.CONTEXT]
        old = [l.text for l in old_block]
        new = [l.text for l in new_block]
        return Splice(_index(self.old_start, len(old)), old, _index(self.new_start, len(new)), new)


PatchHunk = Union[UnifiedHunk, NormalHunk, ContextHunk]


@dataclass
class ParsedPatch:
    source_file: Optional[str] = None
    target_file: Optional[str] = None
    hunks: List[PatchHunk] = field(default_factory=list)


# ============================================================================
# FILENAMES
# ============================================================================

def extract_filename(header: str) -> str:
    """'--- a/x.txt\t2024-01-01 ...' -> 'a/x.txt'"""
    for prefix in ('--- ', '+++ ', '*** '):
        if header.startswith(prefix):
            header = header[len(prefix):]
            break
    name = header.split('\t', 1)[0].strip()
    if len(name) >= 2 and name[0] == name[-1] and name[0] in '\'"':
        name = name[1:-1]
    return name


def strip_path_components(name: str, count: int) -> str:
    """
    patch -pN: drop the first count '/'-separated components.

    If count is at least the number of components, the basename is kept.
    """
    if count <= 0:
        return name
    parts = name.split('/')
    if count >= len(parts):
        return parts[-1]
    return '/'.join(parts[count:])


# ============================================================================
# PARSING
# ============================================================================

class _PatchReader:
    """Cursor over patch lines"""

    def __init__(self, text: str):
        self.lines = [line[:-1] if line.endswith('\r') else line for line in text.split('\n')]
        self.pos = 0

    def current(self) -> Optional[str]:
        return self.lines[self.pos] if self.pos < len(self.lines) else None

    def peek(self, offset: int = 1) -> Optional[str]:
        pos = self.pos + offset
        return self.lines[pos] if pos < len(self.lines) else None

    def at_end(self) -> bool:
        return self.pos >= len(self.lines)


def _count(value: Optional[str], default: int = 1) -> int:
    return int(value) if value is not None else default


def _read_unified(reader: _PatchReader, match) -> UnifiedHunk:
    hunk = UnifiedHunk(int(match.group(1)), _count(match.group(2)),
                       int(match.group(3)), _count(match.group(4)))
    old_left, new_left = hunk.old_count, hunk.new_count
    reader.pos += 1

    while old_left > 0 or new_left > 0:
        line = reader.current()
        if line is None:
            raise MalformedPatch(
                f"patch: unexpected end of hunk at line {reader.pos} "
                f"(expected {old_left} old / {new_left} new lines)")
        if line.startswith('\\'):
            reader.pos += 1
            continue
        marker, text = (line[:1], line[1:]) if line else (' ', '')
        if marker == ' ' and old_left > 0 and new_left > 0:
            hunk.lines.append(HunkLine(HunkLineKind.CONTEXT, text))
            old_left -= 1
            new_left -= 1
        elif marker == '-' and old_left > 0:
            hunk.lines.append(HunkLine(HunkLineKind.DELETE, text))
            old_left -= 1
        elif marker == '+' and new_left > 0:
            hunk.lines.append(HunkLine(HunkLineKind.ADD, text))
            new_left -= 1
        else:
            raise MalformedPatch(f"patch: malformed hunk line {reader.pos + 1}: {line!r}")
        reader.pos += 1

    while reader.current() is not None and reader.current().startswith('\\'):
        reader.pos += 1
    return hunk


def _read_normal(reader: _PatchReader, match) -> NormalHunk:
    old_start = int(match.group(1))
    old_end = _count(match.group(2), old_start)
    operation = match.group(3)
    new_start = int(match.group(4))
    new_end = _count(match.group(5), new_start)
    hunk = NormalHunk(operation, old_start, old_end, new_start, new_end)
    reader.pos += 1

    while reader.current() is not None and reader.current().startswith('<'):
        hunk.old_lines.append(reader.current()[2:])
        reader.pos += 1
    if reader.current() == '---':
        reader.pos += 1
    while reader.current() is not None and reader.current().startswith('>'):
        hunk.new_lines.append(reader.current()[2:])
        reader.pos += 1

    expected_old = old_end - old_start + 1 if operation in 'dc' else 0
    expected_new = new_end - new_start + 1 if operation in 'ac' else 0
    if len(hunk.old_lines) != expected_old or len(hunk.new_lines) != expected_new:
        raise MalformedPatch(f"patch: malformed normal hunk '{match.group(0)}'")
    return hunk


_CONTEXT_MARKERS = {
    '  ': HunkLineKind.CONTEXT,
    '- ': HunkLineKind.DELETE,
    '+ ': HunkLineKind.ADD,
    '! ': None,     # resolved per block
}


def _read_context_block(reader: _PatchReader, changed_kind: HunkLineKind) -> List[HunkLine]:
    block = []
    while True:
        line = reader.current()
        if line is None or CONTEXT_NEW_HEADER.match(line) or CONTEXT_SEPARATOR.match(line):
            return block
        marker = line[:2]
        if marker not in _CONTEXT_MARKERS:
            return block
        kind = _CONTEXT_MARKERS[marker] or changed_kind
        block.append(HunkLine(kind, line[2:]))
        reader.pos += 1


def _read_context(reader: _PatchReader) -> ContextHunk:
    reader.pos += 1
    old_header = CONTEXT_OLD_HEADER.match(reader.current() or '')
    if not old_header:
        raise MalformedPatch(f"patch: malformed context hunk at line {reader.pos + 1}")
    reader.pos += 1
    old_lines = _read_context_block(reader, HunkLineKind.DELETE)

    new_header = CONTEXT_NEW_HEADER.match(reader.current() or '')
    if not new_header:
        raise MalformedPatch(f"patch: missing '--- ' block in context hunk at line {reader.pos + 1}")
    reader.pos += 1
    new_lines = _read_context_block(reader, HunkLineKind.ADD)

    old_start = int(old_header.group(1))
    new_start = int(new_header.group(1))
    return ContextHunk(
        old_start, _count(old_header.group(2), old_start),
        new_start, _count(new_header.group(2), new_start),
        old_lines, new_lines,
    )


def parse_patch_set(text: str) -> List[ParsedPatch]:
    """
    Parse every file section of a patch.

    Raises:
        UnsupportedPatchFormat: no hunk was recognized
        MalformedPatch: a hunk body does not match its header
    """
    reader = _PatchReader(text)
    patches: List[ParsedPatch] = []
    current = ParsedPatch()

    def start_file(source: str, target: str):
        nonlocal current
        if current.hunks:
            patches.append(current)
        current = ParsedPatch(source, target)

    while not reader.at_end():
        line = reader.current()
        following = reader.peek() or ''

        match = UNIFIED_HEADER.match(line)
        if match:
            current.hunks.append(_read_unified(reader, match))
            continue

        if CONTEXT_SEPARATOR.match(line) and CONTEXT_OLD_HEADER.match(following):
            current.hunks.append(_read_context(reader))
            continue

        if line.startswith('--- ') and following.startswith('+++ '):
            start_file(extract_filename(line), extract_filename(following))
            reader.pos += 2
            continue

        if (line.startswith('*** ') and following.startswith('--- ')
                and not CONTEXT_OLD_HEADER.match(line)):
            start_file(extract_filename(line), extract_filename(following))
            reader.pos += 2
            continue

        match = NORMAL_HEADER.match(line)
        if match:
            current.hunks.append(_read_normal(reader, match))
            continue

        reader.pos += 1

    if current.hunks:
        patches.append(current)
    if not patches:
        raise UnsupportedPatchFormat("patch: only garbage was found in the patch input")

    logger.debug(f"Parsed {len(patches)} file section(s), "
                 f"{sum(len(p.hunks) for p in patches)} hunk(s)")
    return patches


def parse_patch(text: str) -> ParsedPatch:
    """Parse a single-file patch (hunks of all sections are combined)"""
    patches = parse_patch_set(text)
    first = patches[0]
    return ParsedPatch(
        first.source_file,
        first.target_file,
        [hunk for patch in patches for hunk in patch.hunks],
    )


# ============================================================================
# APPLICATION
# ============================================================================

def _matches_at(lines: List[str], position: int, expected: List[str]) -> bool:
    if position < 0 or position + len(expected) > len(lines):
        return False
    return lines[position:position + len(expected)] == expected


def _locate(lines: List[str], splice: Splice, max_offset: int) -> Optional[int]:
    """Declared position if it matches, else the nearest matching offset"""
    declared = min(splice.old_index, len(lines))
    if not splice.old_lines:
        return declared
    if _matches_at(lines, declared, splice.old_lines):
        return declared
    for offset in range(1, max_offset + 1):
        for candidate in (declared - offset, declared + offset):
            if _matches_at(lines, candidate, splice.old_lines):
                return candidate
        if declared - offset < 0 and declared + offset > len(lines):
            break
    return None


def apply_patch(lines: List[str], hunks: List[PatchHunk], reverse: bool = False,
                max_offset: int = PATCH_MAX_OFFSET) -> List[str]:
    """
    Apply hunks to lines and return the patched copy.

    Raises:
        HunkFailed: a hunk's expected lines are not found
    """
    splices = [(number, hunk.to_splice()) for number, hunk in enumerate(hunks, start=1)]
    if reverse:
        splices = [(number, splice.reversed()) for number, splice in splices]
    splices.sort(key=lambda item: item[1].old_index, reverse=True)

    result = list(lines)
    for number, splice in splices:
        position = _locate(result, splice, max_offset)
        if position is None:
            raise HunkFailed(number, splice.old_index + 1)
        if position != splice.old_index and splice.old_lines:
            logger.warning(f"Hunk #{number} succeeded at {position + 1} "
                           f"(offset {position - splice.old_index} lines)")
        result[position:position + len(splice.old_lines)] = splice.new_lines
    return result


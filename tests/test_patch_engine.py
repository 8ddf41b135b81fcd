"""
Patch engine tests: parsing all three formats, applying, reversing
"""
import pytest

from memshell.diff_engine import DiffFormat, DiffOptions, diff_texts
from memshell.errors import HunkFailed, MalformedPatch, UnsupportedPatchFormat
from memshell.patch_engine import (
    ContextHunk, NormalHunk, Splice, UnifiedHunk, apply_patch, extract_filename,
    parse_patch, parse_patch_set, strip_path_components
)

OLD = ['a', 'b', 'c']
NEW = ['a', 'x', 'c']


def make_diff(a, b, fmt, context=3):
    return diff_texts(a, b, 'old.txt', 'new.txt', DiffOptions(format=fmt, context=context))


# ============================================================================
# ROUND TRIPS
# ============================================================================

@pytest.mark.parametrize('fmt', list(DiffFormat))
def test_apply_and_reverse_every_format(fmt):
    patch = parse_patch(make_diff(OLD, NEW, fmt))
    assert apply_patch(OLD, patch.hunks) == NEW
    assert apply_patch(NEW, patch.hunks, reverse=True) == OLD


def test_multi_hunk_round_trip():
    a = [f"line {n}" for n in range(1, 21)]
    b = list(a)
    b[1] = 'changed 2'
    b.insert(10, 'inserted')
    del b[18]
    for fmt in (DiffFormat.UNIFIED, DiffFormat.CONTEXT, DiffFormat.NORMAL):
        patch = parse_patch(make_diff(a, b, fmt, context=1))
        assert apply_patch(a, patch.hunks) == b
        assert apply_patch(b, patch.hunks, reverse=True) == a


def test_add_and_delete_at_edges():
    assert apply_patch([], parse_patch('0a1\n> x').hunks) == ['x']
    assert apply_patch(['x'], parse_patch('1d0\n< x').hunks) == []
    assert apply_patch(['x'], parse_patch('1d0\n< x').hunks, reverse=True) == ['x', 'x']
    assert apply_patch([], parse_patch('1d0\n< x').hunks, reverse=True) == ['x']
    assert apply_patch(['a', 'b'], parse_patch('2a3,4\n> c\n> d').hunks) == ['a', 'b', 'c', 'd']


def test_create_from_empty_unified():
    patch = parse_patch(make_diff([], ['one', 'two'], DiffFormat.UNIFIED))
    assert apply_patch([], patch.hunks) == ['one', 'two']


# ============================================================================
# PARSING
# ============================================================================

def test_parse_unified_headers_and_hunk():
    patch = parse_patch('--- a/old.txt\t2024-01-01\n+++ b/new.txt\n@@ -1,3 +1,3 @@\n a\n-b\n+x\n c\n')
    assert patch.source_file == 'a/old.txt'
    assert patch.target_file == 'b/new.txt'
    hunk = patch.hunks[0]
    assert isinstance(hunk, UnifiedHunk)
    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (1, 3, 1, 3)
    assert hunk.to_splice() == Splice(0, ['a', 'b', 'c'], 0, ['a', 'x', 'c'])


def test_unified_missing_count_means_one():
    hunk = parse_patch('@@ -2 +2 @@\n-b\n+x').hunks[0]
    assert (hunk.old_count, hunk.new_count) == (1, 1)


def test_unified_skips_no_newline_marker():
    text = '@@ -1,1 +1,1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file\n'
    assert apply_patch(['a'], parse_patch(text).hunks) == ['b']


def test_parse_normal():
    hunk = parse_patch('2,3c2\n< b\n< c\n---\n> x').hunks[0]
    assert isinstance(hunk, NormalHunk)
    assert hunk.operation == 'c'
    assert (hunk.old_start, hunk.old_end, hunk.new_start, hunk.new_end) == (2, 3, 2, 2)
    assert hunk.old_lines == ['b', 'c']
    assert hunk.new_lines == ['x']


def test_parse_context():
    patch = parse_patch(make_diff(OLD, NEW, DiffFormat.CONTEXT, context=1))
    assert (patch.source_file, patch.target_file) == ('old.txt', 'new.txt')
    hunk = patch.hunks[0]
    assert isinstance(hunk, ContextHunk)
    assert hunk.to_splice() == Splice(0, ['a', 'b', 'c'], 0, ['a', 'x', 'c'])


def test_context_omitted_block_uses_other_side_context():
    patch = parse_patch(make_diff(['a'], ['a', 'b'], DiffFormat.CONTEXT))
    assert patch.hunks[0].to_splice() == Splice(0, ['a'], 0, ['a', 'b'])


def test_garbage_is_unsupported():
    with pytest.raises(UnsupportedPatchFormat):
        parse_patch_set('this is not a patch\njust text')
    with pytest.raises(UnsupportedPatchFormat):
        parse_patch_set('')


def test_truncated_hunks_are_malformed():
    with pytest.raises(MalformedPatch):
        parse_patch('@@ -1,2 +1,2 @@\n a')
    with pytest.raises(MalformedPatch):
        parse_patch('2c2\n< b')
    with pytest.raises(MalformedPatch):
        parse_patch('@@ -1,1 +1,1 @@\n?weird')


def test_leading_noise_is_skipped():
    text = 'From: someone\nSubject: fix\n\ndiff -u old.txt new.txt\n' + make_diff(OLD, NEW, DiffFormat.UNIFIED)
    assert apply_patch(OLD, parse_patch(text).hunks) == NEW


def test_patch_set_sections():
    text = '\n'.join([
        '--- a/one.txt',
        '+++ b/one.txt',
        '@@ -1 +1 @@',
        '-1',
        '+one',
        '--- a/two.txt',
        '+++ b/two.txt',
        '@@ -1 +1 @@',
        '-2',
        '+two',
    ])
    sections = parse_patch_set(text)
    assert [s.target_file for s in sections] == ['b/one.txt', 'b/two.txt']
    assert [len(s.hunks) for s in sections] == [1, 1]
    assert len(parse_patch(text).hunks) == 2


# ============================================================================
# APPLICATION
# ============================================================================

def test_hunk_applies_at_offset():
    patch = parse_patch(make_diff(OLD, NEW, DiffFormat.UNIFIED, context=1))
    shifted = ['new 1', 'new 2'] + OLD
    assert apply_patch(shifted, patch.hunks) == ['new 1', 'new 2'] + NEW


def test_hunk_failure():
    patch = parse_patch(make_diff(OLD, NEW, DiffFormat.UNIFIED, context=1))
    with pytest.raises(HunkFailed) as error:
        apply_patch(['q', 'r', 's'], patch.hunks)
    assert error.value.number == 1
    assert str(error.value) == 'patch: Hunk #1 FAILED at 1'


def test_hunk_failure_respects_max_offset():
    patch = parse_patch(make_diff(OLD, NEW, DiffFormat.UNIFIED, context=1))
    shifted = ['pad'] * 5 + OLD
    with pytest.raises(HunkFailed):
        apply_patch(shifted, patch.hunks, max_offset=2)


def test_apply_does_not_mutate_input():
    lines = list(OLD)
    apply_patch(lines, parse_patch(make_diff(OLD, NEW, DiffFormat.NORMAL)).hunks)
    assert lines == OLD


def test_splice_reversed():
    splice = Splice(1, ['b'], 2, ['x', 'y'])
    assert splice.reversed() == Splice(2, ['x', 'y'], 1, ['b'])


# ============================================================================
# FILE NAMES
# ============================================================================

def test_extract_filename():
    assert extract_filename('--- a/x.txt\t2024-01-01 10:00:00') == 'a/x.txt'
    assert extract_filename('+++ "spaced name.txt"') == 'spaced name.txt'
    assert extract_filename('*** old.txt') == 'old.txt'


def test_strip_path_components():
    assert strip_path_components('a/b/c.txt', 0) == 'a/b/c.txt'
    assert strip_path_components('a/b/c.txt', 1) == 'b/c.txt'
    assert strip_path_components('a/b/c.txt', 2) == 'c.txt'
    assert strip_path_components('a/b/c.txt', 5) == 'c.txt'

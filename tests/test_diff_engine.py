"""
Diff engine tests
"""
from memshell.diff_engine import (
    DiffFormat, DiffOptions, EditKind, build_hunks, compute_diff, diff_lines, diff_texts,
    format_context, format_normal, format_unified, is_identical, normalize_line, split_lines
)

OLD = ['a', 'b', 'c']
NEW = ['a', 'x', 'c']


def kinds(edits):
    return [edit.kind for edit in edits]


# ============================================================================
# EDIT SCRIPT
# ============================================================================

def test_compute_diff_change():
    edits = compute_diff(OLD, NEW)
    assert kinds(edits) == [EditKind.COMMON, EditKind.DELETE, EditKind.ADD, EditKind.COMMON]
    assert (edits[1].old_index, edits[2].new_index) == (1, 1)
    assert (edits[3].old_index, edits[3].new_index) == (2, 2)


def test_compute_diff_identical_and_empty():
    assert is_identical(compute_diff(OLD, OLD))
    assert compute_diff([], []) == []
    assert kinds(compute_diff([], ['x'])) == [EditKind.ADD]
    assert kinds(compute_diff(['x'], [])) == [EditKind.DELETE]


def test_edit_script_is_minimal():
    a = ['1', '2', '3', '4', '5']
    b = ['1', '3', '4', '6', '5']
    edits = compute_diff(a, b)
    assert sum(1 for e in edits if e.kind is EditKind.COMMON) == 4
    assert sum(1 for e in edits if e.kind is not EditKind.COMMON) == 2


def test_edit_script_replays_to_new():
    a = ['p', 'q', 'r', 's', 't']
    b = ['q', 'r', 'x', 't', 'u']
    rebuilt = [b[e.new_index] for e in compute_diff(a, b) if e.kind is not EditKind.DELETE]
    assert rebuilt == b


def test_split_lines():
    assert split_lines('') == []
    assert split_lines('a\nb\n') == ['a', 'b']
    assert split_lines('a\n\n') == ['a', '']


# ============================================================================
# NORMALIZATION
# ============================================================================

def test_normalize_line():
    assert normalize_line('A  B ', DiffOptions(ignore_case=True)) == 'a  b '
    assert normalize_line(' a \t b ', DiffOptions(ignore_all_space=True)) == 'ab'
    assert normalize_line(' a \t b ', DiffOptions(ignore_space_change=True)) == 'a b'


def test_ignore_flags_make_inputs_equal():
    assert diff_texts(['Hello'], ['hello'], options=DiffOptions(ignore_case=True)) == ''
    assert diff_texts(['a b'], ['ab'], options=DiffOptions(ignore_all_space=True)) == ''
    assert diff_texts(['a  b '], ['a b'], options=DiffOptions(ignore_space_change=True)) == ''
    assert diff_texts(['ab'], ['a b'], options=DiffOptions(ignore_space_change=True)) != ''
    assert diff_texts(['a', '', 'b'], ['a', 'b'], options=DiffOptions(ignore_blank_lines=True)) == ''


def test_ignore_blank_lines_reports_original_positions():
    edits = diff_lines(['a', '', 'b'], ['a', 'c'], DiffOptions(ignore_blank_lines=True))
    assert [(e.kind, e.old_index, e.new_index) for e in edits] == [
        (EditKind.COMMON, 0, 0), (EditKind.DELETE, 1, None),
        (EditKind.DELETE, 2, None), (EditKind.ADD, None, 1)
    ]
    output = diff_texts(['a', '', 'b'], ['a', 'c'], options=DiffOptions(ignore_blank_lines=True))
    assert output == '2,3c2\n< \n< b\n---\n> c'


def test_ignore_blank_lines_covers_every_line():
    options = DiffOptions(ignore_blank_lines=True)
    edits = diff_lines(['x', '', 'y'], ['x', '', 'z'], options)
    assert [(e.kind, e.old_index, e.new_index) for e in edits] == [
        (EditKind.COMMON, 0, 0), (EditKind.COMMON, 1, 1),
        (EditKind.DELETE, 2, None), (EditKind.ADD, None, 2)
    ]
    assert diff_texts(['x', ''], ['x', '', 'y'], options=options) == '2a3\n> y'

    unified = DiffOptions(ignore_blank_lines=True, format=DiffFormat.UNIFIED)
    assert diff_texts(['x', '', 'y'], ['x', '', 'z'], options=unified).split('\n')[2:] == [
        '@@ -1,3 +1,3 @@', ' x', ' ', '-y', '+z'
    ]


def test_blank_only_group_is_not_reported_alone():
    options = DiffOptions(ignore_blank_lines=True)
    assert diff_texts(['a', 'b', 'c'], ['a', '', 'b', 'x'], options=options) == '3c4\n< c\n---\n> x'


def test_ignore_case_renders_original_text():
    output = diff_texts(['Keep', 'old'], ['KEEP', 'new'], options=DiffOptions(ignore_case=True))
    assert output == '2c2\n< old\n---\n> new'


# ============================================================================
# NORMAL FORMAT
# ============================================================================

def test_normal_change():
    assert diff_texts(OLD, NEW) == '2c2\n< b\n---\n> x'


def test_normal_add_and_delete_positions():
    assert diff_texts([], ['x']) == '0a1\n> x'
    assert diff_texts(['x'], []) == '1d0\n< x'
    assert diff_texts(['a', 'b'], ['a', 'b', 'c', 'd']) == '2a3,4\n> c\n> d'
    assert diff_texts(['a', 'b', 'c', 'd'], ['a', 'd']) == '2,3d1\n< b\n< c'


def test_normal_multiple_groups():
    a = ['1', '2', '3', '4']
    b = ['0', '1', '3', '4', '5']
    edits = compute_diff(a, b)
    assert format_normal(a, b, edits) == '0a1\n> 0\n2d2\n< 2\n4a5\n> 5'


def test_identical_inputs_produce_nothing():
    for fmt in DiffFormat:
        assert diff_texts(OLD, list(OLD), options=DiffOptions(format=fmt)) == ''


def test_brief():
    assert diff_texts(OLD, NEW, 'x', 'y', DiffOptions(brief=True)) == 'Files x and y differ'
    assert diff_texts(OLD, OLD, 'x', 'y', DiffOptions(brief=True)) == ''


# ============================================================================
# UNIFIED FORMAT
# ============================================================================

def test_unified_single_hunk():
    output = format_unified(OLD, NEW, compute_diff(OLD, NEW), 'old.txt', 'new.txt', context=1)
    assert output == '\n'.join([
        '--- old.txt',
        '+++ new.txt',
        '@@ -1,3 +1,3 @@',
        ' a',
        '-b',
        '+x',
        ' c',
    ])


def test_unified_zero_context():
    output = diff_texts(OLD, NEW, 'a', 'b', DiffOptions(format=DiffFormat.UNIFIED, context=0))
    assert output.split('\n')[2:] == ['@@ -2,1 +2,1 @@', '-b', '+x']


def test_unified_empty_side_uses_line_before():
    output = diff_texts([], ['new'], 'a', 'b', DiffOptions(format=DiffFormat.UNIFIED))
    assert output.split('\n')[2:] == ['@@ -0,0 +1,1 @@', '+new']


def test_unified_hunks_merge_within_twice_context():
    a = list('abcdefghij')
    b = list('aBcdefghIj')
    merged = diff_texts(a, b, options=DiffOptions(format=DiffFormat.UNIFIED, context=3))
    assert merged.count('@@ -') == 1
    split = diff_texts(a, b, options=DiffOptions(format=DiffFormat.UNIFIED, context=2))
    headers = [line for line in split.split('\n') if line.startswith('@@')]
    assert headers == ['@@ -1,4 +1,4 @@', '@@ -7,4 +7,4 @@']


def test_build_hunks_counts():
    hunks = build_hunks(compute_diff(OLD, NEW), context=1)
    assert len(hunks) == 1
    hunk = hunks[0]
    assert (hunk.old_first, hunk.old_count, hunk.new_first, hunk.new_count) == (1, 3, 1, 3)


# ============================================================================
# CONTEXT FORMAT
# ============================================================================

def test_context_change_uses_bang_markers():
    output = format_context(OLD, NEW, compute_diff(OLD, NEW), 'old.txt', 'new.txt', context=1)
    assert output == '\n'.join([
        '*** old.txt',
        '--- new.txt',
        '***************',
        '*** 1,3 ****',
        '  a',
        '! b',
        '  c',
        '--- 1,3 ----',
        '  a',
        '! x',
        '  c',
    ])


def test_context_add_only_omits_old_block():
    output = diff_texts(['a'], ['a', 'b'], 'o', 'n', DiffOptions(format=DiffFormat.CONTEXT))
    assert output.split('\n')[2:] == [
        '***************',
        '*** 1 ****',
        '--- 1,2 ----',
        '  a',
        '+ b',
    ]


def test_context_delete_only_omits_new_block():
    output = diff_texts(['a', 'b'], ['a'], 'o', 'n', DiffOptions(format=DiffFormat.CONTEXT))
    assert output.split('\n')[2:] == [
        '***************',
        '*** 1,2 ****',
        '  a',
        '- b',
        '--- 1 ----',
    ]

"""
Wildcard expansion tests
"""
import pytest

from memshell.shell_lexer import LiteralWord
from memshell.wildcard_expander import WildcardExpander, has_glob, match_path


@pytest.fixture
def expander(fs):
    fs.create_directories('/dir/sub')
    for path in ('/a.txt', '/b.txt', '/.hidden.txt', '/notes.md', '/dir/c.txt', '/dir/sub/d.txt'):
        fs.create_file(path, path)
    return WildcardExpander(fs)


def test_has_glob():
    assert has_glob('*.txt')
    assert has_glob('file?.log')
    assert has_glob('[ab].txt')
    assert not has_glob('plain.txt')


def test_match_path_is_per_segment():
    assert match_path('a.txt', '*.txt')
    assert not match_path('dir/c.txt', '*.txt')
    assert match_path('dir/c.txt', '*/*.txt')
    assert not match_path('.hidden.txt', '*.txt')
    assert match_path('.hidden.txt', '.*')


def test_expand_in_current_directory(expander):
    assert expander.expand(['*.txt']) == ['a.txt', 'b.txt']


def test_expand_keeps_base_directory(expander):
    assert expander.expand(['dir/*.txt']) == ['dir/c.txt']
    assert expander.expand(['/dir/*']) == ['/dir/c.txt', '/dir/sub']
    assert expander.expand(['*/sub/*.txt']) == ['dir/sub/d.txt']


def test_expand_from_root(expander):
    assert expander.expand(['/*.md']) == ['/notes.md']


def test_dotfiles_need_leading_dot(expander):
    assert expander.expand(['.*.txt']) == ['.hidden.txt']


def test_bracket_classes(expander):
    assert expander.expand(['[ab].txt']) == ['a.txt', 'b.txt']
    assert expander.expand(['[!a].txt']) == ['b.txt']
    assert expander.expand(['[^a].txt']) == ['b.txt']
    assert expander.expand(['?.txt']) == ['a.txt', 'b.txt']


def test_no_match_leaves_pattern(expander):
    assert expander.expand(['*.py', 'x']) == ['*.py', 'x']
    assert expander.expand(['missing/*.txt']) == ['missing/*.txt']


def test_pattern_flag_argument_is_not_expanded(expander):
    assert expander.expand(['.', '-name', '*.txt']) == ['.', '-name', '*.txt']
    assert expander.expand(['-iname', '*.TXT', '*.md']) == ['-iname', '*.TXT', 'notes.md']


def test_literal_words_are_not_expanded(expander):
    assert expander.expand([LiteralWord('*.txt')]) == ['*.txt']


def test_relative_to_explicit_cwd(expander):
    assert expander.expand(['*.txt'], cwd='/dir') == ['c.txt']


def test_follows_working_directory(fs, expander):
    fs.change_directory('/dir/sub')
    assert expander.expand(['*']) == ['d.txt']

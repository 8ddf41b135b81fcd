"""
Pipeline and redirection parsing tests
"""
import pytest

from memshell.errors import ShellSyntaxError
from memshell.pipeline_parser import (
    Redirection, SegmentType, parse_pipeline, parse_redirections, split_segments
)
from memshell.shell_lexer import tokenize


def test_segment_type_is_following_operator():
    segments = parse_pipeline('cat a.txt | grep x && echo ok || echo no ; pwd')
    assert [s.type for s in segments] == [
        SegmentType.PIPE, SegmentType.AND, SegmentType.OR, SegmentType.SEQ, SegmentType.END
    ]
    assert [s.command for s in segments] == [
        ['cat', 'a.txt'], ['grep', 'x'], ['echo', 'ok'], ['echo', 'no'], ['pwd']
    ]


def test_empty_segments_are_dropped():
    segments = parse_pipeline('; echo a ;; echo b ;')
    assert [s.command for s in segments] == [['echo', 'a'], ['echo', 'b']]
    assert segments[-1].type is SegmentType.END


def test_trailing_operator_ends_the_line():
    segments = parse_pipeline('echo a &&')
    assert len(segments) == 1
    assert segments[0].type is SegmentType.END


def test_quoted_operators_stay_in_command():
    segments = parse_pipeline("echo 'a|b' '|' \"&&\"")
    assert len(segments) == 1
    assert segments[0].command == ['echo', 'a|b', '|', '&&']


def test_empty_line_has_no_segments():
    assert parse_pipeline('') == []
    assert split_segments([]) == []


def test_parse_redirections():
    command, redirections = parse_redirections(['sort', '<', 'in.txt', '>', 'out.txt', '2>&1'])
    assert command == ['sort']
    assert redirections == [
        Redirection('<', 'in.txt'),
        Redirection('>', 'out.txt'),
        Redirection('2>&1'),
    ]


def test_redirections_may_appear_anywhere():
    command, redirections = parse_redirections(tokenize('> out.txt echo hello world 2>> err.log'))
    assert command == ['echo', 'hello', 'world']
    assert redirections == [Redirection('>', 'out.txt'), Redirection('2>>', 'err.log')]


def test_quoted_redirection_is_an_argument():
    command, redirections = parse_redirections(tokenize("echo '>' x"))
    assert command == ['echo', '>', 'x']
    assert redirections == []


def test_redirection_without_target():
    with pytest.raises(ShellSyntaxError):
        parse_redirections(['echo', 'hi', '>'])


def test_redirection_to_tokens():
    assert Redirection('>>', 'f').to_tokens() == ['>>', 'f']
    assert Redirection('2>&1').to_tokens() == ['2>&1']

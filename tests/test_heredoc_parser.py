"""
Heredoc parsing tests
"""
from memshell.heredoc_parser import (
    is_inline_heredoc, parse_heredoc, parse_heredoc_content, parse_inline_heredoc
)
from memshell.pipeline_parser import Redirection


def test_parse_heredoc_header():
    header = parse_heredoc('cat <<EOF')
    assert header.command == 'cat'
    assert header.delimiter == 'EOF'
    assert header.strip_tabs is False
    assert header.rest == ''


def test_quoted_delimiter_and_rest():
    header = parse_heredoc("cat <<'END' > out.txt")
    assert header.delimiter == 'END'
    assert header.rest == '> out.txt'
    assert parse_heredoc('cat << "X"').delimiter == 'X'


def test_dash_strips_tabs():
    assert parse_heredoc('cat <<-EOF').strip_tabs is True


def test_not_a_heredoc():
    assert parse_heredoc('echo hi') is None
    assert parse_heredoc('<<EOF') is None
    assert parse_heredoc('cat <<< word') is None


def test_collect_body_lines():
    lines = ['cat <<EOF', 'a', 'b', 'EOF', 'next']
    content = parse_heredoc_content(lines, 0)
    assert content.command == 'cat'
    assert content.content == 'a\nb'
    assert content.end_index == 3
    assert content.terminated is True


def test_collect_unterminated():
    content = parse_heredoc_content(['cat <<EOF', 'a'], 0)
    assert content.content == 'a'
    assert content.terminated is False
    assert content.end_index == 1


def test_collect_with_tab_stripping():
    content = parse_heredoc_content(['cat <<-EOF', '\tindented', '\t\tdeeper', '\tEOF'])
    assert content.content == 'indented\ndeeper'
    assert content.end_index == 3


def test_collect_requires_header():
    assert parse_heredoc_content(['echo hi', 'EOF'], 0) is None
    assert parse_heredoc_content([], 0) is None


def test_is_inline_heredoc():
    assert is_inline_heredoc('cat <<EOF\nx\nEOF')
    assert not is_inline_heredoc('cat <<EOF')
    assert not is_inline_heredoc('echo a\necho b')


def test_inline_with_pre_redirect():
    heredoc = parse_inline_heredoc('cat > out.txt <<EOF\nhello\nworld\nEOF')
    assert heredoc.command == ['cat']
    assert heredoc.pre_redirects == [Redirection('>', 'out.txt')]
    assert heredoc.content == 'hello\nworld'
    assert heredoc.redirect is None
    assert heredoc.terminated is True


def test_inline_redirect_on_closing_line():
    heredoc = parse_inline_heredoc('cat <<EOF\nx\ny\nEOF | grep x')
    assert heredoc.content == 'x\ny'
    assert heredoc.redirect == '| grep x'


def test_inline_prefix_and_suffix():
    heredoc = parse_inline_heredoc('mkdir d\ncat <<EOF > d/f\nbody\nEOF\ncat d/f')
    assert heredoc.prefix == 'mkdir d'
    assert heredoc.suffix == 'cat d/f'
    assert heredoc.redirect == '> d/f'
    assert heredoc.content == 'body'


def test_inline_without_header():
    assert parse_inline_heredoc('echo a\necho b') is None


def test_inline_missing_delimiter():
    heredoc = parse_inline_heredoc('cat <<EOF\nline one\nline two')
    assert heredoc.content == 'line one\nline two'
    assert heredoc.terminated is False


def test_quoted_angle_brackets_are_not_a_header():
    assert parse_heredoc('echo "a <<b"') is None
    assert parse_heredoc("echo 'x <<EOF'") is None
    assert parse_inline_heredoc('echo "a <<b"\necho c') is None


def test_header_after_quoted_angle_brackets():
    heredoc = parse_inline_heredoc('echo "a <<b"\ncat <<EOF\nhi\nEOF')
    assert heredoc.prefix == 'echo "a <<b"'
    assert heredoc.command == ['cat']
    assert heredoc.content == 'hi'


def test_quote_spanning_lines_before_header():
    heredoc = parse_inline_heredoc('echo "one\n<<two"\ncat <<EOF\nbody\nEOF')
    assert heredoc.prefix == 'echo "one\n<<two"'
    assert heredoc.content == 'body'


def test_semicolon_before_header_goes_to_prefix():
    heredoc = parse_inline_heredoc('mkdir d; cat <<EOF > d/f\nbody\nEOF')
    assert heredoc.prefix == 'mkdir d'
    assert heredoc.command == ['cat']
    assert heredoc.redirect == '> d/f'

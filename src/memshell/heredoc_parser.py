"""
Heredoc Parser - <<DELIM detection and body collection

Two shapes are supported:

1. Interactive (line by line): the header line is seen first, body lines
   arrive later. parse_heredoc() recognises the header,
   parse_heredoc_content() collects body lines up to the delimiter.

2. Inline: the whole block is one text value.

        cat > notes.txt <<EOF
        first line
        second line
        EOF

   parse_inline_heredoc() returns the command tokens, the body, the
   redirections written before '<<' (pre_redirects) and the redirect
   text written after the delimiter, either on the header line
   (cat <<EOF > out.txt) or on the closing line (EOF | grep x).
   Lines before the header line and after the closing line are kept
   as prefix / suffix command text.

Delimiters may be quoted (<<'EOF', <<"EOF"). '<<-' strips leading tabs
from body lines and from the closing delimiter line.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import ShellSyntaxError
from .pipeline_parser import Redirection, parse_redirections
from .shell_lexer import ShellLexer, TokenType, tokenize

# Matches the text right after an unquoted '<<' operator
DELIMITER_PATTERN = re.compile(
    r"(?P<dash>-?)\s*"
    r"(?P<delim>'[^']*'|\"[^\"]*\"|[^\s;|&<>]+)"
    r"(?P<rest>.*)"
)


@dataclass
class HeredocHeader:
    command: str
    delimiter: str
    strip_tabs: bool = False
    rest: str = ''


@dataclass
class HeredocContent:
    command: str
    content: str
    end_index: int
    terminated: bool = True


@dataclass
class InlineHeredoc:
    command: List[str]
    content: str
    redirect: Optional[str] = None
    pre_redirects: List[Redirection] = field(default_factory=list)
    prefix: str = ''
    suffix: str = ''
    terminated: bool = True


def _unquote(delimiter: str) -> str:
    if len(delimiter) >= 2 and delimiter[0] == delimiter[-1] and delimiter[0] in '\'"':
        return delimiter[1:-1]
    return delimiter


def _locate_operator(text: str) -> Optional[Tuple[int, int]]:
    """
    (start of the command, position of '<<') for the first unquoted '<<'.

    The command starts after the last ';' or newline before the operator.

    Raises:
        ShellSyntaxError: text does not tokenize (e.g. a quote left open)
    """
    command_start = 0
    for token in ShellLexer(text).tokenize():
        if token.type is not TokenType.OPERATOR:
            continue
        if token.value == ';':
            command_start = token.pos + 1
        elif token.value == '<<':
            return command_start, token.pos
    return None


def _header_at(text: str, command_start: int, operator_pos: int) -> Optional[HeredocHeader]:
    after = operator_pos + 2
    # '<<<' here-strings are not heredocs
    if text.startswith('<', after):
        return None
    match = DELIMITER_PATTERN.match(text, after)
    command = text[command_start:operator_pos].strip()
    if not match or not command:
        return None
    return HeredocHeader(
        command=command,
        delimiter=_unquote(match.group('delim')),
        strip_tabs=bool(match.group('dash')),
        rest=match.group('rest').strip(),
    )


def parse_heredoc(line: str) -> Optional[HeredocHeader]:
    """Recognise a 'cmd <<DELIM' header on a single line"""
    if '<<' not in line:
        return None
    try:
        located = _locate_operator(line)
    except ShellSyntaxError:
        return None
    if located is None:
        return None
    return _header_at(line, 0, located[1])


def _closing_line(line: str, header: HeredocHeader) -> Optional[str]:
    """Text after the delimiter when line closes the heredoc, else None"""
    candidate = line.lstrip('\t') if header.strip_tabs else line
    if candidate.rstrip() == header.delimiter:
        return ''
    for sep in (' ', '\t'):
        if candidate.startswith(header.delimiter + sep):
            return candidate[len(header.delimiter):].strip()
    return None


def _body_line(line: str, header: HeredocHeader) -> str:
    return line.lstrip('\t') if header.strip_tabs else line


def parse_heredoc_content(lines: List[str], start: int = 0) -> Optional[HeredocContent]:
    """
    Collect body lines for the header at lines[start].

    Returns None when lines[start] is not a heredoc header. A missing
    closing delimiter consumes every remaining line (terminated=False).
    """
    if start >= len(lines):
        return None
    header = parse_heredoc(lines[start])
    if header is None:
        return None

    body = []
    for index in range(start + 1, len(lines)):
        if _closing_line(lines[index], header) is not None:
            return HeredocContent(header.command, '\n'.join(body), index)
        body.append(_body_line(lines[index], header))

    return HeredocContent(header.command, '\n'.join(body), len(lines) - 1, terminated=False)


def is_inline_heredoc(text: str) -> bool:
    """Multi-line block that may hold a heredoc (parse_inline_heredoc decides)"""
    return '<<' in text and '\n' in text


def _find_inline_header(lines: List[str]) -> Optional[Tuple[int, str, HeredocHeader]]:
    """
    (index of the header line, prefix text, header) for the first line
    holding an unquoted '<<'.

    A line that leaves a quote open is joined with the following lines
    before it is searched.
    """
    prefix_lines = []
    start = 0
    for index in range(len(lines)):
        candidate = '\n'.join(lines[start:index + 1])
        try:
            located = _locate_operator(candidate)
        except ShellSyntaxError:
            continue
        if located is not None:
            command_start, operator_pos = located
            header = _header_at(candidate, command_start, operator_pos)
            if header is not None:
                if command_start:
                    prefix_lines.append(candidate[:command_start - 1])
                return index, '\n'.join(prefix_lines), header
        prefix_lines.append(candidate)
        start = index + 1
    return None


def parse_inline_heredoc(text: str) -> Optional[InlineHeredoc]:
    """
    Parse a multi-line block containing a heredoc.

    Returns None if no line of the block carries an unquoted heredoc header.
    """
    lines = text.split('\n')
    found = _find_inline_header(lines)
    if found is None:
        return None
    index, prefix, header = found

    body = []
    delimiter_rest = None
    close_index = len(lines)
    for close_index in range(index + 1, len(lines)):
        delimiter_rest = _closing_line(lines[close_index], header)
        if delimiter_rest is not None:
            break
        body.append(_body_line(lines[close_index], header))
    else:
        close_index = len(lines)

    command, pre_redirects = parse_redirections(tokenize(header.command))

    redirect_parts = [part for part in (header.rest, delimiter_rest) if part]
    return InlineHeredoc(
        command=command,
        content='\n'.join(body),
        redirect=' '.join(redirect_parts) or None,
        pre_redirects=pre_redirects,
        prefix=prefix,
        suffix='\n'.join(lines[close_index + 1:]),
        terminated=delimiter_rest is not None,
    )

"""
Pipeline Parser - operator chains and redirections

============================================================================
USAGE
============================================================================

    >>> parse_pipeline('cat a.txt | grep x && echo ok')
    [PipelineSegment(PIPE, ['cat', 'a.txt']),
     PipelineSegment(AND, ['grep', 'x']),
     PipelineSegment(END, ['echo', 'ok'])]

    >>> parse_redirections(['sort', '<', 'in.txt', '>', 'out.txt', '2>&1'])
    (['sort'], [Redirection('<', 'in.txt'), Redirection('>', 'out.txt'),
                Redirection('2>&1', None)])

============================================================================
SEGMENT TYPES
============================================================================

    The type of a segment is the operator that FOLLOWS it:

        cmd1 | cmd2 && cmd3 || cmd4 ; cmd5
        PIPE   AND     OR      SEQ    END

    Empty segments ('; ;', leading '|') are dropped.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .constants import CONTROL_OPERATORS, STANDALONE_REDIRECTIONS, TARGETED_REDIRECTIONS
from .errors import ShellSyntaxError
from .shell_lexer import LiteralWord, tokenize


class SegmentType(Enum):
    """Operator terminating a pipeline segment"""
    PIPE = 'pipe'
    AND = 'and'
    OR = 'or'
    SEQ = 'seq'
    END = 'end'


@dataclass
class PipelineSegment:
    """
    One stage of an operator-joined command chain.

    heredoc is the stdin body when the segment was written as cmd <<DELIM.
    """
    type: SegmentType
    command: List[str]
    heredoc: Optional[str] = None

    def __repr__(self):
        return f"PipelineSegment({self.type.name}, {self.command!r})"


@dataclass
class Redirection:
    """
    Redirection operation.

    target is the file path (or heredoc delimiter for '<<'); None for 2>&1.
    """
    operator: str
    target: Optional[str] = None

    def to_tokens(self) -> List[str]:
        if self.target is None:
            return [self.operator]
        return [self.operator, self.target]

    def __repr__(self):
        return f"Redirection({self.operator!r}, {self.target!r})"


def _is_control(token: str) -> bool:
    return token in CONTROL_OPERATORS and not isinstance(token, LiteralWord)


def split_segments(tokens: List[str]) -> List[PipelineSegment]:
    """Group already tokenized words into segments"""
    segments = []
    current: List[str] = []

    for token in tokens:
        if _is_control(token):
            if current:
                segments.append(PipelineSegment(SegmentType(CONTROL_OPERATORS[token]), current))
                current = []
            continue
        current.append(token)

    if current:
        segments.append(PipelineSegment(SegmentType.END, current))
    elif segments:
        # Trailing operator ('echo a;') - the last real segment ends the line
        segments[-1].type = SegmentType.END

    return segments


def parse_pipeline(line: str) -> List[PipelineSegment]:
    """Tokenize line and split it on |, &&, ||, ;"""
    return split_segments(tokenize(line))


def parse_redirections(tokens: List[str]) -> Tuple[List[str], List[Redirection]]:
    """
    Separate redirections from a command's tokens.

    Returns:
        (command_tokens, redirections) - redirections in source order

    Raises:
        ShellSyntaxError: redirection operator without a target
    """
    command = []
    redirections = []
    i = 0

    while i < len(tokens):
        token = tokens[i]
        literal = isinstance(token, LiteralWord)

        if not literal and token in STANDALONE_REDIRECTIONS:
            redirections.append(Redirection(token))
            i += 1
            continue

        if not literal and token in TARGETED_REDIRECTIONS:
            if i + 1 >= len(tokens):
                raise ShellSyntaxError(f"syntax error near unexpected token `newline' after '{token}'")
            redirections.append(Redirection(token, str(tokens[i + 1])))
            i += 2
            continue

        command.append(token)
        i += 1

    return command, redirections

"""
diff - compare two files line by line

    diff a.txt b.txt            normal format
    diff -u a.txt b.txt         unified, 3 lines of context (-uN / -U N / -UN)
    diff -c a.txt b.txt         context, 3 lines of context (-cN / -C N / -CN)
    diff -q a.txt b.txt         "Files a.txt and b.txt differ"
    cat a.txt | diff - b.txt    '-' reads stdin

Identical inputs produce no output. Differences are returned as normal
output, not as a failure, so `diff a b > p.diff` always writes the file.
"""
import re
from typing import List, Optional

from ..command_registry import CommandContext, ShellArgumentParser
from ..constants import DEFAULT_DIFF_CONTEXT
from ..diff_engine import DiffFormat, DiffOptions, diff_texts, split_lines
from ..errors import MissingOperand
from .base import read_file

_ATTACHED_COUNT = re.compile(r'-([uc])(\d+)')


def _split_attached_counts(args: List[str]) -> List[str]:
    """-u5 / -c2 are spelled -U 5 / -C 2 for the parser"""
    expanded = []
    for position, arg in enumerate(args):
        if arg == '--':
            return expanded + args[position:]
        match = _ATTACHED_COUNT.fullmatch(arg)
        if match:
            expanded.extend([f"-{match.group(1).upper()}", match.group(2)])
        else:
            expanded.append(arg)
    return expanded


def _read_operand(context: CommandContext, path: str, stdin: Optional[str]) -> str:
    if path == '-':
        if stdin is None:
            raise MissingOperand("diff: -: no standard input")
        return stdin
    return read_file(context, 'diff', path)


def diff(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='diff', description='Compare files line by line')
    parser.add_argument('-u', '--unified', dest='unified', action='store_const', const=DEFAULT_DIFF_CONTEXT,
                        help=f'Output {DEFAULT_DIFF_CONTEXT} lines of unified context')
    parser.add_argument('-U', dest='unified', type=int, metavar='NUM',
                        help='Output NUM lines of unified context')
    parser.add_argument('-c', dest='context', action='store_const', const=DEFAULT_DIFF_CONTEXT,
                        help=f'Output {DEFAULT_DIFF_CONTEXT} lines of copied context')
    parser.add_argument('-C', '--context', dest='context', type=int, metavar='NUM',
                        help='Output NUM lines of copied context')
    parser.add_argument('-q', '--brief', action='store_true', help='Report only when files differ')
    parser.add_argument('-i', '--ignore-case', action='store_true', help='Ignore case differences')
    parser.add_argument('-w', '--ignore-all-space', action='store_true', help='Ignore all white space')
    parser.add_argument('-b', '--ignore-space-change', action='store_true',
                        help='Ignore changes in the amount of white space')
    parser.add_argument('-B', '--ignore-blank-lines', action='store_true',
                        help='Ignore changes whose lines are all blank')
    parser.add_argument('file1', help='First file to compare')
    parser.add_argument('file2', help='Second file to compare')
    parsed = context.parse_args_with_help(parser, _split_attached_counts(args))
    if isinstance(parsed, str):
        return parsed

    options = DiffOptions(
        ignore_case=parsed.ignore_case,
        ignore_all_space=parsed.ignore_all_space,
        ignore_space_change=parsed.ignore_space_change,
        ignore_blank_lines=parsed.ignore_blank_lines,
        brief=parsed.brief,
    )
    if parsed.unified is not None:
        options.format = DiffFormat.UNIFIED
        options.context = parsed.unified
    elif parsed.context is not None:
        options.format = DiffFormat.CONTEXT
        options.context = parsed.context

    old = split_lines(_read_operand(context, parsed.file1, stdin))
    new = split_lines(_read_operand(context, parsed.file2, stdin))
    return diff_texts(old, new, parsed.file1, parsed.file2, options)


COMMAND_MAP = {
    'diff': (diff, True),
}

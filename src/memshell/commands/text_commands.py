"""
Text commands: echo, true, false, grep, sed, head, tail, wc, sort, uniq,
tee, basename, dirname, find

Input comes from file operands or, when there are none, from stdin.
Output follows the shell convention of no trailing newline.
"""
import fnmatch
import re
from typing import List, Optional, Tuple

from ..command_registry import CommandContext, ShellArgumentParser
from ..errors import MalformedScript, MissingOperand, NoSuchPath, ShellError
from ..memfs import MemDirectory, MemFile, MemFS, MemNode
from ..redirections import RedirectionApplier
from .base import read_file, read_inputs, split_text


# ============================================================================
# TRIVIAL
# ============================================================================

def echo(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    return ' '.join(args)


def true(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    return ''


def false(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    raise ShellError('')


# ============================================================================
# GREP
# ============================================================================

def _grep_parser() -> ShellArgumentParser:
    # -h means --no-filename, so only the long help flag is available
    parser = ShellArgumentParser(prog='grep', description='Search for patterns in files', add_help=False)
    parser.add_argument('--help', action='help', help='Show this help message and exit')
    parser.add_argument('-e', '--regexp', dest='patterns', action='append', help='Pattern to search for')
    parser.add_argument('-i', '--ignore-case', action='store_true', help='Ignore case distinctions')
    parser.add_argument('-n', '--line-number', action='store_true', help='Prefix output with line numbers')
    parser.add_argument('-v', '--invert-match', action='store_true', help='Select non-matching lines')
    parser.add_argument('-h', '--no-filename', action='store_true', help='Suppress file name prefixes')
    parser.add_argument('-A', '--after-context', type=int, default=0, metavar='NUM',
                        help='Print NUM lines of trailing context')
    parser.add_argument('-B', '--before-context', type=int, default=0, metavar='NUM',
                        help='Print NUM lines of leading context')
    parser.add_argument('-C', '--context', type=int, default=0, metavar='NUM',
                        help='Print NUM lines of output context')
    parser.add_argument('-r', '-R', '--recursive', dest='recursive', action='store_true',
                        help='Search directories recursively')
    parser.add_argument('rest', nargs='*', help='PATTERN [FILE...]')
    return parser


def _search_lines(lines: List[str], regexes: List[re.Pattern], invert: bool, before: int, after: int,
                  line_numbers: bool, filename: Optional[str]) -> List[str]:
    """Matching lines with their context, '--' between non-adjacent groups"""
    matched = [
        index for index, line in enumerate(lines)
        if any(regex.search(line) for regex in regexes) != invert
    ]
    matched_set = set(matched)

    shown = set()
    for index in matched:
        shown.update(range(max(0, index - before), min(len(lines), index + after + 1)))

    results = []
    last = None
    for index in sorted(shown):
        if last is not None and index > last + 1:
            results.append('--')
        marker = ':' if index in matched_set else '-'
        prefix = f"{filename}{marker}" if filename is not None else ''
        if line_numbers:
            prefix += f"{index + 1}{marker}"
        results.append(prefix + lines[index])
        last = index
    return results


def grep(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parsed = context.parse_args_with_help(_grep_parser(), args)
    if isinstance(parsed, str):
        return parsed

    patterns = parsed.patterns or []
    files = list(parsed.rest)
    if not patterns:
        if not files:
            raise MissingOperand("grep: missing pattern")
        patterns = [files.pop(0)]

    flags = re.IGNORECASE if parsed.ignore_case else 0
    try:
        regexes = [re.compile(pattern, flags) for pattern in patterns]
    except re.error as e:
        raise MalformedScript(f"grep: invalid regular expression: {e}") from None

    after = parsed.context or parsed.after_context
    before = parsed.context or parsed.before_context

    def search(text: str, filename: Optional[str]) -> List[str]:
        return _search_lines(split_text(text), regexes, parsed.invert_match, before, after,
                             parsed.line_number, filename)

    if not files:
        if stdin is None:
            raise MissingOperand("grep: missing file operand")
        return '\n'.join(search(stdin, None))

    results = []
    targets = []
    for path in files:
        node = context.fs.resolve_path(path)
        if parsed.recursive and isinstance(node, MemDirectory):
            targets.extend(context.get_all_files_recursive(path))
        else:
            targets.append(path)

    show_names = (len(targets) > 1 or parsed.recursive) and not parsed.no_filename
    for path in targets:
        node = context.fs.resolve_path(path)
        if node is None:
            results.append(f"grep: {path}: No such file or directory")
            continue
        if not isinstance(node, MemFile):
            results.append(f"grep: {path}: Is a directory")
            continue
        results.extend(search(node.read(), path if show_names else None))

    return '\n'.join(results)


# ============================================================================
# SED
# ============================================================================

def _split_unescaped(text: str, delimiter: str) -> List[str]:
    """Split on delimiter, turning '\\<delimiter>' into a literal delimiter"""
    parts = []
    current = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == '\\' and i + 1 < len(text) and text[i + 1] == delimiter:
            current.append(delimiter)
            i += 2
            continue
        if char == delimiter:
            parts.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append(''.join(current))
    return parts


def _python_replacement(replacement: str) -> str:
    """sed replacement syntax (&, \\1) to re.sub syntax (\\g<0>, \\1)"""
    out = []
    i = 0
    while i < len(replacement):
        char = replacement[i]
        if char == '\\' and i + 1 < len(replacement):
            following = replacement[i + 1]
            if following.isdigit():
                out.append(f"\\g<{following}>")
            elif following == 'n':
                out.append('\n')
            elif following == '\\':
                out.append('\\\\')
            else:
                out.append(following)
            i += 2
            continue
        if char == '&':
            out.append('\\g<0>')
        elif char == '\\':
            out.append('\\\\')
        else:
            out.append(char)
        i += 1
    return ''.join(out)


def parse_substitution(script: str) -> Tuple[re.Pattern, str, int, bool]:
    """
    Parse s/REGEX/REPLACEMENT/FLAGS (any delimiter).

    Returns:
        (regex, re.sub replacement, count (0 = all), print flag)

    Raises:
        MalformedScript: not a substitution or invalid regex
    """
    if len(script) < 2 or script[0] != 's' or script[1].isalnum() or script[1] in ' \\\n':
        raise MalformedScript(f"sed: unsupported command: {script}")

    parts = _split_unescaped(script[2:], script[1])
    if len(parts) != 3 or not parts[0] or not re.fullmatch(r'[gip]*', parts[2]):
        raise MalformedScript(f"sed: unsupported command: {script}")

    pattern, replacement, flags = parts
    try:
        regex = re.compile(pattern, re.IGNORECASE if 'i' in flags else 0)
    except re.error as e:
        raise MalformedScript(f"sed: invalid regular expression '{pattern}': {e}") from None
    return regex, _python_replacement(replacement), 0 if 'g' in flags else 1, 'p' in flags


def sed(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='sed', description='Stream editor for filtering and transforming text')
    parser.add_argument('-e', '--expression', dest='scripts', action='append',
                        help='Add the script to the commands to be executed')
    parser.add_argument('-i', '--in-place', action='store_true', help='Edit files in place')
    parser.add_argument('-n', '--quiet', '--silent', dest='quiet', action='store_true',
                        help='Suppress automatic printing of pattern space')
    parser.add_argument('rest', nargs='*', help='Script and file (if -e not used)')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    scripts = parsed.scripts or []
    files = list(parsed.rest)
    if not scripts:
        if not files:
            raise MissingOperand("sed: missing script")
        scripts = [files.pop(0)]
    substitutions = [parse_substitution(script) for script in scripts]

    if parsed.in_place and not files:
        raise MissingOperand("sed: no input files")

    def transform(text: str) -> str:
        output = []
        for line in text.split('\n'):
            for regex, replacement, count, print_flag in substitutions:
                line, replaced = regex.subn(replacement, line, count=count)
                if replaced and print_flag:
                    output.append(line)
            if not parsed.quiet:
                output.append(line)
        return '\n'.join(output)

    if not files:
        if stdin is None:
            raise MissingOperand("sed: missing file operand")
        return transform(stdin)

    results = []
    for path in files:
        content = transform(read_file(context, 'sed', path))
        if parsed.in_place:
            context.fs.write_file(path, content)
        else:
            results.append(content)
    return '\n'.join(results)


# ============================================================================
# HEAD / TAIL / WC
# ============================================================================

def _with_headers(outputs: List[Tuple[str, str]]) -> str:
    if len(outputs) == 1:
        return outputs[0][1]
    return '\n\n'.join(f"==> {name} <==\n{text}" for name, text in outputs)


def head(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='head', description='Output the first part of files')
    parser.add_argument('-n', '--lines', type=int, default=10, metavar='NUM',
                        help='Print the first NUM lines (default 10)')
    parser.add_argument('files', nargs='*', help='Files to read')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    outputs = []
    for name, content in read_inputs(context, 'head', parsed.files, stdin):
        lines = split_text(content)
        count = parsed.lines if parsed.lines >= 0 else max(0, len(lines) + parsed.lines)
        outputs.append((name, '\n'.join(lines[:count])))
    return _with_headers(outputs)


def tail(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='tail', description='Output the last part of files')
    parser.add_argument('-n', '--lines', default='10', metavar='NUM',
                        help='Print the last NUM lines, or from line NUM with +NUM')
    parser.add_argument('files', nargs='*', help='Files to read')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    count_text = parsed.lines
    if not re.fullmatch(r'\+?\d+', count_text):
        raise ShellError(f"tail: invalid number of lines: '{count_text}'")

    outputs = []
    for name, content in read_inputs(context, 'tail', parsed.files, stdin):
        lines = split_text(content)
        if count_text.startswith('+'):
            selected = lines[max(0, int(count_text) - 1):]
        else:
            count = int(count_text)
            selected = lines[-count:] if count else []
        outputs.append((name, '\n'.join(selected)))
    return _with_headers(outputs)


def _counts(content: str) -> Tuple[int, int, int]:
    return len(split_text(content)), len(content.split()), len(content.encode('utf-8'))


def wc(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='wc', description='Count lines, words, and bytes')
    parser.add_argument('-l', '--lines', action='store_true', help='Print the line count')
    parser.add_argument('-w', '--words', action='store_true', help='Print the word count')
    parser.add_argument('-c', '--bytes', action='store_true', help='Print the byte count')
    parser.add_argument('files', nargs='*', help='Files to count')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    selected = [parsed.lines, parsed.words, parsed.bytes]
    if not any(selected):
        selected = [True, True, True]

    def render(counts: Tuple[int, int, int], name: Optional[str]) -> str:
        columns = [str(value) for value, wanted in zip(counts, selected) if wanted]
        if name is not None:
            columns.append(name)
        return ' '.join(columns)

    inputs = read_inputs(context, 'wc', parsed.files, stdin)
    rows = []
    totals = [0, 0, 0]
    for name, content in inputs:
        counts = _counts(content)
        totals = [total + value for total, value in zip(totals, counts)]
        rows.append(render(counts, name if parsed.files else None))
    if len(inputs) > 1:
        rows.append(render(tuple(totals), 'total'))
    return '\n'.join(rows)


# ============================================================================
# SORT / UNIQ / TEE
# ============================================================================

_NUMBER = re.compile(r'^\s*([-+]?\d+(?:\.\d+)?)')


def _numeric_key(line: str):
    match = _NUMBER.match(line)
    # Lines without a leading number sort first, like GNU sort -n treats them as 0
    return (float(match.group(1)) if match else 0.0, line)


def sort(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='sort', description='Sort lines of text')
    parser.add_argument('-r', '--reverse', action='store_true', help='Reverse the result of comparisons')
    parser.add_argument('-n', '--numeric-sort', action='store_true', help='Compare by numeric value')
    parser.add_argument('-u', '--unique', action='store_true', help='Output only the first of equal lines')
    parser.add_argument('-f', '--ignore-case', action='store_true', help='Fold lower case to upper case')
    parser.add_argument('files', nargs='*', help='Files to sort')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    lines = []
    for _, content in read_inputs(context, 'sort', parsed.files, stdin):
        lines.extend(split_text(content))

    if parsed.numeric_sort:
        key = _numeric_key
    elif parsed.ignore_case:
        key = str.lower
    else:
        key = None
    lines.sort(key=key, reverse=parsed.reverse)

    if parsed.unique:
        seen = set()
        unique = []
        for line in lines:
            marker = line.lower() if parsed.ignore_case else line
            if marker not in seen:
                seen.add(marker)
                unique.append(line)
        lines = unique
    return '\n'.join(lines)


def uniq(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='uniq', description='Omit repeated adjacent lines')
    parser.add_argument('-c', '--count', action='store_true', help='Prefix lines by the number of occurrences')
    parser.add_argument('-d', '--repeated', action='store_true', help='Only print duplicate lines')
    parser.add_argument('-i', '--ignore-case', action='store_true', help='Ignore differences in case')
    parser.add_argument('file', nargs='?', help='Input file')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    files = [parsed.file] if parsed.file else []
    _, content = read_inputs(context, 'uniq', files, stdin)[0]

    groups: List[List] = []
    for line in split_text(content):
        marker = line.lower() if parsed.ignore_case else line
        if groups and groups[-1][0] == marker:
            groups[-1][2] += 1
        else:
            groups.append([marker, line, 1])

    output = []
    for _, line, count in groups:
        if parsed.repeated and count < 2:
            continue
        output.append(f"{count:>7} {line}" if parsed.count else line)
    return '\n'.join(output)


def tee(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='tee', description='Copy stdin to files and to stdout')
    parser.add_argument('-a', '--append', action='store_true', help='Append to the given files')
    parser.add_argument('files', nargs='*', help='Files to write')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    content = stdin or ''
    writer = RedirectionApplier(context.fs)
    for path in parsed.files:
        writer.write(path, content, append=parsed.append)
    return content


# ============================================================================
# PATH NAMES
# ============================================================================

def basename(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='basename', description='Strip directory and suffix from a file name')
    parser.add_argument('name', help='Path name')
    parser.add_argument('suffix', nargs='?', help='Suffix to remove')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    name = parsed.name.rstrip('/')
    if not name:
        return '/' if parsed.name else ''
    name = name.rsplit('/', 1)[-1]
    if parsed.suffix and name.endswith(parsed.suffix) and name != parsed.suffix:
        name = name[:-len(parsed.suffix)]
    return name


def dirname(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='dirname', description='Strip the last component from a file name')
    parser.add_argument('name', help='Path name')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed
    return MemFS.parse_path(parsed.name)[0]


# ============================================================================
# FIND
# ============================================================================

def _find_matches(node: MemNode, parsed) -> bool:
    if parsed.name is not None and not fnmatch.fnmatchcase(node.name, parsed.name):
        return False
    if parsed.iname is not None and not fnmatch.fnmatchcase(node.name.lower(), parsed.iname.lower()):
        return False
    if parsed.type == 'f' and not isinstance(node, MemFile):
        return False
    if parsed.type == 'd' and not isinstance(node, MemDirectory):
        return False
    return True


def find(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='find', description='Search for files in a directory hierarchy')
    parser.add_argument('paths', nargs='*', help='Starting points (default: .)')
    parser.add_argument('-name', help='Base name matches shell PATTERN')
    parser.add_argument('-iname', help='Like -name, case insensitive')
    parser.add_argument('-type', choices=['f', 'd'], help='f: regular file, d: directory')
    parser.add_argument('-maxdepth', type=int, help='Descend at most N levels')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    results = []

    def visit(node: MemNode, path: str, depth: int):
        if _find_matches(node, parsed):
            results.append(path)
        if parsed.maxdepth is not None and depth >= parsed.maxdepth:
            return
        if isinstance(node, MemDirectory):
            base = path if path.endswith('/') else path + '/'
            for child in context.fs.iter_children(node):
                visit(child, base + child.name, depth + 1)

    for start in parsed.paths or ['.']:
        node = context.fs.resolve_path(start)
        if node is None:
            raise NoSuchPath(f"find: '{start}': No such file or directory")
        visit(node, start, 0)
    return '\n'.join(results)


COMMAND_MAP = {
    # name: (handler, accepts_stdin)
    'echo': (echo, False),
    'true': (true, False),
    'false': (false, False),
    'grep': (grep, True),
    'sed': (sed, True),
    'head': (head, True),
    'tail': (tail, True),
    'wc': (wc, True),
    'sort': (sort, True),
    'uniq': (uniq, True),
    'tee': (tee, True),
    'basename': (basename, False),
    'dirname': (dirname, False),
    'find': (find, False),
}

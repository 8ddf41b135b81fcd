"""
Filesystem commands: pwd, cd, ls, mkdir, touch, rm, mv, cp, write, cat

Thin wrappers over MemFS. Each one parses its arguments with
ShellArgumentParser (so -h/--help returns usage text) and turns MemFS
errors into "<command>: <path>: <reason>" messages.
"""
from typing import List, Optional

from ..command_registry import CommandContext, ShellArgumentParser
from ..errors import FileSystemError, IsADirectory, MissingOperand, NoSuchPath, NotADirectory
from ..memfs import MemDirectory, MemFile, MemNode
from .base import prefixed, read_inputs, split_text


# ============================================================================
# NAVIGATION
# ============================================================================

def pwd(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='pwd', description='Print the current working directory')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed
    return context.cwd


def cd(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='cd', description='Change the current working directory')
    parser.add_argument('directory', nargs='?', help='Target directory (default: /)')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    try:
        context.fs.change_directory(parsed.directory)
    except FileSystemError as e:
        raise prefixed('cd', e) from None
    return ''


def _long_entry(node: MemNode, name: str) -> str:
    if isinstance(node, MemDirectory):
        mode, size = 'drwxr-xr-x', len(node.children)
    else:
        mode, size = '-rw-r--r--', node.size()
    return f"{mode} {size:>8} {node.modified_at:%b %d %H:%M} {name}"


def _list_directory(context: CommandContext, directory: MemDirectory, show_all: bool, long: bool) -> List[str]:
    entries = [(child.name, child) for child in context.fs.iter_children(directory)]
    if not show_all:
        entries = [(name, node) for name, node in entries if not name.startswith('.')]
    entries.sort(key=lambda entry: entry[0])
    if show_all:
        parent = context.fs.parent_of(directory) or directory
        entries = [('.', directory), ('..', parent)] + entries

    if long:
        return [_long_entry(node, name) for name, node in entries]
    return [name for name, _ in entries]


def ls(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='ls', description='List directory contents')
    parser.add_argument('-l', dest='long', action='store_true', help='Use a long listing format')
    parser.add_argument('-a', '--all', dest='all', action='store_true',
                        help='Do not ignore entries starting with .')
    parser.add_argument('paths', nargs='*', help='Files or directories to list')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    paths = parsed.paths or ['.']
    files = []
    directories = []
    for path in paths:
        node = context.fs.resolve_path(path)
        if node is None:
            raise NoSuchPath(f"ls: cannot access '{path}': No such file or directory")
        if isinstance(node, MemFile):
            files.append(_long_entry(node, path) if parsed.long else path)
        else:
            directories.append((path, node))

    blocks = []
    if files:
        blocks.append('\n'.join(files))
    for path, directory in directories:
        lines = _list_directory(context, directory, parsed.all, parsed.long)
        if len(paths) > 1:
            lines = [f"{path}:"] + lines
        blocks.append('\n'.join(lines))

    separator = '\n\n' if len(paths) > 1 else '\n'
    return separator.join(blocks)


# ============================================================================
# CREATION / REMOVAL
# ============================================================================

def mkdir(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='mkdir', description='Create directories')
    parser.add_argument('-p', '--parents', action='store_true',
                        help='No error if existing, make parent directories as needed')
    parser.add_argument('directories', nargs='+', help='Directories to create')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    for path in parsed.directories:
        try:
            if parsed.parents:
                context.fs.create_directories(path)
            else:
                context.fs.create_directory(path)
        except FileSystemError as e:
            raise type(e)(f"mkdir: cannot create directory '{path}': {_reason(e)}") from None
    return ''


def touch(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='touch', description='Create files or update their timestamps')
    parser.add_argument('files', nargs='+', help='Files to touch')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    for path in parsed.files:
        try:
            context.fs.touch(path)
        except FileSystemError as e:
            raise type(e)(f"touch: cannot touch '{path}': {_reason(e)}") from None
    return ''


def rm(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='rm', description='Remove files or directories')
    parser.add_argument('-r', '-R', '--recursive', dest='recursive', action='store_true',
                        help='Remove directories and their contents recursively')
    parser.add_argument('-f', '--force', action='store_true',
                        help='Ignore nonexistent files')
    parser.add_argument('paths', nargs='*', help='Files or directories to remove')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    if not parsed.paths and not parsed.force:
        raise MissingOperand("rm: missing operand")

    for path in parsed.paths:
        try:
            context.fs.remove(path, recursive=parsed.recursive)
        except NoSuchPath:
            if parsed.force:
                continue
            raise NoSuchPath(f"rm: cannot remove '{path}': No such file or directory") from None
        except FileSystemError as e:
            raise type(e)(f"rm: cannot remove '{path}': {_reason(e)}") from None
    return ''


def _reason(error: FileSystemError) -> str:
    """'x: File exists' -> 'File exists'"""
    return str(error).rsplit(': ', 1)[-1]


# ============================================================================
# MOVE / COPY
# ============================================================================

def _sources_and_destination(context: CommandContext, prog: str, paths: List[str]):
    if len(paths) < 2:
        after = f" after '{paths[0]}'" if paths else ''
        raise MissingOperand(f"{prog}: missing destination file operand{after}")
    sources, destination = paths[:-1], paths[-1]
    if len(sources) > 1 and not isinstance(context.fs.resolve_path(destination), MemDirectory):
        raise NotADirectory(f"{prog}: target '{destination}' is not a directory")
    return sources, destination


def mv(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='mv', description='Move or rename files and directories')
    parser.add_argument('paths', nargs='*', help='SOURCE... DEST')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    sources, destination = _sources_and_destination(context, 'mv', parsed.paths)
    for source in sources:
        try:
            context.fs.move(source, destination)
        except FileSystemError as e:
            raise prefixed('mv', e) from None
    return ''


def cp(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='cp', description='Copy files and directories')
    parser.add_argument('-r', '-R', '--recursive', dest='recursive', action='store_true',
                        help='Copy directories recursively')
    parser.add_argument('paths', nargs='*', help='SOURCE... DEST')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    sources, destination = _sources_and_destination(context, 'cp', parsed.paths)
    for source in sources:
        node = context.fs.resolve_path(source)
        if isinstance(node, MemDirectory) and not parsed.recursive:
            raise IsADirectory(f"cp: -r not specified; omitting directory '{source}'")
        try:
            context.fs.copy(source, destination, recursive=parsed.recursive)
        except FileSystemError as e:
            raise prefixed('cp', e) from None
    return ''


# ============================================================================
# CONTENT
# ============================================================================

def write(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    """
    write FILE CONTENT...   create or overwrite FILE with the joined words
    ... | write FILE        same, with piped input as content
    """
    if not args or (len(args) < 2 and stdin is None):
        raise MissingOperand("write: missing file or content argument")

    path = args[0]
    content = ' '.join(args[1:]) if len(args) > 1 else stdin
    try:
        context.fs.write_file(path, content)
    except FileSystemError as e:
        raise prefixed('write', e) from None
    return ''


def _number_lines(text: str) -> str:
    return '\n'.join(f"{number:>6}  {line}" for number, line in enumerate(split_text(text), start=1))


def cat(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='cat', description='Concatenate and display files')
    parser.add_argument('-n', '--number', action='store_true', help='Number all output lines')
    parser.add_argument('files', nargs='*', help='Files to concatenate (use - for stdin)')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    output = ''.join(content for _, content in read_inputs(context, 'cat', parsed.files, stdin))
    return _number_lines(output) if parsed.number else output


COMMAND_MAP = {
    # name: (handler, accepts_stdin)
    'pwd': (pwd, False),
    'cd': (cd, False),
    'ls': (ls, False),
    'mkdir': (mkdir, False),
    'touch': (touch, False),
    'rm': (rm, False),
    'mv': (mv, False),
    'cp': (cp, False),
    'write': (write, True),
    'cat': (cat, True),
}

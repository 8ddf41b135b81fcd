"""
Shared helpers for built-in commands

Every handler has the shape handler(context, args, stdin) -> str and raises
ShellError subclasses with shell-formatted messages ("cat: x: No such file
or directory"). The helpers below take care of the recurring parts: reading
operands, falling back to stdin and prefixing filesystem errors with the
command name.
"""
from typing import List, Optional, Tuple

from ..command_registry import CommandContext
from ..errors import FileSystemError, IsADirectory, MissingOperand, NoSuchPath
from ..memfs import MemFile


def prefixed(prog: str, error: FileSystemError) -> FileSystemError:
    """Same error kind, message prefixed with the command name"""
    return type(error)(f"{prog}: {error}")


def read_file(context: CommandContext, prog: str, path: str) -> str:
    node = context.fs.resolve_path(path)
    if node is None:
        raise NoSuchPath(f"{prog}: {path}: No such file or directory")
    if not isinstance(node, MemFile):
        raise IsADirectory(f"{prog}: {path}: Is a directory")
    return node.read()


def read_inputs(context: CommandContext, prog: str, files: List[str],
                stdin: Optional[str]) -> List[Tuple[str, str]]:
    """
    (name, content) pairs for file operands, or stdin when there are none.

    Raises:
        MissingOperand: neither files nor stdin were given
    """
    if not files:
        if stdin is None:
            raise MissingOperand(f"{prog}: missing file operand")
        return [('-', stdin)]

    inputs = []
    for path in files:
        if path == '-' and stdin is not None:
            inputs.append(('-', stdin))
        else:
            inputs.append((path, read_file(context, prog, path)))
    return inputs


def split_text(text: str) -> List[str]:
    """Lines of command output (no trailing newline convention)"""
    if text == '':
        return []
    if text.endswith('\n'):
        text = text[:-1]
    return text.split('\n')

"""
Host transfer commands: import, export

    import [-r] HOST_PATH [VFS_PATH]    copy host file/directory into the VFS
    export VFS_PATH HOST_PATH           copy VFS file/directory to the host

These are the only commands that touch the host filesystem; everything
else runs against MemFS.
"""
from pathlib import Path
from typing import List, Optional

from ..command_registry import CommandContext, ShellArgumentParser
from ..errors import FileSystemError, IsADirectory, NoSuchPath, ShellError
from ..host_bridge import HostBridge
from ..memfs import MemDirectory


def import_command(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='import', description='Import a file or directory from the host filesystem')
    parser.add_argument('-r', '-R', '--recursive', dest='recursive', action='store_true',
                        help='Import directories recursively')
    parser.add_argument('source', help='Host path')
    parser.add_argument('destination', nargs='?', help='VFS path (default: current directory)')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    source = Path(parsed.source)
    bridge = HostBridge(context.fs)
    try:
        if source.is_dir():
            if not parsed.recursive:
                raise IsADirectory(f"{parsed.source}: omitting directory (use -r or -R for recursive)")
            destination = parsed.destination or source.resolve().name
            bridge.import_directory(source, destination)
        else:
            bridge.import_file(source, parsed.destination or '.')
    except (FileSystemError, OSError) as e:
        raise ShellError(f"import: {e}") from None
    return f"Imported: {parsed.source}"


def export_command(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='export', description='Export a file or directory to the host filesystem')
    parser.add_argument('source', help='VFS path')
    parser.add_argument('destination', help='Host path')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    node = context.fs.resolve_path(parsed.source)
    if node is None:
        raise NoSuchPath(f"export: {parsed.source}: No such file or directory")

    bridge = HostBridge(context.fs)
    try:
        if isinstance(node, MemDirectory):
            bridge.export_directory(parsed.source, parsed.destination)
        else:
            bridge.export_file(parsed.source, parsed.destination)
    except (FileSystemError, OSError) as e:
        raise ShellError(f"export: {e}") from None
    return f"Exported: {parsed.source} -> {parsed.destination}"


COMMAND_MAP = {
    'import': (import_command, False),
    'export': (export_command, False),
}

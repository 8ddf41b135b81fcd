"""
patch - apply a diff to files in the VFS

    patch < fix.diff                    files named in the headers
    patch -p1 -i fix.diff               strip one leading path component
    patch a.txt < fix.diff              explicit target
    patch -R a.txt < fix.diff           undo
    patch -o out.txt a.txt < fix.diff   write result elsewhere

Unified, context and normal diffs are accepted. A normal diff carries no
file names, so its target must be given explicitly. A file that does not
exist is created when every hunk only adds lines.
"""
import logging
from typing import List, Optional

from ..command_registry import CommandContext, ShellArgumentParser
from ..diff_engine import split_lines
from ..errors import FileSystemError, IsADirectory, MissingOperand, ShellError
from ..memfs import MemFile
from ..patch_engine import ParsedPatch, apply_patch, parse_patch_set, strip_path_components
from .base import prefixed, read_file

logger = logging.getLogger('PatchCommand')

DEV_NULL = '/dev/null'


def _creates_file(patch: ParsedPatch, reverse: bool) -> bool:
    """True if every hunk has an empty old side (file is being created)"""
    for hunk in patch.hunks:
        splice = hunk.to_splice()
        if reverse:
            splice = splice.reversed()
        if splice.old_lines:
            return False
    return True


def _resolve_target(context: CommandContext, patch: ParsedPatch, strip: int, reverse: bool) -> str:
    """
    File a patch section applies to.

    The first header name that exists wins. A missing file is only
    acceptable when the section creates it.
    """
    names = [patch.target_file, patch.source_file]
    if reverse:
        names.reverse()
    candidates = [strip_path_components(name, strip) for name in names if name and name != DEV_NULL]

    for candidate in candidates:
        if isinstance(context.fs.resolve_path(candidate), MemFile):
            return candidate
    if candidates and _creates_file(patch, reverse):
        return candidates[0]
    raise ShellError("patch: cannot determine file to patch")


def _patched_content(context: CommandContext, path: str, hunks, reverse: bool) -> str:
    node = context.fs.resolve_path(path)
    if node is not None and not isinstance(node, MemFile):
        raise IsADirectory(f"patch: {path}: Is a directory")
    original = node.read() if node is not None else ''

    result = '\n'.join(apply_patch(split_lines(original), hunks, reverse=reverse))
    if original.endswith('\n') and result:
        result += '\n'
    return result


def patch(context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
    parser = ShellArgumentParser(prog='patch', description='Apply a diff file to an original')
    parser.add_argument('-p', '--strip', type=int, default=0, metavar='NUM',
                        help='Strip NUM leading components from file names')
    parser.add_argument('-R', '--reverse', action='store_true', help='Assume patches were created with old and new swapped')
    parser.add_argument('-o', '--output', metavar='FILE', help='Write the result to FILE instead of patching in place')
    parser.add_argument('-i', '--input', metavar='PATCHFILE', help='Read the patch from PATCHFILE instead of stdin')
    parser.add_argument('file', nargs='?', help='File to patch (default: taken from the patch headers)')
    parsed = context.parse_args_with_help(parser, args)
    if isinstance(parsed, str):
        return parsed

    if parsed.input:
        text = read_file(context, 'patch', parsed.input)
    elif stdin is not None:
        text = stdin
    else:
        raise MissingOperand("patch: missing patch input (use -i or stdin)")

    sections = parse_patch_set(text)
    if parsed.file:
        # Explicit target: every hunk of every section goes to that file
        work = [(parsed.file, [hunk for section in sections for hunk in section.hunks])]
    else:
        work = [(_resolve_target(context, section, parsed.strip, parsed.reverse), section.hunks)
                for section in sections]

    if parsed.output and len(work) > 1:
        raise ShellError("patch: -o requires a patch for a single file")

    messages = []
    for path, hunks in work:
        content = _patched_content(context, path, hunks, parsed.reverse)
        destination = parsed.output or path
        try:
            context.fs.write_file(destination, content)
        except FileSystemError as e:
            raise prefixed('patch', e) from None
        logger.debug(f"Applied {len(hunks)} hunk(s) to {path} -> {destination}")
        messages.append(f"patched {path}" if destination == path else f"patched {path} to {destination}")
    return '\n'.join(messages)


COMMAND_MAP = {
    'patch': (patch, True),
}

"""
Redirection application against the VFS

    <      file content becomes stdin
    >      stdout overwrites file (created if missing)
    >>     stdout appended, '\n' inserted when the file is not empty
    2>     errors captured into file instead of failing the command
    2>>    same, appended
    &>     stdout and errors both go to the file
    2>&1   errors captured and appended to stdout

Outputs carry no trailing newline, which is why appends insert the
separator themselves: `echo a > f; echo b >> f` leaves "a\nb".

Order for one command:
    1. read '<' input
    2. run command (errors captured if any stderr redirection is present)
    3. write 2> / 2>> / &> files
    4. merge stderr into stdout for 2>&1
    5. write > / >> files (stdout is consumed, '' returned)
"""
import logging
from typing import List, Optional

from .constants import STDERR_REDIRECTIONS
from .errors import IsADirectory, NoSuchPath
from .memfs import MemFile, MemFS
from .pipeline_parser import Redirection


def _join_nonempty(*parts: str) -> str:
    return '\n'.join(part for part in parts if part)


class RedirectionApplier:
    """Applies parsed redirections for a single command"""

    def __init__(self, fs: MemFS, logger=None):
        self.fs = fs
        self.logger = logger or logging.getLogger('RedirectionApplier')

    @staticmethod
    def captures_errors(redirections: List[Redirection]) -> bool:
        """True if a failure should be recorded instead of raised"""
        return any(r.operator in STDERR_REDIRECTIONS or r.operator == '2>&1' for r in redirections)

    def read_input(self, redirections: List[Redirection], stdin: Optional[str]) -> Optional[str]:
        """Stdin for the command: last '<' wins over piped input"""
        for redirection in redirections:
            if redirection.operator != '<':
                continue
            node = self.fs.resolve_path(redirection.target)
            if node is None:
                raise NoSuchPath(f"{redirection.target}: No such file or directory")
            if not isinstance(node, MemFile):
                raise IsADirectory(f"{redirection.target}: Is a directory")
            stdin = node.read()
        return stdin

    def apply_output(self, output: str, stderr_lines: List[str], redirections: List[Redirection]) -> str:
        """
        Route stdout / captured stderr to files.

        Returns:
            What remains on stdout ('' once a stdout redirection took it)
        """
        stderr_text = '\n'.join(stderr_lines)

        for redirection in redirections:
            if redirection.operator == '2>':
                self.write(redirection.target, stderr_text, append=False)
            elif redirection.operator == '2>>':
                self.write(redirection.target, stderr_text, append=True)
            elif redirection.operator == '&>':
                self.write(redirection.target, _join_nonempty(output, stderr_text), append=False)
                output = ''
                stderr_text = ''

        if any(r.operator == '2>&1' for r in redirections) and stderr_text:
            output = _join_nonempty(output, stderr_text)

        stdout_targets = [r for r in redirections if r.operator in ('>', '>>')]
        for index, redirection in enumerate(stdout_targets):
            last = index == len(stdout_targets) - 1
            # Earlier targets are still created/truncated, only the last receives data
            content = output if last else ''
            self.write(redirection.target, content, append=redirection.operator == '>>')
        if stdout_targets:
            output = ''

        return output

    def write(self, target: str, content: str, append: bool = False):
        """Overwrite or append to target, creating it when missing"""
        node = self.fs.resolve_path(target)
        if node is not None and not isinstance(node, MemFile):
            raise IsADirectory(f"{target}: Is a directory")

        if node is None:
            self.fs.create_file(target, content)
        elif append:
            if node.read() and content:
                node.append('\n' + content)
            else:
                node.append(content)
        else:
            node.write(content)
        self.logger.debug(f"Redirected {len(content)} chars to {target} (append={append})")

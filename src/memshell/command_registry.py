"""
Command Registry - pluggable command dispatch

ARCHITECTURE:
    CommandExecutor.exec_single(['grep', '-n', 'x', 'a.txt'], stdin)
        ↓
    registry.get('grep') → Command
        ↓
    command.execute(CommandContext, ['-n', 'x', 'a.txt'], stdin) → str

RESPONSIBILITIES:
- Command capability (ABC) and a function adapter for plain handlers
- Name → Command mapping populated at startup
- CommandContext handed to every handler: VFS handle, stdin, optional
  stderr sink, argument parsing with -h/--help support, wildcard
  expansion, recursive file listing
- ShellArgumentParser: argparse that raises instead of exiting

NOT RESPONSIBLE FOR:
- Command implementations (memshell.commands)
- Redirections, pipes, operators (CommandExecutor)

DESIGN PATTERN: Registry + Command
"""
import argparse
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Union

from .errors import CommandNotFound, ShellError
from .memfs import MemFile, MemFS
from .wildcard_expander import WildcardExpander


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

class HelpRequested(Exception):
    """Raised by ShellArgumentParser when -h/--help is given"""

    def __init__(self, text: str):
        super().__init__(text)
        self.text = text


class ShellArgumentParser(argparse.ArgumentParser):
    """
    ArgumentParser that never touches sys.exit / sys.stdout.

    Usage errors become ShellError, help output becomes HelpRequested.
    """

    def __init__(self, prog: str, description: Optional[str] = None, **kwargs):
        kwargs.setdefault('allow_abbrev', False)
        super().__init__(prog=prog, description=description, **kwargs)

    def print_help(self, file=None):
        raise HelpRequested(self.format_help())

    def exit(self, status=0, message=None):
        if message:
            raise ShellError(message.strip())
        raise ShellError(f"{self.prog}: exited with status {status}")

    def error(self, message):
        raise ShellError(f"{self.prog}: {message}\n{self.format_usage().strip()}")


ParseResult = Union[argparse.Namespace, str]


def parse_args_with_help(parser: argparse.ArgumentParser, args: List[str]) -> ParseResult:
    """
    Parse args, returning help text instead of a namespace for -h/--help.

    Handlers check `isinstance(result, str)` and return it unchanged.
    """
    try:
        return parser.parse_intermixed_args([str(a) for a in args])
    except HelpRequested as help_request:
        return help_request.text.strip()


# ============================================================================
# COMMAND CONTEXT
# ============================================================================

@dataclass
class CommandContext:
    """Everything a command handler may use"""
    fs: MemFS
    stdin: Optional[str] = None
    stderr: Optional[List[str]] = None
    expander: Optional[WildcardExpander] = None
    registry: Optional['CommandRegistry'] = None
    extras: Dict = field(default_factory=dict)

    @property
    def cwd(self) -> str:
        return self.fs.get_current_directory()

    def parse_args_with_help(self, parser: argparse.ArgumentParser, args: List[str]) -> ParseResult:
        return parse_args_with_help(parser, args)

    def expand_wildcards(self, args: List[str], cwd: Optional[str] = None) -> List[str]:
        expander = self.expander or WildcardExpander(self.fs)
        return expander.expand(args, cwd)

    def get_all_files_recursive(self, dir_path: str) -> List[str]:
        """
        Every file below dir_path (depth first), prefixed with dir_path as
        given so that `grep -R x src` reports src/a.txt, not /abs/src/a.txt.
        """
        node = self.fs.lookup(dir_path)
        if isinstance(node, MemFile):
            return [dir_path]
        base = dir_path.rstrip('/')
        return [f"{base}/{rel}" for rel, child in self.fs.walk(node) if isinstance(child, MemFile)]

    def write_stderr(self, message: str):
        """Record a diagnostic without failing the command"""
        if self.stderr is not None:
            self.stderr.append(message)
        else:
            logging.getLogger('CommandContext').warning(message)


# ============================================================================
# COMMAND CAPABILITY
# ============================================================================

class Command(ABC):
    """
    A shell command.

    accepts_stdin: handlers that read piped input get it as the stdin
    argument; others are called with stdin=None.
    """
    name: str = ''
    accepts_stdin: bool = False

    @abstractmethod
    def execute(self, context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
        pass


Handler = Callable[[CommandContext, List[str], Optional[str]], str]


class FunctionCommand(Command):
    """Adapter turning a plain handler function into a Command"""

    def __init__(self, name: str, handler: Handler, accepts_stdin: bool = False):
        self.name = name
        self.handler = handler
        self.accepts_stdin = accepts_stdin

    def execute(self, context: CommandContext, args: List[str], stdin: Optional[str] = None) -> str:
        return self.handler(context, args, stdin)

    def __repr__(self):
        return f"FunctionCommand({self.name!r}, accepts_stdin={self.accepts_stdin})"


class CommandRegistry:
    """Name → Command mapping"""

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger('CommandRegistry')
        self._commands: Dict[str, Command] = {}

    def register(self, command: Command, name: Optional[str] = None):
        key = name or command.name
        if not key:
            raise ValueError("command needs a name")
        self._commands[key] = command
        self.logger.debug(f"Registered command '{key}'")

    def register_function(self, name: str, handler: Handler, accepts_stdin: bool = False):
        self.register(FunctionCommand(name, handler, accepts_stdin))

    def register_all(self, commands: Iterable[Command]):
        for command in commands:
            self.register(command)

    def unregister(self, name: str):
        self._commands.pop(name, None)

    def get(self, name: str) -> Command:
        try:
            return self._commands[name]
        except KeyError:
            raise CommandNotFound(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def names(self) -> List[str]:
        return sorted(self._commands)

"""
memshell - POSIX-flavored shell over an in-memory filesystem

Package structure:
- constants.py: Tunables and operator tables
- errors.py: Exception taxonomy (ShellError and subclasses)
- memfs.py: Virtual filesystem (arena of nodes)
- host_bridge.py: Import/export/seed between MemFS and the host
- shell_lexer.py: Tokenizer
- pipeline_parser.py: Operator chains and redirections
- heredoc_parser.py: Heredoc detection and parsing
- wildcard_expander.py: Glob expansion against MemFS
- substitution_expander.py: $(...) expansion
- command_registry.py: Command capability, context and registry
- redirections.py: Applying redirections to MemFS
- command_executor.py: Command line execution coordinator
- diff_engine.py: LCS diff with normal/unified/context output
- patch_engine.py: Patch parsing and application
- commands/: Built-in commands
- tool_executor.py: Base class for tool executors
- mem_shell_tool.py: Agent-facing facade ("Exit code: N" contract)
"""
from .command_executor import CommandExecutor
from .command_registry import Command, CommandContext, CommandRegistry, FunctionCommand
from .commands import create_default_registry
from .diff_engine import DiffFormat, DiffOptions, compute_diff, diff_lines, diff_texts
from .errors import ShellError
from .host_bridge import HostBridge
from .mem_shell_tool import MemShellTool
from .memfs import MemDirectory, MemFile, MemFS
from .patch_engine import apply_patch, parse_patch, parse_patch_set
from .shell_lexer import tokenize
from .tool_executor import ToolExecutor, ToolResult

__version__ = '0.1.0'

__all__ = [
    'Command',
    'CommandContext',
    'CommandExecutor',
    'CommandRegistry',
    'DiffFormat',
    'DiffOptions',
    'FunctionCommand',
    'HostBridge',
    'MemDirectory',
    'MemFile',
    'MemFS',
    'MemShellTool',
    'ShellError',
    'ToolExecutor',
    'ToolResult',
    'apply_patch',
    'compute_diff',
    'create_default_registry',
    'diff_lines',
    'diff_texts',
    'parse_patch',
    'parse_patch_set',
    'tokenize',
]

"""
MemShell Tool - agent-facing facade (thin layer)

ARCHITECTURE:
This is the TOP-LEVEL ENTRY POINT for running shell commands against the
in-memory filesystem. It is a THIN ORCHESTRATOR over CommandExecutor.

Position in hierarchy:
    USER/API
       ↓
    MemShellTool (this class) ← FACADE
       ↓
    CommandExecutor ← parsing, operators, redirections, dispatch
       ↓
    ├── CommandRegistry ← built-in commands
    └── MemFS ← state that persists between calls

RESPONSIBILITIES:
1. Tool schema (input validation and formatting come from ToolExecutor)
2. Converting failures into exit codes (the only layer that does)
3. Exit code selection from the executor state
4. Session state: export / import / reset

NOT RESPONSIBLE FOR:
- Command line parsing and execution (CommandExecutor)
- Command behaviour (memshell.commands)
- Host filesystem access (HostBridge, reached only through import/export)

DATA FLOW:
    execute(tool_input) →
        1. CommandExecutor.exec(command) → stdout
        2. ToolResult(exit_code, stdout, stderr).format() → formatted_string

USAGE PATTERN:
    tool = MemShellTool()
    tool.execute({"command": "mkdir -p /src && echo hi > /src/a.txt"})
    # "Exit code: 0"
    tool.execute({"command": "cat /src/a.txt"})
    # "Exit code: 0\\n\\nhi"

API CONTRACT:
The execute() method returns a string formatted as:
    Exit code: 0 [\\n\\n stdout]
    Exit code: 1 (error)\\n\\n--- stderr ---\\n message
"""
from typing import Dict, Optional

from .command_executor import CommandExecutor
from .command_registry import CommandRegistry
from .constants import MAX_SUBSTITUTION_DEPTH, TOOL_DESCRIPTION, TOOL_NAME
from .memfs import MemFS
from .tool_executor import ToolExecutor, ToolResult


class MemShellTool(ToolExecutor):
    """
    Shell tool over an in-memory filesystem.

    The filesystem and working directory persist across execute() calls
    until reset() or import_state().
    """

    REQUIRED_PARAMS = ('command',)

    def __init__(self, fs: Optional[MemFS] = None, registry: Optional[CommandRegistry] = None,
                 max_substitution_depth: int = MAX_SUBSTITUTION_DEPTH, enabled: bool = True):
        """
        Initialize MemShellTool

        Args:
            fs: Filesystem to start from (fresh MemFS by default)
            registry: Command registry (built-ins by default)
            max_substitution_depth: Deepest $(...) nesting that is expanded
            enabled: Tool enabled state
        """
        super().__init__(TOOL_NAME, enabled)
        self._registry = registry
        self._max_substitution_depth = max_substitution_depth
        self.executor = self._create_executor(fs or MemFS())
        self.logger.info("MemShellTool initialized")

    def _create_executor(self, fs: MemFS) -> CommandExecutor:
        return CommandExecutor(
            fs=fs,
            registry=self._registry,
            max_substitution_depth=self._max_substitution_depth,
            logger=self.logger,
        )

    @property
    def fs(self) -> MemFS:
        return self.executor.fs

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def run(self, tool_input: Dict) -> ToolResult:
        """
        Run one command line.

        Errors never escape: they become exit code 1 with the message on stderr.
        """
        command = tool_input['command']
        self.logger.info(f"Executing: {command[:100]}")

        try:
            stdout = self.executor.exec(command)
        except Exception as e:
            self.logger.debug(f"Command failed: {e}")
            return ToolResult(1, stderr=str(e))

        return ToolResult(self.executor.last_exit_code, stdout=stdout)

    def get_definition(self) -> dict:
        """Return tool definition for API"""
        return {
            "name": self.name,
            "description": TOOL_DESCRIPTION,
            "input_schema": {
                "type": "object",
                "properties": {
                    "command": {
                        "type": "string",
                        "description": "Shell command line to run against the in-memory filesystem"
                    },
                },
                "required": ["command"]
            }
        }

    # ========================================================================
    # SESSION STATE
    # ========================================================================

    def get_cwd(self) -> str:
        return self.fs.get_current_directory()

    def export_state(self) -> Dict:
        """Serializable snapshot: {'cwd': ..., 'root': {...}}"""
        return {
            'cwd': self.fs.get_current_directory(),
            'root': self.fs.export_tree(),
        }

    def import_state(self, state: Dict):
        """Replace the filesystem with a snapshot from export_state()"""
        self.fs.import_tree(state['root'])
        cwd = state.get('cwd')
        if cwd and self.fs.resolve_path(cwd) is not None:
            self.fs.change_directory(cwd)
        self.logger.info(f"State imported (cwd={self.get_cwd()})")

    def reset(self):
        """Start over with an empty filesystem"""
        self.executor = self._create_executor(MemFS())
        self.logger.info("MemShellTool reset")

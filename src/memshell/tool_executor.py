"""
Tool executor base - input validation and result formatting for agent tools

ARCHITECTURE:
    agent loop → ToolExecutor.execute(tool_input)
                   1. required parameters present?   (REQUIRED_PARAMS)
                   2. tool enabled?
                   3. run(tool_input) → ToolResult     (subclass)
                   4. ToolResult.format() → "Exit code: N ..." string

RESPONSIBILITIES:
- Check required parameters and the enabled flag before running
- Render ToolResult in the "Exit code: N" contract shared by shell tools
- Enable/disable switch and a per-tool logger

NOT RESPONSIBLE FOR:
- What a tool does (run() in the subclass)
- The function-calling schema content (get_definition() in the subclass)
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass
class ToolResult:
    """Outcome of one tool run before formatting"""
    exit_code: int
    stdout: str = ''
    stderr: str = ''

    def format(self) -> str:
        """
        Exit code: 0 [\\n\\n stdout]
        Exit code: N (error) [\\n\\n stdout] [\\n\\n--- stderr ---\\n stderr]

        The stderr section appears only for failures, and only when there is
        stderr text or nothing else to show.
        """
        if self.exit_code == 0:
            lines = [f"Exit code: {self.exit_code}"]
        else:
            lines = [f"Exit code: {self.exit_code} (error)"]

        if self.stdout:
            lines.append("")
            lines.append(self.stdout.rstrip())

        if self.exit_code != 0 and (self.stderr or not self.stdout):
            lines.append("")
            lines.append("--- stderr ---")
            lines.append(self.stderr.rstrip())

        return '\n'.join(lines)


class ToolExecutor(ABC):
    """
    Base class for agent-facing tools.

    Subclasses list their mandatory input keys in REQUIRED_PARAMS and
    implement run() and get_definition().
    """

    REQUIRED_PARAMS: Tuple[str, ...] = ()

    def __init__(self, name: str, enabled: bool = True):
        self.name = name
        self.enabled = enabled
        self.logger = logging.getLogger(f"ToolExecutor.{name}")

    def execute(self, tool_input: Dict) -> str:
        """Validate, run and format. Never raises for tool failures."""
        for param in self.REQUIRED_PARAMS:
            if not tool_input.get(param):
                return f"Error: {param} parameter is required"

        if not self.enabled:
            return f"Error: tool '{self.name}' is disabled"

        return self.run(tool_input).format()

    @abstractmethod
    def run(self, tool_input: Dict) -> ToolResult:
        """Do the work for validated input"""

    @abstractmethod
    def get_definition(self) -> Dict:
        """Function-calling schema: name, description, input_schema"""

    def enable(self):
        """Enable tool execution"""
        self.enabled = True
        self.logger.info(f"Tool '{self.name}' enabled")

    def disable(self):
        """Disable tool execution"""
        self.enabled = False
        self.logger.info(f"Tool '{self.name}' disabled")

"""
SubstitutionExpander - $(...) command substitution

RESPONSIBILITIES:
- Find $(...) spans (nested parens counted, quotes respected)
- Expand inner substitutions first, then execute the span through the
  executor WITHOUT re-expanding (exec_internal(..., expand_substitutions=False))
- Splice the output (one trailing newline stripped) into the line

INPUT: raw command line
OUTPUT: command line with every $(...) replaced

SIDE EFFECTS:
- Executes commands (which may mutate the VFS)

RECURSION:
    expand(line, depth=0)
        └─ $(a $(b))  → expand('a $(b)', depth=1)
                            └─ $(b) → expand('b', depth=2) ...
    Past max_depth the text is returned untouched, so deeply nested
    input terminates with the literal text left in place.

FAILURES:
    A failing substituted command is replaced by '' and the line goes on,
    the same way a failing $(...) does not abort an interactive shell.
    The failure is logged at WARNING level.

NOT RESPONSIBLE FOR:
- Arithmetic expansion $((...)) (left untouched)
- Backticks
"""
import logging
from typing import List, Optional, Tuple

from .constants import MAX_SUBSTITUTION_DEPTH


class SubstitutionExpander:
    """
    Command substitution expander.

    Works on raw text before tokenization; the executor is injected for
    recursive execution.
    """

    def __init__(self, executor, max_depth: int = MAX_SUBSTITUTION_DEPTH, logger=None):
        """
        Args:
            executor: CommandExecutor (needs exec_internal(line, expand_substitutions))
            max_depth: Deepest nesting level that is still expanded
            logger: Logger instance
        """
        self.executor = executor
        self.max_depth = max_depth
        self.logger = logger or logging.getLogger('SubstitutionExpander')

    def expand(self, line: str, depth: int = 0) -> str:
        """Replace every $(...) in line with its command output"""
        if '$(' not in line:
            return line
        if depth > self.max_depth:
            self.logger.warning(f"Substitution depth {depth} exceeds {self.max_depth}, leaving text unexpanded")
            return line

        substitutions = self.find_substitutions(line)
        if not substitutions:
            return line

        # Splice from END to START so earlier offsets stay valid
        result = line
        for start, end, content in reversed(substitutions):
            output = self._run(content, depth)
            result = result[:start] + output + result[end:]
        return result

    def _run(self, content: str, depth: int) -> str:
        command = content
        if '$(' in command:
            command = self.expand(command, depth + 1)
        try:
            self.logger.debug(f"Executing command substitution: {command[:50]}")
            output = self.executor.exec_internal(command, expand_substitutions=False)
        except Exception as e:
            self.logger.warning(f"Command substitution failed ({command[:50]}): {e}")
            return ''
        if output.endswith('\n'):
            output = output[:-1]
        return output

    # ========================================================================
    # SCANNING
    # ========================================================================

    @staticmethod
    def find_substitutions(line: str) -> List[Tuple[int, int, str]]:
        """
        Locate top-level $(...) spans.

        Returns:
            [(start, end, inner_text)] with line[start:end] == '$(' + inner_text + ')'
        """
        spans = []
        i = 0
        in_single = False
        in_double = False
        length = len(line)

        while i < length:
            char = line[i]
            if char == '\\' and not in_single:
                i += 2
                continue
            if char == "'" and not in_double:
                in_single = not in_single
                i += 1
                continue
            if char == '"' and not in_single:
                in_double = not in_double
                i += 1
                continue
            if not in_single and line.startswith('$(', i) and not line.startswith('$((', i):
                end = SubstitutionExpander.find_closing_paren(line, i + 2)
                if end is None:
                    logging.getLogger('SubstitutionExpander').warning(
                        f"Unmatched $( at position {i}, leaving it literal")
                    break
                spans.append((i, end + 1, line[i + 2:end]))
                i = end + 1
                continue
            i += 1

        return spans

    @staticmethod
    def find_closing_paren(line: str, start: int) -> Optional[int]:
        """Index of the ')' closing a '(' just before start, None if unmatched"""
        depth = 1
        quote = None
        i = start
        while i < len(line):
            char = line[i]
            if quote:
                if char == quote:
                    quote = None
                elif char == '\\' and quote == '"':
                    i += 1
            elif char in '\'"':
                quote = char
            elif char == '\\':
                i += 1
            elif char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return None

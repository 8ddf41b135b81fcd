"""
Command Executor - Main parsing and execution coordinator

ARCHITECTURE:
    exec(command_line)
        ↓
    exec_internal(line, expand_substitutions=True)
        ├─ for VAR in ITEMS; do BODY; done → _exec_for_loop (recursive per item)
        ├─ $(...)                          → SubstitutionExpander (recursive, depth-bounded)
        ├─ inline heredoc                  → _exec_inline_heredoc
        └─ parse_pipeline(line) → segments
              ├─ one segment, no operator  → exec_with_redirections / exec_single
              └─ otherwise                 → exec_command_sequence
                                                ├─ pipe: stdout → next stdin
                                                ├─ and:  run next only on success
                                                ├─ or:   run next only on failure
                                                └─ seq:  always run next

RESPONSIBILITIES:
- Parse command lines into segments and redirections
- Drive the operator state machine (last exit code, skip, capture, re-raise)
- Thread stdout into stdin across pipes
- Apply redirections after each segment runs
- Feed heredoc bodies to commands as stdin
- Expand for loops and command substitutions

NOT RESPONSIBLE FOR:
- Command behaviour (CommandRegistry / memshell.commands)
- Path resolution and storage (MemFS)
- Glob matching (WildcardExpander)
- File writes for redirections (RedirectionApplier)

FAILURE POLICY (exec_command_sequence):
    The failing segment's operator decides:
        ;  / end   error text becomes the segment output, chain goes on
        ||         error text becomes the segment output, next segment runs
        && / |     error re-raised, rest of the chain is abandoned
    A single command without operators raises its error unchanged.
    There are no process exit codes: success is 0, any exception is 1.
"""
import logging
import re
from typing import List, Optional

from .command_registry import CommandContext, CommandRegistry
from .constants import FOR_ITEM_EXPANSION_CHARS, MAX_SUBSTITUTION_DEPTH
from .errors import ShellSyntaxError
from .heredoc_parser import InlineHeredoc, is_inline_heredoc, parse_inline_heredoc
from .memfs import MemFS
from .pipeline_parser import (
    PipelineSegment, Redirection, SegmentType,
    parse_pipeline, parse_redirections, split_segments
)
from .redirections import RedirectionApplier
from .shell_lexer import tokenize
from .substitution_expander import SubstitutionExpander
from .wildcard_expander import WildcardExpander

FOR_LOOP_PATTERN = re.compile(
    r'^\s*for\s+(\w+)\s+in\s+(.+?)\s*[;\n]\s*do\s+(.*?)\s*[;\n]\s*done\s*$',
    re.DOTALL,
)


class CommandExecutor:
    """
    Command execution over an in-memory filesystem.

    This is the CORE orchestrator that:
    1. Parses command lines into segments
    2. Resolves redirections and heredocs
    3. Dispatches each segment to the command registry
    """

    def __init__(self, fs: Optional[MemFS] = None, registry: Optional[CommandRegistry] = None,
                 max_substitution_depth: int = MAX_SUBSTITUTION_DEPTH, logger=None):
        """
        Initialize CommandExecutor.

        Args:
            fs: Filesystem to operate on (a fresh MemFS by default)
            registry: Commands available to the shell (built-ins by default)
            max_substitution_depth: Deepest $(...) nesting that is expanded
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('CommandExecutor')
        self.fs = fs if fs is not None else MemFS()

        if registry is None:
            from .commands import create_default_registry
            registry = create_default_registry()
        self.registry = registry

        self.expander = WildcardExpander(self.fs)
        self.redirector = RedirectionApplier(self.fs)
        self.substitution = SubstitutionExpander(self, max_depth=max_substitution_depth)

        # Result of the most recent top-level line (0 success, 1 failure)
        self.last_exit_code = 0

        self.logger.info(f"CommandExecutor initialized with {len(self.registry.names())} commands")

    # ========================================================================
    # MAIN EXECUTION ENTRY POINT
    # ========================================================================

    def exec(self, command_line: str) -> str:
        """
        Execute a command line.

        Returns:
            Output of the line (no trailing newline convention)

        Raises:
            ShellError (or any handler error) for failures that are not
            captured by an operator or a stderr redirection
        """
        self.logger.info(f"Executing: {command_line[:100]}")
        self.last_exit_code = 0
        try:
            return self.exec_internal(command_line, expand_substitutions=True)
        except Exception:
            self.last_exit_code = 1
            raise

    def exec_internal(self, command_line: str, expand_substitutions: bool = True) -> str:
        """
        Execute without logging at INFO level.

        This is the recursion point for $(...): the substitution expander
        calls it with expand_substitutions=False so that captured text is
        not expanded a second time.
        """
        if not command_line or not command_line.strip():
            return ''

        loop = FOR_LOOP_PATTERN.match(command_line.strip())
        if loop:
            variable, items, body = loop.groups()
            return self._exec_for_loop(variable, items, body, expand_substitutions)

        if expand_substitutions:
            command_line = self.substitution.expand(command_line)

        if is_inline_heredoc(command_line):
            heredoc = parse_inline_heredoc(command_line)
            if heredoc is not None:
                return self._exec_inline_heredoc(heredoc)

        return self._exec_segments(parse_pipeline(command_line))

    def _exec_segments(self, segments: List[PipelineSegment]) -> str:
        if not segments:
            return ''

        if len(segments) > 1 or segments[0].type is not SegmentType.END:
            return self.exec_command_sequence(segments)

        segment = segments[0]
        command, redirections = parse_redirections(segment.command)
        output = self._run_segment(command, redirections, segment.heredoc)
        self.last_exit_code = 0
        return output

    # ========================================================================
    # SINGLE COMMAND
    # ========================================================================

    def exec_single(self, command_tokens: List[str], stdin: Optional[str] = None,
                    stderr: Optional[List[str]] = None) -> str:
        """
        Dispatch one command to the registry.

        Raises:
            CommandNotFound: name not registered
        """
        if not command_tokens:
            return ''

        name, args = command_tokens[0], list(command_tokens[1:])
        command = self.registry.get(name)
        args = self.expander.expand(args)

        context = CommandContext(
            fs=self.fs,
            stdin=stdin,
            stderr=stderr,
            expander=self.expander,
            registry=self.registry,
        )

        self.logger.debug(f"Dispatch: {name} {args} (stdin={'yes' if stdin is not None else 'no'})")
        if command.accepts_stdin:
            output = command.execute(context, args, stdin)
        else:
            output = command.execute(context, args, None)
        return output or ''

    def exec_with_redirections(self, command_tokens: List[str], stdin: Optional[str],
                               redirections: List[Redirection]) -> str:
        """Run one command with <, >, >>, 2>, 2>>, &>, 2>&1 applied"""
        stdin = self.redirector.read_input(redirections, stdin)

        captures = self.redirector.captures_errors(redirections)
        stderr_lines: Optional[List[str]] = [] if captures else None

        try:
            output = self.exec_single(command_tokens, stdin, stderr_lines)
        except Exception as e:
            if not captures:
                raise
            self.logger.debug(f"Captured error into stderr redirection: {e}")
            stderr_lines.append(str(e))
            output = ''

        return self.redirector.apply_output(output, stderr_lines or [], redirections)

    def exec_with_heredoc(self, command_tokens: List[str], content: str) -> str:
        """Run command with the heredoc body as stdin"""
        if not command_tokens:
            raise ShellSyntaxError("syntax error: heredoc without a command")
        return self.exec_single(command_tokens, content)

    def _run_segment(self, command: List[str], redirections: List[Redirection],
                     stdin: Optional[str]) -> str:
        if any(r.operator == '<<' for r in redirections):
            raise ShellSyntaxError("HEREDOC requires multi-line input")
        if redirections:
            return self.exec_with_redirections(command, stdin, redirections)
        return self.exec_single(command, stdin)

    # ========================================================================
    # PIPELINES AND OPERATOR CHAINS
    # ========================================================================

    def exec_pipeline(self, commands: List[List[str]], initial_stdin: Optional[str] = None) -> str:
        """Run commands left to right, each stdout feeding the next stdin"""
        output = initial_stdin
        for tokens in commands:
            command, redirections = parse_redirections(tokens)
            output = self._run_segment(command, redirections, output)
        return output or ''

    def exec_command_sequence(self, segments: List[PipelineSegment]) -> str:
        """
        Walk segments applying operator semantics.

        Returns:
            Output of the last executed segment
        """
        output: Optional[str] = None
        last_exit_code = 0

        for i, segment in enumerate(segments):
            previous = segments[i - 1].type if i > 0 else None

            if previous is SegmentType.AND and last_exit_code != 0:
                self.logger.debug(f"Skipping (&& after failure): {segment.command}")
                continue
            if previous is SegmentType.OR and last_exit_code == 0:
                self.logger.debug(f"Skipping (|| after success): {segment.command}")
                continue

            command, redirections = parse_redirections(segment.command)
            piped = segment.type is SegmentType.PIPE or previous is SegmentType.PIPE
            stdin = output if piped and i > 0 else None
            if segment.heredoc is not None:
                stdin = segment.heredoc

            try:
                output = self._run_segment(command, redirections, stdin)
                last_exit_code = 0
            except Exception as e:
                last_exit_code = 1
                if segment.type in (SegmentType.AND, SegmentType.PIPE):
                    self.last_exit_code = 1
                    raise
                self.logger.debug(f"Segment failed, continuing ({segment.type.value}): {e}")
                output = str(e)

        self.last_exit_code = last_exit_code
        return output or ''

    # ========================================================================
    # HEREDOC
    # ========================================================================

    def _exec_inline_heredoc(self, heredoc: InlineHeredoc) -> str:
        """
        Execute a parsed inline heredoc block.

            cat > out.txt <<EOF          pre_redirects: > out.txt
            body
            EOF | grep x                 redirect: | grep x

        A redirect starting with '|' pipes the heredoc output through the
        remaining pipeline; the pre-redirections then apply to the end of
        that pipeline. Otherwise the redirect text belongs to the heredoc
        command itself (and may continue with && / || / ;).
        """
        if heredoc.prefix.strip():
            self.exec_internal(heredoc.prefix, expand_substitutions=False)

        if not heredoc.terminated:
            self.logger.warning("here-document delimited by end-of-file")

        pre_tokens = [token for r in heredoc.pre_redirects for token in r.to_tokens()]
        redirect = (heredoc.redirect or '').strip()

        if redirect.startswith('|'):
            following = split_segments(tokenize(redirect[1:]))
            first = PipelineSegment(SegmentType.PIPE, list(heredoc.command), heredoc=heredoc.content)
            if following:
                # Pre-redirections move to the end of the pipe chain
                tail = next((s for s in following if s.type is not SegmentType.PIPE), following[-1])
                tail.command = tail.command + pre_tokens
            else:
                first.type = SegmentType.END
                first.command = first.command + pre_tokens
            segments = [first] + following
        else:
            following = split_segments(tokenize(redirect)) if redirect else []
            first = PipelineSegment(SegmentType.END, list(heredoc.command) + pre_tokens,
                                    heredoc=heredoc.content)
            if following:
                first.type = following[0].type
                first.command = first.command + following[0].command
                following = following[1:]
            segments = [first] + following

        if not heredoc.command:
            raise ShellSyntaxError("syntax error: heredoc without a command")

        output = self._exec_segments(segments)

        if heredoc.suffix.strip():
            return self.exec_internal(heredoc.suffix, expand_substitutions=False)
        return output

    # ========================================================================
    # FOR LOOP
    # ========================================================================

    def _exec_for_loop(self, variable: str, items_expr: str, body: str,
                       expand_substitutions: bool) -> str:
        """
        for VAR in ITEMS; do BODY; done

        ITEMS with '*', '?' or '$' go through `echo` first so wildcards and
        substitutions expand. BODY is executed once per item with $VAR and
        ${VAR} replaced textually. A failing iteration is logged and the
        loop continues.
        """
        items_text = items_expr.strip()
        if any(c in items_text for c in FOR_ITEM_EXPANSION_CHARS):
            try:
                items_text = self.exec_internal(f"echo {items_text}", expand_substitutions).strip()
            except Exception as e:
                self.logger.warning(f"for: could not expand '{items_text}', using it literally: {e}")

        items = items_text.split()
        braced = re.compile(r'\$\{' + re.escape(variable) + r'\}')
        plain = re.compile(r'\$' + re.escape(variable) + r'\b')

        outputs = []
        for item in items:
            expanded_body = braced.sub(lambda _: item, body)
            expanded_body = plain.sub(lambda _: item, expanded_body)
            try:
                output = self.exec_internal(expanded_body, expand_substitutions)
            except Exception as e:
                self.logger.warning(f"Error in for loop iteration ({variable}={item}): {e}")
                continue
            if output:
                outputs.append(output)

        return '\n'.join(outputs)

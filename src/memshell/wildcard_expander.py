"""
Wildcard Expander - glob arguments against the VFS

RESPONSIBILITIES:
- Expand '*', '?' and '[...]' arguments into matching VFS paths
- Leave pattern arguments of find-style flags alone (-name '*.txt')
- Leave non-matching patterns unchanged (like bash without nullglob)

BASE DIRECTORY RULES:
    /tmp/*.log     base '/tmp'   pattern '*.log'     results '/tmp/a.log'
    src/*/main.py  base 'src'    pattern '*/main.py' results 'src/x/main.py'
    *.txt          base cwd      pattern '*.txt'     results 'a.txt'

    The base is the longest leading run of path segments without glob
    characters. Everything under the base is listed recursively and each
    relative path is matched segment by segment, so '*' never crosses '/'.
    Leading dots are only matched by patterns that start with a dot.

NOT RESPONSIBLE FOR:
- Brace expansion ({a,b}) and tilde expansion
- Quoting decisions (quoted words arrive as LiteralWord and are skipped)
"""
import logging
from fnmatch import fnmatchcase
from typing import List, Optional

from .constants import GLOB_CHARS, PATTERN_FLAGS
from .memfs import MemDirectory, MemFS, MemNode
from .shell_lexer import LiteralWord


def has_glob(arg: str) -> bool:
    return any(c in arg for c in GLOB_CHARS)


def _segment_matches(name: str, pattern: str) -> bool:
    if name.startswith('.') and not pattern.startswith('.'):
        return False
    # bash accepts [^...] as negation, fnmatch only [!...]
    return fnmatchcase(name, pattern.replace('[^', '[!'))


def match_path(rel_path: str, pattern: str) -> bool:
    """Match a relative path against a multi-segment glob"""
    names = rel_path.split('/')
    patterns = pattern.split('/')
    if len(names) != len(patterns):
        return False
    return all(_segment_matches(name, pat) for name, pat in zip(names, patterns))


class WildcardExpander:
    """Expands glob arguments using a MemFS listing"""

    def __init__(self, fs: MemFS, logger=None):
        self.fs = fs
        self.logger = logger or logging.getLogger('WildcardExpander')

    def expand(self, args: List[str], cwd: Optional[str] = None) -> List[str]:
        """
        Expand every glob argument.

        Args:
            args: Command arguments (command name excluded)
            cwd: Directory relative patterns are resolved against
                 (default: the filesystem's current directory)
        """
        expanded = []
        skip_next = False

        for arg in args:
            if skip_next:
                expanded.append(arg)
                skip_next = False
                continue

            if arg in PATTERN_FLAGS:
                expanded.append(arg)
                skip_next = True
                continue

            if isinstance(arg, LiteralWord) or not has_glob(arg):
                expanded.append(arg)
                continue

            matches = self.expand_pattern(arg, cwd)
            if matches:
                self.logger.debug(f"Expanded {arg!r} -> {len(matches)} matches")
                expanded.extend(matches)
            else:
                expanded.append(arg)

        return expanded

    def expand_pattern(self, pattern: str, cwd: Optional[str] = None) -> List[str]:
        """Sorted matches for a single pattern (empty list if none)"""
        absolute = pattern.startswith('/')
        segments = [s for s in pattern.split('/') if s]

        literal = []
        while segments and not has_glob(segments[0]):
            literal.append(segments.pop(0))
        if not segments:
            return []

        base_text = '/'.join(literal)
        if absolute:
            base_text = '/' + base_text

        base = self._resolve_base(base_text, cwd)
        if not isinstance(base, MemDirectory):
            return []

        glob = '/'.join(segments)
        matches = [rel for rel, _ in self.fs.walk(base) if match_path(rel, glob)]

        if base_text == '/':
            prefix = '/'
        elif base_text:
            prefix = base_text + '/'
        else:
            prefix = ''
        return sorted(prefix + rel for rel in matches)

    def _resolve_base(self, base_text: str, cwd: Optional[str]) -> Optional[MemNode]:
        start = self.fs.resolve_path(cwd) if cwd else None
        if not base_text:
            return start or self.fs.cwd
        return self.fs.resolve_path(base_text, start)

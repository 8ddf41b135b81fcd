"""
Constants and configuration for the in-memory shell
"""

# ============================================================================
# COMMAND SUBSTITUTION
# ============================================================================
# $(...) expansion recurses once per nesting level. Beyond this depth the
# remaining text is returned unexpanded so that pathological input always
# terminates.
MAX_SUBSTITUTION_DEPTH = 10


# ============================================================================
# OPERATORS
# ============================================================================
# Control operators that split a command line into pipeline segments.
# Values are the segment type assigned to the segment they terminate.
CONTROL_OPERATORS = {
    '|': 'pipe',
    '&&': 'and',
    '||': 'or',
    ';': 'seq',
}

# Redirection operators that consume the following token as their target.
TARGETED_REDIRECTIONS = {'>', '>>', '<', '<<', '2>', '2>>', '&>'}

# Redirection operators that stand alone (no target token).
STANDALONE_REDIRECTIONS = {'2>&1'}

REDIRECT_OPERATORS = TARGETED_REDIRECTIONS | STANDALONE_REDIRECTIONS

# Redirections that capture errors instead of letting them propagate.
STDERR_REDIRECTIONS = {'2>', '2>>', '&>'}

# Multi-character operators recognised by the lexer, longest first so that
# '2>&1' wins over '2>' and '||' wins over '|'.
LEXER_OPERATORS = (
    '2>&1', '2>>', '&&', '||', '>>', '<<', '2>', '&>', '|', ';', '>', '<',
)


# ============================================================================
# WILDCARDS
# ============================================================================
# Flags whose following argument is a pattern consumed by the command itself
# (find -name '*.txt') and must never be expanded against the filesystem.
PATTERN_FLAGS = {'-name', '-iname', '-path', '-ipath', '-regex', '-iregex'}

# Characters that mark an argument as a glob.
GLOB_CHARS = ('*', '?', '[')

# Characters that make the item list of a for loop go through `echo`
# expansion before splitting.
FOR_ITEM_EXPANSION_CHARS = ('*', '?', '$')


# ============================================================================
# DIFF / PATCH
# ============================================================================
# Lines of context used by `diff -u` / `diff -c` without an explicit count.
DEFAULT_DIFF_CONTEXT = 3

# Largest distance (in lines) a hunk may drift from its declared position
# before patch gives up on it.
PATCH_MAX_OFFSET = 1000


# ============================================================================
# TOOL FACADE
# ============================================================================
TOOL_NAME = 'memshell'

TOOL_DESCRIPTION = (
    "Execute shell commands in an in-memory filesystem. Supports pipes (|), "
    "operators (&&, ||, ;), redirections (>, >>, <, 2>, 2>>, &>, 2>&1), "
    "heredocs (<<EOF), command substitution $(...), wildcards and "
    "for loops. Available commands include ls, cat, echo, grep, sed, find, "
    "head, tail, wc, sort, uniq, diff, patch, mkdir, rm, mv, cp, touch, "
    "write, tee and more. State persists across calls."
)

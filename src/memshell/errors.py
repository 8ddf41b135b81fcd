"""
Error taxonomy for the in-memory shell

Every failure a command, the filesystem or one of the parsers can produce is
a ShellError subclass. Messages are already shell-formatted
("cat: x.txt: No such file or directory") because the executor surfaces them
unmodified, either as the raised error or as captured segment output.
"""


class ShellError(RuntimeError):
    """Base class for all shell failures"""


class CommandNotFound(ShellError):
    """Raised when a command name is not registered"""

    def __init__(self, name: str):
        super().__init__(f"{name}: command not found")
        self.name = name


class MissingOperand(ShellError):
    """A required argument (pattern, file, destination) was not given"""


class MalformedScript(ShellError):
    """A script argument (sed expression and the like) could not be parsed"""


# ============================================================================
# FILESYSTEM
# ============================================================================

class FileSystemError(ShellError):
    """Base class for virtual filesystem failures"""


class NoSuchPath(FileSystemError):
    pass


class IsADirectory(FileSystemError):
    pass


class NotADirectory(FileSystemError):
    pass


class NotEmpty(FileSystemError):
    pass


class AlreadyExists(FileSystemError):
    pass


class InvalidPath(FileSystemError):
    pass


# ============================================================================
# PARSING
# ============================================================================

class ShellSyntaxError(ShellError):
    """Command line could not be parsed"""


class UnterminatedQuote(ShellSyntaxError):

    def __init__(self, quote: str, position: int):
        super().__init__(f"syntax error: unterminated {quote} quote at position {position}")
        self.quote = quote
        self.position = position


# ============================================================================
# PATCH
# ============================================================================

class UnsupportedPatchFormat(ShellError):
    """Patch text contains no recognisable hunks"""


class MalformedPatch(ShellError):
    """Hunk header and body disagree"""


class HunkFailed(MalformedPatch):
    """A hunk could not be located in the target file"""

    def __init__(self, number: int, line: int):
        super().__init__(f"patch: Hunk #{number} FAILED at {line}")
        self.number = number
        self.line = line

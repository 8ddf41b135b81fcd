"""
Built-in commands

Each module exposes a COMMAND_MAP of name -> (handler, accepts_stdin).
create_default_registry() merges them into a CommandRegistry; embedders
can register extra Command objects on the returned registry.
"""
from ..command_registry import CommandRegistry
from . import diff_command, fs_commands, io_commands, patch_command, text_commands

COMMAND_MODULES = (fs_commands, text_commands, diff_command, patch_command, io_commands)


def create_default_registry(logger=None) -> CommandRegistry:
    registry = CommandRegistry(logger=logger)
    for module in COMMAND_MODULES:
        for name, (handler, accepts_stdin) in module.COMMAND_MAP.items():
            registry.register_function(name, handler, accepts_stdin)
    return registry


__all__ = ['COMMAND_MODULES', 'create_default_registry']

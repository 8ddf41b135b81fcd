"""
Shared fixtures for memshell tests
"""
import pytest

from memshell import CommandExecutor, MemFS, MemShellTool


@pytest.fixture
def fs():
    return MemFS()


@pytest.fixture
def shell(fs):
    """Executor over the fs fixture with the built-in commands"""
    return CommandExecutor(fs=fs)


@pytest.fixture
def tool():
    return MemShellTool()

"""
MemShellTool facade tests (result format, state, enable/disable)
"""
from memshell import MemFS, MemShellTool, ToolResult
from memshell.constants import TOOL_NAME


def run(tool, command):
    return tool.execute({'command': command})


def test_success_with_output(tool):
    assert run(tool, 'echo hi') == 'Exit code: 0\n\nhi'


def test_success_without_output(tool):
    assert run(tool, 'mkdir -p /src && echo hi > /src/a.txt') == 'Exit code: 0'
    assert run(tool, 'cat /src/a.txt') == 'Exit code: 0\n\nhi'


def test_failure_goes_to_stderr_section(tool):
    assert run(tool, 'cat nope') == (
        'Exit code: 1 (error)\n\n--- stderr ---\ncat: nope: No such file or directory'
    )
    assert run(tool, 'nosuch') == 'Exit code: 1 (error)\n\n--- stderr ---\nnosuch: command not found'


def test_captured_failure_output_is_stdout(tool):
    assert run(tool, 'echo a ; nosuch') == 'Exit code: 1 (error)\n\nnosuch: command not found'


def test_recovered_chain_is_success(tool):
    assert run(tool, 'cat nope || echo fallback') == 'Exit code: 0\n\nfallback'


def test_syntax_error_is_reported(tool):
    result = run(tool, "echo 'unterminated")
    assert result.startswith('Exit code: 1 (error)')
    assert 'unterminated single quote' in result


def test_missing_command(tool):
    assert tool.execute({}) == 'Error: command parameter is required'
    assert run(tool, '') == 'Error: command parameter is required'


def test_disable_and_enable(tool):
    tool.disable()
    assert run(tool, 'echo hi') == f"Error: tool '{TOOL_NAME}' is disabled"
    tool.enable()
    assert run(tool, 'echo hi') == 'Exit code: 0\n\nhi'


def test_state_persists_between_calls(tool):
    run(tool, 'mkdir work')
    run(tool, 'cd work')
    run(tool, 'echo data > f.txt')
    assert tool.get_cwd() == '/work'
    assert run(tool, 'cat /work/f.txt') == 'Exit code: 0\n\ndata'


def test_definition(tool):
    definition = tool.get_definition()
    assert definition['name'] == TOOL_NAME
    assert definition['input_schema']['required'] == ['command']
    assert 'command' in definition['input_schema']['properties']
    assert 'diff' in definition['description']


def test_export_import_state(tool):
    run(tool, 'mkdir -p /p/q && cd /p/q && echo saved > s.txt')
    state = tool.export_state()
    assert state['cwd'] == '/p/q'

    other = MemShellTool()
    other.import_state(state)
    assert other.get_cwd() == '/p/q'
    assert run(other, 'cat s.txt') == 'Exit code: 0\n\nsaved'


def test_reset(tool):
    run(tool, 'echo x > keep.txt')
    tool.reset()
    assert tool.fs.resolve_path('/keep.txt') is None
    assert tool.get_cwd() == '/'


def test_shared_filesystem():
    fs = MemFS()
    fs.create_file('/seed.txt', 'seeded')
    tool = MemShellTool(fs=fs)
    assert run(tool, 'cat seed.txt') == 'Exit code: 0\n\nseeded'
    run(tool, 'echo more > more.txt')
    assert fs.read_file('/more.txt') == 'more'


def test_tool_result_format():
    assert ToolResult(0).format() == 'Exit code: 0'
    assert ToolResult(2, stdout='out\n').format() == 'Exit code: 2 (error)\n\nout'
    assert ToolResult(1, stdout='out', stderr='err').format() == (
        'Exit code: 1 (error)\n\nout\n\n--- stderr ---\nerr'
    )

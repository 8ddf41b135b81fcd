"""
Command substitution tests
"""
from memshell.command_executor import CommandExecutor
from memshell.substitution_expander import SubstitutionExpander


def nested(levels: int) -> str:
    command = 'echo deep'
    for _ in range(levels):
        command = f"echo $({command})"
    return command


def test_find_substitutions():
    line = "echo $(pwd) '$(skip)' $((1+2)) \"$(ls)\""
    spans = SubstitutionExpander.find_substitutions(line)
    assert [content for _, _, content in spans] == ['pwd', 'ls']
    for start, end, content in spans:
        assert line[start:end] == f"$({content})"


def test_find_substitutions_nested_parens():
    line = 'x $(echo (a) $(inner)) y'
    spans = SubstitutionExpander.find_substitutions(line)
    assert len(spans) == 1
    assert spans[0][2] == 'echo (a) $(inner)'


def test_find_closing_paren():
    assert SubstitutionExpander.find_closing_paren('(a (b) c)', 1) == 8
    assert SubstitutionExpander.find_closing_paren('(a ")" b)', 1) == 8
    assert SubstitutionExpander.find_closing_paren('(unclosed', 1) is None


def test_simple_substitution(shell):
    shell.exec('mkdir /work && cd /work')
    assert shell.exec('echo now in $(pwd)') == 'now in /work'


def test_substitution_strips_one_trailing_newline(fs, shell):
    fs.create_file('/v.txt', 'value\n')
    assert shell.exec('echo x$(cat v.txt)y') == 'xvaluey'


def test_substitution_with_pipeline(shell):
    assert shell.exec('echo $(echo hello | sed s/hello/bye/)') == 'bye'


def test_nested_substitution(shell):
    assert shell.exec('echo $(echo $(echo deep))') == 'deep'
    assert shell.exec(nested(10)) == 'deep'


def test_depth_limit_leaves_text(shell):
    result = shell.exec(nested(12))
    assert '$(' in result
    assert 'deep' in result


def test_depth_limit_is_configurable(fs):
    shallow = CommandExecutor(fs, max_substitution_depth=1)
    assert shallow.exec(nested(2)) == 'deep'
    assert '$(' in shallow.exec(nested(4))


def test_failed_substitution_becomes_empty(shell):
    assert shell.exec('echo a$(nosuchcommand)b') == 'ab'


def test_single_quotes_block_substitution(shell):
    assert shell.exec("echo '$(pwd)'") == '$(pwd)'


def test_substitution_can_feed_arguments(fs, shell):
    fs.create_file('/name.txt', 'target.txt')
    fs.create_file('/target.txt', 'found it')
    assert shell.exec('cat $(cat name.txt)') == 'found it'

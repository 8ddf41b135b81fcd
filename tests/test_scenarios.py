"""
End-to-end scenarios
"""
import pytest

from memshell.diff_engine import DiffFormat, DiffOptions, diff_texts
from memshell.errors import ShellError


def test_pipe_filters_file(fs, shell):
    fs.create_file('/a.txt', 'x\ny\n')
    assert shell.exec('cat a.txt | grep x') == 'x'


def test_write_then_append(shell):
    shell.exec('echo hi > f.txt')
    assert shell.exec('cat f.txt') == 'hi'
    shell.exec('echo bye >> f.txt')
    assert shell.exec('cat f.txt') == 'hi\nbye'


def test_unified_single_change():
    output = diff_texts(['a', 'b', 'c'], ['a', 'x', 'c'], 'a', 'b',
                        DiffOptions(format=DiffFormat.UNIFIED, context=1))
    body = output.split('\n')[2:]
    assert body == ['@@ -1,3 +1,3 @@', ' a', '-b', '+x', ' c']


@pytest.mark.parametrize('line, expected', [
    ('echo a && echo b', 'b'),
    ('true || echo skipped', ''),
    ('false || echo ran', 'ran'),
    ('false ; echo after', 'after'),
    ('echo one | echo two', 'two'),
])
def test_operator_semantics(shell, line, expected):
    assert shell.exec(line) == expected


def test_and_after_failure_raises(shell):
    with pytest.raises(ShellError):
        shell.exec('false && echo never')


def test_edit_review_patch_cycle(shell):
    """Typical agent workflow: write, copy, edit, diff, revert, re-apply"""
    shell.exec("cat > app.py <<EOF\ndef main():\n    print('hello')\nEOF")
    shell.exec('cp app.py app.py.orig')
    shell.exec("sed -i s/hello/goodbye/ app.py")
    review = shell.exec('diff -u app.py.orig app.py')
    assert "-    print('hello')" in review
    assert "+    print('goodbye')" in review

    shell.exec('diff -u app.py.orig app.py > change.diff')
    shell.exec('patch -R app.py < change.diff')
    assert shell.exec('cat app.py') == shell.exec('cat app.py.orig')
    assert shell.exec('patch < change.diff') == 'patched app.py'
    assert shell.exec('grep -n goodbye app.py') == "2:    print('goodbye')"


def test_project_scaffold_with_loop(fs, shell):
    shell.exec('mkdir -p src tests')
    shell.exec('for m in core util; do echo "# $m" > src/$m.py; done')
    assert shell.exec('ls src') == 'core.py\nutil.py'
    assert shell.exec('cat src/util.py') == '# util'
    assert shell.exec('find . -name "*.py" | wc -l') == '2'
    assert shell.exec('echo $(ls src | head -n 1)') == 'core.py'

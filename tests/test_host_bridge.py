"""
Host bridge tests (import / export / seed)
"""
import io
import tarfile

import pytest

from memshell.errors import IsADirectory, NoSuchPath, NotADirectory
from memshell.host_bridge import HostBridge


@pytest.fixture
def bridge(fs):
    return HostBridge(fs)


@pytest.fixture
def host_tree(tmp_path):
    root = tmp_path / 'project'
    (root / 'src').mkdir(parents=True)
    (root / 'src' / 'main.py').write_text('print(1)\n', encoding='utf-8')
    (root / 'README').write_text('readme', encoding='utf-8')
    return root


def test_import_file_into_directory(fs, bridge, host_tree):
    fs.create_directories('/dest')
    node = bridge.import_file(host_tree / 'README', '/dest')
    assert fs.get_path(node) == '/dest/README'
    assert fs.read_file('/dest/README') == 'readme'


def test_import_file_creates_parents(fs, bridge, host_tree):
    bridge.import_file(host_tree / 'README', '/a/b/notes.txt')
    assert fs.read_file('/a/b/notes.txt') == 'readme'


def test_import_file_errors(bridge, host_tree):
    with pytest.raises(NoSuchPath):
        bridge.import_file(host_tree / 'missing', '/x')
    with pytest.raises(IsADirectory):
        bridge.import_file(host_tree / 'src', '/x')


def test_import_directory(fs, bridge, host_tree):
    bridge.import_directory(host_tree, '/proj')
    assert fs.read_file('/proj/src/main.py') == 'print(1)\n'
    assert fs.read_file('/proj/README') == 'readme'
    with pytest.raises(NotADirectory):
        bridge.import_directory(host_tree / 'README', '/x')


def test_export_file_and_directory(fs, bridge, tmp_path):
    fs.create_directories('/out/sub')
    fs.create_file('/out/sub/a.txt', 'A')
    fs.create_file('/out/b.txt', 'B')

    exported = bridge.export_file('/out/b.txt', tmp_path)
    assert exported == tmp_path / 'b.txt'
    assert exported.read_text(encoding='utf-8') == 'B'

    target = bridge.export_directory('/out', tmp_path / 'tree')
    assert (target / 'sub' / 'a.txt').read_text(encoding='utf-8') == 'A'
    assert (target / 'b.txt').read_text(encoding='utf-8') == 'B'


def test_export_type_mismatch(fs, bridge, tmp_path):
    fs.create_directories('/d')
    fs.create_file('/f', 'x')
    with pytest.raises(IsADirectory):
        bridge.export_file('/d', tmp_path / 'x')
    with pytest.raises(NotADirectory):
        bridge.export_directory('/f', tmp_path / 'y')


def test_clone_clean(fs, bridge, tmp_path):
    target = tmp_path / 'clone'
    target.mkdir()
    (target / 'stale.txt').write_text('old', encoding='utf-8')
    fs.create_file('/fresh.txt', 'new')
    bridge.clone(target, clean=True)
    assert not (target / 'stale.txt').exists()
    assert (target / 'fresh.txt').read_text(encoding='utf-8') == 'new'


def test_seed_from_directory(fs, bridge, host_tree):
    bridge.seed(host_tree)
    assert fs.read_file('/src/main.py') == 'print(1)\n'


def test_seed_from_archive(fs, bridge, tmp_path):
    archive = tmp_path / 'seed.tar.gz'
    with tarfile.open(archive, 'w:gz') as tar:
        for name, text in (('./pkg/mod.py', 'x = 1\n'), ('../escape.txt', 'nope')):
            data = text.encode('utf-8')
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))

    bridge.seed(archive, '/seeded')
    assert fs.read_file('/seeded/pkg/mod.py') == 'x = 1\n'
    assert fs.resolve_path('/escape.txt') is None


def test_seed_rejects_other_files(bridge, host_tree):
    with pytest.raises(NoSuchPath):
        bridge.seed(host_tree / 'README')

"""
Host Bridge - copy subtrees between MemFS and the host filesystem

ARCHITECTURE:
The shell never touches the host filesystem while executing commands.
The only durability mechanism is this bridge, used explicitly by the
`import` / `export` commands and by embedding applications that want to
seed a session or persist its result.

    host directory / archive  ──seed / import_*──►  MemFS
    MemFS  ──export_* / clone──►  host directory

RESPONSIBILITIES:
- Import a host file or directory tree into a VFS path
- Export a VFS file or directory tree to a host path
- Clone the whole VFS into a host directory
- Seed the VFS from a host directory or a .tar / .tar.gz / .tgz archive

NOT RESPONSIBLE FOR:
- Sandboxing host paths (the embedding application decides which host
  paths a session may reach)
- Binary content (files are decoded as UTF-8, undecodable bytes replaced)
"""
import logging
import shutil
import tarfile
from pathlib import Path
from typing import Union

from .errors import IsADirectory, NoSuchPath, NotADirectory
from .memfs import MemDirectory, MemFile, MemFS

HostPath = Union[str, Path]

ARCHIVE_SUFFIXES = ('.tar', '.tar.gz', '.tgz')


class HostBridge:
    """Import/export bridge between a MemFS and the host filesystem"""

    def __init__(self, fs: MemFS, logger=None):
        self.fs = fs
        self.logger = logger or logging.getLogger('HostBridge')

    # ========== IMPORT ==========

    def import_file(self, host_path: HostPath, vfs_path: str) -> MemFile:
        """
        Copy a host file into the VFS.

        If vfs_path names an existing directory the file keeps its host
        name inside it; parent directories are created as needed.
        """
        source = Path(host_path)
        if not source.exists():
            raise NoSuchPath(f"{source}: No such file or directory")
        if source.is_dir():
            raise IsADirectory(f"{source}: Is a directory")

        target = self.fs.resolve_path(vfs_path)
        if isinstance(target, MemDirectory):
            vfs_path = self._join(self.fs.get_path(target), source.name)
        else:
            dir_path, _ = self.fs.parse_path(vfs_path)
            self.fs.create_directories(dir_path)

        content = source.read_text(encoding='utf-8', errors='replace')
        node = self.fs.write_file(vfs_path, content)
        self.logger.info(f"Imported {source} -> {self.fs.get_path(node)}")
        return node

    def import_directory(self, host_path: HostPath, vfs_path: str) -> MemDirectory:
        """Recursively copy a host directory into vfs_path (created if missing)"""
        source = Path(host_path)
        if not source.is_dir():
            raise NotADirectory(f"{source}: Not a directory")

        root = self.fs.create_directories(vfs_path)
        base = self.fs.get_path(root)
        count = 0
        for entry in sorted(source.rglob('*')):
            rel = entry.relative_to(source).as_posix()
            target = self._join(base, rel)
            if entry.is_dir():
                self.fs.create_directories(target)
            elif entry.is_file():
                content = entry.read_text(encoding='utf-8', errors='replace')
                self.fs.write_file(target, content)
                count += 1
        self.logger.info(f"Imported {count} files from {source} -> {base}")
        return root

    # ========== EXPORT ==========

    def export_file(self, vfs_path: str, host_path: HostPath) -> Path:
        node = self.fs.lookup(vfs_path)
        if not isinstance(node, MemFile):
            raise IsADirectory(f"{vfs_path}: Is a directory")

        target = Path(host_path)
        if target.is_dir():
            target = target / node.name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(node.read(), encoding='utf-8')
        self.logger.info(f"Exported {vfs_path} -> {target}")
        return target

    def export_directory(self, vfs_path: str, host_path: HostPath) -> Path:
        node = self.fs.lookup(vfs_path)
        if not isinstance(node, MemDirectory):
            raise NotADirectory(f"{vfs_path}: Not a directory")

        target = Path(host_path)
        target.mkdir(parents=True, exist_ok=True)
        for rel, child in self.fs.walk(node):
            destination = target / rel
            if isinstance(child, MemDirectory):
                destination.mkdir(parents=True, exist_ok=True)
            else:
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_text(child.read(), encoding='utf-8')
        self.logger.info(f"Exported directory {vfs_path} -> {target}")
        return target

    def clone(self, host_path: HostPath, clean: bool = False) -> Path:
        """
        Export the whole VFS into host_path.

        Args:
            host_path: Destination directory
            clean: Remove destination first so it mirrors the VFS exactly
        """
        target = Path(host_path)
        if clean and target.exists():
            shutil.rmtree(target)
        return self.export_directory('/', target)

    # ========== SEED ==========

    def seed(self, source: HostPath, vfs_path: str = '/') -> MemDirectory:
        """Populate vfs_path from a host directory or tar archive"""
        source = Path(source)
        if source.is_dir():
            return self.import_directory(source, vfs_path)
        if source.is_file() and source.name.endswith(ARCHIVE_SUFFIXES):
            return self._seed_from_archive(source, vfs_path)
        raise NoSuchPath(f"{source}: not a directory or tar archive")

    def _seed_from_archive(self, archive: Path, vfs_path: str) -> MemDirectory:
        root = self.fs.create_directories(vfs_path)
        base = self.fs.get_path(root)
        count = 0
        with tarfile.open(archive, 'r:*') as tar:
            for member in tar.getmembers():
                rel = member.name
                while rel.startswith('./'):
                    rel = rel[2:]
                rel = rel.strip('/')
                # Skip entries escaping the seed root
                if not rel or '..' in rel.split('/'):
                    continue
                target = self._join(base, rel)
                if member.isdir():
                    self.fs.create_directories(target)
                elif member.isfile():
                    handle = tar.extractfile(member)
                    if handle is None:
                        continue
                    dir_path, _ = self.fs.parse_path(target)
                    self.fs.create_directories(dir_path)
                    self.fs.write_file(target, handle.read().decode('utf-8', errors='replace'))
                    count += 1
        self.logger.info(f"Seeded {count} files from {archive} -> {base}")
        return root

    @staticmethod
    def _join(base: str, rel: str) -> str:
        return f"{base.rstrip('/')}/{rel}"

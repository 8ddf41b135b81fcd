"""
MemFS - In-memory virtual filesystem

ARCHITECTURE:
    Nodes live in an arena (dict id -> node) owned by MemFS.
    Directories store child ids by name, every node stores its parent id.
    There are no object references between nodes, so the tree can be
    serialized, cloned or pruned without walking reference cycles.

        MemFS
          ├── _nodes: {0: MemDirectory('/'), 1: MemFile('a.txt'), ...}
          ├── root_id  (always 0, always a directory)
          └── cwd_id   (current working directory)

RESPONSIBILITIES:
- Path resolution (absolute, relative, '.', '..', trailing slashes)
- Structural mutation (create, mkdir -p, remove, move, copy)
- Working directory tracking
- Tree serialization (export_tree / import_tree) for state persistence

NOT RESPONSIBLE FOR:
- Host filesystem access (HostBridge)
- Command-level error prefixes ("cat: ...") - commands add those
- Redirection semantics (redirections module)

INVARIANTS:
- Root has no parent and is a directory
- Sibling names are unique, children keep insertion order
- Every node except root is reachable from exactly one parent

USAGE PATTERN:
    fs = MemFS()
    fs.create_directories('/src/app')
    fs.create_file('/src/app/main.py', 'print(1)')
    fs.change_directory('/src')
    node = fs.resolve_path('app/main.py')
    node.read()   # 'print(1)'
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import (
    AlreadyExists, InvalidPath, IsADirectory, NoSuchPath, NotADirectory, NotEmpty
)


# ============================================================================
# NODE TYPES
# ============================================================================

@dataclass
class MemNode:
    """Common node data. Parent is a non-owning id, None only for root."""
    id: int
    name: str
    parent_id: Optional[int]
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)

    def is_file(self) -> bool:
        return False

    def is_directory(self) -> bool:
        return False

    def touch(self):
        self.modified_at = datetime.now()


@dataclass
class MemFile(MemNode):
    content: str = ''

    def is_file(self) -> bool:
        return True

    def read(self) -> str:
        return self.content

    def write(self, content: str):
        self.content = content
        self.touch()

    def append(self, content: str):
        self.content += content
        self.touch()

    def size(self) -> int:
        """Size in bytes (UTF-8)"""
        return len(self.content.encode('utf-8'))


@dataclass
class MemDirectory(MemNode):
    children: Dict[str, int] = field(default_factory=dict)

    def is_directory(self) -> bool:
        return True


class MemFS:
    """
    In-memory filesystem tree.

    All paths are Unix style strings. Relative paths resolve against the
    current working directory (or an explicit starting node).
    """

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger('MemFS')
        self._nodes: Dict[int, MemNode] = {}
        self._next_id = 0
        self.root_id = self._allocate_directory('', None).id
        self.cwd_id = self.root_id

    # ========================================================================
    # ARENA
    # ========================================================================

    def _allocate_file(self, name: str, parent_id: Optional[int], content: str = '') -> MemFile:
        node = MemFile(id=self._next_id, name=name, parent_id=parent_id, content=content)
        self._nodes[node.id] = node
        self._next_id += 1
        return node

    def _allocate_directory(self, name: str, parent_id: Optional[int]) -> MemDirectory:
        node = MemDirectory(id=self._next_id, name=name, parent_id=parent_id)
        self._nodes[node.id] = node
        self._next_id += 1
        return node

    def _link(self, directory: MemDirectory, node: MemNode):
        directory.children[node.name] = node.id
        node.parent_id = directory.id
        directory.touch()

    def _unlink(self, node: MemNode):
        parent = self.parent_of(node)
        if parent is not None:
            del parent.children[node.name]
            parent.touch()
        node.parent_id = None

    def _discard(self, node: MemNode):
        """Drop node and its whole subtree from the arena"""
        if isinstance(node, MemDirectory):
            for child_id in list(node.children.values()):
                self._discard(self._nodes[child_id])
        del self._nodes[node.id]

    @property
    def root(self) -> MemDirectory:
        return self._nodes[self.root_id]

    @property
    def cwd(self) -> MemDirectory:
        return self._nodes[self.cwd_id]

    def node(self, node_id: int) -> MemNode:
        return self._nodes[node_id]

    def parent_of(self, node: MemNode) -> Optional[MemDirectory]:
        if node.parent_id is None:
            return None
        return self._nodes[node.parent_id]

    def child(self, directory: MemDirectory, name: str) -> Optional[MemNode]:
        child_id = directory.children.get(name)
        return self._nodes[child_id] if child_id is not None else None

    def list_children(self, directory: MemDirectory) -> List[MemNode]:
        """Children in insertion order"""
        return [self._nodes[child_id] for child_id in directory.children.values()]

    def iter_children(self, directory: MemDirectory) -> Iterator[MemNode]:
        for child_id in list(directory.children.values()):
            yield self._nodes[child_id]

    def walk(self, directory: MemDirectory, prefix: str = '') -> Iterator[Tuple[str, MemNode]]:
        """
        Depth-first walk below directory.

        Yields (relative_path, node) for every descendant, directories
        before their contents.
        """
        for node in self.list_children(directory):
            rel = f"{prefix}/{node.name}" if prefix else node.name
            yield rel, node
            if isinstance(node, MemDirectory):
                yield from self.walk(node, rel)

    def get_path(self, node: MemNode) -> str:
        """Absolute path of node"""
        parts = []
        current = node
        while current.parent_id is not None:
            parts.append(current.name)
            current = self._nodes[current.parent_id]
        return '/' + '/'.join(reversed(parts))

    def is_ancestor(self, ancestor: MemNode, node: MemNode) -> bool:
        current = node
        while current is not None:
            if current.id == ancestor.id:
                return True
            current = self.parent_of(current)
        return False

    # ========================================================================
    # PATH RESOLUTION
    # ========================================================================

    def _lookup(self, path: str, from_node: Optional[MemNode] = None) -> MemNode:
        """
        Resolve path or raise.

        Raises:
            NoSuchPath: a segment does not exist
            NotADirectory: a non-final segment is a file
        """
        if not path:
            raise NoSuchPath(f"{path}: No such file or directory")

        if path.startswith('/'):
            current = self.root
        else:
            current = from_node or self.cwd
            if current.is_file():
                current = self.parent_of(current)

        for part in path.split('/'):
            if part in ('', '.'):
                continue
            if not current.is_directory():
                raise NotADirectory(f"{path}: Not a directory")
            if part == '..':
                current = self.parent_of(current) or current
                continue
            found = self.child(current, part)
            if found is None:
                raise NoSuchPath(f"{path}: No such file or directory")
            current = found

        if path.endswith('/') and current.is_file():
            raise NotADirectory(f"{path}: Not a directory")
        return current

    def resolve_path(self, path: str, from_node: Optional[MemNode] = None) -> Optional[MemNode]:
        """Resolve path to a node, None when it does not exist"""
        try:
            return self._lookup(path, from_node)
        except (NoSuchPath, NotADirectory):
            return None

    def lookup(self, path: str, from_node: Optional[MemNode] = None) -> MemNode:
        """Resolve path to a node, raising NoSuchPath / NotADirectory"""
        return self._lookup(path, from_node)

    @staticmethod
    def parse_path(path: str) -> Tuple[str, str]:
        """
        Split path into (directory, name).

        Examples:
            'a.txt'        -> ('.', 'a.txt')
            '/a.txt'       -> ('/', 'a.txt')
            '/x/y/z.txt/'  -> ('/x/y', 'z.txt')
        """
        trimmed = path.rstrip('/') or ('/' if path.startswith('/') else '')
        idx = trimmed.rfind('/')
        if idx == -1:
            return '.', trimmed
        if idx == 0:
            return '/', trimmed[1:]
        return trimmed[:idx], trimmed[idx + 1:]

    def _parent_for_create(self, path: str) -> Tuple[MemDirectory, str]:
        dir_path, name = self.parse_path(path)
        if not name or name in ('.', '..'):
            raise InvalidPath(f"{path}: Invalid path")
        parent = self._lookup(dir_path)
        if not isinstance(parent, MemDirectory):
            raise NotADirectory(f"{dir_path}: Not a directory")
        return parent, name

    # ========================================================================
    # CREATION
    # ========================================================================

    def create_file(self, path: str, content: str = '') -> MemFile:
        parent, name = self._parent_for_create(path)
        if name in parent.children:
            raise AlreadyExists(f"{path}: File exists")
        node = self._allocate_file(name, parent.id, content)
        self._link(parent, node)
        self.logger.debug(f"Created file {self.get_path(node)} ({node.size()} bytes)")
        return node

    def create_directory(self, path: str) -> MemDirectory:
        parent, name = self._parent_for_create(path)
        if name in parent.children:
            raise AlreadyExists(f"{path}: File exists")
        node = self._allocate_directory(name, parent.id)
        self._link(parent, node)
        self.logger.debug(f"Created directory {self.get_path(node)}")
        return node

    def create_directories(self, path: str) -> MemDirectory:
        """mkdir -p: create every missing directory, existing ones are fine"""
        current = self.root if path.startswith('/') else self.cwd
        for part in path.split('/'):
            if part in ('', '.'):
                continue
            if part == '..':
                current = self.parent_of(current) or current
                continue
            existing = self.child(current, part)
            if existing is None:
                existing = self._allocate_directory(part, current.id)
                self._link(current, existing)
            elif not isinstance(existing, MemDirectory):
                raise NotADirectory(f"{path}: Not a directory")
            current = existing
        return current

    def write_file(self, path: str, content: str, append: bool = False) -> MemFile:
        """Create or overwrite (or append to) a file"""
        node = self.resolve_path(path)
        if node is None:
            return self.create_file(path, content)
        if not isinstance(node, MemFile):
            raise IsADirectory(f"{path}: Is a directory")
        if append:
            node.append(content)
        else:
            node.write(content)
        return node

    def read_file(self, path: str) -> str:
        node = self._lookup(path)
        if not isinstance(node, MemFile):
            raise IsADirectory(f"{path}: Is a directory")
        return node.read()

    def touch(self, path: str) -> MemNode:
        node = self.resolve_path(path)
        if node is None:
            return self.create_file(path, '')
        node.touch()
        return node

    # ========================================================================
    # REMOVAL / MOVE / COPY
    # ========================================================================

    def remove(self, path: str, recursive: bool = False):
        node = self._lookup(path)
        if node.id == self.root_id:
            raise InvalidPath("cannot remove root directory")
        if isinstance(node, MemDirectory) and node.children and not recursive:
            raise NotEmpty(f"{path}: Directory not empty")

        # Never leave cwd dangling inside a removed subtree
        if self.is_ancestor(node, self.cwd):
            self.cwd_id = node.parent_id

        self._unlink(node)
        self._discard(node)
        self.logger.debug(f"Removed {path} (recursive={recursive})")

    def _destination(self, src_node: MemNode, dst: str) -> Tuple[MemDirectory, str]:
        """Target directory and name for mv/cp (dst may be an existing dir)"""
        target = self.resolve_path(dst)
        if isinstance(target, MemDirectory):
            return target, src_node.name
        return self._parent_for_create(dst)

    def move(self, src: str, dst: str) -> MemNode:
        node = self._lookup(src)
        if node.id == self.root_id:
            raise InvalidPath("cannot move root directory")
        parent, name = self._destination(node, dst)
        if self.is_ancestor(node, parent):
            raise InvalidPath(f"cannot move '{src}' to a subdirectory of itself, '{dst}'")

        existing = self.child(parent, name)
        if existing is not None and existing.id != node.id:
            if isinstance(existing, MemDirectory):
                raise IsADirectory(f"{dst}: Is a directory")
            if isinstance(node, MemDirectory):
                raise NotADirectory(f"{dst}: Not a directory")
            self._unlink(existing)
            self._discard(existing)

        self._unlink(node)
        node.name = name
        self._link(parent, node)
        self.logger.debug(f"Moved {src} -> {self.get_path(node)}")
        return node

    def copy(self, src: str, dst: str, recursive: bool = False) -> MemNode:
        node = self._lookup(src)
        if isinstance(node, MemDirectory) and not recursive:
            raise IsADirectory(f"{src}: Is a directory")
        parent, name = self._destination(node, dst)
        if isinstance(node, MemDirectory) and self.is_ancestor(node, parent):
            raise InvalidPath(f"cannot copy '{src}' into itself, '{dst}'")

        existing = self.child(parent, name)
        if existing is not None:
            if isinstance(node, MemFile) and isinstance(existing, MemFile):
                existing.write(node.read())
                return existing
            raise AlreadyExists(f"{dst}: File exists")
        return self._copy_into(node, parent, name)

    def _copy_into(self, node: MemNode, parent: MemDirectory, name: str) -> MemNode:
        if isinstance(node, MemFile):
            clone = self._allocate_file(name, parent.id, node.read())
            self._link(parent, clone)
            return clone
        clone = self._allocate_directory(name, parent.id)
        self._link(parent, clone)
        for child in self.list_children(node):
            self._copy_into(child, clone, child.name)
        return clone

    # ========================================================================
    # WORKING DIRECTORY
    # ========================================================================

    def change_directory(self, path: Optional[str] = None):
        """cd; no argument goes to root"""
        if not path:
            self.cwd_id = self.root_id
            return
        node = self._lookup(path)
        if not isinstance(node, MemDirectory):
            raise NotADirectory(f"{path}: Not a directory")
        self.cwd_id = node.id

    def get_current_directory(self) -> str:
        return self.get_path(self.cwd)

    # ========================================================================
    # SERIALIZATION
    # ========================================================================

    def export_tree(self, node: Optional[MemNode] = None) -> Dict:
        """Serialize node (default root) into plain dicts"""
        node = node or self.root
        data = {
            'type': 'file' if node.is_file() else 'directory',
            'name': node.name,
            'created_at': node.created_at.isoformat(),
            'modified_at': node.modified_at.isoformat(),
        }
        if isinstance(node, MemFile):
            data['content'] = node.read()
        else:
            data['children'] = [self.export_tree(child) for child in self.list_children(node)]
        return data

    def import_tree(self, data: Dict):
        """
        Replace the whole tree with a serialized one (cwd goes to root).

        The snapshot is rebuilt in a separate arena first; on any error the
        current tree is left untouched.
        """
        if data.get('type') != 'directory':
            raise InvalidPath("serialized root must be a directory")

        staging = MemFS(logger=self.logger)
        try:
            staging._restore_children(staging.root, data.get('children', []))
            self._restore_times(staging.root, data)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidPath(f"malformed snapshot entry: {e}") from e

        self._nodes = staging._nodes
        self._next_id = staging._next_id
        self.root_id = staging.root_id
        self.cwd_id = staging.root_id

    def _restore_children(self, directory: MemDirectory, children: List[Dict]):
        for child in children:
            name = child['name']
            if name in directory.children:
                raise AlreadyExists(f"{self.get_path(directory).rstrip('/')}/{name}: File exists")
            if child['type'] == 'file':
                node = self._allocate_file(name, directory.id, child.get('content', ''))
            else:
                node = self._allocate_directory(name, directory.id)
                self._restore_children(node, child.get('children', []))
            directory.children[node.name] = node.id
            self._restore_times(node, child)

    @staticmethod
    def _restore_times(node: MemNode, data: Dict):
        if data.get('created_at'):
            node.created_at = datetime.fromisoformat(data['created_at'])
        if data.get('modified_at'):
            node.modified_at = datetime.fromisoformat(data['modified_at'])

# src/contextpack/core/folder_tree.py
"""
Lazily expandable folder view with aggregated per-directory statistics.

Nodes live in a flat arena keyed by integer id. A node refers to its
children and its parent by id; the parent id is only used to walk upwards.
Children are loaded when a node is expanded and dropped from the arena
when it is collapsed, so memory stays proportional to what is visible.
"""
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Union

from contextpack.core.ignore import should_exclude
from contextpack.core.scanner import default_scan_config
from contextpack.errors import FolderTreeError
from contextpack.models import ScanConfig
from contextpack.utils.formatting import format_number, format_size

log = logging.getLogger(__name__)

DEFAULT_TREE_DEPTH = 10


class SortType(Enum):
    NAME = "name"
    SIZE = "size"
    DATE = "date"
    TYPE = "type"


class NodeState(Enum):
    COLLAPSED = "collapsed"
    EXPANDING = "expanding"
    EXPANDED = "expanded"
    COLLAPSING = "collapsing"


@dataclass
class FolderNode:
    id: int
    name: str
    path: Path
    is_dir: bool
    size: int = 0
    file_count: int = 0
    dir_count: int = 0
    mod_time: float = 0.0
    level: int = 0
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    state: NodeState = NodeState.COLLAPSED
    selected: bool = False

    @property
    def expanded(self) -> bool:
        return self.state is NodeState.EXPANDED


@dataclass(frozen=True)
class FolderStats:
    total_files: int = 0
    total_directories: int = 0
    total_size: int = 0
    last_modified: float = 0.0
    file_types: Dict[str, int] = field(default_factory=dict)


def _sort_key(sort_by: SortType):
    def key(node: FolderNode):
        # Directories always come first
        group = 0 if node.is_dir else 1
        name = node.name.lower()
        if sort_by is SortType.SIZE:
            return (group, -node.size, name)
        if sort_by is SortType.DATE:
            return (group, -node.mod_time, name)
        if sort_by is SortType.TYPE:
            return (group, os.path.splitext(node.name)[1].lower(), name)
        return (group, name)
    return key


class FolderTree:
    def __init__(
        self,
        root_path: Union[str, Path],
        show_hidden: bool = False,
        sort_by: SortType = SortType.NAME,
        max_depth: int = DEFAULT_TREE_DEPTH,
    ):
        self.path = self._validate(root_path)
        self.show_hidden = show_hidden
        self.sort_by = sort_by
        self.max_depth = max_depth
        self._nodes: Dict[int, FolderNode] = {}
        self._next_id = 0
        self._root_id = -1
        self._expanded_paths: Set[Path] = set()
        self._selected_path: Optional[Path] = None
        self._config = self._make_config()
        self._build()

    @staticmethod
    def _validate(root_path: Union[str, Path]) -> Path:
        path = Path(root_path).resolve()
        if not path.exists():
            raise FolderTreeError(f"cannot access path: {path}")
        if not path.is_dir():
            raise FolderTreeError(f"path is not a directory: {path}")
        return path

    def _make_config(self) -> ScanConfig:
        return default_scan_config(self.path, include_hidden=self.show_hidden)

    # --- arena ---

    @property
    def root(self) -> FolderNode:
        return self._nodes[self._root_id]

    def node(self, node_id: int) -> FolderNode:
        return self._nodes[node_id]

    def parent_of(self, node: FolderNode) -> Optional[FolderNode]:
        return self._nodes.get(node.parent) if node.parent is not None else None

    def children_of(self, node: FolderNode) -> List[FolderNode]:
        return [self._nodes[i] for i in node.children]

    def __len__(self) -> int:
        return len(self._nodes)

    def _add_node(self, **kwargs) -> FolderNode:
        node = FolderNode(id=self._next_id, **kwargs)
        self._nodes[node.id] = node
        self._next_id += 1
        return node

    def _discard_children(self, node: FolderNode) -> None:
        for child_id in node.children:
            child = self._nodes.pop(child_id)
            self._discard_children(child)
        node.children = []

    # --- building ---

    def _build(self) -> None:
        self._nodes.clear()
        st = self.path.stat()
        root = self._add_node(name=self.path.name or str(self.path), path=self.path, is_dir=True, mod_time=st.st_mtime)
        self._root_id = root.id
        self._expand(root)
        if self._selected_path is not None:
            found = self.find_node(self._selected_path)
            if found is not None:
                found.selected = True
            else:
                self._selected_path = None

    def _load_children(self, node: FolderNode) -> None:
        if not node.is_dir or node.level >= self.max_depth:
            return

        try:
            with os.scandir(node.path) as it:
                entries = list(it)
        except OSError as e:
            raise FolderTreeError(f"cannot read directory {node.path}: {e}") from e

        children = []
        for entry in entries:
            child_path = Path(entry.path)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                st = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            if should_exclude(child_path, is_dir, self._config):
                continue

            child = self._add_node(
                name=entry.name,
                path=child_path,
                is_dir=is_dir,
                size=st.st_size,
                mod_time=st.st_mtime,
                level=node.level + 1,
                parent=node.id,
            )
            if is_dir:
                stats = self.get_folder_stats(child_path)
                child.file_count = stats.total_files
                child.dir_count = stats.total_directories
                child.size = stats.total_size
            children.append(child)

        children.sort(key=_sort_key(self.sort_by))
        node.children = [c.id for c in children]

        for child in children:
            if child.is_dir and child.path in self._expanded_paths:
                try:
                    self._expand(child)
                except FolderTreeError as e:
                    log.warning("Could not restore %s: %s", child.path, e)

    def _expand(self, node: FolderNode) -> None:
        node.state = NodeState.EXPANDING
        try:
            self._load_children(node)
        except FolderTreeError:
            self._discard_children(node)
            node.state = NodeState.COLLAPSED
            raise
        node.state = NodeState.EXPANDED
        self._expanded_paths.add(node.path)

    def get_folder_stats(self, folder_path: Union[str, Path]) -> FolderStats:
        """Recursive totals below ``folder_path`` using the scan exclusion rules."""
        folder_path = Path(folder_path)
        total_files = total_dirs = total_size = 0
        last_modified = 0.0
        file_types: Counter = Counter()

        for root, dirs, files in os.walk(folder_path):
            root_path = Path(root)
            dirs[:] = [
                d for d in dirs
                if (self._config.follow_symlinks or not (root_path / d).is_symlink())
                and not should_exclude(root_path / d, True, self._config)
            ]
            total_dirs += len(dirs)

            for name in files:
                file_path = root_path / name
                if not self._config.follow_symlinks and file_path.is_symlink():
                    continue
                if should_exclude(file_path, False, self._config):
                    continue
                try:
                    st = file_path.stat()
                except OSError:
                    continue
                total_files += 1
                total_size += st.st_size
                last_modified = max(last_modified, st.st_mtime)
                file_types[os.path.splitext(name)[1].lower() or "(no extension)"] += 1

        return FolderStats(
            total_files=total_files,
            total_directories=total_dirs,
            total_size=total_size,
            last_modified=last_modified,
            file_types=dict(file_types),
        )

    # --- public operations ---

    def expand_node(self, node: FolderNode) -> None:
        if not node.is_dir or node.state is not NodeState.COLLAPSED:
            return
        self._expand(node)

    def collapse_node(self, node: FolderNode) -> None:
        if not node.is_dir or node.state is not NodeState.EXPANDED:
            return

        node.state = NodeState.COLLAPSING
        for child in self.children_of(node):
            if child.is_dir:
                self.collapse_node(child)
        self._discard_children(node)
        self._expanded_paths.discard(node.path)
        node.state = NodeState.COLLAPSED

    def toggle_node(self, node: FolderNode) -> None:
        if node.expanded:
            self.collapse_node(node)
        else:
            self.expand_node(node)

    def select_node(self, node: FolderNode) -> None:
        previous = self.selected_node
        if previous is not None:
            previous.selected = False
        node.selected = True
        self._selected_path = node.path

    @property
    def selected_node(self) -> Optional[FolderNode]:
        if self._selected_path is None:
            return None
        return self.find_node(self._selected_path)

    def iter_visible(self) -> Iterator[FolderNode]:
        stack = [self._root_id]
        while stack:
            node = self._nodes[stack.pop()]
            yield node
            if node.expanded:
                stack.extend(reversed(node.children))

    def get_visible_nodes(self) -> List[FolderNode]:
        return list(self.iter_visible())

    def set_sort_type(self, sort_type: Union[SortType, str]) -> None:
        try:
            self.sort_by = SortType(sort_type)
        except ValueError as e:
            raise FolderTreeError(f"unknown sort type: {sort_type!r}") from e
        self._build()

    def set_show_hidden(self, show: bool) -> None:
        self.show_hidden = show
        self._config = self._make_config()
        self._build()

    def navigate_to(self, new_path: Union[str, Path]) -> None:
        self.path = self._validate(new_path)
        self._expanded_paths = set()
        self._selected_path = None
        self._config = self._make_config()
        self._build()

    def find_node(self, path: Union[str, Path]) -> Optional[FolderNode]:
        path = Path(path)
        for node in self._nodes.values():
            if node.path == path:
                return node
        return None

    def scan_config_for(self, node: FolderNode) -> ScanConfig:
        """Config for a scoped scan rooted at ``node``, sharing this tree's rules."""
        if not node.is_dir:
            raise FolderTreeError(f"not a directory: {node.path}")
        return default_scan_config(node.path, include_hidden=self.show_hidden)


def format_node_line(node: FolderNode, max_name: int = 30) -> str:
    indent = "  " * node.level
    marker = ("▼ " if node.expanded else "▶ ") if node.is_dir else "  "
    name = node.name if len(node.name) <= max_name else node.name[:max_name - 3] + "..."

    if node.is_dir:
        line = f"{indent}{marker}{name}/"
        if node.file_count > 0 or node.dir_count > 0:
            line += f" ({format_size(node.size)}, {format_number(node.file_count)} files)"
        return line
    return f"{indent}{marker}{name} ({format_size(node.size)})"

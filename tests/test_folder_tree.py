# tests/test_folder_tree.py
import os
import shutil

import pytest

from contextpack.core.folder_tree import FolderTree, NodeState, SortType, format_node_line
from contextpack.core.scanner import ProjectScanner
from contextpack.errors import FolderTreeError


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src" / "util").mkdir(parents=True)
    (tmp_path / "src" / "main.py").write_text("m" * 1000, encoding="utf-8")
    (tmp_path / "src" / "util" / "x.py").write_text("x" * 20, encoding="utf-8")
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_text("d" * 10, encoding="utf-8")
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "secret.txt").write_text("s", encoding="utf-8")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "pkg.js").write_text("p", encoding="utf-8")
    (tmp_path / "Alpha.txt").write_text("a" * 5, encoding="utf-8")
    (tmp_path / "zeta.txt").write_text("z" * 50, encoding="utf-8")
    return tmp_path


def names(nodes):
    return [n.name for n in nodes]


def child(tree, name, parent=None):
    parent = parent or tree.root
    return next(c for c in tree.children_of(parent) if c.name == name)


# --- Test 1: Construction ---

def test_root_is_expanded_with_sorted_children(project):
    tree = FolderTree(project)

    assert tree.root.state is NodeState.EXPANDED
    assert names(tree.get_visible_nodes()) == [project.name, "docs", "src", "Alpha.txt", "zeta.txt"]

def test_directory_stats_are_aggregated(project):
    tree = FolderTree(project)
    src = child(tree, "src")

    assert src.file_count == 2
    assert src.dir_count == 1
    assert src.size == 1020
    assert tree.parent_of(src) is tree.root

def test_invalid_root(tmp_path):
    with pytest.raises(FolderTreeError):
        FolderTree(tmp_path / "missing")
    (tmp_path / "f.txt").write_text("x", encoding="utf-8")
    with pytest.raises(FolderTreeError):
        FolderTree(tmp_path / "f.txt")


# --- Test 2: Expand and collapse ---

def test_expand_loads_one_level(project):
    tree = FolderTree(project)
    src = child(tree, "src")

    tree.expand_node(src)

    assert src.state is NodeState.EXPANDED
    assert names(tree.get_visible_nodes()) == [project.name, "docs", "src", "util", "main.py", "Alpha.txt", "zeta.txt"]
    assert child(tree, "util", src).state is NodeState.COLLAPSED

def test_collapse_discards_descendants(project):
    tree = FolderTree(project)
    size_before = len(tree)
    src = child(tree, "src")
    tree.expand_node(src)
    tree.expand_node(child(tree, "util", src))
    assert len(tree) == size_before + 3

    tree.collapse_node(src)

    assert src.state is NodeState.COLLAPSED
    assert src.children == []
    assert len(tree) == size_before

    tree.expand_node(src)
    assert child(tree, "util", src).state is NodeState.COLLAPSED

def test_toggle_node(project):
    tree = FolderTree(project)
    docs = child(tree, "docs")

    tree.toggle_node(docs)
    assert docs.expanded
    tree.toggle_node(docs)
    assert not docs.expanded

def test_expand_failure_leaves_node_collapsed(project):
    tree = FolderTree(project)
    docs = child(tree, "docs")
    shutil.rmtree(project / "docs")

    with pytest.raises(FolderTreeError):
        tree.expand_node(docs)
    assert docs.state is NodeState.COLLAPSED
    assert docs.children == []

def test_expanding_a_file_is_a_no_op(project):
    tree = FolderTree(project)
    alpha = child(tree, "Alpha.txt")
    tree.expand_node(alpha)
    assert alpha.state is NodeState.COLLAPSED


# --- Test 3: Sorting and visibility ---

def test_sort_by_size_keeps_directories_first(project):
    tree = FolderTree(project)
    tree.set_sort_type(SortType.SIZE)

    assert names(tree.get_visible_nodes()) == [project.name, "src", "docs", "zeta.txt", "Alpha.txt"]

def test_sort_by_date(project):
    os.utime(project / "Alpha.txt", (1_000, 1_000))
    os.utime(project / "zeta.txt", (2_000, 2_000))
    tree = FolderTree(project, sort_by=SortType.DATE)

    assert names(tree.get_visible_nodes())[-2:] == ["zeta.txt", "Alpha.txt"]

def test_sort_type_accepts_value_and_rejects_unknown(project):
    tree = FolderTree(project)
    tree.set_sort_type("type")
    assert tree.sort_by is SortType.TYPE
    with pytest.raises(FolderTreeError):
        tree.set_sort_type("bogus")

def test_refresh_keeps_expanded_and_selected(project):
    tree = FolderTree(project)
    tree.expand_node(child(tree, "src"))
    tree.select_node(child(tree, "docs"))

    tree.set_sort_type(SortType.SIZE)

    assert child(tree, "src").expanded
    assert tree.selected_node.name == "docs"
    assert tree.selected_node.selected

def test_show_hidden(project):
    tree = FolderTree(project)
    tree.set_show_hidden(True)

    visible = names(tree.get_visible_nodes())
    assert ".hidden" in visible
    assert "node_modules" not in visible


# --- Test 4: Selection, lookup, scoped scans ---

def test_select_node_moves_selection(project):
    tree = FolderTree(project)
    src, docs = child(tree, "src"), child(tree, "docs")

    tree.select_node(src)
    tree.select_node(docs)

    assert not src.selected
    assert docs.selected
    assert tree.selected_node is docs

def test_find_node_and_navigate(project):
    tree = FolderTree(project)
    assert tree.find_node(project / "docs").name == "docs"
    assert tree.find_node(project / "nowhere") is None

    tree.navigate_to(project / "src")
    assert tree.root.name == "src"
    assert names(tree.get_visible_nodes()) == ["src", "util", "main.py"]

def test_folder_stats_agree_with_scoped_scan(project):
    tree = FolderTree(project)
    src = child(tree, "src")

    result = ProjectScanner(tree.scan_config_for(src)).scan()

    assert result.total_files == src.file_count
    assert result.total_size == src.size
    assert result.total_directories == src.dir_count

def test_scan_config_for_file_is_rejected(project):
    tree = FolderTree(project)
    with pytest.raises(FolderTreeError):
        tree.scan_config_for(child(tree, "zeta.txt"))

def test_get_folder_stats_counts_types(project):
    stats = FolderTree(project).get_folder_stats(project)

    assert stats.total_files == 5
    assert stats.file_types == {".py": 2, ".md": 1, ".txt": 2}


# --- Test 5: Rendering ---

def test_format_node_line(project):
    tree = FolderTree(project)
    src = child(tree, "src")

    assert format_node_line(src) == "  ▶ src/ (1020 B, 2 files)"
    assert format_node_line(child(tree, "Alpha.txt")) == "    Alpha.txt (5 B)"
    assert format_node_line(tree.root).startswith("▼ ")

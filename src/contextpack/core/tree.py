# src/contextpack/core/tree.py
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional


def generate_directory_tree(dir_paths: Iterable[str], root_name: str, limit: Optional[int] = None) -> str:
    """
    Renders the distinct directories among ``dir_paths`` (root-relative, posix)
    as an indented tree. Missing ancestors are filled in. At most ``limit``
    directories are listed below the root.
    """
    tree_dict: Dict = {}
    for path in sorted(set(dir_paths)):
        parts = PurePosixPath(path).parts
        current_level = tree_dict
        for part in parts:
            if part == ".":
                continue
            current_level = current_level.setdefault(part, {})

    lines = [f"{root_name}/"]
    state = {"emitted": 0, "truncated": False}

    def _generate_lines_recursive(subtree: Dict, prefix: str) -> None:
        entries = sorted(subtree.items(), key=lambda item: item[0].lower())
        for i, (name, content) in enumerate(entries):
            if limit is not None and state["emitted"] >= limit:
                state["truncated"] = True
                return
            is_last = (i == len(entries) - 1)
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}{name}/")
            state["emitted"] += 1

            if content:
                new_prefix = prefix + ("    " if is_last else "│   ")
                _generate_lines_recursive(content, new_prefix)

    _generate_lines_recursive(tree_dict, "")
    if state["truncated"]:
        lines.append("... (truncated)")
    return "\n".join(lines) + "\n"


def parent_directories(rel_paths: Iterable[str]) -> List[str]:
    """The directory part of each root-relative file path, root excluded."""
    dirs = set()
    for path in rel_paths:
        parent = PurePosixPath(path).parent.as_posix()
        if parent != ".":
            dirs.add(parent)
    return sorted(dirs)

# src/contextpack/core/ignore.py
import fnmatch
import logging
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence, Tuple, Union

import pathspec

from contextpack.config import IGNORE_FILE_NAME
from contextpack.models import ScanConfig

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_ignore_spec(ignore_file: Path, extra_patterns: Optional[List[str]] = None) -> Optional[pathspec.PathSpec]:
    """
    Loads gitignore-style rules from ``ignore_file`` into a PathSpec.
    Returns None when there is nothing to match (no file and no extras).
    """
    lines: List[str] = []

    if ignore_file.is_file():
        with open(ignore_file, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()

    if extra_patterns:
        lines.extend(extra_patterns)

    lines = [line.strip() for line in lines]
    if not any(line and not line.startswith("#") for line in lines):
        return None

    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", lines)
    except Exception as e:
        log.warning("Ignoring unparsable rules in %s: %s", ignore_file, e)
        return None


def find_ignore_spec(root_dir: Path) -> Optional[pathspec.PathSpec]:
    """Loads ``.contextignore`` from the project root, if present."""
    return load_ignore_spec(root_dir / IGNORE_FILE_NAME)


def _relative_parts(path: Path, root: Path) -> Tuple[str, ...]:
    try:
        return path.relative_to(root).parts
    except ValueError:
        return path.parts


def _matches_prefix(parts: Sequence[str], prefix: str) -> bool:
    """True when ``prefix`` occurs as a run of whole components in ``parts``."""
    prefix_parts = PurePosixPath(prefix).parts
    if not prefix_parts:
        return False
    width = len(prefix_parts)
    for start in range(len(parts) - width + 1):
        window = parts[start:start + width]
        if all(fnmatch.fnmatchcase(part, pat) for part, pat in zip(window, prefix_parts)):
            return True
    return False


def _matches_path(parts: Sequence[str], pattern: str) -> bool:
    """True when ``pattern`` matches ``parts`` one component at a time, so ``*`` never spans a ``/``."""
    pattern_parts = PurePosixPath(pattern).parts
    if len(pattern_parts) != len(parts):
        return False
    return all(fnmatch.fnmatchcase(part, pat) for part, pat in zip(parts, pattern_parts))


def exclusion_reason(path: PathLike, is_directory: bool, config: ScanConfig) -> Optional[str]:
    """
    Applies the exclusion rules in order and returns a short description of
    the first one that matches, or None when the path is included.
    """
    path = Path(path)
    name = path.name

    # 1. Hidden entries
    if not config.include_hidden and name.startswith("."):
        return "Hidden file"

    # 2. Extension denylist (files only)
    if not is_directory and config.exclude_extensions:
        ext = path.suffix.lower()
        if ext and ext in {e.lower() for e in config.exclude_extensions}:
            return f"Excluded extension {ext}"

    parts = _relative_parts(path, config.root)
    rel_path = "/".join(parts)

    # 3. Exclude patterns
    for pattern in config.exclude_patterns:
        if pattern.endswith("/**"):
            if _matches_prefix(parts, pattern[:-3]):
                return "Matches exclude pattern"
            continue
        if fnmatch.fnmatchcase(name, pattern) or _matches_path(parts, pattern):
            return "Matches exclude pattern"

    # 4. Project ignore file
    if config.ignore_spec is not None and rel_path:
        candidate = rel_path + "/" if is_directory else rel_path
        if config.ignore_spec.match_file(candidate):
            return "Matches ignore file"

    return None


def should_exclude(path: PathLike, is_directory: bool, config: ScanConfig) -> bool:
    return exclusion_reason(path, is_directory, config) is not None

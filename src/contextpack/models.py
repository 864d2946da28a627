# src/contextpack/models.py
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

import pathspec

from contextpack.config import (
    DEFAULT_CONTENT_MAX_FILE_SIZE,
    DEFAULT_CONTENT_MAX_TOTAL_SIZE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SCAN_MAX_FILE_SIZE,
)


@dataclass(frozen=True)
class ScanConfig:
    """Rules governing a single scan. Never modified once a scan starts."""
    root: Path
    exclude_patterns: Tuple[str, ...] = ()
    exclude_extensions: Tuple[str, ...] = ()
    max_depth: int = DEFAULT_MAX_DEPTH
    max_file_size: int = DEFAULT_SCAN_MAX_FILE_SIZE
    max_total_size: int = DEFAULT_CONTENT_MAX_TOTAL_SIZE
    include_hidden: bool = False
    follow_symlinks: bool = False
    # Compiled rules from the project's ignore file, if any
    ignore_spec: Optional[pathspec.PathSpec] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class FileRecord:
    """Metadata for one visited filesystem entry."""
    path: Path
    size: int = 0
    lines: int = 0
    extension: str = ""
    mod_time: Optional[float] = None
    is_dir: bool = False
    excluded: bool = False
    exclude_reason: str = ""


@dataclass(frozen=True)
class ScanResult:
    """Aggregate output of one completed scan."""
    root: Path
    total_files: int
    total_directories: int
    total_size: int
    total_lines: int
    excluded_files: int
    duration: float
    files: Tuple[FileRecord, ...]
    extensions: Dict[str, int]
    largest_files: Tuple[FileRecord, ...]


@dataclass(frozen=True)
class Progress:
    current_path: str = ""
    processed: int = 0
    estimated_total: int = 0
    phase: str = ""
    elapsed: float = 0.0


@dataclass(frozen=True)
class GenerationOptions:
    max_file_size: int = DEFAULT_CONTENT_MAX_FILE_SIZE
    max_total_size: int = DEFAULT_CONTENT_MAX_TOTAL_SIZE
    include_content: bool = True
    include_summary: bool = True


@dataclass(frozen=True)
class ContextSection:
    title: str
    content: str
    files: Tuple[str, ...] = ()
    # Bytes of file content embedded, charged against the content budget
    content_bytes: int = 0


@dataclass(frozen=True)
class ContextBundle:
    """The finished multi-section document derived from one ScanResult."""
    project_name: str
    generated_at: datetime
    total_files: int
    total_size: int
    sections: Tuple[ContextSection, ...]
    summary: str
    token_estimate: int

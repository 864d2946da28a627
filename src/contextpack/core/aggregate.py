# src/contextpack/core/aggregate.py
import heapq
from collections import Counter
from pathlib import Path
from typing import List

from contextpack.config import LARGEST_FILES_COUNT
from contextpack.models import FileRecord, ScanResult


class ScanAccumulator:
    """Folds the walker's FileRecord stream into a ScanResult."""

    def __init__(self, root: Path):
        self.root = root
        self.files: List[FileRecord] = []
        self.extensions: Counter = Counter()
        self.total_directories = 0
        self.total_size = 0
        self.total_lines = 0
        self.excluded_files = 0

    @property
    def processed(self) -> int:
        return len(self.files) + self.excluded_files

    def add(self, record: FileRecord) -> None:
        if record.is_dir:
            # Pruned directories are not part of the project
            if not record.excluded:
                self.total_directories += 1
            return

        if record.excluded:
            self.excluded_files += 1
            return

        self.files.append(record)
        self.extensions[record.extension] += 1
        self.total_size += record.size
        self.total_lines += record.lines

    def build(self, duration: float) -> ScanResult:
        # nlargest is stable, so equal sizes keep walk order
        largest = heapq.nlargest(LARGEST_FILES_COUNT, self.files, key=lambda r: r.size)
        return ScanResult(
            root=self.root,
            total_files=len(self.files),
            total_directories=self.total_directories,
            total_size=self.total_size,
            total_lines=self.total_lines,
            excluded_files=self.excluded_files,
            duration=duration,
            files=tuple(self.files),
            extensions=dict(self.extensions),
            largest_files=tuple(largest),
        )

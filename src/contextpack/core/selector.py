# src/contextpack/core/selector.py
from typing import Iterable, List, Sequence, Tuple

from contextpack.config import (
    DEFAULT_CONTENT_MAX_FILE_SIZE,
    DEFAULT_CONTENT_MAX_TOTAL_SIZE,
    IMPORTANT_NAMES,
    PRIORITY_EXTENSIONS,
    TEXT_EXTENSIONS,
)
from contextpack.models import FileRecord


def is_text_extension(ext: str) -> bool:
    return ext in TEXT_EXTENSIONS


class ContentSelector:
    """Ranks files by a priority score and picks a subset within the content budget."""

    def __init__(
        self,
        max_file_size: int = DEFAULT_CONTENT_MAX_FILE_SIZE,
        max_total_size: int = DEFAULT_CONTENT_MAX_TOTAL_SIZE,
        priority_extensions: Sequence[str] = PRIORITY_EXTENSIONS,
    ):
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size
        self.priority_extensions = tuple(priority_extensions)

    def score(self, record: FileRecord) -> int:
        score = 0

        if is_text_extension(record.extension):
            score += 10

        if record.extension in self.priority_extensions:
            score += 50 - self.priority_extensions.index(record.extension)

        if record.size < 1024:
            score += 5
        elif record.size < 10 * 1024:
            score += 3
        elif record.size > 100 * 1024:
            score -= 5

        name = record.path.name.lower()
        if any(keyword in name for keyword in IMPORTANT_NAMES):
            score += 20

        return score

    def rank(self, files: Iterable[FileRecord]) -> List[Tuple[int, FileRecord]]:
        """Scored candidates, best first. sorted() is stable so ties keep input order."""
        scored = [(self.score(f), f) for f in files if not f.excluded and not f.is_dir]
        scored = [(s, f) for s, f in scored if s > 0]
        return sorted(scored, key=lambda item: item[0], reverse=True)

    def select(self, files: Iterable[FileRecord]) -> List[FileRecord]:
        selected: List[FileRecord] = []
        total = 0

        for _, record in self.rank(files):
            if record.size > self.max_file_size:
                continue
            if total + record.size > self.max_total_size:
                break
            selected.append(record)
            total += record.size

        return selected

# src/contextpack/core/scanner.py
import logging
import os
import threading
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set, Tuple, Union

from contextpack.config import (
    DEFAULT_CONTENT_MAX_TOTAL_SIZE,
    DEFAULT_EXCLUDE_EXTENSIONS,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SCAN_MAX_FILE_SIZE,
    ESTIMATE_FILE_CAP,
    LINE_COUNT_EXTENSIONS,
    MAX_LINE_COUNT,
    PROGRESS_QUEUE_SIZE,
)
from contextpack.core.aggregate import ScanAccumulator
from contextpack.core.ignore import exclusion_reason, find_ignore_spec, should_exclude
from contextpack.core.progress import ProgressCallback, ProgressChannel
from contextpack.errors import InvalidRootError, ScanCancelledError, ScanError
from contextpack.models import FileRecord, Progress, ScanConfig, ScanResult

log = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


def default_scan_config(
    root_dir: Union[str, Path],
    extra_patterns: Optional[Iterable[str]] = None,
    include_hidden: bool = False,
    follow_symlinks: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_file_size: int = DEFAULT_SCAN_MAX_FILE_SIZE,
    use_ignore_file: bool = True,
) -> ScanConfig:
    """Builds a ScanConfig with the stock exclusion rules for ``root_dir``."""
    root = Path(root_dir).resolve()
    patterns = list(DEFAULT_EXCLUDE_PATTERNS)
    if extra_patterns:
        patterns.extend(extra_patterns)

    return ScanConfig(
        root=root,
        exclude_patterns=tuple(patterns),
        exclude_extensions=tuple(DEFAULT_EXCLUDE_EXTENSIONS),
        max_depth=max_depth,
        max_file_size=max_file_size,
        max_total_size=DEFAULT_CONTENT_MAX_TOTAL_SIZE,
        include_hidden=include_hidden,
        follow_symlinks=follow_symlinks,
        ignore_spec=find_ignore_spec(root) if use_ignore_file else None,
    )


def count_lines(path: Path, limit: int = MAX_LINE_COUNT) -> int:
    """
    Counts newline-terminated lines (plus a trailing unterminated one),
    giving up at ``limit`` so huge files stay cheap.
    """
    lines = 0
    last = b""
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_READ_CHUNK), b""):
            lines += chunk.count(b"\n")
            if lines >= limit:
                return limit
            last = chunk[-1:]
    if last and last != b"\n":
        lines += 1
    return min(lines, limit)


def validate_root(root: Path) -> Path:
    """Raises InvalidRootError unless ``root`` is a readable directory."""
    if not root.exists():
        raise InvalidRootError(f"path does not exist: {root}")
    if not root.is_dir():
        raise InvalidRootError(f"path is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise InvalidRootError(f"cannot access path: {root}")
    return root


class ProjectScanner:
    """
    Two-pass project walker.

    The first pass cheaply estimates the number of files for progress
    reporting. The second pass walks the tree depth-first and yields one
    FileRecord per entry, which ``scan()`` folds into a ScanResult.
    Each scanner owns its own state; callers serialize scans of one root.
    """

    def __init__(
        self,
        config: ScanConfig,
        on_progress: Optional[ProgressCallback] = None,
        progress_capacity: int = PROGRESS_QUEUE_SIZE,
    ):
        self.config = config
        self._progress = ProgressChannel(progress_capacity, listener=on_progress)
        self._cancel = threading.Event()

    def get_progress_channel(self) -> ProgressChannel:
        return self._progress

    def cancel(self) -> None:
        """Requests cancellation; observed before the next entry is processed."""
        self._cancel.set()

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            self._cancel.clear()
            raise ScanCancelledError("scan cancelled")

    def _publish(self, start: float, phase: str, current: str = "", processed: int = 0, estimated: int = 0) -> None:
        self._progress.publish(Progress(
            current_path=current,
            processed=processed,
            estimated_total=estimated,
            phase=phase,
            elapsed=time.monotonic() - start,
        ))

    def estimate_file_count(self) -> int:
        """Counts included files, stopping once the count passes the cap."""
        count = 0
        follow = self.config.follow_symlinks
        visited: Set[Tuple[int, int]] = set()
        for root, dirs, files in os.walk(self.config.root, followlinks=follow):
            root_path = Path(root)
            if follow:
                try:
                    st = root_path.stat()
                except OSError:
                    dirs[:] = []
                    continue
                if (st.st_dev, st.st_ino) in visited:
                    dirs[:] = []
                    continue
                visited.add((st.st_dev, st.st_ino))

            # Prune excluded directories in place so os.walk never enters them
            dirs[:] = [d for d in dirs if not should_exclude(root_path / d, True, self.config)]

            for f in files:
                file_path = root_path / f
                if not follow and file_path.is_symlink():
                    continue
                if should_exclude(file_path, False, self.config):
                    continue
                count += 1
                if count > ESTIMATE_FILE_CAP:
                    return count
        return count

    def scan(self) -> ScanResult:
        start = time.monotonic()
        root = validate_root(Path(self.config.root))

        self._publish(start, "Initializing scan...")
        estimated = self.estimate_file_count()
        self._publish(start, f"Scanning {estimated} estimated files...", estimated=estimated)

        accumulator = ScanAccumulator(root)
        try:
            for record in self.walk():
                accumulator.add(record)
                self._publish(
                    start,
                    "Scanning files...",
                    current=str(record.path),
                    processed=accumulator.processed,
                    estimated=estimated,
                )
        except ScanCancelledError:
            log.info("Scan of %s cancelled after %d entries", root, accumulator.processed)
            raise

        result = accumulator.build(time.monotonic() - start)
        self._publish(start, "Scan completed!", processed=result.total_files, estimated=estimated)
        log.debug(
            "Scanned %s: %d files, %d excluded, %d directories in %.3fs",
            root, result.total_files, result.excluded_files, result.total_directories, result.duration,
        )
        return result

    def walk(self) -> Iterator[FileRecord]:
        """Yields a FileRecord for every entry visited, directories included."""
        root = Path(self.config.root)
        visited: Set[Tuple[int, int]] = set()
        if self.config.follow_symlinks:
            st = root.stat()
            visited.add((st.st_dev, st.st_ino))
        yield from self._walk_directory(root, 0, visited)

    def _walk_directory(self, dir_path: Path, depth: int, visited: Set[Tuple[int, int]]) -> Iterator[FileRecord]:
        if depth > self.config.max_depth:
            return

        try:
            with os.scandir(dir_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise ScanError(f"failed to read directory {dir_path}: {e}") from e

        for entry in entries:
            self._check_cancelled()

            record = self._scan_entry(entry)
            yield record

            if not record.is_dir or record.excluded:
                continue

            if self.config.follow_symlinks:
                st = entry.stat()
                key = (st.st_dev, st.st_ino)
                if key in visited:
                    log.debug("Skipping already visited directory %s", record.path)
                    continue
                visited.add(key)

            yield from self._walk_directory(record.path, depth + 1, visited)

    def _scan_entry(self, entry: os.DirEntry) -> FileRecord:
        path = Path(entry.path)
        follow = self.config.follow_symlinks

        try:
            is_link = entry.is_symlink()
            is_dir = entry.is_dir(follow_symlinks=follow)
            st = entry.stat(follow_symlinks=follow)
        except OSError as e:
            log.debug("Cannot stat %s: %s", path, e)
            return FileRecord(path=path, excluded=True, exclude_reason=f"Cannot read file info: {e}")

        ext = "" if is_dir else path.suffix.lower()
        base = dict(path=path, size=st.st_size, extension=ext, mod_time=st.st_mtime, is_dir=is_dir)

        reason = exclusion_reason(path, is_dir, self.config)
        if reason is not None:
            return FileRecord(**base, excluded=True, exclude_reason=reason)

        # Unfollowed links are recorded but never read
        if is_link and not follow:
            return FileRecord(**base, excluded=True, exclude_reason="Symlink not followed")

        if is_dir:
            return FileRecord(**base)

        if st.st_size > self.config.max_file_size:
            return FileRecord(**base, excluded=True, exclude_reason=f"File too large ({st.st_size} bytes)")

        lines = 0
        if ext in LINE_COUNT_EXTENSIONS or ext == "":
            try:
                lines = count_lines(path)
            except OSError as e:
                log.debug("Cannot count lines in %s: %s", path, e)

        return FileRecord(**base, lines=lines)

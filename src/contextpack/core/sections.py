# src/contextpack/core/sections.py
import logging
import os
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from contextpack.config import (
    DIRECTORY_LISTING_LIMIT,
    FILE_LISTING_LIMIT,
    LANGUAGE_MAP,
    PRIORITY_EXTENSIONS,
)
from contextpack.core.tree import generate_directory_tree, parent_directories
from contextpack.models import ContextSection, FileRecord, GenerationOptions, ScanResult
from contextpack.utils.formatting import format_number, format_size

log = logging.getLogger(__name__)

NO_EXTENSION_LABEL = "(no extension)"
TRUNCATION_MARKER = "*Context truncated due to size limits*\n\n"

_BACKTICK_RUN = re.compile(r"`{3,}")


def relative_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.name


def extension_label(ext: str) -> str:
    return ext or NO_EXTENSION_LABEL


def language_for(ext: str) -> str:
    return LANGUAGE_MAP.get(ext, "")


def _fence_for(content: str) -> str:
    """A code fence longer than any backtick run inside ``content``."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=0)
    return "`" * max(3, longest + 1)


class SectionBuilder:
    """Renders the ordered sections of a context bundle from a ScanResult."""

    def __init__(self, options: GenerationOptions, priority_extensions: Sequence[str] = PRIORITY_EXTENSIONS):
        self.options = options
        self.priority_extensions = tuple(priority_extensions)

    # --- ordering helpers ---

    def sort_extensions_by_priority(self, groups: Mapping[str, Sequence[FileRecord]]) -> List[str]:
        """Priority extensions first (in list order), then by file count, then name."""
        def key(ext: str):
            if ext in self.priority_extensions:
                return (0, self.priority_extensions.index(ext), 0, ext)
            return (1, 0, -len(groups[ext]), ext)

        return sorted(groups, key=key)

    @staticmethod
    def sort_extensions_by_count(extensions: Mapping[str, int]) -> List[str]:
        return sorted(extensions, key=lambda ext: (-extensions[ext], ext))

    @staticmethod
    def group_by_extension(files: Sequence[FileRecord]) -> Dict[str, List[FileRecord]]:
        groups: Dict[str, List[FileRecord]] = defaultdict(list)
        for record in files:
            groups[record.extension].append(record)
        return dict(groups)

    # --- sections ---

    def overview(self, result: ScanResult) -> ContextSection:
        out = ["# Project Overview\n"]
        out.append(f"**Scan completed:** {result.duration:.3f}s")
        out.append(f"**Total files:** {result.total_files}")
        out.append(f"**Total directories:** {result.total_directories}")
        out.append(f"**Total size:** {format_size(result.total_size)}")
        out.append(f"**Total lines:** {format_number(result.total_lines)}")
        out.append(f"**Excluded files:** {result.excluded_files}\n")

        out.append("## File Extensions\n")
        for ext in self.sort_extensions_by_count(result.extensions)[:10]:
            out.append(f"- **{extension_label(ext)}**: {result.extensions[ext]} files")
        out.append("")

        if result.largest_files:
            out.append("## Largest Files\n")
            for record in result.largest_files[:5]:
                rel = relative_path(record.path, result.root)
                out.append(f"- **{rel}**: {format_size(record.size)} ({record.lines} lines)")
            out.append("")

        return ContextSection(title="Project Overview", content="\n".join(out) + "\n")

    def structure(self, result: ScanResult) -> ContextSection:
        dirs = parent_directories(relative_path(r.path, result.root) for r in result.files)
        tree = generate_directory_tree(dirs, result.root.name or "project", limit=DIRECTORY_LISTING_LIMIT)
        content = "# Directory Structure\n\n```\n" + tree + "```\n\n"
        return ContextSection(title="Directory Structure", content=content)

    def file_types(self, result: ScanResult) -> ContextSection:
        groups = self.group_by_extension(result.files)
        out = ["# File Type Analysis\n"]

        for ext in self.sort_extensions_by_priority(groups):
            files = groups[ext]
            total_size = sum(f.size for f in files)
            total_lines = sum(f.lines for f in files)

            out.append(f"## {extension_label(ext)} Files ({len(files)} files)\n")
            out.append(f"- **Total size:** {format_size(total_size)}")
            if total_lines > 0:
                out.append(f"- **Total lines:** {format_number(total_lines)}")
            out.append("- **Files:**")
            if len(files) > FILE_LISTING_LIMIT:
                out.append(f"  (Showing {FILE_LISTING_LIMIT} of {len(files)} files)")

            for record in files[:FILE_LISTING_LIMIT]:
                line = f"  - {relative_path(record.path, result.root)}"
                if record.size > 1024:
                    line += f" ({format_size(record.size)})"
                if record.lines > 0:
                    line += f" - {record.lines} lines"
                out.append(line)
            out.append("")

        return ContextSection(title="File Type Analysis", content="\n".join(out) + "\n")

    def content_sections(self, result: ScanResult, selected: Sequence[FileRecord]) -> List[ContextSection]:
        """One section per extension group; the content budget spans all of them."""
        groups = self.group_by_extension(selected)
        sections = []
        spent = 0
        for ext in self.sort_extensions_by_priority(groups):
            section = self.content_section(result.root, ext, groups[ext], spent)
            if section is not None:
                sections.append(section)
                spent += section.content_bytes
        return sections

    def content_section(
        self, root: Path, ext: str, files: Sequence[FileRecord], spent: int = 0
    ) -> Optional[ContextSection]:
        if ext:
            title = f"{ext.lstrip('.').upper()} Files Content"
        else:
            title = "Other Files Content"

        budget = self.options.max_total_size
        content = f"# {title}\n\n"
        included: List[str] = []
        content_bytes = 0
        rendered_any = False
        truncated = False

        for record in files:
            rel = relative_path(record.path, root)
            data = self._read_content(record)
            if data is None:
                continue

            size = 0
            if isinstance(data, OSError):
                block = f"## {rel}\n\n*Error reading file: {data}*\n\n"
            else:
                size = len(data)
                body = data.decode("utf-8", errors="replace").rstrip("\n")
                fence = _fence_for(body)
                block = f"## {rel}\n\n{fence}{language_for(ext)}\n{body}\n{fence}\n\n"

            if spent + content_bytes + size > budget or len(content) + len(block) > budget:
                content += TRUNCATION_MARKER
                truncated = True
                break

            content += block
            content_bytes += size
            rendered_any = True
            if not isinstance(data, OSError):
                included.append(rel)

        if not rendered_any and not truncated:
            return None
        return ContextSection(title=title, content=content, files=tuple(included), content_bytes=content_bytes)

    def _read_content(self, record: FileRecord):
        """
        Raw file bytes, None when the file has grown past the per-file limit,
        or the OSError raised while reading it.
        """
        try:
            size = os.stat(record.path).st_size
            if size > self.options.max_file_size:
                log.debug("Skipping %s: %d bytes exceeds per-file limit", record.path, size)
                return None
            with open(record.path, "rb") as f:
                data = f.read(self.options.max_file_size + 1)
        except OSError as e:
            log.warning("Error reading %s: %s", record.path, e)
            return e

        if len(data) > self.options.max_file_size:
            return None
        return data

    def build(self, result: ScanResult, selected: Optional[Sequence[FileRecord]] = None) -> List[ContextSection]:
        sections = [self.overview(result), self.structure(result), self.file_types(result)]
        if self.options.include_content and selected is not None:
            sections.extend(self.content_sections(result, selected))
        return sections

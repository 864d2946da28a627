# src/contextpack/core/generator.py
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Sequence

from contextpack.config import PRIORITY_EXTENSIONS
from contextpack.core.sections import SectionBuilder
from contextpack.core.selector import ContentSelector
from contextpack.errors import GenerationError
from contextpack.models import ContextBundle, ContextSection, GenerationOptions, ScanResult
from contextpack.utils.formatting import format_size
from contextpack.utils.tokenizer import CHARS_PER_TOKEN

log = logging.getLogger(__name__)


class ContextGenerator:
    """Turns a ScanResult into a ContextBundle."""

    def __init__(self, options: Optional[GenerationOptions] = None, priority_extensions: Sequence[str] = PRIORITY_EXTENSIONS):
        self.options = options or GenerationOptions()
        self.priority_extensions = tuple(priority_extensions)

    def set_options(self, max_file_size: int, max_total_size: int, include_content: bool, include_summary: bool) -> None:
        self.options = replace(
            self.options,
            max_file_size=max_file_size,
            max_total_size=max_total_size,
            include_content=include_content,
            include_summary=include_summary,
        )

    def generate_context(self, scan_result: Optional[ScanResult], project_name: str) -> ContextBundle:
        if scan_result is None:
            raise GenerationError("no scan result to generate context from")

        options = self.options
        builder = SectionBuilder(options, self.priority_extensions)

        selected = None
        if options.include_content:
            selector = ContentSelector(options.max_file_size, options.max_total_size, self.priority_extensions)
            selected = selector.select(scan_result.files)
            log.debug("Selected %d of %d files for content", len(selected), scan_result.total_files)

        sections = tuple(builder.build(scan_result, selected))
        summary = generate_summary(scan_result, len(sections)) if options.include_summary else ""

        return ContextBundle(
            project_name=project_name,
            generated_at=datetime.now(timezone.utc),
            total_files=scan_result.total_files,
            total_size=scan_result.total_size,
            sections=sections,
            summary=summary,
            token_estimate=estimate_tokens(sections, summary),
        )


def dominant_extension(scan_result: ScanResult):
    """The most common extension and its count; ties go to the smaller name."""
    if not scan_result.extensions:
        return None
    ext = min(scan_result.extensions, key=lambda e: (-scan_result.extensions[e], e))
    return ext, scan_result.extensions[ext]


def generate_summary(scan_result: ScanResult, section_count: int) -> str:
    parts = [
        "## Context Summary\n\n",
        f"This context contains information about a project with {scan_result.total_files} files ",
        f"totaling {format_size(scan_result.total_size)} across {scan_result.total_directories} directories. ",
    ]

    dominant = dominant_extension(scan_result)
    if dominant is not None:
        ext, count = dominant
        name = f"{ext} files" if ext else "files without extension"
        parts.append(f"The project primarily consists of {name} ({count} files). ")

    parts.append(
        f"The context includes {section_count} sections with detailed information "
        "about the project structure and contents."
    )
    return "".join(parts)


def estimate_tokens(sections: Sequence[ContextSection], summary: str) -> int:
    total_chars = sum(len(s.content) for s in sections) + len(summary)
    return total_chars // CHARS_PER_TOKEN


def render_bundle(bundle: ContextBundle) -> str:
    """Flattens a bundle into a single markdown document."""
    header = [
        f"<!-- contextpack: {bundle.project_name} -->",
        f"<!-- Generated: {bundle.generated_at.isoformat(timespec='seconds')} | "
        f"Files: {bundle.total_files} | Size: {format_size(bundle.total_size)} | "
        f"Est. tokens: {bundle.token_estimate} -->",
        "",
    ]
    body = "".join(section.content for section in bundle.sections)
    out = "\n".join(header) + "\n" + body
    if bundle.summary:
        out += bundle.summary + "\n"
    return out

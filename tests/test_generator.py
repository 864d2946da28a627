# tests/test_generator.py
import os

import pytest

from contextpack.core.generator import ContextGenerator, estimate_tokens, render_bundle
from contextpack.core.scanner import ProjectScanner, default_scan_config
from contextpack.core.sections import TRUNCATION_MARKER
from contextpack.errors import GenerationError


def scan(root):
    return ProjectScanner(default_scan_config(root, use_ignore_file=False)).scan()


def titles(bundle):
    return [s.title for s in bundle.sections]


# --- Test 1: Structure of the bundle ---

def test_generate_requires_scan_result():
    with pytest.raises(GenerationError):
        ContextGenerator().generate_context(None, "demo")

def test_empty_project_still_generates(tmp_path):
    bundle = ContextGenerator().generate_context(scan(tmp_path), "empty")

    assert titles(bundle) == ["Project Overview", "Directory Structure", "File Type Analysis"]
    assert "**Total files:** 0" in bundle.sections[0].content
    assert bundle.total_files == 0
    assert "0 files" in bundle.summary

def test_sections_are_ordered_by_priority(sample_project):
    result = scan(sample_project)
    bundle = ContextGenerator().generate_context(result, "sample")

    assert bundle.project_name == "sample"
    assert bundle.total_files == result.total_files
    assert bundle.total_size == result.total_size
    assert titles(bundle) == [
        "Project Overview",
        "Directory Structure",
        "File Type Analysis",
        "GO Files Content",
        "PY Files Content",
        "MD Files Content",
        "JSON Files Content",
    ]

def test_overview_and_structure_content(sample_project):
    bundle = ContextGenerator().generate_context(scan(sample_project), "sample")
    overview, structure, file_types = bundle.sections[:3]

    assert "**Total files:** 5" in overview.content
    assert "- **.py**: 2 files" in overview.content
    assert "## Largest Files" in overview.content
    assert "src/" in structure.content
    assert "util/" in structure.content
    assert "node_modules" not in structure.content
    assert "## .go Files (1 files)" in file_types.content
    assert "a.go - 50 lines" in file_types.content

def test_content_blocks_are_fenced_with_language(sample_project):
    bundle = ContextGenerator().generate_context(scan(sample_project), "sample")
    go_section = bundle.sections[3]

    assert go_section.files == ("a.go",)
    assert "## a.go\n\n```go\nline 0\n" in go_section.content
    assert go_section.content.rstrip().endswith("```")

def test_unknown_extension_gets_untagged_block(tmp_path):
    (tmp_path / "schema.graphql").write_text("type Query { ok: Boolean }\n", encoding="utf-8")
    (tmp_path / "Makefile").write_text("all:\n\techo hi\n", encoding="utf-8")
    bundle = ContextGenerator().generate_context(scan(tmp_path), "demo")

    other = next(s for s in bundle.sections if s.title == "Other Files Content")
    assert "## Makefile\n\n```\nall:" in other.content
    graphql = next(s for s in bundle.sections if s.title == "GRAPHQL Files Content")
    assert "## schema.graphql\n\n```\ntype Query" in graphql.content

def test_nested_code_fences_are_preserved(tmp_path):
    (tmp_path / "guide.md").write_text("Example:\n```python\nprint(1)\n```\n", encoding="utf-8")
    bundle = ContextGenerator().generate_context(scan(tmp_path), "demo")

    md = next(s for s in bundle.sections if s.title == "MD Files Content")
    assert "````markdown\nExample:\n```python" in md.content


# --- Test 2: Budgets ---

def test_rendered_content_stays_within_budget(sample_project):
    result = scan(sample_project)
    generator = ContextGenerator()
    generator.set_options(max_file_size=200, max_total_size=400, include_content=True, include_summary=True)

    bundle = generator.generate_context(result, "sample")
    sizes = {r.path.relative_to(sample_project).as_posix(): r.size for r in result.files}
    rendered = [f for s in bundle.sections for f in s.files]

    assert rendered
    assert sum(sizes[f] for f in rendered) <= 400
    assert all(sizes[f] <= 200 for f in rendered)

def test_section_truncation_marker(tmp_path):
    (tmp_path / "one.py").write_text("x" * 299 + "\n", encoding="utf-8")
    (tmp_path / "two.py").write_text("y" * 279 + "\n", encoding="utf-8")
    generator = ContextGenerator()
    generator.set_options(max_file_size=1024, max_total_size=600, include_content=True, include_summary=True)

    bundle = generator.generate_context(scan(tmp_path), "demo")
    py = next(s for s in bundle.sections if s.title == "PY Files Content")

    assert py.files == ("one.py",)
    assert py.content.endswith(TRUNCATION_MARKER)

def test_budget_is_shared_across_sections(tmp_path):
    (tmp_path / "a.py").write_text("x" * 100, encoding="utf-8")
    (tmp_path / "b.md").write_text("y" * 100, encoding="utf-8")
    result = scan(tmp_path)
    # Grows after the scan, so the selector budgets on the stale size
    (tmp_path / "a.py").write_text("x" * 250, encoding="utf-8")
    generator = ContextGenerator()
    generator.set_options(max_file_size=1024, max_total_size=300, include_content=True, include_summary=True)

    bundle = generator.generate_context(result, "demo")
    py = next(s for s in bundle.sections if s.title == "PY Files Content")
    md = next(s for s in bundle.sections if s.title == "MD Files Content")

    assert py.files == ("a.py",)
    assert py.content_bytes == 250
    assert md.files == ()
    assert md.content.endswith(TRUNCATION_MARKER)
    assert sum(s.content_bytes for s in bundle.sections) <= 300

def test_symlinks_do_not_leak_into_content(tmp_path):
    project = tmp_path / "proj"
    project.mkdir()
    (project / "main.py").write_text("print('hi')\n", encoding="utf-8")
    (tmp_path / "target.txt").write_text("t" * 4000, encoding="utf-8")
    for ext in ("txt", "md", "py", "go"):
        os.symlink(tmp_path / "target.txt", project / f"link.{ext}")
    (tmp_path / "shared").mkdir()
    os.symlink(tmp_path / "shared", project / "shared", target_is_directory=True)
    generator = ContextGenerator()
    generator.set_options(max_file_size=50 * 1024, max_total_size=5000, include_content=True, include_summary=True)

    bundle = generator.generate_context(scan(project), "proj")
    rendered = [f for s in bundle.sections for f in s.files]
    text = "".join(s.content for s in bundle.sections)

    assert rendered == ["main.py"]
    assert sum((project / f).stat().st_size for f in rendered) <= 5000
    assert "t" * 100 not in text
    assert "*Error reading file:" not in text

def test_content_can_be_disabled(sample_project):
    generator = ContextGenerator()
    generator.set_options(max_file_size=1024, max_total_size=4096, include_content=False, include_summary=False)

    bundle = generator.generate_context(scan(sample_project), "sample")

    assert len(bundle.sections) == 3
    assert bundle.summary == ""


# --- Test 3: Read failures ---

def test_unreadable_file_gets_inline_error(sample_project):
    result = scan(sample_project)
    (sample_project / "a.go").unlink()

    bundle = ContextGenerator().generate_context(result, "sample")
    go_section = next(s for s in bundle.sections if s.title == "GO Files Content")

    assert "*Error reading file:" in go_section.content
    assert go_section.files == ()
    assert "PY Files Content" in titles(bundle)

def test_file_grown_past_limit_is_skipped(sample_project):
    result = scan(sample_project)
    (sample_project / "data.json").write_text("0" * 2048, encoding="utf-8")
    generator = ContextGenerator()
    generator.set_options(max_file_size=1024, max_total_size=4096, include_content=True, include_summary=True)

    bundle = generator.generate_context(result, "sample")

    assert "JSON Files Content" not in titles(bundle)


# --- Test 4: Summary, tokens, rendering ---

def test_summary_mentions_dominant_extension(sample_project):
    bundle = ContextGenerator().generate_context(scan(sample_project), "sample")

    assert "5 files" in bundle.summary
    assert "2 directories" in bundle.summary
    assert "primarily consists of .py files (2 files)" in bundle.summary
    assert f"includes {len(bundle.sections)} sections" in bundle.summary

def test_token_estimate_is_chars_over_four(sample_project):
    bundle = ContextGenerator().generate_context(scan(sample_project), "sample")
    total_chars = sum(len(s.content) for s in bundle.sections) + len(bundle.summary)

    assert bundle.token_estimate == total_chars // 4
    assert estimate_tokens(bundle.sections, bundle.summary) == bundle.token_estimate

def test_render_bundle_includes_everything(sample_project):
    bundle = ContextGenerator().generate_context(scan(sample_project), "sample")
    document = render_bundle(bundle)

    assert "contextpack: sample" in document
    for section in bundle.sections:
        assert section.content in document
    assert document.rstrip().endswith(bundle.summary.rstrip())

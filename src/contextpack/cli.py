# src/contextpack/cli.py
import sys
import argparse
import logging
import os
from datetime import datetime
from pathlib import Path

from contextpack.config import (
    DEFAULT_CONTENT_MAX_FILE_SIZE,
    DEFAULT_CONTENT_MAX_TOTAL_SIZE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_PRICE_PER_1K_TOKENS,
)
from contextpack.core.folder_tree import FolderTree, SortType, format_node_line
from contextpack.core.generator import ContextGenerator, render_bundle
from contextpack.core.scanner import ProjectScanner, default_scan_config
from contextpack.errors import ContextPackError
from contextpack.models import Progress
from contextpack.utils.formatting import estimate_processing_time, format_number, format_size
from contextpack.utils.tokenizer import Tokenizer, estimate_cost


def create_arg_parser():
    parser = argparse.ArgumentParser(
        description="Scan a project and build a size-bounded, LLM-friendly context document."
    )
    parser.add_argument("root_dir", type=str, nargs="?", default=os.getcwd(), help="Project root directory")
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output filename (default: {folder_name}_context.md)"
    )
    parser.add_argument("--exclude", action="append", default=[], metavar="PATTERN", help="Extra exclude pattern (repeatable)")
    parser.add_argument("--include-hidden", action="store_true", help="Include dotfiles and dot-directories")
    parser.add_argument("--follow-symlinks", action="store_true", help="Descend into symlinked directories")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="Maximum directory depth")
    parser.add_argument("--max-file-size", type=int, default=DEFAULT_CONTENT_MAX_FILE_SIZE, help="Per-file content limit in bytes")
    parser.add_argument("--max-total-size", type=int, default=DEFAULT_CONTENT_MAX_TOTAL_SIZE, help="Total content budget in bytes")
    parser.add_argument("--no-content", action="store_true", help="Omit file contents")
    parser.add_argument("--no-summary", action="store_true", help="Omit the closing summary")
    parser.add_argument("--price-per-1k", type=float, default=DEFAULT_PRICE_PER_1K_TOKENS, help="Price per 1K tokens for the cost estimate")
    parser.add_argument("--tree", action="store_true", help="Print the folder statistics view instead of writing a context file")
    parser.add_argument("--sort", choices=[s.value for s in SortType], default=SortType.NAME.value, help="Sort order for --tree")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress and debug logging")
    return parser


def get_default_output_name(root_dir: Path) -> str:
    """Generates a dynamic filename based on the directory name."""
    folder_name = root_dir.name
    if not folder_name:
        folder_name = "project"
    safe_name = folder_name.replace(" ", "_")
    return f"{safe_name}_context.md"


def print_progress(progress: Progress) -> None:
    if progress.current_path:
        return
    total = f"/{progress.estimated_total}" if progress.estimated_total else ""
    line = f"  [{progress.elapsed:6.2f}s] {progress.phase} {progress.processed}{total}"
    if progress.estimated_total and not progress.processed:
        line += f" (~{estimate_processing_time(progress.estimated_total):.1f}s)"
    print(line, file=sys.stderr)


def print_tree(root_dir: Path, sort: str, include_hidden: bool) -> None:
    tree = FolderTree(root_dir, show_hidden=include_hidden, sort_by=SortType(sort))
    for node in tree.get_visible_nodes():
        print(format_node_line(node))

    stats = tree.get_folder_stats(root_dir)
    print(f"\n{format_number(stats.total_files)} files, {stats.total_directories} directories, {format_size(stats.total_size)}")
    if stats.last_modified:
        print(f"Last modified: {datetime.fromtimestamp(stats.last_modified):%Y-%m-%d %H:%M}")
    top_types = sorted(stats.file_types.items(), key=lambda item: (-item[1], item[0]))[:5]
    if top_types:
        print("Types: " + ", ".join(f"{ext} ({count})" for ext, count in top_types))


def main():
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args()

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        root_dir = Path(args.root_dir).resolve()
        if not root_dir.is_dir():
            print(f"Error: Invalid directory '{root_dir}'", file=sys.stderr)
            sys.exit(1)

        if args.tree:
            print_tree(root_dir, args.sort, args.include_hidden)
            return

        output_file_name = args.output or get_default_output_name(root_dir)
        output_file = root_dir / output_file_name

        print(f"--- contextpack ---")
        print(f"Scanning: {root_dir}")
        print(f"Output:   {output_file.name}")

        # 2. Scanning (the output file itself must never end up in the bundle)
        config = default_scan_config(
            root_dir,
            extra_patterns=[output_file_name, *args.exclude],
            include_hidden=args.include_hidden,
            follow_symlinks=args.follow_symlinks,
            max_depth=args.max_depth,
        )
        scanner = ProjectScanner(config, on_progress=print_progress if args.verbose else None)
        result = scanner.scan()

        if not result.files:
            print("No matching files found.")

        # 3. Review & Stats
        print("\n--- Top 10 Largest Files ---")
        print(f"{'Rank':<5} | {'Size':<10} | {'Lines':<8} | {'File Path'}")
        print("-" * 60)
        for i, record in enumerate(result.largest_files):
            rel = record.path.relative_to(root_dir).as_posix()
            print(f"{i+1:<5} | {format_size(record.size):<10} | {record.lines:<8} | {rel}")
        print("-" * 60)
        print(f"Total files:    {result.total_files} ({result.excluded_files} excluded)")
        print(f"Total size:     {format_size(result.total_size)}")
        print(f"Total lines:    {format_number(result.total_lines)}")
        print(f"Scan time:      {result.duration:.2f}s")

        # 4. Context Generation
        generator = ContextGenerator()
        generator.set_options(args.max_file_size, args.max_total_size, not args.no_content, not args.no_summary)
        bundle = generator.generate_context(result, root_dir.name or "project")
        document = render_bundle(bundle)

        print(f"Sections:       {len(bundle.sections)}")
        print(f"Est. tokens:    ~{format_number(bundle.token_estimate)} (exact: {format_number(Tokenizer.count(document))})")
        print(f"Est. cost:      ${estimate_cost(bundle.token_estimate, args.price_per_1k):.4f}")
        print("-" * 60)

        # 5. Output
        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(document)
            print(f"\nSuccess! Context written to: {output_file.name}")
        except IOError as e:
            print(f"Error writing file: {e}", file=sys.stderr)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)

    except ContextPackError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

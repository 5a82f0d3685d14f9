# src/mdscope/cli.py
import sys
import argparse
import json
import logging
import os
from pathlib import Path

# Module imports
from mdscope.config import AppConfig, ConfigError, load_config
from mdscope.core.fuzzy import fuzzy_find_files
from mdscope.core.history import SearchHistory, default_history_path
from mdscope.core.scanner import ProjectScanner
from mdscope.core.search import search_project
from mdscope.core.tree import generate_project_tree
from mdscope.models import FileFilter, SearchMode, SortMethod, results_to_json
from mdscope.utils.formatting import format_size, format_time_ago

DEFAULT_CONFIG_NAME = ".mdscope.toml"


def create_arg_parser():
    parser = argparse.ArgumentParser(
        prog="mdscope",
        description="Find markdown files in a project: gitignore-aware scanning, quick-open and search in files.",
    )
    parser.add_argument("--config", type=str, default=None, help=f"Config file (default: <root>/{DEFAULT_CONFIG_NAME})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_root(p):
        p.add_argument("root_dir", type=str, nargs="?", default=os.getcwd(), help="Project root directory")
        p.add_argument("-a", "--all", action="store_true", help="Include all files, not only markdown")

    p_scan = sub.add_parser("scan", help="List the files of a project")
    add_root(p_scan)
    p_scan.add_argument(
        "-s", "--sort",
        choices=[m.value for m in SortMethod],
        default=SortMethod.NAME_ASC.value,
        help="Sort method (default: name-asc)",
    )
    p_scan.add_argument("--tree", action="store_true", help="Print a tree instead of a flat list")
    p_scan.add_argument("--json", action="store_true", help="Print entries as JSON")
    p_scan.add_argument("--batched", type=int, metavar="N", default=None, help="Stream the scan in batches of N")

    p_find = sub.add_parser("find", help="Quick-open: fuzzy match file names")
    p_find.add_argument("query", type=str)
    add_root(p_find)
    p_find.add_argument("-n", "--limit", type=int, default=20, help="Maximum results (default: 20)")
    p_find.add_argument("--json", action="store_true", help="Print entries as JSON")

    p_search = sub.add_parser("search", help="Search file names or contents")
    p_search.add_argument("query", type=str)
    add_root(p_search)
    p_search.add_argument(
        "-m", "--mode",
        choices=[m.value for m in SearchMode],
        default=SearchMode.CONTENT.value,
        help="Search mode (default: content)",
    )
    p_search.add_argument("--json", action="store_true", help="Print results in the /api/search JSON shape")
    p_search.add_argument("--no-history", action="store_true", help="Do not record the query")

    p_history = sub.add_parser("history", help="Show or edit recent search terms of a project")
    p_history.add_argument("root_dir", type=str, nargs="?", default=os.getcwd(), help="Project root directory")
    p_history.add_argument("--add", type=str, default=None, metavar="TERM", help="Record a search term")
    p_history.add_argument("--clear", action="store_true", help="Forget this project's history")

    return parser


def _resolve_root(raw: str) -> Path:
    root_dir = Path(raw).expanduser().resolve()
    if not root_dir.is_dir():
        print(f"Error: Invalid directory '{root_dir}'", file=sys.stderr)
        sys.exit(1)
    return root_dir


def _load_app_config(args, root_dir: Path) -> AppConfig:
    config_path = Path(args.config).expanduser() if args.config else root_dir / DEFAULT_CONFIG_NAME
    return load_config(config_path)


def _history(config: AppConfig) -> SearchHistory:
    return SearchHistory(
        config.history_path or default_history_path(),
        max_entries=config.search.history_max_entries,
        min_length=config.search.min_query_length,
    )


def _file_filter(args) -> FileFilter:
    return FileFilter.ALL_FILES if args.all else FileFilter.MARKDOWN_ONLY


def run_scan(args, root_dir: Path, config: AppConfig) -> int:
    scanner = ProjectScanner(root_dir, _file_filter(args), config.scan)

    if args.batched:
        entries = []
        for i, batch in enumerate(scanner.iter_batches(args.batched), start=1):
            entries.extend(batch)
            print(f"  > batch {i}: {len(batch)} files ({len(entries)} so far)", file=sys.stderr)
    else:
        entries = scanner.scan_entries()

    if not entries:
        print("No matching files found.")
        return 0

    entries = SortMethod(args.sort).sort(entries)

    if args.json:
        print(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
        return 0
    if args.tree:
        print(generate_project_tree(entries, root_dir.name), end="")
        return 0

    print(f"{'Size':>10} | {'Modified':<14} | {'File Path'}")
    print("-" * 60)
    for e in entries:
        print(f"{format_size(e.size):>10} | {format_time_ago(e.modified_date):<14} | {e.relative_path}")
    print("-" * 60)
    print(f"Total files: {len(entries)} ({SortMethod(args.sort).label})")
    return 0


def run_find(args, root_dir: Path, config: AppConfig) -> int:
    entries = ProjectScanner(root_dir, _file_filter(args), config.scan).scan_entries()
    matches = fuzzy_find_files(args.query, entries, limit=args.limit, tolerance=config.search.fuzzy_tolerance)

    if args.json:
        print(json.dumps([e.to_dict() for e in matches], indent=2, ensure_ascii=False))
        return 0
    if not matches:
        print("No matching files found.")
        return 0
    for i, e in enumerate(matches):
        print(f"{i + 1:<4} {e.relative_path}")
    return 0


def run_search(args, root_dir: Path, config: AppConfig) -> int:
    mode = SearchMode(args.mode)
    results = search_project(args.query, root_dir, mode, _file_filter(args), config)

    if not args.no_history:
        _history(config).add(args.query, root_dir)

    if args.json:
        print(results_to_json(results))
        return 0
    if not results:
        print("No matches found.")
        return 0

    total = 0
    for r in results:
        print(f"--- {r.path} ---")
        for m in r.matches:
            print(f"{m.line_number:>6}: {m.text}")
            total += 1
    print("-" * 60)
    if mode is SearchMode.CONTENT:
        print(f"{total} matches in {len(results)} files")
    else:
        print(f"{len(results)} files")
    return 0


def run_history(args, root_dir: Path, config: AppConfig) -> int:
    history = _history(config)
    if args.clear:
        history.clear(root_dir)
        print("History cleared.")
        return 0
    if args.add:
        history.add(args.add, root_dir)

    terms = history.terms_for(root_dir)
    if not terms:
        print("No search history.")
        return 0
    for term in terms:
        print(term)
    return 0


COMMANDS = {
    "scan": run_scan,
    "find": run_find,
    "search": run_search,
    "history": run_history,
}


def main():
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args()

        if args.verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

        root_dir = _resolve_root(args.root_dir)

        # 2. Config
        try:
            config = _load_app_config(args, root_dir)
        except ConfigError as e:
            print(f"Error in configuration: {e}", file=sys.stderr)
            sys.exit(2)

        # 3. Dispatch
        exit_code = COMMANDS[args.command](args, root_dir, config)
        if exit_code:
            sys.exit(exit_code)

    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)

    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

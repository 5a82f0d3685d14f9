# src/mdscope/core/search.py
import logging
import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from mdscope.config import AppConfig, SearchConfig
from mdscope.core.fuzzy import fuzzy_find_files
from mdscope.core.scanner import ProjectScanner
from mdscope.models import ContextLine, FileEntry, FileFilter, SearchMatch, SearchMode, SearchResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def _clip(line: str, limit: int) -> str:
    return line.strip()[:limit]


def _read_text(entry: FileEntry, max_bytes: int) -> Optional[str]:
    """Returns the file's text, or None when it is too large, unreadable or not UTF-8."""
    try:
        if os.path.getsize(entry.absolute_path) >= max_bytes:
            logger.debug("Skipping %s (%d bytes or more)", entry.relative_path, max_bytes)
            return None
        with open(entry.absolute_path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping %s (read error: %s)", entry.relative_path, e)
        return None


def search_file(entry: FileEntry, query: str, max_matches: int, line_trim: int, max_bytes: int) -> Optional[SearchResult]:
    """Line scan of a single file. None when the file has no match or cannot be read."""
    content = _read_text(entry, max_bytes)
    if content is None:
        return None

    needle = query.lower()
    if needle not in content.lower():
        return None

    lines = content.split("\n")
    # A final newline ends the last line, it does not start another one
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    matches: List[SearchMatch] = []
    for index, line in enumerate(lines):
        if needle not in line.lower():
            continue

        context: List[ContextLine] = []
        if index > 0:
            context.append(ContextLine(index, _clip(lines[index - 1], line_trim), False))
        if index < len(lines) - 1:
            context.append(ContextLine(index + 2, _clip(lines[index + 1], line_trim), False))

        matches.append(SearchMatch(index + 1, _clip(line, line_trim), tuple(context)))
        if len(matches) >= max_matches:
            break

    if not matches:
        return None
    return SearchResult.for_entry(entry, matches)


def search_content(
    query: str,
    files: Sequence[FileEntry],
    on_progress: Optional[ProgressCallback] = None,
    *,
    config: Optional[SearchConfig] = None,
    max_matches: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[SearchResult]:
    """
    Case-insensitive line search over already scanned files, in input order.

    on_progress receives the number of files completed after each file.
    When cancel_event is set the search stops at the next file boundary
    and returns what it found so far. Unreadable files are skipped.
    """
    config = config or SearchConfig()
    if not query:
        return []
    if max_matches is None:
        max_matches = config.max_matches_per_file

    results: List[SearchResult] = []
    for completed, entry in enumerate(files, start=1):
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("Content search for %r cancelled after %d files", query, completed - 1)
            break
        result = search_file(entry, query, max_matches, config.line_trim, config.max_search_file_bytes)
        if result is not None:
            results.append(result)
        if on_progress is not None:
            on_progress(completed)
    return results


def search_filenames(query: str, files: Sequence[FileEntry], config: Optional[SearchConfig] = None) -> List[SearchResult]:
    """Filename mode: fuzzy ranking wrapped as results without line matches."""
    config = config or SearchConfig()
    return [
        SearchResult.for_entry(entry)
        for entry in fuzzy_find_files(query, files, tolerance=config.fuzzy_tolerance)
    ]


def search(
    query: str,
    files: Sequence[FileEntry],
    mode: SearchMode = SearchMode.CONTENT,
    on_progress: Optional[ProgressCallback] = None,
    *,
    config: Optional[SearchConfig] = None,
    max_matches: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[SearchResult]:
    if mode is SearchMode.FILENAME:
        return search_filenames(query, files, config)
    return search_content(
        query, files, on_progress, config=config, max_matches=max_matches, cancel_event=cancel_event
    )


def search_project(
    query: str,
    directory: Union[str, Path],
    mode: SearchMode = SearchMode.FILENAME,
    file_filter: FileFilter = FileFilter.MARKDOWN_ONLY,
    config: Optional[AppConfig] = None,
) -> List[SearchResult]:
    """
    Scans a directory and searches it in one call (the /api/search entry point).
    Content results come back ordered by path.
    """
    config = config or AppConfig()
    files = ProjectScanner(directory, file_filter, config.scan).scan_entries()
    if mode is SearchMode.FILENAME:
        return search_filenames(query, files, config.search)

    files.sort(key=lambda e: e.relative_path)
    return search_content(query, files, config=config.search)

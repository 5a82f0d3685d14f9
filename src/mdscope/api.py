# src/mdscope/api.py
"""
Operations offered to the viewer's collaborators (UI, CLI, HTTP server).
"""
import threading
from typing import List, Optional, Sequence

from mdscope.config import SearchConfig
from mdscope.core import search as _search
from mdscope.core.fuzzy import fuzzy_find_files
from mdscope.core.history import SearchHistory, default_history_path
from mdscope.core.scanner import scan_directory, scan_directory_batched
from mdscope.core.search import search_project
from mdscope.models import FileEntry, FileFilter, SearchMode, SearchResult

__all__ = [
    "scan_directory",
    "scan_directory_batched",
    "fuzzy_find_files",
    "search_content",
    "search_project",
    "search_history",
    "get_search_history",
]


def search_content(
    query: str,
    files: Sequence[FileEntry],
    on_progress=None,
    *,
    mode: SearchMode = SearchMode.CONTENT,
    file_filter: FileFilter = FileFilter.ALL_FILES,
    config: Optional[SearchConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[SearchResult]:
    """Searches pre-scanned entries by file name or content, narrowed by file_filter."""
    candidates = [entry for entry in files if file_filter.matches(entry)]
    return _search.search(
        query, candidates, mode, on_progress, config=config, cancel_event=cancel_event
    )


class _LazyHistory:
    """Creates the default on-disk history on first use."""

    def __init__(self):
        self._lock = threading.Lock()
        self._history: Optional[SearchHistory] = None

    def get(self) -> SearchHistory:
        with self._lock:
            if self._history is None:
                self._history = SearchHistory(default_history_path())
            return self._history

    def terms_for(self, directory) -> List[str]:
        return self.get().terms_for(directory)

    def add(self, term: str, directory) -> None:
        self.get().add(term, directory)


search_history = _LazyHistory()


def get_search_history() -> SearchHistory:
    return search_history.get()

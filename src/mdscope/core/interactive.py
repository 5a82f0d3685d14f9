# src/mdscope/core/interactive.py
import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from mdscope.config import SearchConfig
from mdscope.core.history import SearchHistory
from mdscope.core.search import ProgressCallback, search
from mdscope.models import FileEntry, SearchMode, SearchResult

logger = logging.getLogger(__name__)

ResultsCallback = Callable[[str, List[SearchResult]], None]


class IncrementalSearch:
    """
    Search-as-you-type over a fixed file list.

    Every query change bumps a generation and sets the cancel event of the
    run it supersedes. A run waits out the debounce delay, searches while
    checking its event between files, and only reports results if it is
    still the latest generation. Callbacks run on the worker thread.
    """

    def __init__(
        self,
        files: Sequence[FileEntry],
        directory_key: Union[str, Path],
        on_results: ResultsCallback,
        *,
        mode: SearchMode = SearchMode.CONTENT,
        history: Optional[SearchHistory] = None,
        config: Optional[SearchConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.files = list(files)
        self.directory_key = directory_key
        self.on_results = on_results
        self.mode = mode
        self.history = history
        self.config = config or SearchConfig()
        self.on_progress = on_progress

        # Reentrant: a callback may call update_query while results are being delivered
        self._lock = threading.RLock()
        self._generation = 0
        self._cancel_event: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None

    @property
    def is_searching(self) -> bool:
        worker = self._worker
        return worker is not None and worker.is_alive()

    def update_query(self, query: str) -> None:
        """Debounced: (re)starts a search once input has been quiet for the delay."""
        self._start(query, self.config.debounce_seconds)

    def submit(self, query: str) -> None:
        """Explicit submit: searches immediately, superseding any pending run."""
        self._start(query, 0.0)

    def cancel(self) -> None:
        with self._lock:
            self._supersede()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Joins the current worker. Returns False if it is still running after timeout."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def _supersede(self) -> int:
        self._generation += 1
        if self._cancel_event is not None:
            self._cancel_event.set()
        self._cancel_event = None
        return self._generation

    def _start(self, query: str, delay: float) -> None:
        with self._lock:
            generation = self._supersede()
            if len(query.strip()) < self.config.min_query_length:
                self._worker = None
                self.on_results(query, [])
            else:
                cancel_event = threading.Event()
                self._cancel_event = cancel_event
                self._worker = threading.Thread(
                    target=self._run,
                    args=(query, delay, generation, cancel_event),
                    name=f"mdscope-search-{generation}",
                    daemon=True,
                )
                self._worker.start()

    def _is_current(self, generation: int, cancel_event: threading.Event) -> bool:
        return generation == self._generation and not cancel_event.is_set()

    def _run(self, query: str, delay: float, generation: int, cancel_event: threading.Event) -> None:
        # Event.wait doubles as an interruptible sleep
        if delay > 0 and cancel_event.wait(delay):
            return

        results = search(
            query,
            self.files,
            self.mode,
            self.on_progress,
            config=self.config,
            max_matches=self.config.interactive_max_matches,
            cancel_event=cancel_event,
        )
        # Check and delivery happen under one lock hold, so nothing can supersede in between
        with self._lock:
            if not self._is_current(generation, cancel_event):
                logger.debug("Dropping results of superseded query %r", query)
                return
            if self.history is not None:
                self.history.add(query, self.directory_key)
            self.on_results(query, results)

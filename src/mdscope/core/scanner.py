# src/mdscope/core/scanner.py
import logging
import os
import stat
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from mdscope.config import ScanConfig
from mdscope.core.ignore import GitignoreMatcher, is_excluded, load_exclude_spec
from mdscope.models import DISTANT_PAST, FileEntry, FileFilter, is_markdown_file

logger = logging.getLogger(__name__)

BatchCallback = Callable[[List[FileEntry], bool], None]


class ProjectScanner:
    def __init__(
        self,
        root_dir: Union[str, Path],
        file_filter: FileFilter = FileFilter.MARKDOWN_ONLY,
        config: Optional[ScanConfig] = None,
    ):
        self.root_dir = os.path.normpath(os.path.abspath(os.path.expanduser(str(root_dir))))
        self.file_filter = file_filter
        self.config = config or ScanConfig()
        self.exclude_spec = load_exclude_spec(
            self.config.prune_build_artifacts, list(self.config.extra_excludes)
        )

    def _load_gitignore(self) -> GitignoreMatcher:
        if not self.config.respect_gitignore:
            return GitignoreMatcher()
        return GitignoreMatcher.compile(Path(self.root_dir))

    def _relative(self, abs_path: str) -> str:
        return os.path.relpath(abs_path, self.root_dir).replace(os.sep, "/")

    def _is_pruned(self, gitignore: GitignoreMatcher, name: str, rel_path: str, is_directory: bool) -> bool:
        if name.startswith("."):
            return True
        if is_excluded(self.exclude_spec, rel_path, is_directory):
            return True
        return gitignore.is_ignored(rel_path, is_directory)

    def _make_entry(self, abs_path: str, rel_path: str, name: str) -> Optional[FileEntry]:
        """
        Materializes a FileEntry from lstat. Non-regular files (symlinks,
        sockets, ...) return None; unreadable metadata degrades to defaults.
        """
        try:
            st = os.lstat(abs_path)
        except OSError as e:
            logger.debug("Could not stat %s: %s", rel_path, e)
            size, modified = 0, DISTANT_PAST
        else:
            if not stat.S_ISREG(st.st_mode):
                return None
            size = st.st_size
            try:
                modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                modified = DISTANT_PAST

        return FileEntry(
            id=rel_path,
            name=name,
            relative_path=rel_path,
            absolute_path=abs_path,
            size=size,
            modified_date=modified,
            is_markdown=is_markdown_file(name),
        )

    def scan(self) -> Iterator[FileEntry]:
        """
        Walks the directory tree depth-first, pruning hidden, excluded and
        gitignored directories, and yields a FileEntry for each regular file
        passing the filter. Order follows filesystem enumeration.
        """
        gitignore = self._load_gitignore()

        # os.walk swallows the error of an unreadable root: the scan is just empty
        for root, dirs, files in os.walk(self.root_dir, topdown=True):
            # --- 1. Prune directories (in-place, so os.walk never descends) ---
            for d in list(dirs):
                rel_dir = self._relative(os.path.join(root, d))
                if self._is_pruned(gitignore, d, rel_dir, is_directory=True):
                    dirs.remove(d)

            # --- 2. Process files ---
            for f in files:
                abs_path = os.path.join(root, f)
                rel_path = self._relative(abs_path)

                if self._is_pruned(gitignore, f, rel_path, is_directory=False):
                    continue
                if self.file_filter is FileFilter.MARKDOWN_ONLY and not is_markdown_file(f):
                    continue

                entry = self._make_entry(abs_path, rel_path, f)
                if entry is not None:
                    yield entry

    def scan_entries(self) -> List[FileEntry]:
        return list(self.scan())

    def iter_batches(self, batch_size: Optional[int] = None) -> Iterator[List[FileEntry]]:
        """Lazy, single-pass sequence of non-empty batches in discovery order."""
        if batch_size is None:
            batch_size = self.config.batch_size
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        batch: List[FileEntry] = []
        for entry in self.scan():
            batch.append(entry)
            if len(batch) >= batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    def scan_batched(self, on_batch: BatchCallback, batch_size: Optional[int] = None) -> threading.Thread:
        """
        Scans on a background thread, calling on_batch(entries, False) per batch
        and finally on_batch([], True) exactly once. Returns the started thread.
        """
        if batch_size is None:
            batch_size = self.config.batch_size
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        def _run() -> None:
            started = time.perf_counter()
            count = 0
            logger.debug("scan starting: %s", self.root_dir)
            try:
                for batch in self.iter_batches(batch_size):
                    if count == 0:
                        logger.debug("first file found in %.1fms", (time.perf_counter() - started) * 1000)
                    count += len(batch)
                    on_batch(batch, False)
            finally:
                on_batch([], True)
                logger.debug(
                    "scan done: %d files in %.1fms", count, (time.perf_counter() - started) * 1000
                )

        worker = threading.Thread(target=_run, name=f"mdscope-scan:{os.path.basename(self.root_dir)}", daemon=True)
        worker.start()
        return worker


def scan_directory(
    path: Union[str, Path],
    file_filter: FileFilter = FileFilter.MARKDOWN_ONLY,
    config: Optional[ScanConfig] = None,
) -> List[FileEntry]:
    return ProjectScanner(path, file_filter, config).scan_entries()


def scan_directory_batched(
    path: Union[str, Path],
    file_filter: FileFilter,
    batch_size: int,
    on_batch: BatchCallback,
    config: Optional[ScanConfig] = None,
) -> threading.Thread:
    return ProjectScanner(path, file_filter, config).scan_batched(on_batch, batch_size)

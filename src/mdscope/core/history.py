# src/mdscope/core/history.py
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

MAX_ENTRIES = 20
MIN_TERM_LENGTH = 2


def default_history_path() -> Path:
    home = os.environ.get("MDSCOPE_HOME")
    base = Path(home).expanduser() if home else Path.home() / ".mdscope"
    return base / "search_history.json"


def _normalize_key(directory: Union[str, Path]) -> str:
    return os.path.abspath(os.path.expanduser(str(directory)))


class SearchHistory:
    """
    Per-directory list of recent search terms, most recent first.

    With a path, the whole map is kept in a JSON file of the form
    {"/abs/dir": ["term", ...]} and rewritten on every change.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        max_entries: int = MAX_ENTRIES,
        min_length: int = MIN_TERM_LENGTH,
    ):
        self.path = Path(path) if path is not None else None
        self.max_entries = max_entries
        self.min_length = min_length
        self._lock = threading.Lock()
        self._terms: Dict[str, List[str]] = self._load()

    def _load(self) -> Dict[str, List[str]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read search history %s: %s", self.path, e)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed search history %s", self.path)
            return {}
        return {
            str(key): [t for t in value if isinstance(t, str)][: self.max_entries]
            for key, value in payload.items()
            if isinstance(value, list)
        }

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".history-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._terms, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.warning("Could not save search history %s: %s", self.path, e)

    def terms_for(self, directory: Union[str, Path]) -> List[str]:
        with self._lock:
            return list(self._terms.get(_normalize_key(directory), []))

    def add(self, term: str, directory: Union[str, Path]) -> None:
        trimmed = term.strip()
        if len(trimmed) < self.min_length:
            return

        key = _normalize_key(directory)
        with self._lock:
            history = [t for t in self._terms.get(key, []) if t != trimmed]
            history.insert(0, trimmed)
            self._terms[key] = history[: self.max_entries]
            self._save()

    def clear(self, directory: Optional[Union[str, Path]] = None) -> None:
        with self._lock:
            if directory is None:
                self._terms.clear()
            else:
                self._terms.pop(_normalize_key(directory), None)
            self._save()

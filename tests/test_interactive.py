# tests/test_interactive.py
import threading
import time

import pytest

from mdscope.config import SearchConfig
from mdscope.core.history import SearchHistory
from mdscope.core.interactive import IncrementalSearch
from mdscope.core.scanner import scan_directory
from mdscope.models import SearchMode


@pytest.fixture
def files(tmp_path):
    (tmp_path / "a.md").write_text("alpha beta\ngamma", encoding="utf-8")
    (tmp_path / "b.md").write_text("beta only", encoding="utf-8")
    return scan_directory(tmp_path)


class Recorder:
    """Collects on_results callbacks and lets a test wait for them."""

    def __init__(self):
        self.calls = []
        self.event = threading.Event()

    def __call__(self, query, results):
        self.calls.append((query, results))
        self.event.set()


def make_search(files, tmp_path, recorder, **kwargs):
    config = kwargs.pop("config", SearchConfig(debounce_seconds=0.05))
    return IncrementalSearch(files, tmp_path, recorder, config=config, **kwargs)


def test_debounced_query_delivers_results_and_records_history(files, tmp_path):
    recorder = Recorder()
    history = SearchHistory()
    search = make_search(files, tmp_path, recorder, history=history)

    search.update_query("beta")
    assert recorder.event.wait(5)
    search.wait(5)

    [(query, results)] = recorder.calls
    assert query == "beta"
    assert {r.path for r in results} == {"a.md", "b.md"}
    assert history.terms_for(tmp_path) == ["beta"]


def test_short_query_clears_without_searching(files, tmp_path):
    recorder = Recorder()
    history = SearchHistory()
    search = make_search(files, tmp_path, recorder, history=history)

    search.update_query("b")
    assert recorder.calls == [("b", [])]
    assert search.is_searching is False
    assert history.terms_for(tmp_path) == []


def test_new_keystroke_supersedes_pending_search(files, tmp_path):
    recorder = Recorder()
    history = SearchHistory()
    search = make_search(files, tmp_path, recorder, history=history, config=SearchConfig(debounce_seconds=0.2))

    search.update_query("alp")
    search.update_query("alpha")
    assert search.wait(5)
    # Give a superseded worker the chance to (wrongly) report
    time.sleep(0.3)

    assert [q for q, _ in recorder.calls] == ["alpha"]
    assert history.terms_for(tmp_path) == ["alpha"]


def test_cancel_prevents_delivery(files, tmp_path):
    recorder = Recorder()
    search = make_search(files, tmp_path, recorder, config=SearchConfig(debounce_seconds=0.2))

    search.update_query("gamma")
    search.cancel()
    search.wait(5)
    time.sleep(0.3)
    assert recorder.calls == []


def test_submit_skips_debounce(files, tmp_path):
    recorder = Recorder()
    search = make_search(files, tmp_path, recorder, config=SearchConfig(debounce_seconds=30))

    search.submit("gamma")
    assert recorder.event.wait(5)
    [(query, results)] = recorder.calls
    assert query == "gamma"
    assert [r.path for r in results] == ["a.md"]
    assert results[0].matches[0].line_number == 2


def test_filename_mode(files, tmp_path):
    recorder = Recorder()
    search = make_search(files, tmp_path, recorder, mode=SearchMode.FILENAME)

    search.submit("b.md")
    assert recorder.event.wait(5)
    [(_, results)] = recorder.calls
    assert results[0].path == "b.md"
    assert results[0].matches == ()


class SlowHistory(SearchHistory):
    """Signals when a term is being recorded, then holds the worker there."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()

    def add(self, term, directory):
        self.entered.set()
        time.sleep(0.3)
        super().add(term, directory)


def test_keystroke_during_delivery_is_reported_last(files, tmp_path):
    recorder = Recorder()
    history = SlowHistory()
    search = make_search(files, tmp_path, recorder, history=history)

    search.submit("beta")
    assert history.entered.wait(5)
    typist = threading.Thread(target=search.update_query, args=("b",))
    typist.start()
    typist.join(5)
    search.wait(5)

    assert [q for q, _ in recorder.calls] == ["beta", "b"]
    assert recorder.calls[-1] == ("b", [])
    assert history.terms_for(tmp_path) == ["beta"]

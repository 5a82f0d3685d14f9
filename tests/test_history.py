# tests/test_history.py
import json
import threading

from mdscope.core.history import SearchHistory, default_history_path


def test_add_and_recency_promotion(tmp_path):
    history = SearchHistory()
    history.add("foo", tmp_path)
    history.add("bar", tmp_path)
    history.add("foo", tmp_path)
    assert history.terms_for(tmp_path) == ["foo", "bar"]


def test_cap_keeps_most_recent_twenty(tmp_path):
    history = SearchHistory()
    for i in range(21):
        history.add(f"term{i}", tmp_path)
    terms = history.terms_for(tmp_path)
    assert len(terms) == 20
    assert terms[0] == "term20"
    assert "term0" not in terms


def test_short_terms_are_not_recorded(tmp_path):
    history = SearchHistory()
    history.add("x", tmp_path)
    history.add("  y  ", tmp_path)
    assert history.terms_for(tmp_path) == []


def test_terms_are_trimmed(tmp_path):
    history = SearchHistory()
    history.add("  spaced out  ", tmp_path)
    history.add("spaced out", tmp_path)
    assert history.terms_for(tmp_path) == ["spaced out"]


def test_directories_are_independent(tmp_path):
    history = SearchHistory()
    history.add("alpha", tmp_path / "a")
    history.add("beta", tmp_path / "b")
    assert history.terms_for(tmp_path / "a") == ["alpha"]
    assert history.terms_for(tmp_path / "b") == ["beta"]
    assert history.terms_for(tmp_path / "c") == []


def test_returned_list_is_a_copy(tmp_path):
    history = SearchHistory()
    history.add("alpha", tmp_path)
    history.terms_for(tmp_path).clear()
    assert history.terms_for(tmp_path) == ["alpha"]


def test_persistence_round_trip(tmp_path):
    store = tmp_path / "state" / "history.json"
    project = tmp_path / "project"

    first = SearchHistory(store)
    first.add("mermaid", project)
    first.add("diagram", project)

    payload = json.loads(store.read_text(encoding="utf-8"))
    assert payload == {str(project): ["diagram", "mermaid"]}

    second = SearchHistory(store)
    assert second.terms_for(project) == ["diagram", "mermaid"]


def test_corrupt_store_loads_empty(tmp_path):
    store = tmp_path / "history.json"
    store.write_text("{not json", encoding="utf-8")
    history = SearchHistory(store)
    assert history.terms_for(tmp_path) == []
    history.add("recovered", tmp_path)
    assert SearchHistory(store).terms_for(tmp_path) == ["recovered"]


def test_clear(tmp_path):
    history = SearchHistory()
    history.add("alpha", tmp_path / "a")
    history.add("beta", tmp_path / "b")
    history.clear(tmp_path / "a")
    assert history.terms_for(tmp_path / "a") == []
    assert history.terms_for(tmp_path / "b") == ["beta"]
    history.clear()
    assert history.terms_for(tmp_path / "b") == []


def test_concurrent_adds_to_different_directories(tmp_path):
    history = SearchHistory(tmp_path / "history.json")

    def worker(n):
        for i in range(10):
            history.add(f"query-{n}-{i}", tmp_path / f"dir{n}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for n in range(4):
        terms = history.terms_for(tmp_path / f"dir{n}")
        assert terms == [f"query-{n}-{i}" for i in reversed(range(10))]


def test_default_path_honours_env(tmp_path, monkeypatch):
    monkeypatch.setenv("MDSCOPE_HOME", str(tmp_path))
    assert default_history_path() == tmp_path / "search_history.json"

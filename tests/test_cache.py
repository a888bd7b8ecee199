from datetime import datetime, timedelta

from cinesocial.utils import cache as cache_module
from cinesocial.utils.cache import CacheStore, cache


def test_cached_function_runs_once_per_argument():
    calls = []

    @cache(ttl=60)
    def lookup(imdb_id):
        calls.append(imdb_id)
        return {"imdb_id": imdb_id}

    assert lookup("tt1") == {"imdb_id": "tt1"}
    assert lookup("tt1") == {"imdb_id": "tt1"}
    assert lookup("tt2") == {"imdb_id": "tt2"}

    assert calls == ["tt1", "tt2"]


def test_invalidate_forgets_one_entry():
    calls = []

    @cache(ttl=60)
    def lookup(imdb_id):
        calls.append(imdb_id)
        return imdb_id

    lookup("tt1")
    lookup.invalidate("tt1")
    lookup("tt1")

    assert calls == ["tt1", "tt1"]


def test_entries_expire(monkeypatch):
    store = CacheStore()
    store.set("key", "value", ttl=10)

    later = datetime.now() + timedelta(seconds=11)

    class _Later(datetime):
        @classmethod
        def now(cls, tz=None):
            return later

    monkeypatch.setattr(cache_module, "datetime", _Later)

    assert store.get("key") is None


def test_least_recently_used_is_evicted():
    store = CacheStore(max_size=2)
    store.set("a", 1)
    store.set("b", 2)
    store.get("a")
    store.set("c", 3)

    assert store.get("b") is None
    assert store.get("a") == 1
    assert store.get("c") == 3

    assert len(store) == 2
    assert (store.hits, store.misses) == (3, 1)

import threading

from store import MemoryScoreStore


def test_submit_reports_whether_anything_changed():
    store = MemoryScoreStore()

    assert store.submit("alice", 10, "t1") is True
    assert store.submit("alice", 8, "t2") is False
    assert store.submit("alice", 10, "t3") is False
    assert store.submit("alice", 15, "t4") is True

    [entry] = store.top(10)
    assert entry.score == 15
    assert entry.recorded_at == "t4"


def test_no_op_keeps_timestamp():
    store = MemoryScoreStore()
    store.submit("alice", 10, "t1")
    store.submit("alice", 3, "t2")
    assert store.top(1)[0].recorded_at == "t1"


def test_truncated_to_capacity_after_every_submission():
    store = MemoryScoreStore()
    for i in range(11):
        store.submit(f"p{i}", i, "t")

    handles = [e.handle for e in store.top(100)]
    assert len(handles) == 10
    assert "p0" not in handles


def test_evicted_handle_is_forgotten():
    # once a handle falls off the list it can come back with any score
    store = MemoryScoreStore(capacity=2)
    store.submit("low", 1, "t")
    store.submit("mid", 5, "t")
    store.submit("high", 9, "t")
    assert [e.handle for e in store.top(10)] == ["high", "mid"]

    store.submit("low", 7, "t")
    assert [(e.handle, e.score) for e in store.top(10)] == [("high", 9), ("low", 7)]


def test_ties_keep_submission_order():
    store = MemoryScoreStore()
    store.submit("first", 5, "t")
    store.submit("second", 5, "t")
    assert [e.handle for e in store.top(10)] == ["first", "second"]


def test_top_returns_copies():
    store = MemoryScoreStore()
    store.submit("alice", 10, "t")
    store.top(1)[0].score = 999
    assert store.top(1)[0].score == 10


def test_concurrent_submissions_keep_best_score():
    store = MemoryScoreStore()

    def worker(offset):
        for i in range(200):
            store.submit("alice", offset + i, "t")
            store.submit(f"p{offset}-{i % 20}", i, "t")

    threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    top = store.top(10)
    assert len(top) == 10
    assert len({e.handle for e in top}) == 10
    assert top[0].handle == "alice"
    assert top[0].score == 3199

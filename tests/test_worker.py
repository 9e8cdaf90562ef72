import sys
import os
import time

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from picross_model import Puzzle
from picross_worker import CatalogWorker


def wait_results(worker, count=1, timeout=5.0):
    results = []
    deadline = time.time() + timeout
    while time.time() < deadline and len(results) < count:
        results.extend(worker.poll())
        time.sleep(0.01)
    return results


def test_refresh_loads_directories(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.mkdir()
    b.mkdir()
    p = Puzzle(2, 2, solution=[True, False, False, True])
    p.title = "Diag"
    p.save(str(a))
    (b / "bad.kgram").write_bytes(b"nope")

    worker = CatalogWorker()
    worker.start()
    try:
        worker.request_refresh([str(a), str(b), str(tmp_path / "missing")])
        results = wait_results(worker)
    finally:
        worker.stop()

    assert len(results) == 1, "worker did not answer"
    res = results[0]
    assert res.ok
    assert [q.title for q in res.puzzles] == ["Diag"]
    assert res.puzzles[0] is not p
    assert res.skipped == [str(b / "bad.kgram")]


def test_results_arrive_in_request_order(tmp_path):
    p = Puzzle(1, 1)
    p.title = "Only"
    p.save(str(tmp_path))

    worker = CatalogWorker()
    worker.start()
    try:
        worker.request_refresh([])
        worker.request_refresh([str(tmp_path)])
        results = wait_results(worker, count=2)
    finally:
        worker.stop()
    assert [len(r.puzzles) for r in results] == [0, 1]


def test_stop_ends_thread():
    worker = CatalogWorker()
    worker.start()
    worker.stop()
    assert not worker.alive
    assert worker.poll() == []

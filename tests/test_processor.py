"""Tests for processor.py -- read, hand-off, relocation, loop resilience."""

import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from file_ingest.channel import FileTaskQueue
from file_ingest.errors import HandoffError
from file_ingest.models import FileState, FileTask
from file_ingest.processor import FileProcessor


class RecordingHandoff:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.received: list[tuple[str, bytes]] = []
        self.fail_on = fail_on or set()

    def submit(self, filename: str, content: bytes) -> None:
        if filename in self.fail_on:
            raise HandoffError(f"orchestrator rejected {filename}")
        self.received.append((filename, content))


@pytest.fixture
def dirs(tmp_path):
    paths = {name: tmp_path / name for name in ("in", "done", "err")}
    for p in paths.values():
        p.mkdir()
    return paths


@pytest.fixture
def queue():
    return FileTaskQueue()


@pytest.fixture
def handoff():
    return RecordingHandoff()


@pytest.fixture
def processor(queue, dirs, handoff):
    return FileProcessor(queue, dirs["done"], dirs["err"], handoff=handoff, log=MagicMock())


def _task(path: Path) -> FileTask:
    return FileTask(path=path)


class TestProcessTask:
    def test_success_moves_to_completed(self, processor, dirs, handoff):
        f = dirs["in"] / "report.txt"
        f.write_bytes(b"quarterly numbers\n")
        state = processor.process_task(_task(f))
        assert state == FileState.COMPLETED
        assert (dirs["done"] / "report.txt").read_bytes() == b"quarterly numbers\n"
        assert not f.exists()
        assert handoff.received == [("report.txt", b"quarterly numbers\n")]
        assert processor.stats.completed == 1

    def test_replaces_existing_completed_file(self, processor, dirs):
        (dirs["done"] / "report.txt").write_text("previous run")
        f = dirs["in"] / "report.txt"
        f.write_text("this run")
        processor.process_task(_task(f))
        assert (dirs["done"] / "report.txt").read_text() == "this run"

    def test_vanished_file_is_skipped(self, processor, dirs):
        task = _task(dirs["in"] / "gone.txt")
        state = processor.process_task(task)
        assert state == FileState.ERROR
        assert processor.stats.skipped == 1
        assert processor.stats.failed == 0
        assert list(dirs["err"].iterdir()) == []

    def test_read_failure_moves_to_error(self, processor, dirs):
        f = dirs["in"] / "locked.txt"
        f.write_text("secret")
        with patch.object(Path, "read_bytes", side_effect=PermissionError(13, "denied")):
            state = processor.process_task(_task(f))
        assert state == FileState.ERROR
        assert (dirs["err"] / "locked.txt").exists()
        assert not (dirs["done"] / "locked.txt").exists()
        assert processor.stats.failed == 1

    def test_handoff_failure_moves_to_error(self, queue, dirs):
        handoff = RecordingHandoff(fail_on={"bad.txt"})
        processor = FileProcessor(queue, dirs["done"], dirs["err"], handoff=handoff, log=MagicMock())
        f = dirs["in"] / "bad.txt"
        f.write_text("x")
        state = processor.process_task(_task(f))
        assert state == FileState.ERROR
        assert (dirs["err"] / "bad.txt").exists()
        processor.log.error.assert_called()
        assert "Hand-off failed" in processor.log.error.call_args.args[0]

    def test_completed_relocation_failure_leaves_file(self, processor, dirs):
        f = dirs["in"] / "stuck.txt"
        f.write_text("x")
        dirs["done"].rmdir()
        state = processor.process_task(_task(f))
        assert state == FileState.ERROR
        assert f.exists()
        assert processor.stats.relocation_failures == 1

    def test_error_relocation_failure_is_logged(self, queue, dirs):
        handoff = RecordingHandoff(fail_on={"bad.txt"})
        processor = FileProcessor(queue, dirs["done"], dirs["err"], handoff=handoff, log=MagicMock())
        f = dirs["in"] / "bad.txt"
        f.write_text("x")
        dirs["err"].rmdir()
        state = processor.process_task(_task(f))
        assert state == FileState.ERROR
        assert f.exists()
        assert processor.stats.relocation_failures == 1


class TestProcessLoop:
    def test_processes_in_fifo_order(self, processor, queue, dirs, handoff):
        worker = threading.Thread(target=processor.process_loop)
        worker.start()
        for name in ("c.txt", "a.txt", "b.txt"):
            f = dirs["in"] / name
            f.write_text(name)
            queue.put(_task(f))

        _wait_for(lambda: processor.stats.total == 3)
        queue.close()
        worker.join(timeout=5)
        assert [name for name, _ in handoff.received] == ["c.txt", "a.txt", "b.txt"]

    def test_loop_continues_after_bad_file(self, queue, dirs):
        handoff = RecordingHandoff(fail_on={"bad.txt"})
        processor = FileProcessor(queue, dirs["done"], dirs["err"], handoff=handoff, log=MagicMock())
        worker = threading.Thread(target=processor.process_loop)
        worker.start()

        for name in ("missing.txt", "bad.txt", "good.txt"):
            f = dirs["in"] / name
            if name != "missing.txt":
                f.write_text(name)
            queue.put(_task(f))

        _wait_for(lambda: processor.stats.total == 3)
        queue.close()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert (dirs["done"] / "good.txt").exists()
        assert (dirs["err"] / "bad.txt").exists()
        assert processor.stats.completed == 1
        assert processor.stats.failed == 1
        assert processor.stats.skipped == 1

    def test_unexpected_exception_does_not_kill_loop(self, processor, queue, dirs):
        f = dirs["in"] / "a.txt"
        f.write_text("x")
        with patch.object(processor, "process_task", side_effect=[RuntimeError("boom"), FileState.COMPLETED]):
            queue.put(_task(f))
            queue.put(_task(f))
            assert processor.drain() == 2
        assert processor.stats.failed == 1
        processor.log.exception.assert_called_once()

    def test_close_mid_file_finishes_current_task(self, queue, dirs):
        entered = threading.Event()
        release = threading.Event()

        class SlowHandoff:
            def submit(self, filename, content):
                entered.set()
                assert release.wait(timeout=5)

        processor = FileProcessor(queue, dirs["done"], dirs["err"], handoff=SlowHandoff(), log=MagicMock())
        for name in ("a.txt", "b.txt"):
            f = dirs["in"] / name
            f.write_text(name)
            queue.put(_task(f))

        worker = threading.Thread(target=processor.process_loop)
        worker.start()
        assert entered.wait(timeout=5)
        queue.close()
        release.set()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert (dirs["done"] / "a.txt").exists()
        assert (dirs["in"] / "b.txt").exists()
        assert processor.stats.completed == 1
        assert [t.name for t in queue.drain_remaining()] == ["b.txt"]

    def test_exits_on_close_when_idle(self, processor, queue):
        worker = threading.Thread(target=processor.process_loop)
        worker.start()
        queue.close()
        worker.join(timeout=5)
        assert not worker.is_alive()


class TestDrain:
    def test_drain_handles_all_pending(self, processor, queue, dirs):
        for name in ("a.txt", "b.txt"):
            f = dirs["in"] / name
            f.write_text(name)
            queue.put(_task(f))
        assert processor.drain() == 2
        assert queue.is_empty()
        assert sorted(p.name for p in dirs["done"].iterdir()) == ["a.txt", "b.txt"]

    def test_drain_empty(self, processor):
        assert processor.drain() == 0


def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)

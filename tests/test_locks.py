import threading

import pytest

from xvkit.locks import LockError, SleepLock, SpinLock


def _in_thread(fn):
    result = []
    t = threading.Thread(target=lambda: result.append(fn()))
    t.start()
    t.join(5)
    return result[0]


def test_spinlock_acquire_release():
    lk = SpinLock("test")
    assert not lk.holding()
    lk.acquire()
    assert lk.holding()
    assert lk.locked
    lk.release()
    assert not lk.holding()
    assert not lk.locked


def test_spinlock_double_acquire_raises():
    lk = SpinLock("test")
    lk.acquire()
    with pytest.raises(LockError):
        lk.acquire()
    lk.release()
    assert not lk.locked


def test_spinlock_release_unheld_raises():
    lk = SpinLock("test")
    with pytest.raises(LockError):
        lk.release()


def test_spinlock_other_thread_does_not_hold():
    lk = SpinLock("test")
    with lk:
        assert _in_thread(lk.holding) is False
        assert lk.holding()
    assert not lk.locked


def test_spinlock_release_from_other_thread_raises():
    lk = SpinLock("test")
    lk.acquire()

    def attempt():
        try:
            lk.release()
        except LockError:
            return "refused"
        return "released"

    assert _in_thread(attempt) == "refused"
    assert lk.holding()
    lk.release()


def test_sleeplock_holding_and_pid():
    lk = SleepLock("sleep")
    lk.acquire()
    assert lk.holding()
    assert lk.pid == threading.get_ident()
    assert _in_thread(lk.holding) is False
    lk.release()
    assert not lk.holding()
    assert lk.pid == 0


def test_sleeplock_waiter_blocks_until_release():
    lk = SleepLock("sleep")
    lk.acquire()
    got = threading.Event()

    def waiter():
        with lk:
            got.set()

    t = threading.Thread(target=waiter)
    t.start()
    assert not got.wait(0.2)
    lk.release()
    t.join(5)
    assert got.is_set()
    assert not lk.locked


def test_sleeplock_context_manager():
    lk = SleepLock("sleep")
    with lk:
        assert lk.locked
    assert not lk.locked


def test_sleeplock_serialises_counter():
    lk = SleepLock("sleep")
    counter = {"n": 0}
    held = []

    def work():
        for _ in range(200):
            with lk:
                held.append(lk.holding())
                counter["n"] += 1

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)
    assert counter["n"] == 4 * 200
    assert len(held) == 4 * 200
    assert all(held)
    assert not lk.locked
    assert lk.pid == 0
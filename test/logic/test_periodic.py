import threading
import time

from fsmhost.util import PeriodicTask


def test_ticks_until_stopped():
    count = []
    task = PeriodicTask(lambda: count.append(1), period=0.01, name="counter")
    task.start()
    time.sleep(0.1)
    task.stop()
    assert not task.is_running()
    n = len(count)
    assert n >= 2
    time.sleep(0.05)
    assert len(count) == n


def test_stop_waits_for_running_tick():
    in_tick = threading.Event()
    finished = []

    def slow_tick():
        in_tick.set()
        time.sleep(0.1)
        finished.append(True)

    task = PeriodicTask(slow_tick, period=0.01)
    task.start()
    assert in_tick.wait(1)
    task.stop()
    assert finished


def test_stop_when_never_started():
    task = PeriodicTask(lambda: None)
    task.stop()
    assert not task.is_running()


def test_start_twice_keeps_one_thread():
    task = PeriodicTask(lambda: None, period=0.01)
    task.start()
    thread = task._thread
    task.start()
    assert task._thread is thread
    task.stop()


def test_failing_tick_stops_task_and_keeps_error():
    def boom():
        raise RuntimeError("boom")

    task = PeriodicTask(boom, period=0.01)
    task.start()
    task._thread.join(1)
    assert not task.is_running()
    assert isinstance(task.error, RuntimeError)


def test_tick_can_request_own_stop():
    ticks = []
    task = PeriodicTask(lambda: None, period=0.01)

    def tick():
        ticks.append(1)
        task.request_stop()

    task._tick = tick
    task.start()
    task._thread.join(1)
    assert ticks == [1]
    assert not task.is_running()

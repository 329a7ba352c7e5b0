import asyncio
from datetime import datetime

import pytest

from proxy_supervisor.log_aggregator import LogAggregator, LogEntry


class SteppingClock:
    """Returns a later second on every call so each flush gets a distinct stamp."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return datetime(2024, 1, 1, 12, 0, self.calls % 60)


@pytest.mark.asyncio
async def test_appends_within_interval_share_one_flush_and_timestamp():
    clock = SteppingClock()
    aggregator = LogAggregator(clock=clock)

    for index in range(5):
        aggregator.append_lines([f"line {index}"])
        await asyncio.sleep(0.005)

    assert aggregator.entries == []
    await asyncio.sleep(0.15)

    entries = aggregator.entries
    assert [entry.text for entry in entries] == [f"line {index}" for index in range(5)]
    assert len({entry.timestamp for entry in entries}) == 1
    assert aggregator.flush_count == 1
    assert clock.calls == 1


@pytest.mark.asyncio
async def test_appends_from_reader_threads_are_flushed_on_loop():
    aggregator = LogAggregator(loop=asyncio.get_running_loop())
    await asyncio.gather(
        asyncio.to_thread(aggregator.append_chunk, b"stdout line\n"),
        asyncio.to_thread(aggregator.append_chunk, b"stderr line\n"),
    )
    await asyncio.sleep(0.15)

    assert sorted(entry.text for entry in aggregator.entries) == ["stderr line", "stdout line"]
    assert aggregator.flush_count == 1


@pytest.mark.asyncio
async def test_later_batch_schedules_new_flush():
    aggregator = LogAggregator(flush_interval=0.01)

    aggregator.append_lines(["first"])
    await asyncio.sleep(0.05)
    aggregator.append_lines(["second"])
    await asyncio.sleep(0.05)

    assert [entry.text for entry in aggregator.entries] == ["first", "second"]
    assert aggregator.flush_count == 2


def test_flush_trims_to_most_recent_entries():
    aggregator = LogAggregator()

    aggregator.append_lines(str(index) for index in range(301))

    texts = [entry.text for entry in aggregator.entries]
    assert len(texts) == 200
    assert texts[0] == "101"
    assert texts[-1] == "300"


def test_exactly_max_entries_is_not_trimmed():
    aggregator = LogAggregator()
    aggregator.append_lines(str(index) for index in range(300))
    assert len(aggregator.entries) == 300

    aggregator.append_lines(["newest"])

    texts = [entry.text for entry in aggregator.entries]
    assert len(texts) == 200
    assert texts[-1] == "newest"


def test_append_without_loop_flushes_inline():
    aggregator = LogAggregator(clock=lambda: datetime(2024, 1, 1, 9, 5, 7))

    aggregator.add_log("Started spoofdpi on port 8080")

    assert aggregator.entries == [LogEntry(timestamp="09:05:07", text="Started spoofdpi on port 8080")]
    assert str(aggregator.entries[0]) == "[09:05:07] Started spoofdpi on port 8080"


def test_append_chunk_splits_lines_and_drops_blanks():
    aggregator = LogAggregator()

    aggregator.append_chunk(b"first\n\nsecond\r\nthird")

    assert [entry.text for entry in aggregator.entries] == ["first", "second", "third"]


def test_append_chunk_replaces_invalid_utf8():
    aggregator = LogAggregator()

    aggregator.append_chunk(b"bad \xff byte\n")

    assert aggregator.entries[0].text == "bad � byte"


def test_empty_input_schedules_nothing():
    aggregator = LogAggregator()

    aggregator.append_chunk(b"")
    aggregator.append_lines(["", ""])

    assert aggregator.flush_count == 0
    assert aggregator.flush() == []


def test_listeners_receive_each_batch_and_failures_are_isolated():
    aggregator = LogAggregator()
    received = []

    def broken(batch):
        raise RuntimeError("listener failed")

    aggregator.add_listener(broken)
    aggregator.add_listener(received.append)
    aggregator.append_lines(["one", "two"])

    assert len(received) == 1
    assert [entry.text for entry in received[0]] == ["one", "two"]

    aggregator.remove_listener(received.append)
    aggregator.append_lines(["three"])
    assert len(received) == 1


def test_clear_empties_visible_log():
    aggregator = LogAggregator()
    aggregator.append_lines(["one"])

    aggregator.clear()

    assert aggregator.entries == []


def test_entries_returns_copy():
    aggregator = LogAggregator()
    aggregator.append_lines(["one"])

    aggregator.entries.append(LogEntry("00:00:00", "injected"))

    assert len(aggregator.entries) == 1


def test_rejects_trim_target_above_maximum():
    with pytest.raises(ValueError):
        LogAggregator(max_entries=100, trimmed_entries=200)


def test_closed_loop_falls_back_to_inline_flush():
    loop = asyncio.new_event_loop()
    loop.close()
    aggregator = LogAggregator(loop=loop)

    aggregator.append_lines(["late"])

    assert [entry.text for entry in aggregator.entries] == ["late"]


def test_lines_after_loop_closes_flush_despite_scheduled_flush():
    loop = asyncio.new_event_loop()
    aggregator = LogAggregator(loop=loop)

    aggregator.append_lines(["before shutdown"])
    assert aggregator.entries == []
    loop.close()
    aggregator.append_lines(["after shutdown"])

    assert [entry.text for entry in aggregator.entries] == ["before shutdown", "after shutdown"]

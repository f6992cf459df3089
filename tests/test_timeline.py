import random

import pytest

from pheft import ScheduleEvent, Timeline


def _timeline(*spans):
    tl = Timeline(0)
    tl.events = [ScheduleEvent(i, s, e, 0) for i, (s, e) in enumerate(spans)]
    return tl


def test_empty_timeline_starts_at_ready_time():
    assert Timeline(0).find_slot(5.0, 3.0) == (0, 5.0)


def test_single_event_cases():
    tl = _timeline((10, 20))
    assert tl.find_slot(25, 5) == (1, 25)   # after it
    assert tl.find_slot(20, 5) == (1, 20)   # ready exactly at its end
    assert tl.find_slot(0, 5) == (0, 0)     # fits before it
    assert tl.find_slot(8, 5) == (1, 20)    # overlaps, queued behind it


def test_scan_keeps_earliest_gap():
    tl = _timeline((0, 10), (20, 30), (50, 60))
    assert tl.find_slot(0, 5) == (1, 10)


def test_scan_stops_once_ready_passes_previous_end():
    tl = _timeline((0, 10), (20, 30), (50, 60))
    assert tl.find_slot(35, 10) == (2, 35)
    assert tl.find_slot(35, 20) == (3, 60)


def test_no_gap_appends_after_last_event():
    tl = _timeline((0, 10), (10, 20), (20, 30))
    assert tl.find_slot(5, 4) == (3, 30)


def test_insert_before_first_event():
    tl = _timeline((10, 20), (30, 40))
    assert tl.find_slot(0, 5) == (0, 0)
    assert tl.find_slot(0, 10) == (0, 0)
    assert tl.find_slot(0, 11) == (2, 40)


def test_query_does_not_mutate_and_matches_commit():
    tl = _timeline((0, 10), (20, 30))
    slot = tl.query(5, 5)
    assert len(tl) == 2
    ev = tl.commit(7, 5, 5)
    assert (ev.start, ev.end) == (slot.start, slot.end) == (10, 15)
    assert ev.task == 7 and ev.machine == 0
    assert [e.task for e in tl] == [0, 7, 1]


def test_random_commits_stay_sorted_and_disjoint():
    rng = random.Random(1234)
    tl = Timeline(3)
    for task in range(300):
        ready = rng.uniform(0, 500)
        dur = rng.uniform(0.5, 20)
        q = tl.query(ready, dur)
        ev = tl.commit(task, ready, dur)
        assert (q.start, q.end) == (ev.start, ev.end)
        assert ev.start >= ready
        assert ev.end - ev.start == pytest.approx(dur)
    for a, b in zip(tl.events, tl.events[1:]):
        assert a.start < a.end
        assert a.end <= b.start
    assert tl.busy_time() == sum(e.end - e.start for e in tl.events)

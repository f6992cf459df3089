"""Per-machine timeline with insertion-based slot search.

The search follows the classic HEFT idle-slot policy: gaps between committed
events are scanned from the latest one backwards and a fitting gap replaces the
default "append after the last event" window. The scan stops at the first pair
whose previous event ends before the ready time; only that pair's gap is then
tried at the ready time itself. Earlier gaps beyond that point are not visited.
"""
from __future__ import annotations
from typing import List, Tuple

from .model import ScheduleEvent


class Timeline:
    def __init__(self, machine: int):
        self.machine = machine
        self.events: List[ScheduleEvent] = []

    def __len__(self):
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def find_slot(self, ready: float, duration: float) -> Tuple[int, float]:
        """Return (insert position, start) of the window for a task of `duration`."""
        ev = self.events
        if not ev:
            return 0, ready
        if len(ev) == 1:
            only = ev[0]
            if ready >= only.end:
                return 1, ready
            if ready + duration <= only.start:
                return 0, ready
            return 1, only.end

        pos, start = len(ev), max(ready, ev[-1].end)
        i = len(ev) - 1
        while i >= 1:
            current, previous = ev[i], ev[i - 1]
            if ready > previous.end:
                if ready + duration <= current.start:
                    pos, start = i, ready
                break
            if previous.end + duration <= current.start:
                pos, start = i, previous.end
            i -= 1

        if ready + duration <= ev[0].start:
            return 0, ready
        return pos, start

    def query(self, ready: float, duration: float) -> ScheduleEvent:
        """Non-committing lookup; task is left as -1."""
        _, start = self.find_slot(ready, duration)
        return ScheduleEvent(-1, start, start + duration, self.machine)

    def commit(self, task: int, ready: float, duration: float) -> ScheduleEvent:
        pos, start = self.find_slot(ready, duration)
        event = ScheduleEvent(task, start, start + duration, self.machine)
        self.events.insert(pos, event)
        return event

    def busy_time(self) -> float:
        return sum(e.end - e.start for e in self.events)

"""Post-planning metrics: makespan, idle time, load balance, communication, waiting time.

All helpers take `proc_schedules` ({machine index: [ScheduleEvent, ...]}) so they
work on any plan laid out that way, not only on `Schedule` objects.
"""
from __future__ import annotations
from typing import Dict, List, Tuple
import numpy as np

from .model import ScheduleEvent

ProcSchedules = Dict[int, List[ScheduleEvent]]


def makespan_and_idle(proc_schedules: ProcSchedules) -> Tuple[float, float, Dict[int, float]]:
    makespan = max((ev.end for jobs in proc_schedules.values() for ev in jobs), default=0.0)
    total_idle = 0.0; per_machine = {}
    for m, jobs in proc_schedules.items():
        js = sorted(jobs, key=lambda j: j.start)
        if not js:
            idle = makespan
        else:
            idle = js[0].start
            for a, b in zip(js, js[1:]):
                idle += max(0.0, b.start - a.end)
            idle += max(0.0, makespan - js[-1].end)
        per_machine[m] = idle; total_idle += idle
    return makespan, total_idle, per_machine


def load_balance(proc_schedules: ProcSchedules):
    """Return (busy per machine, coefficient of variation, max/min imbalance, Jain fairness)."""
    busy = {m: sum(ev.end - ev.start for ev in jobs) for m, jobs in proc_schedules.items()}
    vals = np.array(list(busy.values()), dtype=float)
    if vals.size == 0:
        return busy, 0.0, 1.0, 1.0
    mean = float(vals.mean())
    cv = float(vals.std()) / mean if mean > 0 else 0.0
    maxb, minb = float(vals.max()), float(vals.min())
    imbalance = (maxb / minb) if minb > 0 else (float("inf") if maxb > 0 else 1.0)
    denom = vals.size * float(np.sum(vals * vals))
    fairness = float(vals.sum()) ** 2 / denom if denom > 0 else 1.0
    return busy, cv, imbalance, fairness


def load_balance_ratio(proc_schedules: ProcSchedules) -> float:
    """makespan / mean busy time; 1.0 means every machine is busy the whole time."""
    makespan, _, _ = makespan_and_idle(proc_schedules)
    busy, _, _, _ = load_balance(proc_schedules)
    avg_busy = sum(busy.values()) / len(busy) if busy else 0.0
    return makespan / avg_busy if avg_busy > 0 else 0.0


def communication_cost(schedule) -> float:
    """Transfer time actually paid: edges whose endpoints run on different machines."""
    total = 0.0
    for (p, c), cost in schedule.costs.transfer.items():
        if schedule.task_sched[p].machine != schedule.task_sched[c].machine:
            total += cost
    return total


def waiting_time(proc_schedules: ProcSchedules) -> float:
    starts = [ev.start for jobs in proc_schedules.values() for ev in jobs]
    return float(np.mean(starts)) if starts else 0.0


def summarize(schedule) -> dict:
    ps = schedule.proc_schedules
    makespan, idle, _ = makespan_and_idle(ps)
    _, cv, imbalance, fairness = load_balance(ps)
    return dict(makespan=makespan, total_idle=idle, load_balance_ratio=load_balance_ratio(ps),
                load_cv=cv, load_imbalance=imbalance, fairness=fairness,
                communication_cost=communication_cost(schedule), waiting_time=waiting_time(ps))

"""Predictive, load-balanced HEFT planner.

Phase 1 (prioritization): build the cost tables with the configured estimator,
compute upward ranks, order tasks by descending rank (stable on input order).

Phase 2 (selection): for each task in that order and for every machine
    ready   = max over parents p of finish(p) (+ transfer(p, t) if p ran elsewhere)
    finish  = earliest finish on the machine's timeline (insertion policy)
    score   = alpha * finish + beta * workload(machine)
The lowest score wins (first machine on ties); machines with too few cores are
skipped unless the task fits on no machine at all; the task is committed to that
timeline and its cost is added to the machine's workload. Committed tasks are
never revisited.

The static and the predictive planner are the same class configured with a
different estimator:

    schedule_workflow(wf, machines)                                   # static HEFT + load balancing
    schedule_workflow(wf, machines, estimator=LearnedCostEstimator(model))
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional
import logging, math

from .costs import CostTables, build_cost_tables
from .errors import ConfigurationError, EmptyMachineListError, MalformedGraphError
from .model import Machine, ScheduleEvent, Workflow
from .ranking import compute_upward_ranks, priority_order
from .timeline import Timeline

logger = logging.getLogger("pheft.planner")


@dataclass
class PlannerConfig:
    alpha: float = 0.7  # finish-time weight
    beta: float = 0.3  # workload weight

    def __post_init__(self):
        for name in ("alpha", "beta"):
            v = getattr(self, name)
            if not math.isfinite(v) or v < 0:
                raise ConfigurationError(f"{name} must be a finite non-negative number, got {v}")
        if self.alpha + self.beta <= 0:
            raise ConfigurationError("alpha + beta must be positive")


@dataclass
class Assignment:
    task_id: Hashable
    machine_id: Hashable
    start: float
    finish: float


@dataclass
class Schedule:
    workflow: Workflow
    machines: List[Machine]
    proc_schedules: Dict[int, List[ScheduleEvent]]
    task_sched: Dict[int, ScheduleEvent]
    ranks: Dict[int, float]
    costs: CostTables
    order: List[int] = field(default_factory=list)
    workload: List[float] = field(default_factory=list)

    @property
    def makespan(self) -> float:
        return max((ev.end for ev in self.task_sched.values()), default=0.0)

    def assignments(self) -> List[Assignment]:
        out = []
        for t in range(len(self.workflow)):
            ev = self.task_sched[t]
            out.append(Assignment(self.workflow[t].id, self.machines[ev.machine].id, ev.start, ev.end))
        return out


class HEFTPlanner:
    def __init__(self, estimator=None, config: Optional[PlannerConfig] = None):
        self.estimator = estimator
        self.config = config if config is not None else PlannerConfig()

    def _ready_time(self, task: int, machine: int, workflow: Workflow, costs: CostTables,
                    task_sched: Dict[int, ScheduleEvent]) -> float:
        ready = 0.0
        for p in workflow[task].parents:
            if not 0 <= p < len(workflow):
                raise MalformedGraphError(f"task {workflow[task].id!r} links to unknown parent index {p}")
            ev = task_sched.get(p)
            if ev is None:
                raise MalformedGraphError(
                    f"parent {workflow[p].id!r} of task {workflow[task].id!r} is not scheduled yet")
            arrival = ev.end if ev.machine == machine else ev.end + costs.transfer_cost(p, task)
            if arrival > ready: ready = arrival
        return ready

    def plan(self, workflow: Workflow, machines: List[Machine]) -> Schedule:
        if not machines:
            raise EmptyMachineListError("cannot plan without machines")
        alpha, beta = self.config.alpha, self.config.beta
        costs = build_cost_tables(workflow, machines, self.estimator)
        ranks = compute_upward_ranks(workflow, costs)
        order = priority_order(ranks, workflow)

        timelines = [Timeline(m) for m in range(len(machines))]
        workload = [0.0] * len(machines)
        task_sched: Dict[int, ScheduleEvent] = {}
        for t in order:
            best_m, best_score, best_ready = -1, math.inf, 0.0
            # machines without enough cores compete only when no machine has enough
            fits_somewhere = bool(costs.feasible[t].any())
            for m, tl in enumerate(timelines):
                if fits_somewhere and not costs.feasible[t, m]:
                    continue
                ready = self._ready_time(t, m, workflow, costs, task_sched)
                finish = tl.query(ready, float(costs.computation[t, m])).end
                score = alpha * finish + beta * workload[m]
                if score < best_score:
                    best_m, best_score, best_ready = m, score, ready
            cost = float(costs.computation[t, best_m])
            ev = timelines[best_m].commit(t, best_ready, cost)
            task_sched[t] = ev
            workload[best_m] += cost
            if not costs.feasible[t, best_m]:
                logger.warning("task %r placed on machine %r without enough cores",
                               workflow[t].id, machines[best_m].id)
            logger.debug("task %r -> machine %r [%.3f, %.3f) score=%.3f",
                         workflow[t].id, machines[best_m].id, ev.start, ev.end, best_score)

        schedule = Schedule(workflow=workflow, machines=list(machines),
                            proc_schedules={m: tl.events for m, tl in enumerate(timelines)},
                            task_sched=task_sched, ranks=ranks, costs=costs, order=order, workload=workload)
        logger.info("planned %d tasks on %d machines, makespan %.3f",
                    len(workflow), len(machines), schedule.makespan)
        return schedule


def schedule_workflow(workflow: Workflow, machines: List[Machine], estimator=None,
                      alpha: float = 0.7, beta: float = 0.3) -> Schedule:
    return HEFTPlanner(estimator, PlannerConfig(alpha=alpha, beta=beta)).plan(workflow, machines)

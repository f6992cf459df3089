"""Computation and transfer cost tables.

computation[t, m] is the estimated duration of task t on machine m, or the
run's infeasible sentinel when machine m has fewer cores than the task needs.
The sentinel is derived from the inputs so it exceeds the finish time of any
schedule built from feasible placements. It is finite on purpose: averages
and score comparisons keep working and a task that fits nowhere is still
placed somewhere.

transfer[(p, c)] is the time needed to move the files produced by p and read
by c at the average machine bandwidth. It is charged only when p and c end up
on different machines (the planner decides that).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple
import logging
import numpy as np

from .errors import EmptyMachineListError, MalformedGraphError
from .estimators import StaticCostEstimator
from .model import Machine, Task, Workflow

logger = logging.getLogger("pheft.costs")


@dataclass
class CostTables:
    computation: np.ndarray
    transfer: Dict[Tuple[int, int], float]
    average_bandwidth: float
    feasible: np.ndarray
    infeasible_cost: float

    def transfer_cost(self, parent: int, child: int) -> float:
        return self.transfer.get((parent, child), 0.0)

    def average_cost(self, task: int) -> float:
        return float(np.mean(self.computation[task]))


def average_bandwidth(machines: List[Machine]) -> float:
    if not machines:
        raise EmptyMachineListError("at least one machine is required")
    return float(np.mean([m.bandwidth for m in machines]))


def shared_data_size(parent: Task, child: Task) -> float:
    """Bytes of parent outputs consumed by child (matched by file name)."""
    inputs = {f.name for f in child.inputs()}
    return float(sum(f.size for f in parent.outputs() if f.name in inputs))


def build_computation_matrix(workflow: Workflow, machines: List[Machine], estimator=None):
    if not machines:
        raise EmptyMachineListError("at least one machine is required")
    estimator = estimator if estimator is not None else StaticCostEstimator()
    comp = np.empty((len(workflow), len(machines)), dtype=float)
    feasible = np.ones((len(workflow), len(machines)), dtype=bool)
    for t, task in enumerate(workflow):
        for m, machine in enumerate(machines):
            if machine.cores < task.cores:
                comp[t, m] = np.nan
                feasible[t, m] = False
            else:
                comp[t, m] = estimator.estimate(task, workflow, machine)
        if not feasible[t].any():
            logger.warning("task %r needs %d cores but no machine has that many", task.id, task.cores)
    return comp, feasible


def build_transfer_costs(workflow: Workflow, avg_bw: float) -> Dict[Tuple[int, int], float]:
    transfer: Dict[Tuple[int, int], float] = {}
    if avg_bw <= 0:
        logger.warning("average bandwidth is %s; treating every transfer as free", avg_bw)
    n = len(workflow)
    for p, c in workflow.edges():
        if not 0 <= c < n:
            raise MalformedGraphError(f"task {workflow[p].id!r} links to unknown child index {c}")
        size = shared_data_size(workflow[p], workflow[c])
        transfer[(p, c)] = size / avg_bw if (size > 0 and avg_bw > 0) else 0.0
    return transfer


def infeasible_sentinel(comp: np.ndarray, feasible: np.ndarray, transfer: Dict[Tuple[int, int], float]) -> float:
    """Upper bound on any feasible makespan, times ten.

    A feasible schedule can never finish later than running every task at its
    slowest feasible cost, one after another, paying every transfer.
    """
    finite = np.where(feasible, comp, 0.0)
    bound = float(finite.max(axis=1).sum()) if finite.size else 0.0
    return (bound + float(sum(transfer.values())) + 1.0) * 10.0


def build_cost_tables(workflow: Workflow, machines: List[Machine], estimator=None) -> CostTables:
    comp, feasible = build_computation_matrix(workflow, machines, estimator)
    avg_bw = average_bandwidth(machines)
    transfer = build_transfer_costs(workflow, avg_bw)
    sentinel = infeasible_sentinel(comp, feasible, transfer)
    comp[~feasible] = sentinel
    return CostTables(computation=comp, transfer=transfer, average_bandwidth=avg_bw,
                      feasible=feasible, infeasible_cost=sentinel)

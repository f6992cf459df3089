"""Upward ranks and the resulting priority order.

rank_u(t) = avg_cost(t) + max_{c in children(t)} ( transfer(t, c) + rank_u(c) )
rank_u(sink) = avg_cost(sink)

avg_cost averages the whole cost row, infeasible sentinels included, so tasks
that fit on few machines get pushed to the front of the order.
"""
from __future__ import annotations
from typing import Dict, List, Optional

from .costs import CostTables
from .errors import MalformedGraphError
from .model import Workflow

_VISITING, _DONE = 1, 2


def compute_upward_ranks(workflow: Workflow, costs: CostTables) -> Dict[int, float]:
    """Memoized post-order walk with an explicit stack; raises on cycles."""
    n = len(workflow)
    rank: Dict[int, float] = {}
    state = [0] * n
    for root in range(n):
        if state[root] == _DONE:
            continue
        stack = [(root, 0)]
        state[root] = _VISITING
        while stack:
            t, i = stack[-1]
            children = workflow[t].children
            if i < len(children):
                stack[-1] = (t, i + 1)
                c = children[i]
                if not 0 <= c < n:
                    raise MalformedGraphError(f"task {workflow[t].id!r} links to unknown child index {c}")
                if state[c] == _VISITING:
                    raise MalformedGraphError(f"cycle through tasks {workflow[t].id!r} -> {workflow[c].id!r}")
                if state[c] == 0:
                    state[c] = _VISITING
                    stack.append((c, 0))
                continue
            stack.pop()
            tail = max((costs.transfer_cost(t, c) + rank[c] for c in children), default=0.0)
            rank[t] = costs.average_cost(t) + tail
            state[t] = _DONE
    return rank


def priority_order(ranks: Dict[int, float], workflow: Optional[Workflow] = None) -> List[int]:
    """Task indices by descending rank; equal ranks keep input order.

    With a workflow, a task tied with one of its parents (zero-cost parent and
    edge) is held back until that parent has been emitted.
    """
    order = sorted(sorted(ranks), key=lambda t: ranks[t], reverse=True)
    if workflow is None:
        return order
    n = len(workflow)
    emitted, held, out = set(), [], []
    for t in order:
        for p in workflow[t].parents:
            if not 0 <= p < n:
                raise MalformedGraphError(f"task {workflow[t].id!r} links to unknown parent index {p}")
        held.append(t)
        progress = True
        while progress:
            progress = False
            for t2 in held:
                if all(p in emitted for p in workflow[t2].parents):
                    held.remove(t2); out.append(t2); emitted.add(t2)
                    progress = True
                    break
    if held:
        raise MalformedGraphError(f"parent links of tasks {[workflow[t].id for t in held]!r} are cyclic or inconsistent with child links")
    return out

"""Exceptions raised by the planner.

Only conditions that make a schedule impossible are raised. An infeasible
task (more cores than any machine) and a broken cost predictor are handled
inside the planner and never reach the caller.
"""
from __future__ import annotations


class PlanningError(Exception):
    """Base class for every planner failure."""


class EmptyMachineListError(PlanningError):
    pass


class MalformedGraphError(PlanningError):
    """Cycle in the parent/child links, or a link to an unknown task."""


class ConfigurationError(PlanningError):
    pass

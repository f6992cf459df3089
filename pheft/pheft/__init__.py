from .errors import PlanningError, EmptyMachineListError, MalformedGraphError, ConfigurationError
from .model import File, FileType, Task, Machine, ScheduleEvent, Workflow
from .estimators import (
    StaticCostEstimator, LearnedCostEstimator, load_predictor, make_estimator, feature_row, FEATURE_NAMES
)
from .costs import CostTables, build_cost_tables, infeasible_sentinel
from .ranking import compute_upward_ranks, priority_order
from .timeline import Timeline
from .planner import HEFTPlanner, PlannerConfig, Schedule, Assignment, schedule_workflow

__all__ = [
    'PlanningError','EmptyMachineListError','MalformedGraphError','ConfigurationError',
    'File','FileType','Task','Machine','ScheduleEvent','Workflow',
    'StaticCostEstimator','LearnedCostEstimator','load_predictor','make_estimator','feature_row','FEATURE_NAMES',
    'CostTables','build_cost_tables','infeasible_sentinel',
    'compute_upward_ranks','priority_order','Timeline',
    'HEFTPlanner','PlannerConfig','Schedule','Assignment','schedule_workflow',
]

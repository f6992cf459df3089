"""Workflow and machine description consumed by the planner.

Tasks live in a `Workflow` arena and refer to each other by integer index,
so cost tables, ranks and schedules are all keyed by task index and machine
index rather than by object identity.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, List, Optional
import networkx as nx

from .errors import MalformedGraphError


class FileType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class File:
    name: str
    size: float
    type: FileType


@dataclass
class Task:
    id: Hashable
    length: float
    cores: int = 1
    parents: List[int] = field(default_factory=list)
    children: List[int] = field(default_factory=list)
    files: List[File] = field(default_factory=list)

    def outputs(self):
        return [f for f in self.files if f.type == FileType.OUTPUT]

    def inputs(self):
        return [f for f in self.files if f.type == FileType.INPUT]


@dataclass(frozen=True)
class Machine:
    id: Hashable
    speed: float
    cores: int = 1
    bandwidth: float = 1.0


@dataclass
class ScheduleEvent:
    task: int
    start: float
    end: float
    machine: int


class Workflow:
    """Ordered arena of tasks linked into a DAG."""

    def __init__(self, tasks: Optional[List[Task]] = None):
        self.tasks: List[Task] = list(tasks) if tasks else []

    def __len__(self):
        return len(self.tasks)

    def __iter__(self):
        return iter(self.tasks)

    def __getitem__(self, idx: int) -> Task:
        return self.tasks[idx]

    def add_task(self, id: Hashable, length: float, cores: int = 1, files: Optional[List[File]] = None) -> int:
        self.tasks.append(Task(id=id, length=length, cores=cores, files=list(files or [])))
        return len(self.tasks) - 1

    def add_dependency(self, parent: int, child: int) -> None:
        n = len(self.tasks)
        if not (0 <= parent < n and 0 <= child < n):
            raise MalformedGraphError(f"dependency {parent}->{child} references an unknown task")
        if parent == child:
            raise MalformedGraphError(f"task {self.tasks[parent].id!r} cannot depend on itself")
        if child not in self.tasks[parent].children:
            self.tasks[parent].children.append(child)
        if parent not in self.tasks[child].parents:
            self.tasks[child].parents.append(parent)

    def edges(self):
        """Yield (parent, child) index pairs in child-list order."""
        for i, t in enumerate(self.tasks):
            for c in t.children:
                yield i, c

    def to_digraph(self) -> nx.DiGraph:
        """Nodes are task indices (with `id`, `length`, `cores` attributes)."""
        g = nx.DiGraph()
        for i, t in enumerate(self.tasks):
            g.add_node(i, id=t.id, length=t.length, cores=t.cores)
        g.add_edges_from(self.edges())
        return g

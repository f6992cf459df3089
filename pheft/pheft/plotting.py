"""Gantt chart and DAG images for a planned workflow.

Figures are built with `matplotlib.figure.Figure` directly, so saving an image
neither selects a backend nor registers windows with pyplot in the caller's
process.
"""
from __future__ import annotations
from pathlib import Path
import random
from matplotlib.figure import Figure
import networkx as nx


def save_gantt(schedule, path, title: str = "Schedule") -> Path:
    """One lane per machine (even idle ones), bars labelled with the task id when wide enough."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    n = len(schedule.machines)
    fig = Figure(figsize=(14, 0.35 * n + 1.5))
    ax = fig.subplots()
    rng = random.Random(42)
    horizon = schedule.makespan or 1.0
    for m in range(n):
        for ev in schedule.proc_schedules.get(m, []):
            color = (rng.random(), rng.random(), rng.random())
            ax.barh(y=m, width=ev.end - ev.start, left=ev.start, height=0.8, color=color,
                    edgecolor='black', linewidth=0.2)
            if (ev.end - ev.start) > 0.02 * horizon:
                ax.text(ev.start + (ev.end - ev.start) / 2, m, str(schedule.workflow[ev.task].id),
                        va='center', ha='center', fontsize=6, color='white')
    ax.set_yticks(range(n))
    ax.set_yticklabels([str(mc.id) for mc in schedule.machines])
    ax.set_ylim(-0.5, n - 0.5)
    ax.grid(axis='y', linestyle=':', linewidth=0.5, alpha=0.6)
    ax.set_ylabel('Machine')
    ax.set_xlabel('Time')
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    return path


def save_dag_image(workflow, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    g = workflow.to_digraph()
    fig = Figure(figsize=(10, 7))
    ax = fig.subplots()
    try:
        pos = nx.nx_pydot.graphviz_layout(g, prog='dot')
    except Exception:
        pos = nx.spring_layout(g, seed=42)
    nx.draw(g, pos=pos, ax=ax, labels={i: str(d['id']) for i, d in g.nodes(data=True)},
            with_labels=True, node_size=300, font_size=8)
    ax.set_title('DAG')
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    return path

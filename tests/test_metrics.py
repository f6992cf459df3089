import pytest

from pheft import File, FileType, Machine, ScheduleEvent, Workflow, schedule_workflow
from pheft.metrics import (
    communication_cost, load_balance, load_balance_ratio, makespan_and_idle, summarize, waiting_time,
)
from pheft.plotting import save_dag_image, save_gantt


@pytest.fixture
def proc_schedules():
    return {
        0: [ScheduleEvent(task=0, start=0, end=5, machine=0),
            ScheduleEvent(task=1, start=5, end=8, machine=0)],
        1: [ScheduleEvent(task=2, start=2, end=6, machine=1)],
        2: [],
    }


def test_waiting_time(proc_schedules):
    assert waiting_time(proc_schedules) == pytest.approx((0 + 5 + 2) / 3)
    assert waiting_time({}) == 0.0


def test_makespan_and_idle(proc_schedules):
    makespan, total, per_machine = makespan_and_idle(proc_schedules)
    assert makespan == 8
    assert per_machine == {0: 0.0, 1: 4.0, 2: 8.0}
    assert total == 12.0


def test_load_balance(proc_schedules):
    busy, cv, imbalance, fairness = load_balance(proc_schedules)
    assert busy == {0: 8, 1: 4, 2: 0}
    assert imbalance == float("inf")
    assert fairness == pytest.approx(144 / (3 * 80))
    assert cv > 0
    assert load_balance_ratio(proc_schedules) == pytest.approx(8 / 4)


def test_even_load_is_perfectly_fair():
    ps = {m: [ScheduleEvent(m, 0, 10, m)] for m in range(3)}
    _, cv, imbalance, fairness = load_balance(ps)
    assert (cv, imbalance, fairness) == (0.0, 1.0, 1.0)
    assert load_balance_ratio(ps) == 1.0


def _fork():
    wf = Workflow()
    a = wf.add_task("A", 10.0, files=[File("x", 50, FileType.OUTPUT)])
    for name in ("B", "C"):
        wf.add_dependency(a, wf.add_task(name, 10.0, files=[File("x", 50, FileType.INPUT)]))
    machines = [Machine("m0", speed=1.0, bandwidth=10.0), Machine("m1", speed=1.0, bandwidth=10.0)]
    return schedule_workflow(wf, machines, alpha=1.0, beta=0.0)


def test_communication_cost_counts_cross_machine_edges():
    s = _fork()
    assert communication_cost(s) == pytest.approx(5.0)


def test_summarize():
    summary = summarize(_fork())
    assert summary["makespan"] == pytest.approx(25.0)
    assert summary["communication_cost"] == pytest.approx(5.0)
    assert set(summary) == {"makespan", "total_idle", "load_balance_ratio", "load_cv", "load_imbalance",
                            "fairness", "communication_cost", "waiting_time"}


def test_images_are_written(tmp_path):
    s = _fork()
    gantt = save_gantt(s, tmp_path / "out" / "gantt.png", title="fork")
    dag = save_dag_image(s.workflow, tmp_path / "out" / "dag.png")
    assert gantt.exists() and gantt.stat().st_size > 0
    assert dag.exists() and dag.stat().st_size > 0
    assert sorted(s.workflow.to_digraph().edges()) == [(0, 1), (0, 2)]


def test_images_leave_the_backend_alone(tmp_path, monkeypatch):
    import importlib
    import matplotlib
    import pheft.plotting

    def refuse(*args, **kwargs):
        raise AssertionError("backend switched")

    monkeypatch.setattr(matplotlib, "use", refuse)
    plotting = importlib.reload(pheft.plotting)
    assert plotting.save_gantt(_fork(), tmp_path / "gantt.png").exists()

import random
import sys
import pathlib

import pytest

BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR / "pheft") not in sys.path:
    sys.path.insert(0, str(BASE_DIR / "pheft"))

from pheft import File, FileType, Machine, Workflow


def diamond_workflow(length=10.0):
    """A -> B, A -> C, B -> D, C -> D with no data files."""
    wf = Workflow()
    a, b, c, d = (wf.add_task(name, length) for name in "ABCD")
    for p, ch in ((a, b), (a, c), (b, d), (c, d)):
        wf.add_dependency(p, ch)
    return wf


def random_workflow(seed=0, n=30, edge_prob=0.15, max_cores=2):
    rng = random.Random(seed)
    wf = Workflow()
    for i in range(n):
        files = [File(f"out_{i}", rng.randint(100, 5000), FileType.OUTPUT)]
        wf.add_task(f"t{i}", rng.uniform(50, 500), cores=rng.randint(1, max_cores), files=files)
    for j in range(1, n):
        parents = [i for i in range(j) if rng.random() < edge_prob] or [rng.randrange(j)]
        for i in parents:
            wf.add_dependency(i, j)
            if rng.random() < 0.7:
                out = wf[i].files[0]
                wf[j].files.append(File(out.name, out.size, FileType.INPUT))
    return wf


@pytest.fixture
def diamond():
    return diamond_workflow()


@pytest.fixture
def identical_machines():
    return [Machine(f"vm{i}", speed=1.0, cores=1, bandwidth=1.0) for i in range(4)]


@pytest.fixture
def heterogeneous_machines():
    return [
        Machine("vm0", speed=10.0, cores=1, bandwidth=100.0),
        Machine("vm1", speed=25.0, cores=2, bandwidth=400.0),
        Machine("vm2", speed=15.0, cores=4, bandwidth=250.0),
    ]

import os
import sys

import matplotlib
import pytest

# headless backend for the plotting tests
matplotlib.use("Agg")


def pytest_sessionstart(session):
    # Ensure project root is on sys.path so the package can be imported
    here = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.abspath(os.path.join(here, os.pardir, os.pardir))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


@pytest.fixture
def classic_specs():
    """The four-process demo workload: (pid, burst, arrival)."""
    return [(1, 6.0, 0.0), (2, 4.0, 2.0), (3, 8.0, 4.0), (4, 3.0, 6.0)]

import json

import pytest

from ..backend.config import (
    DEFAULT_PROCESSES, SimulationConfig, load_config, load_processes_csv, make_processes, save_config,
)
from ..backend.errors import InvalidConfiguration
from ..scripts.run_simulation import main as run_simulation


def test_defaults():
    config = SimulationConfig()
    assert config.policy == "FCFS"
    assert config.time_quantum == 2.0
    assert config.slot_count == 4
    assert config.switch_interval == 4.0


def test_make_processes_are_fresh():
    first = make_processes()
    second = make_processes()
    assert [(p.pid, p.burst_time, p.arrival_time) for p in first] == DEFAULT_PROCESSES
    assert first[0] is not second[0]


def test_load_config(tmp_path):
    path = tmp_path / "sim.json"
    path.write_text(json.dumps({"policy": "round robin", "time_quantum": 3, "tick": 0.5}), encoding="utf-8")
    config = load_config(str(path))
    assert config.policy == "RR"
    assert config.time_quantum == 3
    assert config.tick == 0.5


@pytest.mark.parametrize("payload", [
    '{"policy": "LOTTERY"}',
    '{"colour": "red"}',
    '[1, 2]',
    '{not json',
])
def test_load_config_errors(tmp_path, payload):
    path = tmp_path / "bad.json"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        load_config(str(path))


def test_load_processes_csv(tmp_path):
    path = tmp_path / "work.csv"
    path.write_text("pid,burst_time,arrival_time\n1,6,0\n2,4,2\n3,8,\n", encoding="utf-8")
    procs = load_processes_csv(str(path))
    assert [(p.pid, p.burst_time, p.arrival_time) for p in procs] == [(1, 6.0, 0.0), (2, 4.0, 2.0), (3, 8.0, 0.0)]
    assert len(load_processes_csv(str(path), limit=2)) == 2


def test_load_processes_csv_bad_row(tmp_path):
    path = tmp_path / "work.csv"
    path.write_text("pid,burst_time\n1,abc\n", encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        load_processes_csv(str(path))


def test_save_config_reads_back(tmp_path):
    path = tmp_path / "saved.json"
    config = SimulationConfig(policy="SJF", tick=0.25, slot_count=6)
    save_config(config, str(path))
    assert load_config(str(path)) == config


def test_export_records_effective_config(tmp_path):
    base = tmp_path / "run"
    assert run_simulation(["--policy", "RR", "--quantum", "3", "--export", str(base)]) == 0
    saved = load_config(str(tmp_path / "run_config.json"))
    assert saved.policy == "RR"
    assert saved.time_quantum == 3.0
    assert saved.tick is None
    assert (tmp_path / "run.json").exists()

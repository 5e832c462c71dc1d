import json

from sync_sched_simulator.backend.config import make_processes
from sync_sched_simulator.backend.simulator import simulate, simulate_automatic
from sync_sched_simulator.backend.visualizer import plot_gantt, plot_lock_occupancy


def test_fixed_rr_completes():
    result = simulate([(1, 3, 0), (2, 4, 0)], policy="RR", time_quantum=1.0)
    assert all(p.remaining_time == 0 for p in result.processes)
    assert result.total_time == 7.0
    assert result.report.completion_order() == [1, 2]


def test_sjf_beats_fcfs_on_waiting_time():
    fcfs = simulate(make_processes(), policy="FCFS")
    sjf = simulate(make_processes(), policy="SJF")
    assert sjf.avg_waiting_time < fcfs.avg_waiting_time
    assert fcfs.total_time == sjf.total_time == 21.0


def test_throughput():
    result = simulate(make_processes(), policy="SJF")
    assert result.throughput == 4 / 21.0


def test_timeline_merges_consecutive_slices():
    result = simulate(make_processes(), policy="RR", time_quantum=2.0)
    first = result.logger.timeline[0]
    assert (first["pid"], first["start"], first["end"]) == (1, 0.0, 4.0)
    busy = sum(s["end"] - s["start"] for s in result.logger.timeline if s["pid"] is not None)
    assert busy == 21.0


def test_export_logs(tmp_path):
    result = simulate(make_processes(), policy="RR", time_quantum=2.0)
    base = tmp_path / "run"
    result.logger.export_json(str(base) + ".json")
    result.logger.export_csv(str(base))
    data = json.loads((tmp_path / "run.json").read_text(encoding="utf-8"))
    assert [e["event"] for e in data["process_events"]].count("complete") == 4
    assert (tmp_path / "run_timeline.csv").read_text(encoding="utf-8").startswith("start,end,pid,policy,reason")
    assert (tmp_path / "run_events.csv").exists()
    assert (tmp_path / "run_locks.csv").exists()


def test_plots_written(tmp_path):
    result = simulate([(1, 2, 0), (2, 3, 5)], policy="FCFS")
    gantt = tmp_path / "plots" / "gantt.png"
    plot_gantt(result.processes, result.logger, str(gantt))
    assert gantt.exists()

    trace = simulate_automatic(duration=20.0, dt=1.0)
    occupancy = tmp_path / "locks.png"
    plot_lock_occupancy(trace.logger, 4, str(occupancy))
    assert occupancy.exists()


def test_events_frame():
    result = simulate(make_processes(), policy="RR", time_quantum=2.0)
    df = result.events_frame()
    assert len(df) == len(result.events)
    completed = df[df["event"] == "ProcessCompleted"]
    assert list(completed["pid"]) == [1, 2, 4, 3]
    assert (df["event"] == "ContextSwitch").sum() == 10

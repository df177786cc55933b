import pytest

from ossim.common import SimulationError
from ossim.simulator import DEFAULT_TLB_SIZE, Config, Simulator, main, read_config


def _write_input(root, config_text, programs):
    proc_dir = root / "input" / "proc"
    proc_dir.mkdir(parents=True)
    (root / "input" / "cfg").write_text(config_text)
    for name, text in programs.items():
        (proc_dir / name).write_text(text)
    return root / "input"


CALC3 = "1 3\ncalc\ncalc\ncalc\n"
CALC2 = "1 2\ncalc\ncalc\n"


def test_read_config_fields(tmp_path):
    path = tmp_path / "cfg"
    path.write_text("2 1 2\n4096 4096 0 0 0\n0 p0 1\n3 p1 5\n")
    config = read_config(path)
    assert config.time_slot == 2
    assert config.num_cpus == 1
    assert config.memramsz == 4096
    assert config.memswpsz == [4096, 0, 0, 0]
    assert config.processes == [(0, "p0", 1), (3, "p1", 5)]
    assert config.tlbsz == DEFAULT_TLB_SIZE


def test_read_config_missing_file(tmp_path):
    with pytest.raises(SimulationError, match="Cannot find configure file"):
        read_config(tmp_path / "absent")


def test_read_config_truncated(tmp_path):
    path = tmp_path / "cfg"
    path.write_text("2 1 2\n4096 4096 0 0 0\n0 p0 1\n")
    with pytest.raises(SimulationError):
        read_config(path)


def test_runs_all_processes_to_completion(tmp_path, capsys):
    input_dir = _write_input(
        tmp_path,
        "2 1 2\n4096 4096 0 0 0\n0 p0 1\n1 p1 2\n",
        {"p0": CALC3, "p1": CALC2},
    )
    config = read_config(input_dir / "cfg")
    finished = Simulator(config, input_dir).run()
    assert len(finished) == 2
    assert all(proc.pc == len(proc.code) for proc in finished)
    assert sorted(len(proc.code) for proc in finished) == [2, 3]
    out = capsys.readouterr().out
    assert "CPU 0 stopped" in out
    assert out.count("has finished") == 2


def test_two_cpus_both_stop(tmp_path, capsys):
    input_dir = _write_input(
        tmp_path,
        "1 2 2\n4096 4096 0 0 0\n0 p0 0\n0 p1 0\n",
        {"p0": CALC3, "p1": CALC3},
    )
    finished = Simulator(read_config(input_dir / "cfg"), input_dir).run()
    assert len({proc.pid for proc in finished}) == 2
    out = capsys.readouterr().out
    assert "CPU 0 stopped" in out
    assert "CPU 1 stopped" in out


def test_memory_instructions_reach_ram(tmp_path):
    program = "1 3\nalloc 300 0\nwrite 65 0 10\nread 0 10 1\n"
    input_dir = _write_input(
        tmp_path, "4 1 1\n4096 4096 0 0 0\n0 p0 0\n", {"p0": program}
    )
    simulator = Simulator(read_config(input_dir / "cfg"), input_dir)
    finished = simulator.run()
    assert len(finished) == 1
    symbol = finished[0].mm.get_symbol(0)
    assert symbol.end - symbol.start == 300
    assert 65 in simulator.mram.storage


def test_missing_process_file_raises(tmp_path):
    input_dir = _write_input(
        tmp_path, "2 1 1\n4096 4096 0 0 0\n0 nothere 0\n", {}
    )
    simulator = Simulator(read_config(input_dir / "cfg"), input_dir)
    with pytest.raises(SimulationError, match="Cannot find process description"):
        simulator.run()


def test_config_defaults_used_by_simulator():
    config = Config(time_slot=1, num_cpus=0, memramsz=1024, memswpsz=[1024, 0, 0, 0])
    simulator = Simulator(config, "input")
    assert simulator.run() == []
    assert simulator.mram.max_size == config.memramsz


def test_main_requires_one_argument(capsys):
    assert main([]) == 1
    assert "Usage: os [path to configure file]" in capsys.readouterr().out


def test_main_runs_configuration(tmp_path, monkeypatch, capsys):
    _write_input(tmp_path, "2 1 1\n4096 4096 0 0 0\n0 p0 0\n", {"p0": CALC2})
    monkeypatch.chdir(tmp_path)
    assert main(["cfg"]) == 0
    assert "has finished" in capsys.readouterr().out


def test_main_missing_configuration(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["cfg"]) == 1
    assert "Cannot find configure file" in capsys.readouterr().out
from ossim.paging_demo import main


def _program(tmp_path, text):
    path = tmp_path / "p0"
    path.write_text(text)
    return str(path)


def test_both_copies_write_their_own_page(tmp_path, capsys):
    path = _program(tmp_path, "1 3\nalloc 300 0\nwrite 100 0 20\ncalc\n")
    assert main([path]) == 0
    out = capsys.readouterr().out
    assert out.count("PID:") == 2
    assert "\t00014: 64\n" in out
    assert "\t00414: 64\n" in out


def test_freed_blocks_leave_no_used_pages(tmp_path, capsys):
    path = _program(tmp_path, "1 3\nalloc 300 0\nwrite 100 0 20\nfree 0\n")
    assert main([path]) == 0
    assert "PID:" not in capsys.readouterr().out


def test_bad_register_allocates_nothing(tmp_path, capsys):
    path = _program(tmp_path, "1 1\nalloc 10 12\n")
    assert main([path]) == 0
    assert "PID:" not in capsys.readouterr().out


def test_missing_program(tmp_path, capsys):
    assert main([str(tmp_path / "absent")]) == 1
    assert "Cannot find process description" in capsys.readouterr().out


def test_unknown_opcode(tmp_path, capsys):
    path = _program(tmp_path, "1 1\njump 3\n")
    assert main([path]) == 1
    assert "Opcode: jump" in capsys.readouterr().out
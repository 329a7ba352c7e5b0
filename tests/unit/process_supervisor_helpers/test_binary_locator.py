import os

from proxy_supervisor.process_supervisor_helpers import find_binary


def _make_file(path, *, executable):
    path.write_text("#!/bin/sh\nexit 0\n")
    os.chmod(path, 0o755 if executable else 0o644)
    return str(path)


def test_returns_first_executable_candidate(tmp_path):
    first = _make_file(tmp_path / "first", executable=True)
    second = _make_file(tmp_path / "second", executable=True)

    assert find_binary([first, second]) == first


def test_skips_missing_and_non_executable_paths(tmp_path):
    missing = str(tmp_path / "missing")
    plain = _make_file(tmp_path / "plain", executable=False)
    runnable = _make_file(tmp_path / "runnable", executable=True)

    assert find_binary([missing, plain, runnable]) == runnable


def test_directories_are_not_binaries(tmp_path):
    assert find_binary([str(tmp_path)]) is None


def test_returns_none_when_nothing_found(tmp_path):
    assert find_binary([str(tmp_path / "a"), str(tmp_path / "b")]) is None

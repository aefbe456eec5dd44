from __future__ import annotations

from pathlib import Path
from typing import List

from fdxsim import debug_runner


def _write_hex(path: Path, data: List[int]) -> None:
    path.write_text(" ".join(f"{value:02X}" for value in data) + "\n", encoding="utf-8")


def test_debug_runner_runs_image_to_halt(tmp_path, capsys) -> None:
    image = tmp_path / "store.hex"
    _write_hex(image, [0x01, 0x05, 0x05, 0x10, 0x08])

    exit_code = debug_runner.main(["--image", str(image), "--ticks", "0", "--dump-range", "10:10"])

    captured = capsys.readouterr()
    assert exit_code == 0
    lines = [line for line in captured.out.strip().splitlines() if line]
    assert lines[0].startswith("PC=05")
    assert "HALT=1" in lines[0]
    assert lines[1].startswith("ADDR")
    assert lines[2].startswith("10   05 00")


def test_debug_runner_breaks_on_interrupt_service(capsys) -> None:
    exit_code = debug_runner.main(["--interrupt", "8", "--break-pc", "0x80", "--dump-range", "F0:F7"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.startswith("PC=80")
    assert "IE=0" in captured.out


def test_debug_runner_tick_limit(capsys) -> None:
    exit_code = debug_runner.main(["--ticks", "20", "--dump-range", "F4:F4"])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert "tick limit reached" in captured.err


def test_debug_runner_load_failure(tmp_path, capsys) -> None:
    exit_code = debug_runner.main(["--image", str(tmp_path / "missing.bin")])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Failed to load image" in captured.err


def test_debug_runner_unsupported_image(tmp_path, capsys) -> None:
    image = tmp_path / "prog.elf"
    image.write_bytes(b"\x08")

    exit_code = debug_runner.main(["--image", str(image)])

    assert exit_code == 1
    assert "unsupported image format" in capsys.readouterr().err


def test_debug_runner_undecodable_hex_image(tmp_path, capsys) -> None:
    image = tmp_path / "bad.hex"
    image.write_bytes(b"\xff\xfe 01 02")

    exit_code = debug_runner.main(["--image", str(image)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Failed to load image" in captured.err
    assert "not valid UTF-8" in captured.err


def test_debug_runner_breaks_at_entry_pc(capsys) -> None:
    exit_code = debug_runner.main(["--break-pc", "20", "--dump-range", "00:00"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.startswith("PC=20")


def test_debug_runner_binary_dump_to_file(tmp_path) -> None:
    target = tmp_path / "dump.bin"

    exit_code = debug_runner.main(
        ["--ticks", "1", "--dump", str(target), "--dump-format", "bin", "--dump-range", "20:21"]
    )

    assert exit_code == 2
    assert target.read_bytes() == bytes([0x01, 0x00])


def test_debug_runner_trace_from_environment(monkeypatch, capsys) -> None:
    monkeypatch.setenv("FDXSIM_TRACE", "1")

    debug_runner.main(["--ticks", "2", "--dump-range", "00:00"])

    out = capsys.readouterr().out
    assert "     1 FETCH: LOAD_A_VAL from @0x20" in out
    assert "     2 FETCH: STORE_A from @0x22" in out


def test_debug_runner_throttles_with_hz(monkeypatch, capsys) -> None:
    sleeps: List[float] = []
    monkeypatch.setattr(debug_runner.time, "sleep", sleeps.append)

    debug_runner.main(["--ticks", "3", "--hz", "10", "--dump-range", "00:00"])

    capsys.readouterr()
    assert sleeps == [0.1, 0.1, 0.1]

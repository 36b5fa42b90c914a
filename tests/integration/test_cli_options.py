from __future__ import annotations

from pathlib import Path

from alloc_cleaner.cli import main as cli_main


def test_cli_inspect_data(write_config, clean_data_files, capsys):
    code = cli_main(["--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: tasks.csv (tasks)" in out
    assert "cols=['ClientID', 'ClientName', 'PriorityLevel', 'RequestedTaskIDs', 'GroupTag', 'AttributesJSON']" in out
    # inspect は検証もログ出力もしない
    assert "SUMMARY" not in out


def test_cli_debug_mode(write_config, clean_data_files, capsys):
    code = cli_main(["--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG validated clients rows=2" in out


def test_cli_explicit_config_path(write_config, clean_data_files, temp_workdir: Path, capsys):
    moved = temp_workdir / "other.yml"
    write_config.rename(moved)
    assert cli_main(["--config", str(moved)]) == 0


def test_cli_dotenv_sets_config_path(write_config, clean_data_files, temp_workdir: Path, monkeypatch, capsys):
    moved = temp_workdir / "from_env.yml"
    write_config.rename(moved)
    (temp_workdir / ".env").write_text(f"ALLOC_CLEANER_CONFIG={moved}\n", encoding="utf-8")
    # load_dotenv は os.environ を直接書き換えるので後始末を monkeypatch に任せる
    monkeypatch.setenv("ALLOC_CLEANER_CONFIG", "placeholder")
    assert cli_main([]) == 0

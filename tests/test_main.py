import json

import pytest

from main import build_parser, main


@pytest.fixture()
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "database_path": str(tmp_path / "data" / "assets.db"),
        "log_file": "",
        "output_directory": str(tmp_path / "output"),
    }), encoding="utf-8")
    return str(path)


def test_init_creates_database(config_path, tmp_path, capsys):
    assert main(["--config", config_path, "init"]) == 0
    assert (tmp_path / "data" / "assets.db").exists()
    assert "Database ready" in capsys.readouterr().out


def test_template_import_stats_and_export(config_path, tmp_path, capsys):
    template = str(tmp_path / "template.csv")
    export = str(tmp_path / "export.csv")

    assert main(["--config", config_path, "template", template]) == 0
    assert main(["--config", config_path, "import", template]) == 0
    assert "Imported: 3" in capsys.readouterr().out

    assert main(["--config", config_path, "stats"]) == 0
    out = capsys.readouterr().out
    assert "Assets:      3" in out
    assert "Total value: 11699.00" in out

    assert main(["--config", config_path, "export", export]) == 0
    assert "Exported 3 asset(s)" in capsys.readouterr().out


def test_default_template_location(config_path, tmp_path):
    assert main(["--config", config_path, "template"]) == 0
    assert (tmp_path / "output" / "templates" / "asset_import_template.csv").exists()


def test_logs_command(config_path, capsys):
    assert main(["--config", config_path, "logs", "--search", "ZC", "--start", "2024-01-01"]) == 0
    assert "0 change log(s)" in capsys.readouterr().out


def test_missing_import_file_fails(config_path, tmp_path, capsys):
    assert main(["--config", config_path, "import", str(tmp_path / "missing.csv")]) == 1
    err = capsys.readouterr().err
    assert "Error" in err
    assert "File does not exist" in err


def test_perf_flag_prints_report(config_path, tmp_path, capsys):
    template = str(tmp_path / "template.csv")
    assert main(["--config", config_path, "template", template]) == 0
    capsys.readouterr()

    assert main(["--config", config_path, "--perf", "import", template]) == 0
    out = capsys.readouterr().out
    assert "=== Performance Report ===" in out
    assert "CSV Import" in out


def test_no_report_without_perf_flag(config_path, capsys):
    assert main(["--config", config_path, "stats"]) == 0
    assert "Performance Report" not in capsys.readouterr().out


def test_command_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])

from __future__ import annotations

import httpx

from valoris.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL
from valoris.cli.__main__ import main as cli_main


def _csv(temp_workdir, name="spend.csv", content="Supplier,Spend\nAcme,100\nOther,10\n"):
    path = temp_workdir / "data" / name
    path.write_text(content, encoding="utf-8")
    return path


def test_exit_codes_are_distinct():
    assert (EXIT_SUCCESS_ALL, EXIT_PARTIAL_FAILURE, EXIT_FATAL) == (0, 2, 1)


def test_all_files_ok_returns_0(write_config, temp_workdir, stage_recorder):
    rc = cli_main(
        ["--config", str(write_config), str(_csv(temp_workdir))],
        transport=httpx.MockTransport(stage_recorder()),
    )
    assert rc == EXIT_SUCCESS_ALL


def test_fallback_analysis_still_counts_as_ok(write_config, temp_workdir, stage_recorder):
    recorder = stage_recorder(normalize=lambda req: httpx.Response(500))
    rc = cli_main(
        ["--config", str(write_config), str(_csv(temp_workdir))],
        transport=httpx.MockTransport(recorder),
    )
    assert rc == EXIT_SUCCESS_ALL


def test_one_failed_file_returns_2(write_config, temp_workdir, stage_recorder):
    bad = temp_workdir / "data" / "broken.xlsx"
    bad.write_bytes(b"not a workbook")
    rc = cli_main(
        ["--config", str(write_config), str(_csv(temp_workdir)), str(bad)],
        transport=httpx.MockTransport(stage_recorder()),
    )
    assert rc == EXIT_PARTIAL_FAILURE


def test_missing_config_returns_1(temp_workdir, capsys):
    rc = cli_main(["--config", str(temp_workdir / "config" / "missing.yml"), "x.csv"])
    assert rc == EXIT_FATAL
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_missing_api_key_returns_1_without_network(temp_workdir, stage_recorder, capsys):
    cfg = temp_workdir / "config" / "valoris.yml"
    cfg.write_text(
        "analysis_service:\n  normalize_url: https://analysis.test/normalize\n"
        "  enrich_url: https://analysis.test/enrich\n",
        encoding="utf-8",
    )
    recorder = stage_recorder()
    rc = cli_main(["--config", str(cfg), str(_csv(temp_workdir))], transport=httpx.MockTransport(recorder))
    assert rc == EXIT_FATAL
    assert recorder.requests == []
    assert "ERROR config:" in capsys.readouterr().out


def test_no_files_returns_1(write_config, capsys):
    rc = cli_main(["--config", str(write_config)])
    assert rc == EXIT_FATAL
    assert "ERROR no input files given" in capsys.readouterr().out

"""Tests for the YAML configuration loader and runtime helpers."""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

REPO = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO))

from core.config import get_config, get_config_overrides, get_config_source, get_section
from core.runtime import default_output_path, timestamp_run_id


def test_defaults_loaded():
    cfg = get_config(cli_args=[], env={}, reload=True)
    assert cfg["template"]["value_table_label"] == "Tag"
    assert cfg["template"]["section_table_label"] == "Section Name"
    assert cfg["charts"]["enabled"] is True
    assert get_config_source() == (REPO / "config" / "defaults.yaml").resolve()
    assert get_config_overrides() == {}


def test_env_and_cli_overrides_are_coerced():
    cfg = get_config(
        cli_args=["--set", "charts.enabled=false", "--set", "template.marker_fence=%"],
        env={"RT__CHARTS__DPI": "200", "LOG_LEVEL": "DEBUG"},
        reload=True,
    )
    assert cfg["charts"]["dpi"] == 200
    assert cfg["charts"]["enabled"] is False
    assert cfg["template"]["marker_fence"] == "%"
    assert cfg["logging"]["level"] == "DEBUG"
    assert get_config_overrides()["charts.dpi"] == 200


def test_cli_wins_over_env():
    cfg = get_config(cli_args=["--set", "charts.dpi=90"],
                     env={"RT__CHARTS__DPI": "200"}, reload=True)
    assert cfg["charts"]["dpi"] == 90


def test_unrelated_cli_args_are_ignored():
    cfg = get_config(cli_args=["template.docx", "--dry-run", "--set", "charts.dpi=90"],
                     env={}, reload=True)
    assert isinstance(cfg, dict)
    assert cfg["charts"]["dpi"] == 90
    assert cfg["cleanup"]["table_heading_labels"] == []


def test_returns_copies():
    cfg = get_config(cli_args=[], env={}, reload=True)
    cfg["charts"]["dpi"] = 1
    assert get_config(cli_args=[], env={})["charts"]["dpi"] != 1


def test_alternative_file(tmp_path):
    path = tmp_path / "alt.yaml"
    path.write_text("template:\n  value_table_label: Key\n", encoding="utf-8")
    cfg = get_config(cli_args=["--config", str(path)], env={}, reload=True)
    assert cfg["template"]["value_table_label"] == "Key"
    assert "charts" not in cfg

    cfg = get_config(cli_args=[], env={"RT_CONFIG": str(path)}, reload=True)
    assert cfg["template"]["value_table_label"] == "Key"


def test_bad_inputs(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_config(cli_args=["--config", str(tmp_path / "nope.yaml")], env={}, reload=True)
    with pytest.raises(ValueError):
        get_config(cli_args=["--set", "charts.dpi"], env={}, reload=True)


def test_get_section():
    assert get_section(None, "charts") == {}
    assert get_section({"charts": None}, "charts") == {}
    assert get_section({"charts": {"dpi": 1}}, "charts") == {"dpi": 1}


def test_runtime_helpers():
    dt = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert timestamp_run_id(dt) == "20250304T050607Z"
    out = default_output_path(Path("/tmp/in/template.docx"), run_id="RUN")
    assert out == Path("/tmp/in/template_report_RUN.docx")

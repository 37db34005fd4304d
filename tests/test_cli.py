import types
from pathlib import Path
from unittest import mock

import pandas as pd
import pytest

import nwis_map.cli as cli
from nwis_map.config import MapConfig
from nwis_map.models import BatchResult, FetchOutcome


@pytest.fixture
def sites_frame():
    return pd.DataFrame(
        {
            "region_id": ["AK"],
            "site_no": ["15304000"],
            "station_nm": ["Kuskokwim"],
            "dec_lat_va": [61.5],
            "dec_long_va": [-160.4],
            "count_nu": [20000],
        }
    )


def test_init_config_writes_defaults(tmp_path):
    path = tmp_path / "cfg.yaml"
    assert cli.main(["init-config", str(path)]) == 0
    assert MapConfig.load_from_file(path).regions == MapConfig().regions


def test_fetch_saves_csv(tmp_path, sites_frame, monkeypatch):
    fake = mock.MagicMock(return_value=BatchResult([
        FetchOutcome("AK", data=sites_frame),
        FetchOutcome("HI", error="timeout"),
    ]))
    monkeypatch.setattr(cli, "fetch_sites", fake)
    out = tmp_path / "sites.csv"

    status = cli.main(["fetch", "--states", "ak", "hi", "--out", str(out)])

    assert status == 0
    assert out.is_file()
    assert fake.call_args.args[0] == ["AK", "HI"]
    assert pd.read_csv(out, dtype={"site_no": str})["site_no"].tolist() == ["15304000"]


def test_plot_uses_saved_sites_and_style_flags(tmp_path, sites_frame, monkeypatch):
    csv = tmp_path / "sites.csv"
    sites_frame.to_csv(csv, index=False)
    fake = mock.MagicMock(return_value=types.SimpleNamespace(artefact=Path("x.png")))
    monkeypatch.setattr(cli, "run_pipeline", fake)

    status = cli.main(["plot", "--sites", str(csv), "--by-size", "--out", str(tmp_path / "m.png")])

    assert status == 0
    config = fake.call_args.args[0]
    assert config.style.scale_by_size is True
    assert config.style.scale_by_color is False
    assert fake.call_args.kwargs["sites"]["site_no"].tolist() == ["15304000"]
    assert fake.call_args.kwargs["out_path"] == str(tmp_path / "m.png")


def test_run_fetches_inside_pipeline(monkeypatch):
    fake = mock.MagicMock(return_value=types.SimpleNamespace(artefact=Path("x.png")))
    monkeypatch.setattr(cli, "run_pipeline", fake)
    assert cli.main(["run", "--by-color"]) == 0
    assert fake.call_args.kwargs["sites"] is None
    assert fake.call_args.args[0].style.scale_by_color is True


def test_invalid_config_exits_nonzero(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("jurisdictions: [zz]\n")
    assert cli.main(["--config", str(path), "fetch"]) == 1


def test_command_required():
    with pytest.raises(SystemExit):
        cli.main([])


def test_all_failed_fetch_still_plots_base_map(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "fetch_sites",
                        mock.MagicMock(return_value=BatchResult([FetchOutcome("AK", error="down")])))
    fake = mock.MagicMock(return_value=types.SimpleNamespace(artefact=Path("x.png")))
    monkeypatch.setattr(cli, "run_pipeline", fake)
    csv = tmp_path / "sites.csv"

    assert cli.main(["fetch", "--states", "ak", "--out", str(csv)]) == 0
    assert cli.main(["plot", "--sites", str(csv)]) == 0

    sites = fake.call_args.kwargs["sites"]
    assert sites.empty
    assert "site_no" in sites.columns

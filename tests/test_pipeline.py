"""End-to-end tests: loading, export round trip, rendering and the CLI."""

import os
import sqlite3

import pandas as pd
import pytest

from pc_network.cli import main
from pc_network.data_loader import EncounterLoader, prepare_records
from pc_network.errors import AlignmentError, DataIntegrityError
from pc_network.exporter import ResultsExporter, load_provider_network
from pc_network.pipeline import build_network, run_pipeline
from pc_network.renderer import NetworkRenderer, figure_name


class TestLoader:

    def test_missing_required_column(self, region_records):
        with pytest.raises(DataIntegrityError):
            prepare_records(region_records.drop(columns=["provider_hrr"]))

    def test_rows_missing_ids_dropped(self, region_records):
        df = region_records.copy()
        df.loc[0, "npi"] = None
        df.loc[1, "patient_id"] = "  "
        records = prepare_records(df)
        assert len(records) == len(df) - 2

    def test_all_ids_missing_raises(self, region_records):
        df = region_records.copy()
        df["npi"] = None
        with pytest.raises(DataIntegrityError):
            prepare_records(df)

    def test_optional_columns_kept(self, region_records):
        df = region_records.assign(encounter_year="2021", extra="x")
        records = prepare_records(df)
        assert "encounter_year" in records.columns
        assert "extra" not in records.columns

    def test_csv_keeps_npi_as_text(self, tmp_path, region_records):
        df = region_records.copy()
        df["npi"] = "0" + df["npi"]
        path = tmp_path / "encounters.csv"
        df.to_csv(path, index=False)
        records = EncounterLoader(str(path)).load()
        assert records["npi"].str.startswith("0").all()

    def test_sqlite_numeric_npi(self, tmp_path, region_records):
        df = region_records.copy()
        df["npi"] = df["npi"].astype(float)
        path = tmp_path / "encounters.db"
        with sqlite3.connect(path) as conn:
            df.to_sql("encounters", conn, index=False)
        records = EncounterLoader(str(path)).load()
        assert "1000000001" in set(records["npi"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EncounterLoader(str(tmp_path / "nope.csv")).load()


class TestExporter:

    def test_round_trip_keeps_ids_and_weights(self, tmp_path, region_records):
        G, attrs = build_network(region_records)
        graph_path, attrs_path = ResultsExporter(str(tmp_path)).export_all(G, attrs)
        G2, attrs2 = load_provider_network(graph_path, attrs_path)
        assert list(G2.nodes()) == list(G.nodes())
        assert {frozenset((u, v)): w for u, v, w in G2.edges(data="weight")} == \
               {frozenset((u, v)): w for u, v, w in G.edges(data="weight")}
        assert list(attrs2["npi"]) == list(G.nodes())
        assert list(attrs2["specialty_group"]) == list(attrs["specialty_group"])


class TestRunPipeline:

    def test_writes_one_figure_per_surviving_region(self, tmp_path, region_records):
        results = run_pipeline(records=region_records, output_dir=str(tmp_path))
        assert set(results["figures"]) == {"10", "30"}
        assert results["failed"] == {}
        for path in results["figures"].values():
            assert os.path.exists(path)
            assert os.path.getsize(path) > 0
        assert not (tmp_path / figure_name("20")).exists()
        assert os.path.exists(results["graph_path"])
        assert os.path.exists(results["attributes_path"])

    def test_spring_layout(self, tmp_path, triangle_records):
        results = run_pipeline(records=triangle_records, output_dir=str(tmp_path), layout="spring")
        assert set(results["figures"]) == {"10"}

    def test_region_failure_does_not_block_others(self, tmp_path, region_records, monkeypatch):
        original = NetworkRenderer.render

        def flaky_render(self, region_subgraph):
            if region_subgraph.region == "10":
                raise RuntimeError("boom")
            return original(self, region_subgraph)

        monkeypatch.setattr(NetworkRenderer, "render", flaky_render)
        results = run_pipeline(records=region_records, output_dir=str(tmp_path))
        assert set(results["figures"]) == {"30"}
        assert "10" in results["failed"]

    def test_integrity_error_aborts_before_rendering(self, tmp_path, region_records):
        df = region_records.copy()
        df.loc[0, "patient_id"] = "1000000002"     # patient id collides with an npi
        with pytest.raises(DataIntegrityError):
            run_pipeline(records=df, output_dir=str(tmp_path))
        assert not list(tmp_path.glob("*.png"))

    def test_requires_some_input(self, tmp_path):
        with pytest.raises(ValueError):
            run_pipeline(output_dir=str(tmp_path))

    def test_error_types_are_value_errors(self):
        assert issubclass(DataIntegrityError, ValueError)
        assert issubclass(AlignmentError, ValueError)

    def test_unknown_layout_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            NetworkRenderer(str(tmp_path), layout="circle")


class TestCli:

    def test_cli_build_only(self, tmp_path, region_records):
        path = tmp_path / "encounters.csv"
        region_records.to_csv(path, index=False)
        out = tmp_path / "out"
        code = main([str(path), "--output-dir", str(out), "--no-render", "--min-shared-patients", "2"])
        assert code == 0
        assert (out / "provider_network.pkl").exists()
        assert not list(out.glob("*.png"))

    def test_cli_bad_input_returns_error(self, tmp_path, region_records):
        path = tmp_path / "bad.csv"
        region_records.drop(columns=["npi"]).to_csv(path, index=False)
        assert main([str(path), "--output-dir", str(tmp_path / "out")]) == 1

    def test_cli_rejects_zero_threshold(self, tmp_path):
        with pytest.raises(SystemExit):
            main([str(tmp_path / "x.csv"), "--min-shared-patients", "0"])


class TestIdCleaning:

    def test_text_ids_are_not_rewritten(self):
        df = pd.DataFrame([
            ("7", "A", "10", "Urology", "0"),
            ("7.0", "B", "10", "Hospitalist", "0"),
        ], columns=["patient_id", "npi", "provider_hrr", "provider_specialty", "pc_specialist_flag"])
        records = prepare_records(df)
        assert set(records["patient_id"]) == {"7", "7.0"}
        G, _ = build_network(df)
        assert not G.has_edge("A", "B")

    def test_float_ids_lose_trailing_zero(self):
        df = pd.DataFrame({
            "patient_id": ["P1", "P1"], "npi": [1000000001.0, 1000000002.0],
            "provider_hrr": [10.0, None], "provider_specialty": ["Urology", "Hospitalist"],
            "pc_specialist_flag": ["0", "0"],
        })
        records = prepare_records(df)
        assert list(records["npi"]) == ["1000000001", "1000000002"]
        assert records.loc[0, "provider_hrr"] == "10"
        assert pd.isna(records.loc[1, "provider_hrr"])

    def test_prepare_is_idempotent(self):
        df = pd.DataFrame([
            ("P1", "X.0.0", "10", "Urology", "0"),
            ("P1", "Y", "10", "Hospitalist", "0"),
        ], columns=["patient_id", "npi", "provider_hrr", "provider_specialty", "pc_specialist_flag"])
        once = prepare_records(df)
        pd.testing.assert_frame_equal(prepare_records(once), once)

    def test_pipeline_keeps_text_npi(self, tmp_path):
        df = pd.DataFrame([
            ("P1", "X.0.0", "10", "Urology", "0"),
            ("P1", "Y", "10", "Hospitalist", "0"),
        ], columns=["patient_id", "npi", "provider_hrr", "provider_specialty", "pc_specialist_flag"])
        path = tmp_path / "encounters.csv"
        df.to_csv(path, index=False)
        results = run_pipeline(input_path=str(path), output_dir=str(tmp_path / "out"), render=False)
        assert set(results["graph"].nodes()) == {"X.0.0", "Y"}
        assert results["graph"]["X.0.0"]["Y"]["weight"] == 1

"""End-to-end tests for scripts/aggregate_highlights.py."""
from __future__ import annotations

import shutil
from pathlib import Path

from highlight_aggregator.aggregator import ProximityConfig
from highlight_aggregator.io_utils import load_json, load_jsonl, save_json
from scripts.aggregate_highlights import (
    build_parser,
    default_output_path,
    main,
    resolve_config,
)

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "sample_notebook.html"


def _copy_fixture(tmp_path: Path) -> Path:
    dest = tmp_path / "Hadji Murad - Notebook.html"
    shutil.copy(FIXTURE, dest)
    return dest


class TestDefaultOutputPath:
    def test_marker_appended(self) -> None:
        out = default_output_path(Path("/books/Tolstoy - Notebook.html"), "Aggregated")
        assert out == Path("/books/Tolstoy - NotebookAggregated.json")


class TestResolveConfig:
    def test_defaults(self) -> None:
        args = build_parser().parse_args(["in.html"])
        assert resolve_config(args) == ProximityConfig()

    def test_flags_override_file(self, tmp_path: Path) -> None:
        cfg_path = tmp_path / "prox.json"
        save_json({"chapter": 2, "page": 3, "location": 4}, cfg_path)
        args = build_parser().parse_args(
            ["in.html", "--config", str(cfg_path), "--location-proximity", "50"]
        )
        assert resolve_config(args) == ProximityConfig(2, 3, 50)


class TestMain:
    def test_writes_json(self, tmp_path: Path) -> None:
        src = _copy_fixture(tmp_path)
        assert main([str(src)]) == 0

        payload = load_json(tmp_path / "Hadji Murad - NotebookAggregated.json")
        assert payload["title"] == "Hadji Murad"
        assert payload["proximity"] == {"chapter": 0, "page": 0, "location": 5}
        assert payload["skipped"] == []
        blocks = payload["blocks"]
        assert len(blocks) == 2
        assert blocks[0]["chapter_label"] == "Chapter I"
        assert blocks[0]["range"] == "cI,p11,l110-113"
        assert (blocks[0]["start_index"], blocks[0]["end_index"]) == (0, 2)
        assert blocks[0]["text"] == (
            "“Who is he?” asked the old man, frowning. (Note: First appearance)"
        )
        assert blocks[1]["chapter_label"] == "Chapter II"
        assert blocks[1]["range"] == "cII,p20,l240-243"
        assert blocks[1]["text"].startswith("an order had come from Shamil")

    def test_location_proximity_flag(self, tmp_path: Path) -> None:
        src = _copy_fixture(tmp_path)
        out = tmp_path / "out.json"
        assert main([str(src), "-o", str(out), "--location-proximity", "0"]) == 0
        blocks = load_json(out)["blocks"]
        assert [(b["start_index"], b["end_index"]) for b in blocks] == [
            (0, 0), (1, 1), (2, 2), (3, 3), (4, 4),
        ]

    def test_writes_jsonl(self, tmp_path: Path) -> None:
        src = _copy_fixture(tmp_path)
        out = tmp_path / "blocks.jsonl"
        assert main([str(src), "--output", str(out)]) == 0
        records = load_jsonl(out)
        assert [r["range"] for r in records] == [
            "cI,p11,l110-113",
            "cII,p20,l240-243",
        ]

    def test_missing_input(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "nope.html")]) == 1

    def test_missing_config_file(self, tmp_path: Path) -> None:
        src = _copy_fixture(tmp_path)
        out = tmp_path / "out.json"
        args = [str(src), "-o", str(out), "--config", str(tmp_path / "absent.json")]
        assert main(args) == 1
        assert not out.exists()

    def test_not_a_notebook(self, tmp_path: Path) -> None:
        src = tmp_path / "plain.html"
        src.write_text("<html><body><p>hi</p></body></html>", encoding="utf-8")
        out = tmp_path / "out.json"
        assert main([str(src), "-o", str(out)]) == 1
        assert not out.exists()

    def test_negative_proximity_rejected(self, tmp_path: Path) -> None:
        src = _copy_fixture(tmp_path)
        assert main([str(src), "--page-proximity", "-1"]) == 1

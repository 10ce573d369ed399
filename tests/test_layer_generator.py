"""Tests for layer generation and output."""

import json

import pytest

from config import CEILING_TECHNIQUE_COUNT
from core.coverage import CoverageAggregator, CoverageIndex
from generators.layer_generator import (
    LayerWriteError,
    NavigatorLayerGenerator,
    resolve_output_path,
    write_layer,
)


@pytest.fixture
def index() -> CoverageIndex:
    index = CoverageIndex()
    index.add("T1059", "proc_cmd.yml")
    index.add("T1566", "phish.yml")
    index.add("T1059", "proc_powershell.yml")
    return index


def test_two_rules_give_score_two_and_newline_comment(index) -> None:
    layer = NavigatorLayerGenerator().generate_layer(index, "sigma")
    entries = {t["techniqueID"]: t for t in layer.to_dict()["techniques"]}
    assert entries["T1059"] == {
        "techniqueID": "T1059",
        "score": 2,
        "comment": "proc_cmd.yml\nproc_powershell.yml",
    }


def test_no_comment_key_when_comments_disabled(index) -> None:
    layer = NavigatorLayerGenerator(include_comments=False).generate_layer(index, "sigma")
    assert all("comment" not in entry for entry in layer.to_dict()["techniques"])


def test_layer_document_shape(index) -> None:
    document = NavigatorLayerGenerator().generate_layer(index, "suricata").to_dict()
    assert list(document) == ["domain", "name", "gradient", "version", "techniques"]
    assert document["domain"] == "mitre-enterprise"
    assert document["name"] == "Suricata rules coverage"
    assert document["version"] == "4.2"
    assert document["gradient"] == {"colors": ["#a0eab5", "#0f480f"], "maxValue": 2, "minValue": 0}
    assert [t["techniqueID"] for t in document["techniques"]] == ["T1059", "T1566"]


def test_technique_count_ceiling(index) -> None:
    generator = NavigatorLayerGenerator(CoverageAggregator(CEILING_TECHNIQUE_COUNT))
    layer = generator.generate_layer(index, "sigma")
    assert layer.name == "Sigma signatures coverage"
    assert layer.gradient.max_value == 2


def test_empty_index_gives_empty_layer() -> None:
    layer = NavigatorLayerGenerator().generate_layer(CoverageIndex(), "sigma")
    assert layer.techniques == []
    assert layer.gradient.max_value == 0


def test_unknown_format_is_rejected(index) -> None:
    with pytest.raises(ValueError):
        NavigatorLayerGenerator().generate_layer(index, "snort")


def test_resolve_output_path() -> None:
    assert resolve_output_path(None, "sigma") == "sigma-coverage.json"
    assert resolve_output_path("", "suricata") == "suricata-coverage.json"
    assert resolve_output_path("out/layer.json", "sigma") == "out/layer.json"
    assert resolve_output_path("layer.txt", "suricata") == "suricata-coverage.json"


def test_write_layer_serializes_utf8(tmp_path) -> None:
    index = CoverageIndex()
    index.add("T1190", "2034647 - ET EXPLOIT Log4j é")
    layer = NavigatorLayerGenerator().generate_layer(index, "suricata")
    target = tmp_path / "layer.json"

    write_layer(layer, str(target))

    text = target.read_text(encoding="utf-8")
    assert "é" in text
    assert json.loads(text) == layer.to_dict()


def test_write_layer_reports_missing_directory(tmp_path, index) -> None:
    layer = NavigatorLayerGenerator().generate_layer(index, "sigma")
    with pytest.raises(LayerWriteError) as excinfo:
        write_layer(layer, str(tmp_path / "missing" / "layer.json"))
    assert "does not exist" in str(excinfo.value)


def test_write_layer_refuses_directories(tmp_path, index) -> None:
    layer = NavigatorLayerGenerator().generate_layer(index, "sigma")
    target = tmp_path / "layer.json"
    target.mkdir()
    with pytest.raises(LayerWriteError):
        write_layer(layer, str(target))

"""Tests for building and loading the ATT&CK reference matrix."""

import json
from unittest import mock

import pytest
import requests

from validators.mitre_validator import (
    MatrixFetchError,
    MatrixLookupError,
    ReferenceMatrix,
    ReferenceMatrixLoader,
    find_technique_id,
    is_selectable,
)


def test_matrix_maps_techniques_to_tactics(matrix_document) -> None:
    matrix = ReferenceMatrix.from_document(matrix_document)
    assert matrix.techniques == {"T1566", "T1059", "T1543.003"}
    assert matrix.tactics_for("T1543.003") == {"persistence", "privilege-escalation"}
    assert matrix.knows("T1566", "initial-access")
    assert not matrix.knows("T1566", "execution")
    assert matrix.get_summary()["records_selected"] == 3


def test_records_for_the_same_technique_are_unioned(attack_pattern) -> None:
    document = {"objects": [
        attack_pattern("T1078", ["initial-access"]),
        attack_pattern("T1078", ["persistence"]),
    ]}
    matrix = ReferenceMatrix.from_document(document)
    assert matrix.tactics_for("T1078") == {"initial-access", "persistence"}


def test_records_without_phases_or_references_are_ignored(attack_pattern) -> None:
    record = attack_pattern("T1000", ["execution"])
    no_phases = dict(record)
    del no_phases["kill_chain_phases"]
    no_refs = dict(record, external_references=[])
    assert not is_selectable(no_phases)
    assert not is_selectable(no_refs)
    assert not is_selectable("not a record")
    assert len(ReferenceMatrix.from_document({"objects": [no_phases, no_refs]})) == 0


def test_unattributed_record_is_fatal_by_default(attack_pattern) -> None:
    record = attack_pattern("T1000", ["execution"], source_name="capec")
    with pytest.raises(MatrixLookupError):
        ReferenceMatrix.from_document({"objects": [record]})


def test_reference_without_external_id_is_unattributed(attack_pattern) -> None:
    with pytest.raises(MatrixLookupError):
        find_technique_id(attack_pattern(None, ["execution"]))


def test_unattributed_record_can_be_skipped(attack_pattern) -> None:
    document = {"objects": [
        attack_pattern("T1000", ["execution"], source_name="capec"),
        attack_pattern("T1059", ["execution"]),
    ]}
    matrix = ReferenceMatrix.from_document(document, skip_unattributed=True)
    assert matrix.techniques == {"T1059"}
    assert matrix.records_skipped == 1


def test_loader_reads_local_files(matrix_file) -> None:
    matrix = ReferenceMatrixLoader(str(matrix_file)).load()
    assert "T1059" in matrix

    matrix = ReferenceMatrixLoader(f"file://{matrix_file}").load()
    assert "T1566" in matrix


def test_loader_rejects_documents_without_objects(tmp_path) -> None:
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps({"type": "bundle"}), encoding="utf-8")
    with pytest.raises(MatrixFetchError):
        ReferenceMatrixLoader(str(path)).fetch_document()


def test_loader_downloads_with_session(matrix_document) -> None:
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = matrix_document
    session = mock.Mock()
    session.get.return_value = response

    loader = ReferenceMatrixLoader("https://example.org/enterprise-attack.json", timeout=5, session=session)
    matrix = loader.load()

    session.get.assert_called_once_with("https://example.org/enterprise-attack.json", timeout=5)
    assert len(matrix) == 3


@pytest.mark.parametrize("error", [
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("down"),
])
def test_network_errors_become_fetch_errors(error) -> None:
    session = mock.Mock()
    session.get.side_effect = error
    loader = ReferenceMatrixLoader("https://example.org/attack.json", session=session)
    with pytest.raises(MatrixFetchError):
        loader.fetch_document()


def test_http_errors_become_fetch_errors() -> None:
    response = mock.Mock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Client Error")
    session = mock.Mock()
    session.get.return_value = response
    loader = ReferenceMatrixLoader("https://example.org/attack.json", session=session)
    with pytest.raises(MatrixFetchError):
        loader.fetch_document()


def test_default_session_sends_user_agent() -> None:
    loader = ReferenceMatrixLoader("https://example.org/attack.json")
    assert loader._session.headers["User-Agent"].startswith("S2AN/")

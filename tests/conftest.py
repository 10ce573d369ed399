"""Shared fixtures for the coverage layer tests."""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
import yaml

from core.scan_state import ScanState
from validators.mitre_validator import ReferenceMatrix


def make_attack_pattern(technique_id: Optional[str], phases: Iterable[str],
                        source_name: str = "mitre-attack") -> Dict:
    """Build a minimal STIX attack-pattern record."""
    reference = {"source_name": source_name, "url": "https://attack.mitre.org/"}
    if technique_id is not None:
        reference["external_id"] = technique_id
    return {
        "type": "attack-pattern",
        "id": f"attack-pattern--{technique_id or 'unattributed'}",
        "external_references": [reference],
        "kill_chain_phases": [
            {"kill_chain_name": "mitre-attack", "phase_name": phase} for phase in phases
        ],
    }


@pytest.fixture
def matrix_document() -> Dict:
    return {
        "type": "bundle",
        "objects": [
            make_attack_pattern("T1566", ["initial-access"]),
            make_attack_pattern("T1059", ["execution"]),
            make_attack_pattern("T1543.003", ["persistence", "privilege-escalation"]),
            {"type": "x-mitre-tactic", "id": "x-mitre-tactic--1"},
        ],
    }


@pytest.fixture
def matrix_file(tmp_path: Path, matrix_document: Dict) -> Path:
    path = tmp_path / "enterprise-attack.json"
    path.write_text(json.dumps(matrix_document), encoding="utf-8")
    return path


@pytest.fixture
def reference_matrix() -> ReferenceMatrix:
    return ReferenceMatrix({
        "T1566": ["initial-access"],
        "T1059": ["initial-access"],
        "T1543.003": ["persistence", "privilege-escalation"],
    })


@pytest.fixture
def state() -> ScanState:
    return ScanState()


@pytest.fixture
def write_sigma_rule(tmp_path: Path):
    """Write a Sigma rule with the given tags (no tags key when tags is None)."""

    def _write(name: str, tags: Optional[List] = None, title: str = "Test rule",
               directory: Optional[Path] = None) -> Path:
        rule = {
            "title": title,
            "logsource": {"product": "windows", "category": "process_creation"},
            "detection": {"selection": {"Image|endswith": "\\cmd.exe"}, "condition": "selection"},
        }
        if tags is not None:
            rule["tags"] = tags
        target = (directory or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(yaml.safe_dump(rule, sort_keys=False), encoding="utf-8")
        return target

    return _write


@pytest.fixture
def attack_pattern():
    return make_attack_pattern

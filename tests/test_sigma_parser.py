"""Tests for reading Sigma rule files."""

import logging

from core.scan_state import ScanState
from core.tag_analyzer import TagSequenceAnalyzer
from parsers.sigma_parser import SigmaRuleParser


def _parser(reference_matrix=None) -> SigmaRuleParser:
    return SigmaRuleParser(TagSequenceAnalyzer(reference_matrix, reference_matrix is not None))


def _warnings(caplog):
    return [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]


def test_tagged_rule_is_recorded(write_sigma_rule) -> None:
    path = write_sigma_rule("proc_cmd.yml", ["attack.execution", "attack.t1059"])
    state = ScanState()
    assert _parser().parse(str(path), state) is True
    assert state.index.descriptors("T1059") == ["proc_cmd.yml"]
    assert state.rules_with_tags == 1


def test_untagged_rule_is_skipped_with_one_diagnostic(write_sigma_rule, caplog) -> None:
    path = write_sigma_rule("untagged.yml", tags=None)
    state = ScanState()
    with caplog.at_level(logging.WARNING):
        assert _parser().parse(str(path), state) is False

    assert len(state.index) == 0
    assert state.rules_with_tags == 0
    assert _warnings(caplog) == [f"Ignoring rule {path} (no tags)"]


def test_rule_with_only_tactics_still_counts(write_sigma_rule) -> None:
    path = write_sigma_rule("tactic_only.yml", ["attack.discovery"])
    state = ScanState()
    assert _parser().parse(str(path), state) is True
    assert state.rules_with_tags == 1
    assert len(state.index) == 0


def test_invalid_yaml_is_reported_as_parsing_failure(tmp_path, caplog) -> None:
    path = tmp_path / "broken.yml"
    path.write_text("title: [unclosed\ntags:\n  - attack.t1059\n", encoding="utf-8")
    state = ScanState()
    with caplog.at_level(logging.WARNING):
        assert _parser().parse(str(path), state) is False

    assert _warnings(caplog) == [f"Ignoring rule {path} (parsing failed)"]
    assert state.skipped_files == [f"{path}: parsing failed"]


def test_non_string_tag_skips_the_rule(tmp_path, caplog) -> None:
    path = tmp_path / "odd.yml"
    path.write_text("title: Odd\ntags:\n  - attack.t1059\n  - {nested: value}\n", encoding="utf-8")
    state = ScanState()
    with caplog.at_level(logging.WARNING):
        assert _parser().parse(str(path), state) is False

    assert len(state.index) == 0
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert "expected a string" in warnings[0]


def test_first_mapping_document_is_used(tmp_path) -> None:
    path = tmp_path / "collection.yml"
    path.write_text(
        "title: Collection\n"
        "tags:\n  - attack.t1003\n"
        "---\n"
        "logsource:\n  product: windows\n",
        encoding="utf-8",
    )
    state = ScanState()
    assert _parser().parse(str(path), state) is True
    assert state.index.techniques == ["T1003"]


def test_title_is_attached_to_findings(write_sigma_rule, reference_matrix) -> None:
    path = write_sigma_rule("cmd.yml", ["attack.execution", "attack.t1059"], title="Cmd Spawn")
    state = ScanState()
    _parser(reference_matrix).parse(str(path), state)
    assert len(state.findings) == 1
    assert str(state.findings[0]) == (
        "MITRE ATT&CK technique (T1059) and tactic (execution) mismatch in rule: cmd.yml (Cmd Spawn)"
    )


def test_supported_extensions() -> None:
    parser = _parser()
    assert parser.can_parse("rules/a.yml")
    assert parser.can_parse("rules/B.YAML")
    assert not parser.can_parse("rules/a.rules")

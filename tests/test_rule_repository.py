"""Tests for rule discovery and sequential scanning."""

from unittest import mock

import pytest

from core.rule_repository import RuleRepository

SURICATA_RULES = (
    'alert http any any -> any any (msg:"ET EXPLOIT Log4j"; '
    'metadata: mitre_technique_id T1190, mitre_tactic_id TA0001; sid:2034647; rev:2;)\n'
    'alert tcp any any -> any any (msg:"no mapping"; sid:1;)\n'
)


def test_discovery_is_recursive_sorted_and_skips_hidden(tmp_path, write_sigma_rule) -> None:
    write_sigma_rule("b.yml", ["attack.t1059"])
    write_sigma_rule("a.yaml", ["attack.t1059"])
    write_sigma_rule("nested/c.yml", ["attack.t1566"])
    write_sigma_rule(".git/d.yml", ["attack.t1003"])
    (tmp_path / "README.md").write_text("docs", encoding="utf-8")

    repository = RuleRepository("sigma")
    files = repository.discover_rules(str(tmp_path))

    names = [f[len(str(tmp_path)) + 1:] for f in files]
    assert names == ["a.yaml", "b.yml", "nested/c.yml"]
    assert repository.get_statistics()["discovery"]["files_discovered"] == 3


def test_discovery_rejects_missing_directory(tmp_path) -> None:
    with pytest.raises(ValueError):
        RuleRepository("sigma").discover_rules(str(tmp_path / "nope"))


def test_sigma_scan_accumulates_state(tmp_path, write_sigma_rule) -> None:
    write_sigma_rule("one.yml", ["attack.execution", "attack.t1059"])
    write_sigma_rule("two.yml", ["attack.t1059", "attack.t1566"])
    write_sigma_rule("three.yml", tags=None)

    repository = RuleRepository("sigma")
    state = repository.scan_directory(str(tmp_path))

    assert state.files_scanned == 3
    assert state.rules_with_tags == 2
    assert state.index.descriptors("T1059") == ["one.yml", "two.yml"]
    assert len(state.skipped_files) == 1
    assert repository.get_statistics()["coverage"]["unique_techniques"] == 2


def test_sigma_scan_reports_mismatches(tmp_path, write_sigma_rule, reference_matrix) -> None:
    write_sigma_rule("cmd.yml", ["attack.execution", "attack.t1059"])
    repository = RuleRepository("sigma", reference_matrix, check_mismatches=True)
    state = repository.scan_directory(str(tmp_path))
    assert [f.as_triple() for f in state.findings] == [("T1059", "execution", "cmd.yml")]


def test_suricata_scan_folds_file_contributions(tmp_path) -> None:
    (tmp_path / "a.rules").write_text(SURICATA_RULES, encoding="utf-8")
    (tmp_path / "b.rules").write_text(SURICATA_RULES, encoding="utf-8")
    (tmp_path / "ignored.yml").write_text("tags: [attack.t1059]\n", encoding="utf-8")

    state = RuleRepository("suricata").scan_directory(str(tmp_path))

    assert state.files_scanned == 2
    assert state.index.scores() == {"T1190": 2}
    assert state.index.descriptors("T1190") == ["2034647 - ET EXPLOIT Log4j"] * 2


def test_unexpected_parser_error_does_not_abort_scan(tmp_path, write_sigma_rule) -> None:
    first = write_sigma_rule("first.yml", ["attack.t1059"])
    second = write_sigma_rule("second.yml", ["attack.t1566"])
    repository = RuleRepository("sigma")
    original_parse = repository.parser.parse

    def flaky_parse(file_path, state):
        if file_path == str(first):
            raise RuntimeError("boom")
        return original_parse(file_path, state)

    with mock.patch.object(repository.parser, "parse", side_effect=flaky_parse):
        state = repository.scan_rules([str(first), str(second)])

    assert state.index.techniques == ["T1566"]
    assert state.skipped_files == [f"{first}: error: boom"]
    assert repository.get_statistics()["errors"] == [f"Error parsing {first}: boom"]


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ValueError):
        RuleRepository("snort")

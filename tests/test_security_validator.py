"""Tests for path validation."""

from validators.security_validator import SecurityValidator


def test_rule_file_with_wrong_extension_is_rejected(tmp_path) -> None:
    path = tmp_path / "rule.txt"
    path.write_text("tags: []", encoding="utf-8")
    is_valid, error = SecurityValidator.validate_file_path(str(path), {".yml"})
    assert not is_valid
    assert "extension" in error


def test_rule_file_is_accepted(tmp_path) -> None:
    path = tmp_path / "rule.yml"
    path.write_text("tags: []", encoding="utf-8")
    assert SecurityValidator.validate_file_path(str(path), {".yml"}) == (True, "")


def test_pseudo_filesystems_are_refused() -> None:
    is_valid, error = SecurityValidator.validate_output_path("/proc/self/layer.json")
    assert not is_valid


def test_directory_checks(tmp_path) -> None:
    assert SecurityValidator.validate_directory_path(str(tmp_path)) == (True, "")
    assert not SecurityValidator.validate_directory_path(str(tmp_path / "absent"))[0]
    assert not SecurityValidator.validate_directory_path("")[0]


def test_log_text_is_truncated() -> None:
    text = SecurityValidator.is_safe_for_logging("x" * 600, max_length=100)
    assert len(text) <= 120


def test_log_text_stays_on_one_line() -> None:
    assert SecurityValidator.is_safe_for_logging('alert\n(msg:"x")\x07') == 'alert\\n(msg:"x")'

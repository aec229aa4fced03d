from pathlib import Path

import pytest

from grantedreg.awsini import (
    IniFile,
    IniParseError,
    default_aws_config_location,
    load_aws_config_file,
    load_ini,
    load_ini_file,
)

SAMPLE = """# top note
[profile one]
region = us-east-1
output=json

[profile two]
key: value # trailing
"""

REPEATED = "[a]\nx = 1\n[a]\ny = 2\n"


def _home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))


def test_section_names_start_with_default():
    f = load_ini(SAMPLE)
    assert f.section_names() == ["DEFAULT", "profile one", "profile two"]


def test_values_and_inline_comments():
    f = load_ini(SAMPLE)
    assert f.section("profile one").keys == {"region": "us-east-1", "output": "json"}
    assert f.section("profile two").value("key") == "value"
    assert f.section("profile two").value("missing") == ""


def test_comment_attaches_to_next_section():
    f = load_ini(SAMPLE)
    assert f.section("profile one").comment == "# top note"
    assert f.section("profile two").comment == ""


def test_unique_sections_merge_keys():
    f = load_ini(REPEATED)
    assert f.section_names() == ["DEFAULT", "a"]
    assert f.section("a").keys == {"x": "1", "y": "2"}


def test_non_unique_sections_are_kept():
    f = load_ini(REPEATED, allow_non_unique_sections=True)
    assert f.section_names() == ["DEFAULT", "a", "a"]
    assert [s.keys for s in f.sections()[1:]] == [{"x": "1"}, {"y": "2"}]


def test_round_trip(tmp_path):
    original = load_ini(SAMPLE)
    path = tmp_path / "config"
    original.save_to(path)
    reloaded = load_ini_file(path)
    assert reloaded.section_names() == original.section_names()
    for before, after in zip(original.sections(), reloaded.sections()):
        assert after.keys == before.keys
        assert after.comment == before.comment


def test_value_with_comment_chars_round_trips():
    f = IniFile()
    f.new_section("s").new_key("url", "a#b;c")
    assert load_ini(f.dumps()).section("s").value("url") == "a#b;c"


def test_new_section_returns_existing_when_unique():
    f = IniFile()
    first = f.new_section("x")
    first.new_key("k", "v")
    assert f.new_section("x") is first
    assert f.section_names().count("x") == 1


def test_new_section_duplicates_when_non_unique():
    f = IniFile(allow_non_unique_sections=True)
    f.new_section("x")
    f.new_section("x")
    assert f.section_names().count("x") == 2


def test_delete_section_removes_every_copy():
    f = load_ini(REPEATED, allow_non_unique_sections=True)
    f.delete_section("a")
    assert f.section_names() == ["DEFAULT"]


def test_append_file_overwrites_keys(tmp_path):
    first = tmp_path / "one"
    second = tmp_path / "two"
    first.write_text("[p]\nregion = r1\nkeep = yes\n")
    second.write_text("[p]\nregion = r2\n")
    f = IniFile()
    f.append_file(first)
    f.append_file(second)
    assert f.section("p").keys == {"region": "r2", "keep": "yes"}


def test_unrecognizable_line_is_an_error():
    with pytest.raises(IniParseError):
        load_ini("[p]\njustaword\n")


def test_empty_key_name_rejected():
    with pytest.raises(ValueError):
        IniFile().new_section("p").new_key("", "v")


def test_default_location_is_under_home(monkeypatch, tmp_path):
    _home(monkeypatch, tmp_path)
    assert Path(default_aws_config_location()) == tmp_path / ".aws" / "config"


def test_load_aws_config_file_skips_odd_lines(monkeypatch, tmp_path):
    _home(monkeypatch, tmp_path)
    (tmp_path / ".aws").mkdir()
    (tmp_path / ".aws" / "config").write_text("[p]\nstray\nregion = r1\n[p]\nx = y\n")
    f, path = load_aws_config_file()
    assert Path(path) == tmp_path / ".aws" / "config"
    assert f.section_names() == ["DEFAULT", "p", "p"]
    assert f.section("p").keys == {"region": "r1"}


def test_load_aws_config_file_missing(monkeypatch, tmp_path):
    _home(monkeypatch, tmp_path)
    with pytest.raises(FileNotFoundError):
        load_aws_config_file()
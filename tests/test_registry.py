from pathlib import Path

import pytest

from grantedreg.registry import (
    ProfileRegistrySettings,
    Registry,
    RegistryConfig,
    autogenerated_template,
    contains_template,
    format_key,
    interpolate_variables,
    is_required_key,
    new_profile_registry,
    registry_location,
    save_key,
    save_keys,
    sort_registries,
)


def _settings(**kwargs):
    saves = []
    settings = ProfileRegistrySettings(saver=saves.append, **kwargs)
    return settings, saves


def test_new_profile_registry_leaves_empty_options_unset():
    r = new_profile_registry("team", url="git@example.com:repo.git")
    assert r.config == RegistryConfig(name="team", url="git@example.com:repo.git")
    assert r.config.path is None and r.config.priority is None


def test_new_profile_registry_sets_options():
    r = new_profile_registry("team", path="sub", config_file_name="x.yml", ref="main", priority=5, prefix_all_profiles=True)
    assert (r.config.path, r.config.filename, r.config.ref, r.config.priority) == ("sub", "x.yml", "main", 5)
    assert r.config.prefix_all_profiles is True


def test_registry_location(tmp_path):
    loc = registry_location(tmp_path, RegistryConfig(name="team"))
    assert Path(loc) == tmp_path / "registries" / "team"


def test_sort_registries_by_priority_descending():
    configs = [RegistryConfig("low"), RegistryConfig("high", priority=10), RegistryConfig("mid", priority=3)]
    assert [r.config.name for r in sort_registries(configs)] == ["high", "mid", "low"]


def test_format_key():
    assert format_key("account=42") == ("account", "42")
    with pytest.raises(ValueError):
        format_key("account")
    with pytest.raises(ValueError):
        format_key("a=b=c")


def test_is_required_key():
    assert is_required_key([{"prompt": "x"}, {"isRequired": "true"}])
    assert not is_required_key([{"isRequired": "false"}])


def test_save_key_and_keys_persist():
    settings, saves = _settings()
    save_key(settings, "a", "1")
    save_keys(settings, {"b": "2"})
    assert settings.required_keys == {"a": "1", "b": "2"}
    assert len(saves) == 2


def test_contains_template():
    assert contains_template("{{ .Required.account }}")
    assert contains_template("x-{{ .Profile }}")
    assert not contains_template("plain value")
    assert not contains_template("{{.Profile}}")


def test_interpolate_fields():
    settings, _ = _settings(required_keys={"account": "42"}, variables={"region": "eu-west-1"})
    text = "{{ .Required.account }}/{{ .Variables.region }}/{{ .Profile }}"
    assert interpolate_variables(settings, text, "dev") == "42/eu-west-1/dev"


def test_interpolate_missing_key_is_empty():
    settings, _ = _settings()
    assert interpolate_variables(settings, "a{{ .Required.nope }}b", "p") == "ab"


def test_interpolate_escapes_html():
    settings, _ = _settings(variables={"v": "a&b"})
    assert interpolate_variables(settings, "{{ .Variables.v }}", "p") == "a&amp;b"


def test_interpolate_whole_map():
    settings, _ = _settings(variables={"b": "2", "a": "1"})
    assert interpolate_variables(settings, "{{ .Variables }}", "p") == "map[a:1 b:2]"


def test_interpolate_errors():
    settings, _ = _settings()
    with pytest.raises(ValueError):
        interpolate_variables(settings, "{{ .Unknown }}", "p")
    with pytest.raises(ValueError):
        interpolate_variables(settings, "{{ .Profile.x }}", "p")
    with pytest.raises(ValueError):
        interpolate_variables(settings, "{{ .Profile", "p")


def test_autogenerated_template_header():
    assert autogenerated_template().startswith("# Granted-Registry Autogenerated Section. DO NOT EDIT.")


def _write_registry(tmp_path, name, content, sub=None, filename="granted.yml"):
    folder = tmp_path / "registries" / name
    if sub:
        folder = folder / sub
    folder.mkdir(parents=True)
    (folder / filename).write_text(content)


YML = """awsConfig:
  - ./config
templateValues:
  - account:
      - isRequired: true
      - prompt: Enter account
"""


def test_parse_reads_granted_yml(tmp_path):
    _write_registry(tmp_path, "team", YML)
    r = Registry(RegistryConfig(name="team"))
    r.parse(tmp_path)
    assert r.aws_config_paths == ["./config"]
    assert r.template_values[0]["account"][0]["isRequired"] == "true"
    assert r.template_values[0]["account"][1]["prompt"] == "Enter account"


def test_parse_with_path_and_filename(tmp_path):
    _write_registry(tmp_path, "team", "awsConfig:\n  - a\n  - b\n", sub="sub", filename="other.yml")
    r = new_profile_registry("team", path="sub", config_file_name="other.yml")
    r.parse(tmp_path)
    assert r.aws_config_paths == ["a", "b"]


def test_parse_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Registry(RegistryConfig(name="absent")).parse(tmp_path)


REQUIRED = [{"account": [{"isRequired": "true"}, {"prompt": "Enter account"}]}]


def test_prompt_uses_passed_keys():
    settings, saves = _settings()
    r = Registry(RegistryConfig("team"), template_values=REQUIRED)
    r.prompt_required_keys(settings, ["account=42"], ask=lambda *a: pytest.fail("asked"))
    assert settings.required_keys == {"account": "42"}
    assert saves


def test_prompt_rejects_bad_passed_key():
    settings, _ = _settings()
    r = Registry(RegistryConfig("team"), template_values=REQUIRED)
    with pytest.raises(ValueError):
        r.prompt_required_keys(settings, ["account"])


def test_prompt_skips_configured_keys():
    settings, saves = _settings(required_keys={"account": "1"})
    calls = []
    r = Registry(RegistryConfig("team"), template_values=REQUIRED)
    r.prompt_required_keys(settings, ask=lambda *a: calls.append(a) or "x")
    assert calls == []
    assert settings.required_keys == {"account": "1"}
    assert saves == []


def test_prompt_fails_when_asked_to():
    settings, _ = _settings()
    r = Registry(RegistryConfig("team"), template_values=REQUIRED)
    with pytest.raises(ValueError, match="sync failed"):
        r.prompt_required_keys(settings, should_fail_for_required_keys=True)


def test_prompt_asks_until_answered():
    settings, _ = _settings()
    answers = iter(["", "7"])
    calls = []

    def ask(name, message):
        calls.append((name, message))
        return next(answers)

    r = Registry(RegistryConfig("team"), template_values=REQUIRED)
    r.prompt_required_keys(settings, ask=ask)
    assert settings.required_keys == {"account": "7"}
    assert len(calls) == 2
    assert calls[0][0] == "account"
    assert "Enter account" in calls[0][1]


def test_prompt_records_variables():
    settings, saves = _settings()
    r = Registry(RegistryConfig("team"), template_values=[{"region": [{"value": "eu-west-1"}]}])
    r.prompt_required_keys(settings)
    assert settings.variables == {"region": "eu-west-1"}
    assert len(saves) == 1
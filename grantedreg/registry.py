"""Profile registry definitions, required keys and value templates."""

from __future__ import annotations

import logging
import os
import re
import sys
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "granted.yml"

AUTO_GENERATED_MSG = (
    "# Granted-Registry Autogenerated Section. DO NOT EDIT.\n"
    "# This section is automatically generated by Granted. Manual edits to this section will be overwritten.\n"
    "# To edit, clone your profile registry repo, edit granted.yml, and push your changes. "
    "You may need to make a pull request depending on the repository settings.\n"
    "# To stop syncing and remove this section, run 'granted registry remove'."
)

Ask = Callable[[str, str], str]


@dataclass
class RegistryConfig:
    """A profile registry as stored in the user's settings."""

    name: str
    url: str = ""
    path: str | None = None
    filename: str | None = None
    ref: str | None = None
    priority: int | None = None
    prefix_all_profiles: bool = False
    prefix_duplicate_profiles: bool = False


@dataclass
class ProfileRegistrySettings:
    """Registry-related user settings; ``saver`` persists them."""

    registries: list[RegistryConfig] = field(default_factory=list)
    prefix_all_profiles: bool = False
    prefix_duplicate_profiles: bool = False
    required_keys: dict[str, str] = field(default_factory=dict)
    variables: dict[str, str] = field(default_factory=dict)
    saver: Callable[[ProfileRegistrySettings], None] | None = field(
        default=None, repr=False, compare=False
    )

    def save(self) -> None:
        if self.saver is not None:
            self.saver(self)


def _scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _template_values(raw: object) -> list[dict[str, list[dict[str, str]]]]:
    if not isinstance(raw, list):
        raise ValueError("templateValues must be a list")
    result = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError("each templateValues entry must be a mapping")
        fields: dict[str, list[dict[str, str]]] = {}
        for name, options in entry.items():
            if not isinstance(options, list) or not all(isinstance(o, dict) for o in options):
                raise ValueError(f"template value {name!r} must be a list of mappings")
            fields[str(name)] = [{str(k): _scalar(v) for k, v in o.items()} for o in options]
        result.append(fields)
    return result


def registry_location(config_folder: str | os.PathLike[str], config: RegistryConfig) -> str:
    """Return the folder the registry's repository is cloned into."""
    return os.path.join(config_folder, "registries", config.name)


def _ask_stdin(name: str, message: str) -> str:
    sys.stderr.write(f"? {message} ")
    sys.stderr.flush()
    answer = sys.stdin.readline()
    if not answer:
        raise EOFError(f"no input for {name}")
    return answer.strip()


@dataclass
class Registry:
    """A registry together with what its ``granted.yml`` declares."""

    config: RegistryConfig
    aws_config_paths: list[str] = field(default_factory=list)
    template_values: list[dict[str, list[dict[str, str]]]] = field(default_factory=list)

    def parse(self, config_folder: str | os.PathLike[str]) -> None:
        """Read the registry's ``granted.yml`` (or configured file name)."""
        location = Path(registry_location(config_folder, self.config))
        if self.config.path is not None:
            location = location / self.config.path
        location = location / (self.config.filename or DEFAULT_CONFIG_FILENAME)
        if self.config.filename is not None:
            location = location.parent / self.config.filename
        log.debug("verifying if valid config exists in %s", location)
        data = yaml.safe_load(location.read_text(encoding="utf-8"))
        if data is None:
            return
        if not isinstance(data, dict):
            raise ValueError(f"{location} does not hold a mapping")
        if "awsConfig" in data:
            paths = data["awsConfig"] or []
            if not isinstance(paths, list):
                raise ValueError("awsConfig must be a list")
            self.aws_config_paths = [_scalar(p) for p in paths]
        if "templateValues" in data:
            self.template_values = _template_values(data["templateValues"] or [])

    def prompt_required_keys(
        self,
        settings: ProfileRegistrySettings,
        passed_keys: Iterable[str] = (),
        should_fail_for_required_keys: bool = False,
        ask: Ask | None = None,
    ) -> None:
        """Make sure every required key has a value and record template variables.

        Keys given as ``key=value`` in ``passed_keys`` are used first, then the
        settings, and otherwise the user is asked through ``ask(name, message)``.
        """
        ask = ask or _ask_stdin
        passed_keys = list(passed_keys)
        from_flags: dict[str, str] = {}
        for fields in self.template_values:
            for field_name, values in fields.items():
                if is_required_key(values):
                    for item in passed_keys:
                        key, value = format_key(item)
                        from_flags[key] = value

                    if field_name in from_flags:
                        save_key(settings, field_name, from_flags[field_name])
                        break

                    if settings.required_keys.get(field_name):
                        log.debug("%s is already configured so skipping", field_name)
                        break

                    if should_fail_for_required_keys:
                        log.error(
                            "Error syncing registry '%s'. You need to enter value for "
                            "required key: '%s' before you can proceed.",
                            self.config.name,
                            field_name,
                        )
                        log.error("run 'granted registry sync' to enter value for the required key")
                        raise ValueError("sync failed")

                    prompt = ""
                    for option in values:
                        prompt = option.get("prompt", prompt)

                    log.info("Your Profile Registry requires you to input values for the following keys:")
                    message = f"'{field_name}': {prompt}"
                    answer = ""
                    while not answer:
                        answer = ask(field_name, message)
                    save_keys(settings, {field_name: answer})
                    break

                for option in values:
                    if "value" in option:
                        settings.variables[field_name] = option["value"]
                        settings.save()


def new_profile_registry(
    name: str,
    url: str = "",
    path: str = "",
    config_file_name: str = "",
    ref: str = "",
    priority: int = 0,
    prefix_all_profiles: bool = False,
    prefix_duplicate_profiles: bool = False,
) -> Registry:
    """Build a registry; empty optional values are left unset."""
    return Registry(
        config=RegistryConfig(
            name=name,
            url=url,
            path=path or None,
            filename=config_file_name or None,
            ref=ref or None,
            priority=priority or None,
            prefix_all_profiles=prefix_all_profiles,
            prefix_duplicate_profiles=prefix_duplicate_profiles,
        )
    )


def sort_registries(configs: Iterable[RegistryConfig]) -> list[Registry]:
    """Wrap registry configs, highest priority first; no priority counts as 0."""
    registries = [Registry(config=c) for c in configs]
    registries.sort(key=lambda r: r.config.priority or 0, reverse=True)
    return registries


def format_key(s: str) -> tuple[str, str]:
    """Split a ``key=value`` flag value."""
    parts = s.split("=")
    if len(parts) == 2:
        return parts[0], parts[1]
    raise ValueError(f"invalid value '{s}' provided for the required key")


def is_required_key(fields: Iterable[Mapping[str, str]]) -> bool:
    """Return True if any option marks the key as required."""
    return any(f.get("isRequired") == "true" for f in fields)


def save_keys(settings: ProfileRegistrySettings, answers: Mapping[str, object]) -> None:
    """Store prompted answers as required keys and save the settings."""
    for key, value in answers.items():
        settings.required_keys[key] = str(value)
    settings.save()


def save_key(settings: ProfileRegistrySettings, key: str, value: str) -> None:
    """Store one required key and save the settings."""
    settings.required_keys[key] = value
    settings.save()


_TEMPLATE_MARKER = re.compile(r"\{\{\s+(.\w+){1,2}\s+\}\}")
_ACTION = re.compile(r"\{\{(.*?)\}\}", re.S)
_FIELD_CHAIN = re.compile(r"(\.\w+)+")
_HTML_ESCAPES = {
    "\0": "\ufffd",
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "+": "&#43;",
    "<": "&lt;",
    ">": "&gt;",
}


def contains_template(text: str) -> bool:
    """Return True if ``text`` holds a ``{{ .Field }}`` style placeholder."""
    return _TEMPLATE_MARKER.search(text) is not None


def _escape(text: str) -> str:
    return "".join(_HTML_ESCAPES.get(c, c) for c in text)


def _render_map(mapping: Mapping[str, str]) -> str:
    return "map[" + " ".join(f"{k}:{mapping[k]}" for k in sorted(mapping)) + "]"


def _evaluate(expr: str, settings: ProfileRegistrySettings, profile_name: str) -> str:
    if not _FIELD_CHAIN.fullmatch(expr):
        raise ValueError(f"unsupported template action: {expr!r}")
    head, *rest = expr[1:].split(".")
    if head == "Profile":
        if rest:
            raise ValueError(f"can't evaluate field {rest[0]} in type string")
        return profile_name
    maps = {"Required": settings.required_keys, "Variables": settings.variables}
    if head not in maps:
        raise ValueError(f"can't evaluate field {head}")
    mapping = maps[head]
    if not rest:
        return _render_map(mapping)
    if len(rest) > 1:
        raise ValueError(f"can't evaluate field {rest[1]} in type string")
    return mapping.get(rest[0], "")


def interpolate_variables(
    settings: ProfileRegistrySettings, value: str, profile_name: str
) -> str:
    """Fill ``.Required``, ``.Variables`` and ``.Profile`` placeholders in ``value``.

    Substituted values are HTML-escaped.
    """
    pieces: list[str] = []
    position = 0
    trim_next = False
    for match in _ACTION.finditer(value):
        text = value[position : match.start()]
        if trim_next:
            text = text.lstrip()
        inner = match.group(1)
        if inner.startswith("-") and inner[1:2].isspace():
            text = text.rstrip()
            inner = inner[1:]
        trim_next = inner.endswith("-") and inner[-2:-1].isspace()
        if trim_next:
            inner = inner[:-1]
        if "{{" in text:
            raise ValueError("unclosed action")
        pieces.append(text)
        expr = inner.strip()
        if not (expr.startswith("/*") and expr.endswith("*/")):
            pieces.append(_escape(_evaluate(expr, settings, profile_name)))
        position = match.end()
    tail = value[position:]
    if trim_next:
        tail = tail.lstrip()
    if "{{" in tail:
        raise ValueError("unclosed action")
    pieces.append(tail)
    return "".join(pieces)


def autogenerated_template() -> str:
    """Return the comment placed above the first generated registry section."""
    return AUTO_GENERATED_MSG
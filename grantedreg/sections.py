"""Finding, removing and generating the registry sections of an AWS config file."""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from .awsini import DEFAULT_SECTION, IniFile, Section
from .registry import (
    ProfileRegistrySettings,
    Registry,
    autogenerated_template,
    contains_template,
    interpolate_variables,
)

log = logging.getLogger(__name__)

START_MARKER = "granted_registry_start"
END_MARKER = "granted_registry_end"

DUPLICATE_OPTION = "Add registry name as prefix to all duplicate profiles for this registry"
ABORT_OPTION = "Abort, I will manually fix this"
DUPLICATE_COMMENT = "# profile name has been prefixed due to duplication"

Ask = Callable[[str, str], str]

_NAMESPACE_PATTERN = re.compile(r"(.*profile\s+)(?P<name>[^\n\r]*)")


@dataclass
class SyncOptions:
    """How a registry sync behaves."""

    is_first_section: bool = False
    prompt_user_if_profile_duplication: bool = False
    should_silent_log: bool = False
    should_fail_for_required_keys: bool = False


def _between_markers(sections: Iterable[Section], start: str, end: str) -> list[Section]:
    result: list[Section] = []
    inside = False
    for section in sections:
        if section.name.startswith(start) and not inside:
            inside = True
            result.append(section)
            continue
        if section.name.startswith(end):
            inside = False
            result.append(section)
            continue
        if inside:
            result.append(section)
    return result


def _named_sections(config: IniFile) -> list[Section]:
    return [s for s in config.sections() if s.name != DEFAULT_SECTION]


def granted_generated_sections(config: IniFile) -> list[Section]:
    """Return every section inside a generated registry block, markers included."""
    return _between_markers(_named_sections(config), START_MARKER, END_MARKER)


def generated_sections_by_name(config: IniFile, name: str) -> list[Section]:
    """Return the sections of the generated block belonging to registry ``name``."""
    return _between_markers(
        _named_sections(config), f"{START_MARKER} {name}", f"{END_MARKER} {name}"
    )


def remove_autogenerated_profiles(config: IniFile, path: str) -> None:
    """Delete all generated registry sections and save the file to ``path``."""
    generated = granted_generated_sections(config)
    if len(generated) > 1:
        for section in generated:
            config.delete_section(section.name)
    config.save_to(path)


def non_granted_profiles(config: IniFile) -> list[Section]:
    """Return the sections that are not part of any generated registry block."""
    generated = {s.name for s in _between_markers(config.sections(), START_MARKER, END_MARKER)}
    return [s for s in _named_sections(config) if s.name not in generated]


def is_legal_profile_name(name: str) -> bool:
    """Return True if ``name`` can be used as an AWS profile name."""
    return bool(name) and not any(c.isspace() or c in "[]" for c in name)


def append_namespace_to_duplicate_sections(name: str, namespace: str) -> str:
    """Turn ``profile x`` into ``profile <namespace>.x``; other names are unchanged."""
    match = _NAMESPACE_PATTERN.search(name)
    if match is None:
        return name
    return f"profile {namespace}.{match.group('name')}"


def copy_section_content(
    registry: Registry,
    source: Section,
    dest: Section,
    settings: ProfileRegistrySettings,
) -> None:
    """Copy the keys of ``source`` into ``dest``, filling in template values."""
    profile_name = source.name.removeprefix("profile ")
    for key in source.key_names():
        value = source.value(key)
        if contains_template(value):
            value = interpolate_variables(settings, value, profile_name)
        dest.new_key(key, value)


def _ask_stdin(name: str, message: str) -> str:
    sys.stderr.write(f"? {message} ")
    sys.stderr.flush()
    answer = sys.stdin.readline()
    if not answer:
        raise EOFError(f"no input for {name}")
    return answer.strip()


def _choose(ask: Ask, message: str, options: Sequence[str]) -> str:
    listing = " ".join(f"[{i}] {option}" for i, option in enumerate(options, 1))
    prompt = f"{message} {listing}"
    while True:
        answer = ask("duplicate_profiles", prompt).strip()
        if answer in options:
            return answer
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]


def _copy_into(
    registry: Registry,
    config_file: IniFile,
    source: Section,
    name: str,
    settings: ProfileRegistrySettings,
) -> Section:
    dest = config_file.new_section(name)
    copy_section_content(registry, source, dest, settings)
    return dest


def generate_new_registry_section(
    registry: Registry,
    config_file: IniFile,
    cloned_file: IniFile,
    settings: ProfileRegistrySettings,
    opts: SyncOptions,
    ask: Ask | None = None,
) -> None:
    """Add a generated block for ``registry`` holding the sections of ``cloned_file``.

    Profiles whose names already exist are prefixed with the registry name;
    the user may be asked first, and can abort, which raises ValueError.
    """
    ask = ask or _ask_stdin
    namespace = registry.config.name
    log.debug("generating section %s", namespace)

    start = config_file.new_section(f"{START_MARKER} {namespace}")
    if opts.is_first_section:
        config_file.section(start.name).comment = autogenerated_template()

    current_profiles = config_file.section_names()

    for section in cloned_file.sections():
        if section.name == DEFAULT_SECTION:
            continue

        if "profile" not in section.name:
            dest = _copy_into(registry, config_file, section, section.name, settings)
            dest.comment = section.comment
            continue

        if not is_legal_profile_name(section.name.removeprefix("profile ")):
            continue

        prefixed = append_namespace_to_duplicate_sections(section.name, namespace)

        if settings.prefix_all_profiles or registry.config.prefix_all_profiles:
            _copy_into(registry, config_file, section, prefixed, settings)
            continue

        if section.name in current_profiles:
            if not settings.prefix_duplicate_profiles and not registry.config.prefix_duplicate_profiles:
                log.warning("profile duplication found for '%s'", section.name)
                if opts.prompt_user_if_profile_duplication:
                    selected = _choose(
                        ask,
                        "Please select which option would you like to choose to resolve: ",
                        [DUPLICATE_OPTION, ABORT_OPTION],
                    )
                    if selected == ABORT_OPTION:
                        raise ValueError(f"aborting sync for registry {namespace}")

                registry.config.prefix_duplicate_profiles = True
                for configured in settings.registries:
                    if configured.name == registry.config.name:
                        configured.prefix_duplicate_profiles = True
                        settings.save()

            log.debug("Prefixing %s to avoid collision.", section.name)
            dest = _copy_into(registry, config_file, section, prefixed, settings)
            if not dest.comment:
                dest.comment = DUPLICATE_COMMENT
            else:
                dest.comment = DUPLICATE_COMMENT + ". \n" + section.comment
            continue

        dest = _copy_into(registry, config_file, section, section.name, settings)
        dest.comment = section.comment

    config_file.new_section(f"{END_MARKER} {namespace}")
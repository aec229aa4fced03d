"""Syncing profile registries into the AWS config file."""

from __future__ import annotations

import logging
import os

import yaml

from .awsini import IniFile, default_aws_config_location
from .git import GitError, git_clone, git_pull
from .registry import ProfileRegistrySettings, Registry, registry_location, sort_registries
from .sections import (
    Ask,
    SyncOptions,
    generate_new_registry_section,
    remove_autogenerated_profiles,
)

log = logging.getLogger(__name__)


class SyncError(Exception):
    """Syncing one registry failed; other registries may still be synced."""

    def __init__(self, registry_name: str, err: BaseException) -> None:
        self.registry_name = registry_name
        self.err = err
        super().__init__(f"Failed to sync for registry {registry_name} with error: {err}")


def load_cloned_configs(registry: Registry, config_folder: str) -> IniFile:
    """Merge every AWS config file the registry declares into one INI file."""
    cloned = IniFile()
    repo_dir = registry_location(config_folder, registry.config)
    for config_path in registry.aws_config_paths:
        if registry.config.path is not None:
            full = os.path.join(repo_dir, registry.config.path, config_path)
        else:
            full = os.path.join(repo_dir, config_path)
        log.debug("loading aws config file from %s", full)
        cloned.append_file(os.path.normpath(full))
    return cloned


def sync_registry(
    registry: Registry,
    aws_config: IniFile,
    settings: ProfileRegistrySettings,
    opts: SyncOptions,
    config_folder: str,
    ask: Ask | None = None,
) -> None:
    """Add the registry's profiles to ``aws_config`` as a generated block."""
    log.debug("syncing %s", registry.config.name)
    cloned = load_cloned_configs(registry, config_folder)
    try:
        generate_new_registry_section(registry, aws_config, cloned, settings, opts, ask)
    except Exception as exc:
        raise SyncError(registry.config.name, exc) from exc
    log.info("Successfully synced registry %s", registry.config.name)


def run_sync(
    registry: Registry,
    aws_config: IniFile,
    aws_config_path: str,
    settings: ProfileRegistrySettings,
    opts: SyncOptions,
    config_folder: str,
    ask: Ask | None = None,
) -> None:
    """Update the registry's repository, sync it and save the AWS config file."""
    repo_dir = registry_location(config_folder, registry.config)
    try:
        if not os.path.exists(repo_dir):
            git_clone(registry.config.url, repo_dir)
        else:
            git_pull(repo_dir, opts.should_silent_log)
    except GitError as exc:
        raise SyncError(registry.config.name, exc) from exc

    try:
        registry.parse(config_folder)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise SyncError(registry.config.name, exc) from exc

    registry.prompt_required_keys(settings, [], opts.should_fail_for_required_keys, ask)
    sync_registry(registry, aws_config, settings, opts, config_folder, ask)
    aws_config.save_to(aws_config_path)


def sync_profile_registries(
    settings: ProfileRegistrySettings,
    config_folder: str,
    aws_config_path: str | None = None,
    should_silent_log: bool = False,
    prompt_user_if_profile_duplication: bool = False,
    should_fail_for_required_keys: bool = False,
    ask: Ask | None = None,
) -> None:
    """Regenerate the AWS config file from every configured registry.

    Registries are synced highest priority first; a registry that fails
    with SyncError is skipped with a warning.
    """
    registries = sort_registries(settings.registries)
    if not registries:
        log.warning(
            "granted registry not configured. Try adding a git repository with "
            "'granted registry add <your-repository-url>'"
        )

    path = aws_config_path or default_aws_config_location()
    aws_config = IniFile(allow_non_unique_sections=True, skip_unrecognizable_lines=True)
    aws_config.append_file(path)

    remove_autogenerated_profiles(aws_config, path)

    for index, registry in enumerate(registries):
        opts = SyncOptions(
            is_first_section=index == 0,
            prompt_user_if_profile_duplication=prompt_user_if_profile_duplication,
            should_silent_log=should_silent_log,
            should_fail_for_required_keys=should_fail_for_required_keys,
        )
        try:
            run_sync(registry, aws_config, path, settings, opts, config_folder, ask)
        except SyncError as exc:
            log.warning("Sync failed for registry %s", registry.config.name)
            log.debug("%s", exc)
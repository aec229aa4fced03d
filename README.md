# grantedreg

Keep a team's shared AWS profiles in a git repository (a *profile registry*)
and merge them into your local `~/.aws/config`.

A registry is a git repository with a `granted.yml` file in it. That file
lists the AWS config files to merge (`awsConfig`) and can declare template
values (`templateValues`). Each section of those files is copied into your AWS
config between a `[granted_registry_start <name>]` marker and a
`[granted_registry_end <name>]` marker. On the next sync, everything between
the markers is removed and written again. Your own profiles outside the
markers stay as they are.

## Install

```
pip install grantedreg
```

You need Python 3.10 or later. To clone and pull registries, `git` must be on
your `PATH`.

## Modules

- `grantedreg.awsini` is an ordered INI model that keeps section comments and
  repeated sections. It provides `IniFile`, `Section`, `load_ini`,
  `load_ini_file`, `default_aws_config_location` and `load_aws_config_file`.
- `grantedreg.registry` holds the registry settings (`RegistryConfig`,
  `ProfileRegistrySettings`), `Registry` with its `granted.yml` parser
  (`Registry.parse`), and required-key prompting
  (`Registry.prompt_required_keys`). It also provides `new_profile_registry`,
  `sort_registries`, `contains_template` and `interpolate_variables`.
- `grantedreg.sections` finds, removes and generates the marked sections. It
  provides `granted_generated_sections`, `generated_sections_by_name`,
  `non_granted_profiles`, `remove_autogenerated_profiles`,
  `generate_new_registry_section` and `SyncOptions`.
- `grantedreg.git` has small wrappers for `git clone`, `git pull`, `git init`
  and `git checkout`. Each one raises `GitError` when git fails.
- `grantedreg.sync` syncs the registries: `sync_profile_registries`,
  `run_sync`, `sync_registry`, `load_cloned_configs` and `SyncError`.
- `grantedreg.shells` has `append_line` and `remove_line` for shell start-up
  files, and `get_fish_config_file`, `get_bash_config_file` and
  `get_zsh_config_file`.
- `grantedreg.launcher` builds browser command lines with `ChromeProfile` and
  `Firefox`.
- `grantedreg.flags` parses flags given before or after a positional argument.
  It provides `parse_flags`, `Flag`, `FlagKind`, `Flags` and
  `should_show_help`.

## Example

List the profiles you maintain yourself and the ones that were generated:

```python
from grantedreg.awsini import load_ini
from grantedreg.sections import granted_generated_sections, non_granted_profiles

with open("config") as handle:
    config = load_ini(handle.read(), allow_non_unique_sections=True)
print([s.name for s in non_granted_profiles(config)])
print([s.name for s in granted_generated_sections(config)])
```

Sync every registry into `~/.aws/config`:

```python
from pathlib import Path
from grantedreg.registry import ProfileRegistrySettings, RegistryConfig
from grantedreg.sync import sync_profile_registries

settings = ProfileRegistrySettings(
    registries=[RegistryConfig(name="team", url="git@example.com:team/registry.git")],
)
sync_profile_registries(
    settings,
    str(Path.home() / ".granted"),
    prompt_user_if_profile_duplication=True,
)
```

How a sync behaves:

- Each registry is cloned into `<config_folder>/registries/<name>`, or pulled
  if it is already there.
- Registries are synced from the highest `priority` to the lowest. A registry
  with no priority counts as 0.
- The AWS config file must already exist.
- If a registry fails with `SyncError`, it is logged and skipped, and the other
  registries still sync.

When a profile from a registry clashes with a name already in the file, it is
written as `profile <registry>.<name>`. The same renaming applies to every
profile of a registry when `prefix_all_profiles` is set, either in the
settings or on the registry.

If the user is to be asked about duplicates or required keys, the answers come
from the `ask(name, message)` callable. When no callable is given, they are
read from standard input.

Values that hold `{{ .Required.<key> }}`, `{{ .Variables.<key> }}` or
`{{ .Profile }}` are filled in from the settings, and the substituted text is
HTML-escaped.

## What this package does not do

- There is no command-line program. Everything is called from Python.
- `ProfileRegistrySettings` does not read or write a settings file itself. To
  persist changes, pass a `saver` callable, which `ProfileRegistrySettings.save`
  calls.
- Nothing is stored in a keyring, and no cloud credentials are fetched.

## Tests

```
pip install -e ".[test]"
pytest
```
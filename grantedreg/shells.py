"""Locating shell start-up files and adding or removing lines in them."""

from __future__ import annotations

import os
from pathlib import Path


class LineAlreadyExistsError(Exception):
    """The line is already present in the file."""

    def __init__(self, file: str | os.PathLike[str]) -> None:
        self.file = str(file)
        super().__init__(f"the line has already been added to {self.file}")


class LineNotFoundError(Exception):
    """The line could not be found in the file."""

    def __init__(self, file: str | os.PathLike[str]) -> None:
        self.file = str(file)
        super().__init__(f"the line was not found in file {self.file}")


def _read(file: str | os.PathLike[str]) -> str:
    with open(file, encoding="utf-8", newline="") as handle:
        return handle.read()


def append_line(file: str | os.PathLike[str], line: str) -> None:
    """Append ``line`` to an existing file, surrounded by newlines.

    Raises LineAlreadyExistsError if the file already contains the line.
    """
    if line in _read(file):
        raise LineAlreadyExistsError(file)
    with open(file, "a", encoding="utf-8", newline="") as out:
        out.write(f"\n{line}\n")


def remove_line(file: str | os.PathLike[str], line: str) -> None:
    """Remove every line containing ``line``, plus blank lines directly after it.

    Raises LineNotFoundError if no line matched.
    """
    kept: list[str] = []
    found = False
    last_removed = -1
    for index, current in enumerate(_read(file).split("\n")):
        remove = line in current
        # Drop the blank line that append_line adds after the line, so the file
        # does not grow every time a line is added and removed again.
        if found and index == last_removed + 1 and current == "":
            remove = True
        if remove:
            found = True
            last_removed = index
        else:
            kept.append(current)

    if not found:
        raise LineNotFoundError(file)

    with open(file, "w", encoding="utf-8", newline="") as out:
        out.write("\n".join(kept))


def _ensure_exists(path: Path) -> str:
    if not path.exists():
        path.touch()
    return str(path)


def get_fish_config_file() -> str:
    """Return the fish config file path, creating the file if missing."""
    return _ensure_exists(Path.home() / ".config" / "fish" / "config.fish")


_BASH_LOGIN_FILES = (".bash_profile", ".bash_login", ".profile", ".bashrc")


def get_bash_config_file() -> str:
    """Return the first existing bash login file, or create ``.bash_profile``."""
    home = Path.home()
    for name in _BASH_LOGIN_FILES:
        candidate = home / name
        if candidate.exists():
            return str(candidate)
    return _ensure_exists(home / ".bash_profile")


def get_zsh_config_file() -> str:
    """Return ``.zshenv`` in ``$ZDOTDIR`` (or the home folder), creating it if missing."""
    directory = os.environ.get("ZDOTDIR") or str(Path.home())
    return _ensure_exists(Path(directory) / ".zshenv")
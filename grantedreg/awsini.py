"""A small INI model with the behaviour the AWS config sync relies on."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SECTION = "DEFAULT"

_DELIMITERS = "=:"
_COMMENT_CHARS = "#;"


class IniParseError(ValueError):
    """The INI text could not be parsed."""


@dataclass
class Section:
    """One ``[name]`` section with its ordered keys and leading comment."""

    name: str
    comment: str = ""
    keys: dict[str, str] = field(default_factory=dict)
    key_comments: dict[str, str] = field(default_factory=dict)

    def new_key(self, key: str, value: str) -> None:
        """Set ``key`` to ``value``, keeping the key's position if it exists."""
        if not key:
            raise ValueError("key name cannot be empty")
        self.keys[key] = value

    def key_names(self) -> list[str]:
        return list(self.keys)

    def value(self, key: str) -> str:
        """Return the value of ``key``, or an empty string if it is missing."""
        return self.keys.get(key, "")


def _strip_inline_comment(text: str) -> str:
    cut = min((i for i in (text.find(c) for c in _COMMENT_CHARS) if i >= 0), default=-1)
    return text[:cut] if cut >= 0 else text


def _has_surrounding_quote(text: str, quote: str) -> bool:
    return len(text) >= 2 and text[0] == quote and text[-1] == quote and quote not in text[1:-1]


def _clean_value(raw: str) -> str:
    text = raw.strip()
    if not text:
        return ""
    if text[0] in "`\"":
        closing = text.find(text[0], 1)
        if closing > 0:
            return text[1:closing]
    text = _strip_inline_comment(text).strip()
    if _has_surrounding_quote(text, "'") or _has_surrounding_quote(text, '"'):
        text = text[1:-1]
    return text


def _format_value(value: str) -> str:
    if any(c in value for c in _COMMENT_CHARS) or value != value.strip():
        return f"`{value}`"
    return value


def _comment_lines(comment: str) -> list[str]:
    lines = []
    for line in comment.split("\n"):
        line = line.strip()
        if not line:
            continue
        lines.append(line if line[0] in _COMMENT_CHARS else f"; {line}")
    return lines


class IniFile:
    """An ordered collection of sections; the default section always comes first."""

    def __init__(
        self,
        allow_non_unique_sections: bool = False,
        skip_unrecognizable_lines: bool = False,
    ) -> None:
        self.allow_non_unique_sections = allow_non_unique_sections
        self.skip_unrecognizable_lines = skip_unrecognizable_lines
        self._sections: list[Section] = [Section(DEFAULT_SECTION)]

    def _find(self, name: str) -> Section | None:
        return next((s for s in self._sections if s.name == name), None)

    def sections(self) -> list[Section]:
        return list(self._sections)

    def section(self, name: str) -> Section:
        """Return the first section called ``name``, creating it if missing."""
        name = name or DEFAULT_SECTION
        existing = self._find(name)
        return existing if existing is not None else self.new_section(name)

    def new_section(self, name: str) -> Section:
        """Add a section; without non-unique sections an existing one is returned."""
        if not name:
            raise ValueError("empty section name")
        if name == DEFAULT_SECTION or not self.allow_non_unique_sections:
            existing = self._find(name)
            if existing is not None:
                return existing
        created = Section(name)
        self._sections.append(created)
        return created

    def delete_section(self, name: str) -> None:
        """Remove every section called ``name``."""
        name = name or DEFAULT_SECTION
        self._sections = [s for s in self._sections if s.name != name]
        if name == DEFAULT_SECTION:
            self._sections.insert(0, Section(DEFAULT_SECTION))

    def section_names(self) -> list[str]:
        return [s.name for s in self._sections]

    def _read(self, text: str) -> None:
        current = self.section(DEFAULT_SECTION)
        pending: list[str] = []
        for raw in text.splitlines():
            line = raw.strip()
            if not line:
                continue
            if line[0] in _COMMENT_CHARS:
                pending.append(line)
                continue
            if line[0] == "[":
                close = line.rfind("]")
                if close <= 0:
                    raise IniParseError(f"unclosed section: {raw}")
                current = self.new_section(line[1:close].strip() or DEFAULT_SECTION)
                if pending:
                    current.comment = "\n".join(pending)
                pending = []
                continue
            positions = [i for i in (line.find(d) for d in _DELIMITERS) if i >= 0]
            if not positions:
                if self.skip_unrecognizable_lines:
                    continue
                raise IniParseError(f"key-value delimiter not found: {raw}")
            split = min(positions)
            key = line[:split].strip()
            if not key:
                raise IniParseError(f"empty key name: {raw}")
            current.keys[key] = _clean_value(line[split + 1 :])
            if pending:
                current.key_comments[key] = "\n".join(pending)
                pending = []

    def append_file(self, path: str | os.PathLike[str]) -> None:
        """Parse another file into this one, merging by this file's rules."""
        self._read(Path(path).read_text(encoding="utf-8"))

    def dumps(self) -> str:
        blocks = []
        for sec in self._sections:
            lines: list[str] = []
            if sec.name == DEFAULT_SECTION:
                if not sec.keys:
                    continue
            else:
                lines.extend(_comment_lines(sec.comment))
                lines.append(f"[{sec.name}]")
            for key, value in sec.keys.items():
                lines.extend(_comment_lines(sec.key_comments.get(key, "")))
                lines.append(f"{key} = {_format_value(value)}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n" if blocks else ""

    def save_to(self, path: str | os.PathLike[str]) -> None:
        Path(path).write_text(self.dumps(), encoding="utf-8")


def load_ini(text: str, allow_non_unique_sections: bool = False) -> IniFile:
    """Parse INI text; unrecognizable lines raise IniParseError."""
    result = IniFile(allow_non_unique_sections=allow_non_unique_sections)
    result._read(text)
    return result


def load_ini_file(path: str | os.PathLike[str], allow_non_unique_sections: bool = False) -> IniFile:
    """Parse an INI file; unrecognizable lines raise IniParseError."""
    result = IniFile(allow_non_unique_sections=allow_non_unique_sections)
    result.append_file(path)
    return result


def default_aws_config_location() -> str:
    """Return the path of ``~/.aws/config``."""
    return str(Path.home() / ".aws" / "config")


def load_aws_config_file() -> tuple[IniFile, str]:
    """Load ``~/.aws/config``, keeping repeated sections and skipping odd lines."""
    path = default_aws_config_location()
    result = IniFile(allow_non_unique_sections=True, skip_unrecognizable_lines=True)
    result.append_file(path)
    return result, path
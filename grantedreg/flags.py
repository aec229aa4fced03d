"""Flag parsing that accepts flags on either side of a positional argument."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}


class FlagKind(enum.Enum):
    BOOL = "bool"
    STRING = "string"
    INT = "int"
    INT64 = "int64"
    STRING_SLICE = "string_slice"


@dataclass(frozen=True)
class Flag:
    """A command-line flag definition with optional aliases."""

    name: str
    kind: FlagKind
    aliases: tuple[str, ...] = ()
    default: object = None

    def names(self) -> list[str]:
        return [n.strip() for n in (self.name, *self.aliases)]


def _parse_bool(text: str) -> bool:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid syntax: {text!r}")


def _parse_int(text: str) -> int:
    if not text or text != text.strip():
        raise ValueError(f"invalid syntax: {text!r}")
    sign = 1
    body = text
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    lowered = body.lower()
    if lowered.startswith("0x"):
        base, digits = 16, body[2:]
    elif lowered.startswith("0o"):
        base, digits = 8, body[2:]
    elif lowered.startswith("0b"):
        base, digits = 2, body[2:]
    elif len(body) > 1 and body.startswith("0"):
        base, digits = 8, body[1:]
    else:
        base, digits = 10, body
    if not digits or not digits[0].isalnum():
        raise ValueError(f"invalid syntax: {text!r}")
    value = sign * int(digits, base)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"value out of range: {text!r}")
    return value


class _SliceValue:
    """A list shared by every name of a string-slice flag."""

    def __init__(self, defaults: Iterable[str]) -> None:
        self.items = list(defaults)
        self._touched = False

    def set(self, text: str) -> None:
        if not self._touched:
            self.items = []
            self._touched = True
        self.items.extend(part.strip() for part in text.split(","))

    def __str__(self) -> str:
        return "[" + " ".join(self.items) + "]"


def _as_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _initial_value(flag: Flag) -> object:
    if flag.kind is FlagKind.BOOL:
        return bool(flag.default) if flag.default is not None else False
    if flag.kind is FlagKind.STRING:
        return "" if flag.default is None else str(flag.default)
    if flag.kind in (FlagKind.INT, FlagKind.INT64):
        return 0 if flag.default is None else int(flag.default)
    return _SliceValue(flag.default or ())


def _convert(flag: Flag, text: str) -> object:
    if flag.kind is FlagKind.BOOL:
        return _parse_bool(text)
    if flag.kind in (FlagKind.INT, FlagKind.INT64):
        return _parse_int(text)
    return text


@dataclass
class Flags:
    """The result of parsing: values per flag name and leftover arguments."""

    name: str
    flags: list[Flag]
    values: dict[str, object]
    args: list[str] = field(default_factory=list)

    def _names_for(self, name: str) -> list[str]:
        for flag in self.flags:
            names = flag.names()
            if name in names:
                return names
        return []

    def _values_for(self, name: str):
        for n in self._names_for(name):
            if n in self.values:
                yield self.values[n]

    def string(self, name: str) -> str:
        """Return the first non-empty value among the flag's names."""
        for value in self._values_for(name):
            text = _as_text(value)
            if text:
                return text
        return ""

    def string_slice(self, name: str) -> list[str] | None:
        """Return the values of a string-slice flag, or None for an unknown name."""
        for value in self._values_for(name):
            if not isinstance(value, _SliceValue):
                raise TypeError(f"flag {name!r} is not a string slice")
            return list(value.items)
        return None

    def bool(self, name: str) -> bool:
        """Return True if any of the flag's names was set to true."""
        for value in self._values_for(name):
            try:
                if _parse_bool(_as_text(value)):
                    return True
            except ValueError:
                continue
        return False

    def int(self, name: str) -> int:
        """Return the first non-zero integer among the flag's names, else 0."""
        for value in self._values_for(name):
            try:
                parsed = _parse_int(_as_text(value))
            except ValueError:
                continue
            if parsed:
                return parsed
        return 0

    def int64(self, name: str) -> int:
        """Same as ``int``; values are limited to the signed 64-bit range."""
        return self.int(name)


def _parse(args: list[str], by_name: dict[str, Flag], values: dict[str, object]) -> list[str]:
    remaining = list(args)
    while remaining:
        arg = remaining[0]
        if len(arg) < 2 or arg[0] != "-":
            break
        dashes = 1
        if arg[1] == "-":
            dashes = 2
            if len(arg) == 2:
                remaining.pop(0)
                break
        flag_name = arg[dashes:]
        if not flag_name or flag_name[0] in "-=":
            raise ValueError(f"bad flag syntax: {arg}")
        remaining.pop(0)

        value: str | None = None
        if "=" in flag_name[1:]:
            flag_name, value = flag_name.split("=", 1)

        flag = by_name.get(flag_name)
        if flag is None:
            if flag_name in ("help", "h"):
                raise ValueError("flag: help requested")
            raise ValueError(f"flag provided but not defined: -{flag_name}")

        if flag.kind is FlagKind.BOOL:
            text = "true" if value is None else value
            try:
                values[flag_name] = _parse_bool(text)
            except ValueError as exc:
                raise ValueError(f"invalid boolean value {text!r} for -{flag_name}: {exc}") from exc
            continue

        if value is None:
            if not remaining:
                raise ValueError(f"flag needs an argument: -{flag_name}")
            value = remaining.pop(0)
        try:
            if flag.kind is FlagKind.STRING_SLICE:
                slice_value = values[flag_name]
                assert isinstance(slice_value, _SliceValue)
                slice_value.set(value)
            else:
                values[flag_name] = _convert(flag, value)
        except ValueError as exc:
            raise ValueError(f"invalid value {value!r} for flag -{flag_name}: {exc}") from exc
    return remaining


def parse_flags(
    name: str,
    flags: Sequence[Flag],
    argv: Sequence[str],
    command_args: Sequence[str],
) -> Flags:
    """Parse flags given before and after the first positional argument.

    ``argv`` is the full command line including the program name;
    ``command_args`` are the positional arguments the command received,
    starting with the positional argument itself.
    """
    if len(command_args) > len(argv) - 1:
        raise ValueError("command arguments are longer than the command line")

    by_name: dict[str, Flag] = {}
    values: dict[str, object] = {}
    for flag in flags:
        shared = _initial_value(flag) if flag.kind is FlagKind.STRING_SLICE else None
        for flag_name in flag.names():
            if flag_name in by_name:
                raise ValueError(f"{name} flag redefined: {flag_name}")
            by_name[flag_name] = flag
            values[flag_name] = shared if shared is not None else _initial_value(flag)

    before = list(argv[1 : len(argv) - len(command_args)])
    after = list(command_args[1:]) if len(command_args) > 1 else []
    leftover = _parse(before + after, by_name, values)
    return Flags(name=name, flags=list(flags), values=values, args=leftover)


def should_show_help(args: Iterable[str]) -> bool:
    """Return True if any argument asks for help."""
    return any(arg in ("-h", "--help", "help") for arg in args)
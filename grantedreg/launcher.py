"""Browser launch commands for opening console URLs."""

from __future__ import annotations

from dataclasses import dataclass

_FNV32_OFFSET = 2166136261
_FNV32_PRIME = 16777619


def chrome_profile_name(profile: str) -> str:
    """Return the 32-bit FNV-1a hash of ``profile`` as a decimal string."""
    value = _FNV32_OFFSET
    for byte in profile.encode("utf-8"):
        value ^= byte
        value = (value * _FNV32_PRIME) & 0xFFFFFFFF
    return str(value)


@dataclass(frozen=True)
class ChromeProfile:
    """A Chromium-based browser with one user-data profile per cloud profile."""

    executable_path: str
    user_data_path: str

    def launch_command(self, url: str, profile: str) -> list[str]:
        return [
            self.executable_path,
            "--user-data-dir=" + self.user_data_path,
            "--profile-directory=" + chrome_profile_name(profile),
            "--no-first-run",
            "--no-default-browser-check",
            url,
        ]


@dataclass(frozen=True)
class Firefox:
    """Firefox, opening the URL in a new tab."""

    executable_path: str

    def launch_command(self, url: str, profile: str) -> list[str]:
        return [self.executable_path, "--new-tab", url]
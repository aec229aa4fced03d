"""Running git to clone, update and initialise registry repositories."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterator, Sequence
from contextlib import closing

log = logging.getLogger(__name__)


class GitError(Exception):
    """A git command could not be run or reported an error."""


def _stderr_lines(args: Sequence[str]) -> Iterator[str]:
    try:
        proc = subprocess.Popen(
            list(args), stdout=subprocess.DEVNULL, stderr=subprocess.PIPE, text=True
        )
    except OSError as exc:
        raise GitError(f"unable to run {args[0]}: {exc}") from exc
    finished = False
    try:
        for raw in proc.stderr:
            yield raw.rstrip("\r\n")
        finished = True
    finally:
        if not finished and proc.poll() is None:
            proc.kill()
        proc.wait()
        proc.stderr.close()


def _run(args: Sequence[str], cwd: str | None = None) -> None:
    try:
        completed = subprocess.run(list(args), cwd=cwd, capture_output=True, text=True)
    except OSError as exc:
        raise GitError(f"unable to run {args[0]}: {exc}") from exc
    if completed.returncode != 0:
        detail = (completed.stderr or "").strip()
        raise GitError(
            f"{' '.join(args)} exited with status {completed.returncode}: {detail}".rstrip(": ")
        )


def git_pull(repo_dir: str, silent: bool = False) -> None:
    """Pull the latest changes; raises GitError if git reports an error."""
    log.debug("git -C %s pull origin HEAD", repo_dir)
    with closing(_stderr_lines(["git", "-C", repo_dir, "pull", "origin", "HEAD"])) as lines:
        for line in lines:
            if "error" in line or "fatal" in line:
                raise GitError(line)
            if silent:
                log.debug("%s", line)
            else:
                log.info("%s", line)
    log.debug("Successfully pulled the repo")


def git_init(repo_dir: str) -> None:
    """Create an empty repository in ``repo_dir``."""
    log.debug("git init %s", repo_dir)
    _run(["git", "init", repo_dir])


def git_clone(repo_url: str, repo_dir: str) -> None:
    """Clone ``repo_url`` into ``repo_dir``; raises GitError if git reports an error."""
    log.debug("git clone %s", repo_url)
    with closing(_stderr_lines(["git", "clone", repo_url, repo_dir])) as lines:
        for line in lines:
            lowered = line.lower()
            if "error" in lowered or "fatal" in lowered:
                raise GitError(line)
            log.info("%s", line)
    log.debug("Successfully cloned %s", repo_url)


def checkout_ref(ref: str, repo_dir: str) -> None:
    """Check out a commit, tag or branch inside ``repo_dir``."""
    _run(["git", "checkout", ref], cwd=repo_dir)
    log.debug("Successfully checked out %s", ref)
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from .errors import SourceReadFailure


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired as e:
        raise SourceReadFailure(f"git {' '.join(args)} timed out after {timeout_s}s") from e
    except OSError as e:
        raise SourceReadFailure(f"git could not be started: {e}") from e
    return proc.returncode, proc.stdout, proc.stderr


def get_repo_toplevel(candidate: Path) -> Optional[Path]:
    code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    if code != 0:
        return None
    try:
        return Path(out.strip()).resolve()
    except Exception:
        return None


def get_head_sha(repo: Path) -> Optional[str]:
    code, out, _ = run_git(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], cwd=repo)
    if code != 0:
        return None
    sha = out.strip()
    return sha or None


def open_repo(path: Path) -> Path:
    """Return the top-level directory of the repository at `path`, which must have a HEAD commit."""
    if not path.is_dir():
        raise SourceReadFailure(f"repository path does not exist or is not a directory: {path}")
    top = get_repo_toplevel(path)
    if top is None:
        raise SourceReadFailure(f"not a git repository: {path}")
    if get_head_sha(top) is None:
        raise SourceReadFailure(f"repository has no commits (HEAD is unborn): {top}")
    return top

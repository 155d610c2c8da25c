from __future__ import annotations

import datetime as dt
import subprocess
import threading
from collections.abc import Iterator
from pathlib import Path

from .errors import SourceReadFailure
from .models import CommitRecord

LOG_FORMAT = "%H\t%an\t%aI"


def parse_author_iso(value: str) -> dt.datetime:
    s = (value or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    d = dt.datetime.fromisoformat(s)
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def parse_log_line(line: str) -> CommitRecord:
    parts = line.split("\t", 2)
    if len(parts) != 3 or not parts[0]:
        raise ValueError(f"unexpected git log line: {line!r}")
    sha, name, iso = parts
    return CommitRecord(sha=sha, author_name=name, author_when=parse_author_iso(iso))


def build_log_command(
    *,
    rev: str = "HEAD",
    since: dt.datetime | None = None,
    include_merges: bool = True,
) -> list[str]:
    cmd = ["git", "log", rev, f"--pretty=format:{LOG_FORMAT}"]
    if not include_merges:
        cmd.insert(2, "--no-merges")
    # Coarse pre-filter on committer date; author dates are filtered again during aggregation.
    if since is not None:
        cmd.append(f"--since={since.isoformat()}")
    return cmd


def iter_commits(
    repo: Path,
    *,
    rev: str = "HEAD",
    since: dt.datetime | None = None,
    include_merges: bool = True,
) -> Iterator[CommitRecord]:
    """Stream commits of `repo` from `git log`, newest first, one record at a time.

    Raises SourceReadFailure if git cannot be started, prints a malformed line, or exits
    non-zero. The failure surfaces at the point of iteration where it is detected, so a
    consumer may already have seen some records.
    """
    cmd = build_log_command(rev=rev, since=since, include_merges=include_merges)
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(repo),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise SourceReadFailure(f"failed to start git log: {e}") from e

    stderr_chunks: list[str] = []
    stderr_chars = 0
    max_stderr_chars = 50_000

    def drain_stderr() -> None:
        nonlocal stderr_chars
        if proc.stderr is None:
            return
        while True:
            chunk = proc.stderr.read(8192)
            if not chunk:
                return
            if stderr_chars >= max_stderr_chars:
                continue
            take = chunk[: max_stderr_chars - stderr_chars]
            stderr_chunks.append(take)
            stderr_chars += len(take)

    stderr_thread: threading.Thread | None = None
    if proc.stderr is not None:
        stderr_thread = threading.Thread(target=drain_stderr, daemon=True)
        stderr_thread.start()

    finished = False
    try:
        assert proc.stdout is not None
        for raw_line in proc.stdout:
            line = raw_line.rstrip("\n")
            if not line:
                continue
            try:
                record = parse_log_line(line)
            except ValueError as e:
                raise SourceReadFailure(f"could not parse git log output: {e}") from e
            yield record

        code = proc.wait()
        if stderr_thread is not None:
            stderr_thread.join()
        finished = True
        if code != 0:
            stderr = "".join(stderr_chunks)
            raise SourceReadFailure(f"git log exited {code}: {stderr.strip()[:500]}")
    finally:
        if not finished and proc.poll() is None:
            proc.kill()
            proc.wait()
        if proc.stdout is not None:
            proc.stdout.close()

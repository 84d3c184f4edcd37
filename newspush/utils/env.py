"""Read `NEWSPUSH_*` overrides from a local `.env` file."""

from __future__ import annotations

import os
from collections.abc import Iterable, MutableMapping
from pathlib import Path

_QUOTES = ("'", '"')


def default_env_path() -> Path:
  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
    return value[1:-1]
  return value


def parse_env_lines(lines: Iterable[str]) -> dict[str, str]:
  """Parse `KEY=value` lines; comments, blanks and malformed lines are skipped.

  An `export ` prefix is accepted so the same file can be sourced by a shell.
  Later assignments of a key win over earlier ones.
  """
  parsed: dict[str, str] = {}
  for raw in lines:
    line = raw.strip()
    if line.startswith("export "):
      line = line.removeprefix("export ").lstrip()

    key, sep, value = line.partition("=")
    key = key.strip()
    if line.startswith("#") or not sep or not key:
      continue

    parsed[key] = _unquote(value.strip())

  return parsed


def load_env_file(path: Path, *, override: bool = False, environ: MutableMapping[str, str] | None = None) -> dict[str, str]:
  """Apply a `.env` file to the environment and return what was set.

  Variables already present win unless `override` is true. A missing file is not an error.
  """
  target = os.environ if environ is None else environ
  if not path.is_file():
    return {}

  applied = {key: value for key, value in parse_env_lines(path.read_text(encoding="utf-8").splitlines()).items() if override or key not in target}
  target.update(applied)
  return applied

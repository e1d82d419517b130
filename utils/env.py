"""Environment helpers: a small .env loader plus typed getters.

Usage:
    from utils.env import load_dotenv_safe, env_flag
    load_dotenv_safe()
    if env_flag('QUOTE_PAGE_FALLBACK', True):
        ...

The loader never overwrites variables already present in the process
environment, so deploy-time settings win over a checked-out .env file.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

DEFAULT_ENV_FILENAMES: Iterable[str] = ('.env', '.env.local')

_TRUTHY = ('1', 'true', 'yes', 'on')
_FALSY = ('0', 'false', 'no', 'off')


def _parse_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or line.startswith('#') or '=' not in line:
        return None
    k, v = line.split('=', 1)
    k = k.strip()
    if k.startswith('export '):
        k = k[len('export ') :].strip()
    raw = v.strip()
    if raw.startswith(('"', "'")) and len(raw) > 1:
        q = raw[0]
        closing = raw.find(q, 1)
        if closing != -1:
            raw = raw[1:closing]
    elif '#' in raw:
        raw = raw.split('#', 1)[0].rstrip()
    return k, raw


def load_dotenv_safe(
    filenames: Iterable[str] = DEFAULT_ENV_FILENAMES, base: Path | None = None
) -> list[Path]:
    """Load KEY=VALUE pairs from .env files; returns the files that were read."""
    base = base or Path.cwd()
    loaded: list[Path] = []
    for name in filenames:
        path = base / name
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding='utf-8')
        except OSError:
            continue
        for line in text.splitlines():
            parsed = _parse_line(line)
            if parsed is None:
                continue
            k, raw = parsed
            if k not in os.environ:
                os.environ[k] = raw
        loaded.append(path)
    return loaded


def env_str(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.strip()
    return val if val else default


def env_flag(name: str, default: bool = False) -> bool:
    val = (os.getenv(name) or '').strip().lower()
    if val in _TRUTHY:
        return True
    if val in _FALSY:
        return False
    return default


def env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, '') or default)
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, '') or default)
    except ValueError:
        return default

"""
Environment layering for the QRPH client settings.

Settings are looked up in three layers, lowest first: the process environment
(only ``QRPH_*`` names), a ``.env`` file, and explicit overrides. The result
feeds :meth:`qrph_payments.core.config.ClientConfig.from_mapping`.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional, Tuple

__all__ = [
    "ENV_PREFIX",
    "ClientEnvironment",
    "build_environment",
    "load_env_file",
    "parse_env_line",
]

ENV_PREFIX = "QRPH_"

_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_env_line(raw_line: str) -> Optional[Tuple[str, str]]:
    """
    Parse one ``.env`` line into ``(key, value)``.

    Blank lines, comments and lines without a valid ``KEY=`` prefix give
    ``None``. Quoted values are taken literally; unquoted ones lose a trailing
    `` # comment``.
    """
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if not _KEY_PATTERN.match(key):
        return None

    if len(value) >= 2 and value[0] in {"'", '"'} and value[-1] == value[0]:
        return key, value[1:-1]
    comment = value.find(" #")
    if comment != -1:
        value = value[:comment].rstrip()
    return key, value


def _read_env_file(path: Path) -> Dict[str, str]:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return {}
    return dict(pair for pair in map(parse_env_line, lines) if pair is not None)


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy the settings in ``path`` into ``environ`` without overwriting.

    Returns the merged mapping.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    for key, value in _read_env_file(Path(path)).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class ClientEnvironment:
    """
    Resolved client settings plus the layer each one came from.
    """

    variables: Mapping[str, str]
    origins: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)

    def origin(self, key: str) -> Optional[str]:
        return self.origins.get(key)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> ClientEnvironment:
    """
    Layer the process environment, ``env_file`` and ``overrides``.

    ``base`` replaces the process environment; when omitted only ``QRPH_*``
    variables are taken from :data:`os.environ`. Values from ``env_file`` never
    shadow ``base``, ``overrides`` always win. Pass ``env_file=None`` to skip
    the file.
    """
    if base is None:
        base = {key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIX)}

    variables: Dict[str, str] = {}
    origins: Dict[str, str] = {}
    layers = [("environment", base)]
    if env_file is not None:
        file_values = _read_env_file(Path(env_file))
        layers.append((env_file, {k: v for k, v in file_values.items() if k not in base}))
    layers.append(("overrides", overrides or {}))

    for origin, values in layers:
        for key, value in values.items():
            variables[key] = value
            origins[key] = origin
    return ClientEnvironment(variables=variables, origins=origins)

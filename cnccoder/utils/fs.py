"""Atomic filesystem writes and YAML loading.

Provides:
    - Atomic writes: tmp file -> fsync -> rename, so a reader never sees a
      half-written G-code or project file
    - YAML loading with PyYAML ``safe_load``
    - Directory creation with exist_ok semantics

All paths use pathlib.Path.

Usage:
    from cnccoder.utils import fs
    fs.atomic_write_text(out_dir / "part.gcode", program.to_gcode())
    data = fs.load_yaml("defaults.yaml")
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml


def ensure_dir(p: str | Path) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : str | Path
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: str | Path,
    data: bytes,
    tmp_suffix: str = ".tmp",
) -> None:
    """Write bytes to file atomically (tmp -> fsync -> rename).

    Parameters
    ----------
    path : str | Path
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or rename fails; the tmp file is removed and any
        existing file at ``path`` is left untouched.

    Notes
    -----
    The tmp file lives in the target directory so the rename stays on
    one filesystem.
    """
    path = Path(path)
    ensure_dir(path.parent)

    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        # Overwrites an existing file on POSIX
        tmp_path.replace(path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(
    path: str | Path,
    text: str,
    encoding: str = "utf-8",
) -> None:
    """Write text to file atomically.

    Convenience wrapper around :func:`atomic_write_bytes`.
    """
    atomic_write_bytes(path, text.encode(encoding))


def load_yaml(path: str | Path) -> Any:
    """Load YAML file safely.

    Parameters
    ----------
    path : str | Path
        YAML file path

    Returns
    -------
    Any
        Parsed YAML content (``None`` for an empty file)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e

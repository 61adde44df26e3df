# utils/io.py
"""File helpers for workflows, policies, catalogs and reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Union

import yaml

PathLike = Union[str, Path]


def to_path(p: PathLike) -> Path:
    return p if isinstance(p, Path) else Path(p)


def _atomic_write(path: PathLike, write: Callable[[Any], None]) -> Path:
    """Write through a sibling .tmp file, then move it over the target."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        write(f)
    tmp.replace(p)
    return p


def write_text(path: PathLike, text: str) -> Path:
    return _atomic_write(path, lambda f: f.write(text))


def write_json(path: PathLike, data: Any, indent: int = 2) -> Path:
    # timestamps and paths fall back to str()
    return _atomic_write(
        path, lambda f: json.dump(data, f, ensure_ascii=False, indent=indent, default=str)
    )


def _read_json(p: Path) -> Any:
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _read_yaml(p: Path) -> Any:
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _read_text(p: Path) -> str:
    return p.read_text(encoding="utf-8")


_LOADERS: Dict[str, Callable[[Path], Any]] = {
    ".json": _read_json,
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
    ".txt": _read_text,
    ".md": _read_text,
}


def load_any(path: PathLike) -> Any:
    """Load by extension: JSON, YAML (.yaml/.yml) or plain text (.txt/.md)."""
    p = to_path(path)
    loader = _LOADERS.get(p.suffix.lower())
    if loader is None:
        raise ValueError(f"Unsupported extension: {p.suffix.lower()} for {p}")
    return loader(p)

from __future__ import annotations
import os
import yaml
from pathlib import Path
from typing import Any, Dict

def ensure_dir(p: str | Path) -> Path:
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p

def atomic_write(path: Path, content: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(content, encoding="utf-8")
    tmp.replace(path)

def load_yaml(path: str | Path) -> Dict[str, Any]:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data

def env_overrides(mapping: Dict[str, str]) -> Dict[str, Any]:
    """Map env var names to setting keys, keeping only vars that are set."""
    out: Dict[str, Any] = {}
    for env_name, key in mapping.items():
        val = os.getenv(env_name)
        if val:
            out[key] = val
    return out

import importlib.metadata as importlib_metadata
import json
import os
import platform
import sys
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RunManifest:
    started_utc: str
    config: Dict[str, Any]
    viewport: Dict[str, Any]
    output: Optional[str]
    python: Dict[str, Any]
    packages: Dict[str, str]
    system: Dict[str, Any]


def _utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _pkg_version(name: str) -> Optional[str]:
    try:
        return importlib_metadata.version(name)
    except importlib_metadata.PackageNotFoundError:
        return None


def build_manifest(*, config: Dict[str, Any], viewport: Dict[str, Any], output: Optional[str]) -> RunManifest:
    pkgs = {}
    for name in ["mandelview", "numpy", "Pillow", "numba", "tqdm"]:
        v = _pkg_version(name)
        if v:
            pkgs[name] = v

    return RunManifest(
        started_utc=_utc_iso(),
        config=config,
        viewport=viewport,
        output=output,
        python={"version": sys.version, "executable": sys.executable},
        packages=pkgs,
        system={"platform": platform.platform(), "machine": platform.machine(), "processor": platform.processor()},
    )


def write_manifest(path: str, manifest: RunManifest) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(manifest), f, indent=2, sort_keys=True)

import json
import os
import platform
import subprocess
import sys
import time
from dataclasses import asdict, dataclass
from importlib import metadata
from typing import Any, Dict, Optional

_TRACKED_PACKAGES = ("numpy", "Pillow", "numba", "tqdm")

@dataclass(frozen=True)
class RunManifest:
    """What was rendered, with which stack, so a frame can be reproduced."""

    started_utc: str
    command: str
    config: Dict[str, Any]
    outcome: Dict[str, Any]
    python: Dict[str, Any]
    packages: Dict[str, str]
    git: Dict[str, Any]
    system: Dict[str, Any]

def _utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

def _package_versions() -> Dict[str, str]:
    found = {}
    for name in _TRACKED_PACKAGES:
        try:
            found[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            continue
    return found

def git_commit() -> Optional[str]:
    try:
        r = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError):
        return None
    return r.stdout.strip() or None

def build_manifest(*, command: str, config: Dict[str, Any], outcome: Dict[str, Any]) -> RunManifest:
    return RunManifest(
        started_utc=_utc_iso(),
        command=command,
        config=config,
        outcome=outcome,
        python={"version": sys.version, "executable": sys.executable},
        packages=_package_versions(),
        git={"commit": git_commit()},
        system={"platform": platform.platform(), "machine": platform.machine(), "cpus": os.cpu_count()},
    )

def write_manifest(path: str, manifest: RunManifest) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(manifest), f, indent=2, sort_keys=True)

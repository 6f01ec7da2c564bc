import json
import logging
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_json(path: Path, default: Any = None) -> Any:
    if not path.exists():
        return default
    return json.loads(path.read_text(encoding="utf-8"))


def artifact_lock(artifact_dir: Path) -> FileLock:
    ensure_dir(artifact_dir)
    return FileLock(str(artifact_dir / ".lock"))


@contextmanager
def scratch_dir(root: Path, request_id: str) -> Iterator[Path]:
    """Per-request working directory, removed whether the request succeeds or fails."""
    path = ensure_dir(root / request_id)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed scratch dir %s", path)


def publish_file(source: Path, target: Path) -> Path:
    """Move a finished file into an artifact directory under that directory's lock."""
    with artifact_lock(target.parent):
        tmp = target.with_suffix(target.suffix + ".tmp")
        shutil.move(str(source), str(tmp))
        tmp.replace(target)
    return target

import json
from pathlib import Path
from uuid import uuid4

from gendash.config import settings


WORKSPACE_STORAGE_KEY = "gendash.dashboard.v1"


def make_file_path(kind: str, extension: str, stem: str, root: Path | None = None) -> Path:
    folder = (root or settings.storage_root) / kind
    folder.mkdir(parents=True, exist_ok=True)
    return folder / f"{stem}.{extension.lstrip('.')}"


def write_json(path: Path, payload: dict | list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
    tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def read_json(path: Path) -> dict | list:
    return json.loads(path.read_text(encoding="utf-8"))

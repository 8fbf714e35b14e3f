"""Study store persisted as a single YAML or JSON document."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

import yaml

from .memory import InMemoryStore

logger = logging.getLogger(__name__)


class FileStore(InMemoryStore):
    """File-backed store with `tasks`, `profiles` and `completions` lists.

    The file is re-read before each operation, so the profile version
    check also holds between separate processes.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        if self.path.suffix.lower() not in ['.yaml', '.yml', '.json']:
            raise ValueError(f"Unsupported store file format: {self.path.suffix}")
        super().__init__()
        self._sync()

    def _read(self) -> Dict[str, Any]:
        with open(self.path, 'r') as f:
            if self.path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Store file must contain a mapping: {self.path}")
        return data

    def _sync(self) -> None:
        if not self.path.exists():
            return
        self._load_rows(self._read())
        logger.debug("Loaded store from %s", self.path)

    def _changed(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = self._dump_rows()

        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w') as f:
                if self.path.suffix.lower() == '.json':
                    json.dump(data, f, indent=2, default=str)
                else:
                    yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

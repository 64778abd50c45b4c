"""Destinations for the generated client module."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from rpc_client_gen.generator.client import GeneratedModule

logger = logging.getLogger(__name__)


class ModuleSink(Protocol):
    def write(self, module: GeneratedModule) -> str:
        """Store the module and return where it was written."""
        ...


class FileModuleSink:
    """Writes the module as one UTF-8 file, replacing any previous version atomically."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def write(self, module: GeneratedModule) -> str:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as tmp_file:
                tmp_file.write(module.text)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.info("Wrote client module to %s", self.path)
        return str(self.path)

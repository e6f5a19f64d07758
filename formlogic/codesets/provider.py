"""Code-set provider contract and bundled implementations."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml
from pydantic import ValidationError

from formlogic.core.config import Settings, get_settings
from formlogic.core.ontology import CodeSetSchema, FieldOption

logger = logging.getLogger(__name__)


@runtime_checkable
class CodeSetProvider(Protocol):
    """Read contract for a code-set source (database, file or API).

    Both calls may be slow, may raise, and may return None for an unknown id.
    """

    async def get_code_set(self, code_set_id: int) -> CodeSetSchema | None: ...

    async def get_code_set_as_options(self, code_set_id: int) -> list[FieldOption] | None: ...


class InMemoryCodeSetProvider:
    """Provider backed by a dict of code sets."""

    def __init__(self, code_sets: Iterable[CodeSetSchema] | None = None):
        self._code_sets: dict[int, CodeSetSchema] = {}
        for code_set in code_sets or ():
            self.add(code_set)

    @classmethod
    def with_samples(cls) -> InMemoryCodeSetProvider:
        """Provider seeded with the bundled sample code sets."""
        from .samples import sample_code_sets

        return cls(sample_code_sets())

    def add(self, code_set: CodeSetSchema) -> None:
        self._code_sets[code_set.id] = code_set

    def find_by_code(self, code: str) -> CodeSetSchema | None:
        for code_set in self._code_sets.values():
            if code_set.code == code:
                return code_set
        return None

    async def get_code_set(self, code_set_id: int) -> CodeSetSchema | None:
        return self._code_sets.get(code_set_id)

    async def get_code_set_as_options(self, code_set_id: int) -> list[FieldOption] | None:
        code_set = self._code_sets.get(code_set_id)
        return code_set.to_options() if code_set else None


class FileCodeSetProvider(InMemoryCodeSetProvider):
    """Provider reading code-set documents (YAML or JSON) from a directory.

    A file may hold one code set or a list of them. Files are read once, on
    first access.
    """

    def __init__(self, directory: str | Path):
        super().__init__()
        self.directory = Path(directory)
        self._loaded = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> FileCodeSetProvider:
        """Provider over the configured ``code_sets_dir``."""
        settings = settings or get_settings()
        if not settings.code_sets_dir:
            raise ValueError("FORMLOGIC_CODE_SETS_DIR is not configured")
        return cls(settings.code_sets_dir)

    def load(self) -> int:
        """Read every document in the directory; returns the number loaded."""
        if not self.directory.exists():
            raise FileNotFoundError(f"Code-set directory not found: {self.directory}")

        count = 0
        files = sorted(
            f for f in self.directory.iterdir()
            if f.suffix.lower() in (".yaml", ".yml", ".json")
        )
        for path in files:
            try:
                code_sets = self._read_file(path)
            except (ValidationError, yaml.YAMLError, json.JSONDecodeError) as e:
                logger.warning("Failed to load code sets from %s: %s", path, e)
                continue
            for code_set in code_sets:
                self.add(code_set)
            count += len(code_sets)

        self._loaded = True
        logger.debug("Loaded %d code set(s) from %s", count, self.directory)
        return count

    @staticmethod
    def _read_file(path: Path) -> list[CodeSetSchema]:
        with open(path, "r", encoding="utf-8") as f:
            content = json.load(f) if path.suffix.lower() == ".json" else yaml.safe_load(f)
        items = content if isinstance(content, list) else [content]
        return [CodeSetSchema.model_validate(item) for item in items]

    async def get_code_set(self, code_set_id: int) -> CodeSetSchema | None:
        if not self._loaded:
            self.load()
        return await super().get_code_set(code_set_id)

    async def get_code_set_as_options(self, code_set_id: int) -> list[FieldOption] | None:
        if not self._loaded:
            self.load()
        return await super().get_code_set_as_options(code_set_id)

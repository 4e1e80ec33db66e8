"""Sources of module binaries referenced by filename from compiled scripts."""

import logging
from collections.abc import Mapping
from pathlib import Path

from .errors import MalformedIntermediateForm, ScriptIOError
from .types import ModuleBinary

logger = logging.getLogger(__name__)


class ModuleBinaryStore(Mapping):
    """Immutable mapping of artifact filename to module bytes.

    Populated once from one compiler run; every entry shares the lifetime of
    the decoding session.
    """

    def __init__(self, modules: Mapping[str, bytes] | None = None) -> None:
        self._modules = {name: bytes(data) for name, data in (modules or {}).items()}

    @classmethod
    def from_directory(cls, directory: Path, skip_suffixes=(".json",)) -> "ModuleBinaryStore":
        """Load every compiler artifact in ``directory`` except the JSON."""
        modules = {}
        try:
            for path in sorted(Path(directory).iterdir()):
                if path.is_file() and path.suffix not in skip_suffixes:
                    modules[path.name] = path.read_bytes()
        except OSError as e:
            raise ScriptIOError(f"Failed to read module binaries from {directory}: {e}") from e
        logger.debug("Loaded %d module binaries from %s", len(modules), directory)
        return cls(modules)

    def __getitem__(self, filename: str) -> bytes:
        return self._modules[filename]

    def __iter__(self):
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def load(self, filename: str) -> ModuleBinary:
        """Return the module stored under ``filename``.

        The compiler guarantees every filename it references exists in its
        output, so a miss is an internal-invariant failure.
        """
        try:
            return ModuleBinary(self._modules[filename])
        except KeyError:
            raise MalformedIntermediateForm(
                f"Module referenced in JSON does not exist: {filename!r}"
            ) from None

    def __repr__(self) -> str:
        return f"ModuleBinaryStore({sorted(self._modules)!r})"


class DirectoryModuleSource:
    """Reads module binaries from files under ``root`` on every request."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def load(self, filename: str) -> ModuleBinary:
        path = self.root / filename
        try:
            with open(path, "rb") as f:
                return ModuleBinary(f.read())
        except OSError as e:
            raise ScriptIOError(f"Failed to read module binary {path}: {e}") from e

    def __repr__(self) -> str:
        return f"DirectoryModuleSource({str(self.root)!r})"

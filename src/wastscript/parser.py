"""Pull-based reader of the commands in a wast script.

Example::

    parser = ScriptParser.from_str(source)
    while (command := parser.next()) is not None:
        ...

The script is compiled once when the parser is built; commands are then
normalized one at a time as they are pulled.
"""

import logging
from pathlib import Path

from .compiler import WAST_SUFFIX, Features, compile_script
from .errors import ScriptIOError, UsageError
from .intermediate import load_spec
from .normalizer import normalize_command
from .store import ModuleBinaryStore
from .types import Command
from .values import NativeF32, NativeF64

logger = logging.getLogger(__name__)


class ScriptParser:
    """Iterator over the ``Command`` values of one compiled script.

    ``f32`` and ``f64`` select the float representation used for values;
    pass ``RawF32``/``RawF64`` to keep exact NaN bit patterns.
    """

    def __init__(
        self,
        commands: list[dict],
        modules: ModuleBinaryStore,
        source_filename: str = "",
        f32=NativeF32,
        f64=NativeF64,
    ) -> None:
        self._commands = commands
        self._modules = modules
        self._position = 0
        self.source_filename = source_filename
        self.f32 = f32
        self.f64 = f64

    @classmethod
    def from_source_and_name(
        cls,
        source: bytes | str,
        test_filename: str,
        features: Features | None = None,
        f32=NativeF32,
        f64=NativeF64,
    ) -> "ScriptParser":
        """Compile ``source`` and build a parser over its commands.

        ``test_filename`` must end in ``.wast``.
        """
        if not test_filename.endswith(WAST_SUFFIX):
            raise UsageError(f"Provided {test_filename} should have .wast extension")
        compiled = compile_script(source, test_filename, features)
        return cls.from_intermediate(compiled.json_text, compiled.modules, f32, f64)

    @classmethod
    def from_str(cls, source: str, **kwargs) -> "ScriptParser":
        return cls.from_source_and_name(source, "test.wast", **kwargs)

    @classmethod
    def from_file(cls, path: Path | str, **kwargs) -> "ScriptParser":
        path = Path(path)
        if path.suffix != WAST_SUFFIX:
            raise UsageError(f"Provided {path} should have .wast extension")
        try:
            source = path.read_bytes()
        except OSError as e:
            raise ScriptIOError(f"Failed to read script {path}: {e}") from e
        return cls.from_source_and_name(source, path.name, **kwargs)

    @classmethod
    def from_intermediate(
        cls, json_text: str | bytes, modules, f32=NativeF32, f64=NativeF64
    ) -> "ScriptParser":
        """Build a parser from compiler output produced elsewhere."""
        if not isinstance(modules, ModuleBinaryStore):
            modules = ModuleBinaryStore(modules)
        spec = load_spec(json_text)
        logger.debug(
            "Parser for %s: %d commands, %d modules",
            spec.source_filename or "<unnamed>",
            len(spec.commands),
            len(modules),
        )
        return cls(spec.commands, modules, spec.source_filename, f32, f64)

    @property
    def remaining(self) -> int:
        return len(self._commands) - self._position

    def next(self) -> Command | None:
        """Return the next command, or ``None`` once the script is exhausted.

        A decode failure is raised without moving past the failing command;
        callers should stop at the first error.
        """
        if self._position >= len(self._commands):
            return None
        command = normalize_command(
            self._commands[self._position], self._modules, self.f32, self.f64
        )
        self._position += 1
        return command

    def __iter__(self):
        return self

    def __next__(self) -> Command:
        command = self.next()
        if command is None:
            raise StopIteration
        return command

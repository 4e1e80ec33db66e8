"""Boundary to the external wast compiler (``wast2json`` from WABT).

The compiler lexes, resolves and validates a script, writes every module it
contains as a standalone ``.wasm`` file, and describes the commands in a
JSON document that references those files by name.
"""

import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, fields
from pathlib import Path

from .errors import CompilerError, ScriptIOError
from .store import ModuleBinaryStore

logger = logging.getLogger(__name__)

WAST2JSON_ENV = "WASTSCRIPT_WAST2JSON"
WAST_SUFFIX = ".wast"

# Feature attribute name -> compiler option suffix, where they differ
_OPTION_NAMES = {
    "sat_float_to_int": "saturating-float-to-int",
}


@dataclass
class Features:
    """Proposal flags passed to the compiler.

    ``None`` keeps the compiler's default, ``True`` adds ``--enable-<name>``
    and ``False`` adds ``--disable-<name>``. With ``enable_all`` those
    options come after ``--enable-all``. Only options the installed
    compiler knows are accepted by it.
    """

    exceptions: bool | None = None
    mutable_globals: bool | None = None
    sat_float_to_int: bool | None = None
    sign_extension: bool | None = None
    simd: bool | None = None
    threads: bool | None = None
    multi_value: bool | None = None
    tail_call: bool | None = None
    bulk_memory: bool | None = None
    reference_types: bool | None = None
    annotations: bool | None = None
    memory64: bool | None = None
    multi_memory: bool | None = None
    extended_const: bool | None = None
    enable_all: bool = False

    @classmethod
    def all(cls) -> "Features":
        return cls(enable_all=True)

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls) if f.name != "enable_all"]

    def set(self, name: str, enabled: bool | None) -> None:
        if name not in self.names():
            raise ValueError(f"Unknown feature: {name}")
        setattr(self, name, enabled)

    def to_args(self) -> list[str]:
        # per-feature options must come after --enable-all
        args = ["--enable-all"] if self.enable_all else []
        for name in self.names():
            value = getattr(self, name)
            if value is None:
                continue
            option = _OPTION_NAMES.get(name, name.replace("_", "-"))
            args.append(f"--{'enable' if value else 'disable'}-{option}")
        return args


@dataclass
class CompiledScript:
    """Compiler output for one script: the JSON text and its modules."""

    json_text: str
    modules: ModuleBinaryStore


def find_wast2json() -> str:
    """Locate the compiler executable.

    ``WASTSCRIPT_WAST2JSON`` takes precedence over a ``wast2json`` on PATH.
    """
    configured = os.environ.get(WAST2JSON_ENV)
    if configured:
        return configured
    found = shutil.which("wast2json")
    if found is None:
        raise CompilerError(
            f"wast2json not found on PATH (set {WAST2JSON_ENV} to its location)"
        )
    return found


def _run(cmd: list[str], cwd: Path | None = None) -> None:
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    except OSError as e:
        raise CompilerError(f"Failed to run {cmd[0]}: {e}") from e
    if result.returncode != 0:
        raise CompilerError(
            f"{' '.join(cmd)} exited with status {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr,
        )


def compile_script_to_dir(
    path: Path, out_dir: Path, features: Features | None = None
) -> Path:
    """Compile the script at ``path`` into ``out_dir``; return the JSON path.

    Module binaries land next to the JSON file, named after it.
    """
    path = Path(path)
    features = features or Features()
    json_path = Path(out_dir) / f"{path.stem}.json"
    _run([find_wast2json(), str(path), "-o", str(json_path), *features.to_args()])
    return json_path


def compile_script(
    source: bytes | str, filename: str, features: Features | None = None
) -> CompiledScript:
    """Compile script text and collect all of its artifacts in memory.

    ``filename`` names the script in compiler diagnostics and in the JSON's
    ``source_filename``. Work happens in a temporary directory that is
    removed whatever the outcome.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    features = features or Features()
    name = Path(filename).name
    stem = Path(name).stem

    with tempfile.TemporaryDirectory(prefix=f"wastscript-{stem}-") as tmp:
        tmp_path = Path(tmp)
        out_dir = tmp_path / "out"
        try:
            out_dir.mkdir()
            (tmp_path / name).write_bytes(source)
        except OSError as e:
            raise ScriptIOError(f"Failed to prepare compiler input: {e}") from e

        _run(
            [find_wast2json(), name, "-o", str(Path("out") / f"{stem}.json"), *features.to_args()],
            cwd=tmp_path,
        )

        json_path = out_dir / f"{stem}.json"
        try:
            json_text = json_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ScriptIOError(f"Failed to read compiler output {json_path}: {e}") from e
        modules = ModuleBinaryStore.from_directory(out_dir)

    logger.debug("Compiled %s into %d module binaries", filename, len(modules))
    return CompiledScript(json_text, modules)

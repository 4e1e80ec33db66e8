"""Exception classes for the wast script decoder."""


class ScriptError(Exception):
    """Base class for all script decoding errors."""

    pass


class ScriptIOError(ScriptError):
    """Reading a script or a module binary file failed."""

    pass


class CompilerError(ScriptError):
    """The external wast compiler reported a failure."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        text = super().__str__()
        if self.stderr:
            text += "\n" + self.stderr.rstrip()
        return text


class MalformedIntermediateForm(ScriptError):
    """Compiler output did not have the expected shape.

    This signals a broken assumption about the compiler's output rather than
    bad user input, so the message carries the raw JSON fragment involved.
    """

    pass


class ValueDecodeError(ScriptError):
    """A value literal or its type tag could not be decoded."""

    pass


class ValueParseError(ValueDecodeError):
    """A value literal is not an unsigned integer of the required width."""

    def __init__(self, text, type_name: str):
        super().__init__(f"can't parse {text!r} as {type_name!r}")
        self.text = text
        self.type_name = type_name


class UnknownValueType(ValueDecodeError):
    """A value carries a type tag other than i32, i64, f32 or f64."""

    def __init__(self, type_name):
        super().__init__(f"Unknown type {type_name!r}")
        self.type_name = type_name


class UsageError(ScriptError):
    """The API was called with arguments that break its preconditions."""

    pass


class CallbackError(ScriptError):
    """A visitor callback raised; wraps the visitor's own exception."""

    def __init__(self, error: BaseException, line: int | None = None):
        where = f" at line {line}" if line is not None else ""
        super().__init__(f"visitor callback failed{where}: {error!r}")
        self.error = error
        self.line = line


class WithLineInfo(ScriptError):
    """Attaches the source line of the failing command to another error."""

    def __init__(self, line: int, error: ScriptError):
        super().__init__(line, error)
        self.line = line
        self.error = error

    def __str__(self) -> str:
        return f"At line {self.line}: {self.error}"

    def root(self) -> ScriptError:
        """Return the innermost wrapped error."""
        error = self.error
        while isinstance(error, WithLineInfo):
            error = error.error
        return error

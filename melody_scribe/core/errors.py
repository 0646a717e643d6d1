"""Error taxonomy shared by every stage."""


class MelodyScribeError(Exception):
    """Base class for all Melody Scribe errors."""


class InputError(MelodyScribeError, ValueError):
    """Undecodable audio, unsupported file or malformed MIDI.

    Fatal to the request: no partial result is produced.
    """


class ConfigurationError(MelodyScribeError, ValueError):
    """A stage parameter is outside its legal set (key, quantization, style...)."""

    def __init__(self, parameter: str, value, message: str = ""):
        self.parameter = parameter
        self.value = value
        detail = f": {message}" if message else ""
        super().__init__(f"Invalid {parameter} {value!r}{detail}")


class InsufficientDataWarning(UserWarning):
    """A stage had too little input and returned its documented fallback."""

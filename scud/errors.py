"""Error types raised while fingerprinting, planning and compiling Lambda sources."""

from typing import List, Optional


class ScudError(Exception):
    """Base class for every failure surfaced by scud."""


class BuildCacheError(ScudError):
    """The source tree could not be read while computing its fingerprint."""


class ConfigurationError(ScudError):
    """Build or deployment settings cannot be resolved."""


class CompilerError(ScudError):
    """The external compiler (or the container running it) failed."""

    def __init__(self, message: str, command: Optional[List[str]] = None,
                 returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self):
        text = super().__str__()
        if self.returncode is not None:
            text = f"{text} (exit status {self.returncode})"
        if self.stderr:
            text = f"{text}\n{self.stderr.strip()}"
        return text

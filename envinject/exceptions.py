"""envinject exceptions."""

from typing import List
from dataclasses import dataclass
from pathlib import Path


@dataclass
class ValidationError:
    """Single configuration validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class ConfigurationError(Exception):
    """Raised when the prefix, roots or other settings cannot be resolved.

    Raised by the loader before any file is touched, allowing the CLI to
    catch it and map to the configuration exit code.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            messages.append(f"Configuration error: {error.message}")

        super().__init__("\n".join(messages))


class SubstitutionError(Exception):
    """Raised when a root or target file cannot be processed.

    Attributes:
        stage: One of 'directory', 'read', 'write', 'timeout'
        path: Offending path
    """

    STAGES = ('directory', 'read', 'write', 'timeout')

    def __init__(self, stage: str, path: Path, reason: str = ""):
        if stage not in self.STAGES:
            raise ValueError(f"Unknown stage: {stage}")
        self.stage = stage
        self.path = Path(path)
        self.reason = reason
        self.exit_code = 1

        message = f"{stage} failed for '{self.path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SubstitutionTimeout(SubstitutionError):
    """Raised when the run exceeds its configured deadline."""

    def __init__(self, path: Path, timeout: float):
        self.timeout = timeout
        super().__init__('timeout', path, f"deadline of {timeout:g}s exceeded")


class RunFailedError(Exception):
    """Raised after a collect-all run finished with per-file failures."""

    def __init__(self, errors: List[SubstitutionError], result=None):
        self.errors = errors
        self.result = result
        self.exit_code = 1

        lines = [f"{len(errors)} file(s) failed:"]
        lines.extend(f"  {error}" for error in errors)
        super().__init__("\n".join(lines))

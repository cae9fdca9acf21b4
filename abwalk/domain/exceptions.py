"""Exception types for abwalk.

Only conditions that stop work are exceptions. Per-attempt results such as an
unreachable quality target or a transient encoder failure are
`EncodeOutcome` values handled by the retry controller.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import EncodeAttempt


class AbwalkError(Exception):
    """Base class for all abwalk errors."""

    pass


class ConfigurationError(AbwalkError):
    """Raised before any traversal when the run cannot be set up.

    Covers a missing or non-directory input folder, an unknown encoder
    backend, invalid option values and an encoder binary that cannot be
    located.
    """

    pass


class FatalEncodeError(AbwalkError):
    """Raised when the encoder process could not be launched at all.

    Aborts the whole batch: a missing or broken binary will fail every
    remaining file the same way.
    """

    def __init__(self, message: str, attempt: Optional["EncodeAttempt"] = None):
        super().__init__(message)
        self.attempt = attempt

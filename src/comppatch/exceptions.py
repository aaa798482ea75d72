"""Exception hierarchy for comppatch.

All exceptions inherit from :class:`ComppatchError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`comppatch.exit_codes`.
The top-level error handler in :func:`comppatch.app.main` catches
``ComppatchError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ComppatchError (exit 1)
    +-- InvalidConfigError  (exit 2)
    +-- NotFoundError       (exit 4)
    +-- IOError_            (exit 5)
    +-- ConfigError         (exit 1)
"""

from comppatch.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_CONFIG,
    EXIT_IO_ERROR,
    EXIT_NOT_FOUND,
)


class ComppatchError(Exception):
    """Base exception for all comppatch errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`comppatch.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidConfigError(ComppatchError):
    """Raised when the glob set, markers or clause template are unusable.

    Covers an empty glob set, an entry that would corrupt the clause or
    marker syntax, and marker or clause settings that fail validation.
    """

    exit_code = EXIT_INVALID_CONFIG


class NotFoundError(ComppatchError):
    """Raised when the completion file to patch does not exist."""

    exit_code = EXIT_NOT_FOUND


class IOError_(ComppatchError):
    """Raised when reading, writing the temp file, or the final rename fails.

    Named with a trailing underscore to avoid shadowing the built-in
    ``IOError``.
    """

    exit_code = EXIT_IO_ERROR


class ConfigError(ComppatchError):
    """Raised when a configuration file cannot be read or is not valid JSON."""

    exit_code = EXIT_GENERIC_FAILURE

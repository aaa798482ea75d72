"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~comppatch.exceptions.ComppatchError` subclass.
Build scripts can inspect the exit code to tell a missing completion file
apart from a bad glob set without parsing stderr.

Example::

    $ patch-completions completions/_missing
    $ echo $?
    4   # EXIT_NOT_FOUND -- the completion file does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including unreadable config files)."""

EXIT_INVALID_CONFIG = 2
"""The glob set, markers or clause template are unusable."""

EXIT_NOT_FOUND = 4
"""The completion file to patch does not exist."""

EXIT_IO_ERROR = 5
"""Reading the completion file or replacing it on disk failed."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""

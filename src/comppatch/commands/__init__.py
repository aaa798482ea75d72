"""Built-in CLI sub-command groups for comppatch.

* :mod:`~comppatch.commands.config` -- view and modify the user config
  (default glob set, markers, clause template).

The ``patch``, ``clause`` and ``globs`` commands are plain callbacks
registered directly on the root app in :mod:`comppatch.app`.
"""

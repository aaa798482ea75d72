"""comppatch -- Scope generated shell completions to a set of file globs.

Completion generators such as clap emit a bare "complete any file" rule for
path-taking arguments. comppatch rewrites the generated completion file so
that those arguments only suggest files matching a configurable glob set
(image formats by default).

Typical workflow::

    mytool completions zsh > completions/_mytool
    patch-completions completions/_mytool          # default image globs
    patch-completions completions/_mytool '*.png' '*.jpg'

Modules:
    app: Typer application and CLI entry points.
    patcher: The completion rule patcher itself.
    models: Pydantic models for glob sets, markers and clause templates.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

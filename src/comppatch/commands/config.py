"""Config commands -- view and modify the user configuration.

Provides the ``comppatch config`` sub-command group for reading, updating,
and resetting the user's config file
(:class:`~comppatch.models.PatchConfig`). The file holds the default glob
set, the completion markers, and the clause template used when the CLI is
given no explicit globs.
"""

from __future__ import annotations

import typer

from comppatch.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration.

    Prints the user config file path to stderr, followed by the config with
    project-local and environment overrides applied.

    Example::

        comppatch config show
        comppatch --json config show
    """
    from comppatch.config import resolve_config, user_config_path

    config = resolve_config()
    info(f"User config: {user_config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g. 'markers.placeholder')."
    ),
    value: str = typer.Argument(help="Value to set. Lists are comma separated."),
) -> None:
    """Set a user configuration value.

    Uses dot notation for nested keys. List-valued keys (``globs``) take a
    comma-separated value. The updated config is validated against
    :class:`~comppatch.models.PatchConfig` and the glob set is checked
    against the marker and clause syntax before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid or the new
            configuration does not validate.

    Example::

        comppatch config set globs '*.png,*.jpg,*.webp'
        comppatch config set markers.placeholder :FILE:
        comppatch config set clause.template '_files -g "{globs}"'
    """
    from comppatch.config import load_user_config, parse_globs_env, save_user_config
    from comppatch.exceptions import InvalidConfigError
    from comppatch.models import PatchConfig
    from comppatch.patcher import build_glob_set

    config = load_user_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced: object = value
    if isinstance(target[final_key], list):
        coerced = parse_globs_env(value)
    target[final_key] = coerced

    try:
        new_config = PatchConfig.model_validate(data)
        build_glob_set(new_config.globs, new_config.markers, new_config.clause)
    except (ValueError, InvalidConfigError) as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_user_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset the user configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        comppatch config reset
        comppatch --force config reset
    """
    from comppatch.config import save_user_config
    from comppatch.models import PatchConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_user_config(PatchConfig())
    success("Configuration reset to defaults.")

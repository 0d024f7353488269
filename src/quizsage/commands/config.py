"""Config commands -- view and edit the persisted connection settings.

Provides the ``quizsage config`` sub-command group. Settings are stored as a
:class:`~quizsage.models.ConnectionConfig` in ``config.json`` inside the
quizsage config directory and sit below environment variables and CLI
options in precedence (see :func:`~quizsage.config.resolve_connection`).
"""

from __future__ import annotations

import typer

from quizsage.exit_codes import EXIT_INVALID_USAGE
from quizsage.output import error, format_response, info

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the saved connection settings.

    Example::

        quizsage config show
        quizsage --json config show
    """
    from quizsage.config import get_config_dir, load_config

    config = load_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name, e.g. 'address' or 'port'."),
    value: str = typer.Argument(help="Value to store."),
) -> None:
    """Save one connection setting.

    The value is validated against
    :class:`~quizsage.models.ConnectionConfig`, which coerces it to the
    setting's type (``port`` to int, ``self_signed`` to bool, ...).

    Raises:
        typer.Exit: With code 2 for an unknown key or an invalid value.

    Example::

        quizsage config set address quizsage.org
        quizsage config set password_source env:QUIZSAGE_PW
    """
    from quizsage.config import load_config, save_config
    from quizsage.models import ConnectionConfig

    data = load_config().model_dump(mode="json")
    if key not in data:
        error(f"Unknown config key: {key} (expected one of: {', '.join(data)})")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    data[key] = value
    try:
        config = ConnectionConfig.model_validate(data)
    except ValueError as exc:
        error(f"Invalid value for {key}: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_config(config)
    info(f"Set {key} = {getattr(config, key)}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt."),
) -> None:
    """Reset the saved connection settings to their defaults.

    Example::

        quizsage config reset --force
    """
    from quizsage.config import save_config
    from quizsage.models import ConnectionConfig

    if not force and not typer.confirm("Reset all connection settings to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_config(ConnectionConfig())
    info("Configuration reset to defaults.")

"""Configuration commands for the issue-deps CLI."""

from typing import Annotated

from cyclopts import App, Parameter

from issue_deps.config import get_config

config_app = App(name="config", help="Manage configuration")

GlobalFlag = Annotated[bool, Parameter(name="--global", negative="")]


@config_app.command
def set(key: str, value: str, global_: GlobalFlag = False) -> None:
    """Set a configuration setting.

    Args:
        key: Configuration key, e.g. backend or sqlite.path
        value: Configuration value
        global_: Write to ~/.issue-deps instead of the current directory
    """
    get_config(use_global=global_).set(key, value)
    print(f"Set {key} = {value} ({'global' if global_ else 'local'})")


@config_app.command
def unset(key: str, global_: GlobalFlag = False) -> None:
    """Unset a configuration setting."""
    get_config(use_global=global_).unset(key)
    print(f"Unset {key} ({'global' if global_ else 'local'})")


@config_app.command
def get(key: str, global_: GlobalFlag = False) -> None:
    """Print the value of a configuration setting."""
    value = get_config(use_global=global_).get(key)
    if value is None:
        print(f"{key} is not set")
    else:
        print(f"{key} = {value}")


@config_app.command(name="list")
def list_config(global_: GlobalFlag = False) -> None:
    """List all configuration settings."""
    settings = get_config(use_global=global_).list()

    if not settings:
        print(f"No {'global' if global_ else 'local'} configuration settings")
        return

    print(f"{'Global' if global_ else 'Configuration'} settings:\n")
    for key, value in settings.items():
        print(f"{key} = {value}")

"""
Command Line Interface for dfiles.
"""
from typing import Callable, Dict, List, Optional

import click

from ..errors import DfilesError
from ..MANAGERS.container_manager import ContainerManager, Mode
from ..UTILS.log_setup import setup_logging


def _subcommand(manager: ContainerManager, name: str, mode: Mode, help: str,
                extra_params: Optional[List[click.Parameter]] = None, **kwargs) -> click.Command:
    """
    Builds one subcommand whose options are the manager's config options
    plus the options of its aspects.
    """
    def callback(**matches):
        command = matches.pop("command", None)
        try:
            written = manager.execute(mode, matches, command=list(command) if command else None)
        except DfilesError as e:
            raise click.ClickException(str(e)) from e
        if mode is Mode.CONFIG:
            click.echo(f"Saved config to {written}")
        elif mode is Mode.GENERATE_ARCHIVE:
            click.echo(f"Wrote build context to {written}")

    params: List[click.Parameter] = list(manager.cli_args())
    params.extend(extra_params or [])
    return click.Command(name, callback=callback, params=params, help=help, **kwargs)


def build_cli(manager: ContainerManager) -> click.Group:
    """
    Builds the command line of one application.

    :param manager: The application's container manager.
    :return: A click group with run, cmd, build, config and generate-archive.
    """
    def setup(verbose):
        setup_logging(verbose)

    group = click.Group(
        manager.name,
        callback=setup,
        params=[click.Option(["--verbose", "-v"], count=True, help="Increase log verbosity.")],
        help=f"Run {manager.name} in a container built from composable aspects.",
    )

    group.add_command(_subcommand(manager, "run", Mode.RUN, "Run the application in its container."))
    group.add_command(_subcommand(
        manager, "cmd", Mode.CMD, "Run another command in the application container.",
        extra_params=[click.Argument(["command"], nargs=-1, required=True)],
        context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
    ))
    group.add_command(_subcommand(manager, "build", Mode.BUILD, "Build the application image."))
    group.add_command(_subcommand(
        manager, "config", Mode.CONFIG,
        "Save the given config options to the application layer, the profile layer with --profile, or the global layer with --global.",
        extra_params=[click.Option(["--global", "global_scope"], is_flag=True, help="Save to the global layer.")],
    ))
    group.add_command(_subcommand(
        manager, "generate-archive", Mode.GENERATE_ARCHIVE, "Write the build context archive to a file.",
        extra_params=[click.Option(["--output", "-o"], default=f"{manager.name}.tar", help="Archive path.")],
    ))
    return group


def _applications() -> Dict[str, Callable[[], ContainerManager]]:
    from ..APPS import discord, firefox, signal_desktop
    return {
        "discord": discord.container_manager,
        "firefox": firefox.container_manager,
        "signal": signal_desktop.container_manager,
    }


class ApplicationGroup(click.Group):
    """
    Exposes every bundled application as a subcommand, building its manager
    only when that application is invoked.
    """
    def list_commands(self, ctx) -> List[str]:
        return sorted(_applications())

    def get_command(self, ctx, cmd_name) -> Optional[click.Command]:
        factory = _applications().get(cmd_name)
        if factory is None:
            return None
        try:
            return build_cli(factory())
        except DfilesError as e:
            raise click.ClickException(str(e)) from e


@click.group(cls=ApplicationGroup)
def cli():
    """
    dfiles - GUI desktop applications in containers.

    Each application composes its image and run arguments from aspects
    (display, audio, message bus, devices, user account, config layers).
    """


def main():
    """
    Main entry point for the CLI.
    """
    cli()


if __name__ == '__main__':
    main()

from pykagi.cli._root import cli_root
from pykagi.cli.commands.compress import *  # noqa: F403
from pykagi.cli.commands.crypt import *  # noqa: F403

__all__ = ['cli_root', 'launch']


def launch():
    cli_root(prog_name='pykagi')  # pragma: nocover

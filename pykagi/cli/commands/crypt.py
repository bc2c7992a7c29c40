import getpass
from typing import Optional

import click

from pykagi.cli._root import cli_root
from pykagi.cli.config import CLIConfig
from pykagi.cli.runtime import pykagi_exception_manager
from pykagi.cli.utils import _warn_weak_password, readable_file, writable_file
from pykagi.crypt.permissions import ALL_PERMS, Rev2Permissions
from pykagi.operations import apply_encryption

__all__ = ['encrypt_file']


def _select_permissions(
    ctx: click.Context, no_print, no_modify, no_copy, no_annotate
) -> int:
    restrictions = {
        Rev2Permissions.ALLOW_PRINTING: no_print,
        Rev2Permissions.ALLOW_MODIFICATION_GENERIC: no_modify,
        Rev2Permissions.ALLOW_CONTENT_EXTRACTION: no_copy,
        Rev2Permissions.ALLOW_ANNOTS_FORM_FILLING: no_annotate,
    }
    if any(restrictions.values()):
        perms = Rev2Permissions.allow_everything()
        for flag, restricted in restrictions.items():
            if restricted:
                perms &= ~flag
        return perms.as_sint32()
    cli_config: Optional[CLIConfig] = ctx.obj.config
    if cli_config is not None:
        return cli_config.encryption.permissions
    return ALL_PERMS


def _restriction_flag(name, what):
    return click.option(
        name,
        help=f'disallow {what}',
        required=False,
        type=bool,
        is_flag=True,
        default=False,
    )


@cli_root.command(
    help='encrypt PDF files (RC4-40, standard security handler revision 2)',
    name='encrypt',
)
@click.argument('infile', type=readable_file)
@click.option(
    '--output',
    help='output file [default: <stem>_secure.pdf next to the input]',
    required=False,
    type=writable_file,
)
@click.option(
    '--password',
    help='password to encrypt the file with',
    required=False,
    type=str,
)
@click.option(
    '--owner-password',
    help='owner password [default: same as the password]',
    required=False,
    type=str,
)
@_restriction_flag('--no-print', 'printing')
@_restriction_flag('--no-modify', 'modifying the document')
@_restriction_flag('--no-copy', 'copying or extracting content')
@_restriction_flag('--no-annotate', 'adding annotations and filling forms')
@click.pass_context
def encrypt_file(
    ctx: click.Context,
    infile,
    output,
    password,
    owner_password,
    no_print,
    no_modify,
    no_copy,
    no_annotate,
):
    if password is None:
        password = getpass.getpass(prompt='Output file password: ')
    if not password:
        raise click.ClickException("The password must not be empty.")
    _warn_weak_password(password)

    permissions = _select_permissions(
        ctx, no_print, no_modify, no_copy, no_annotate
    )
    with pykagi_exception_manager():
        out_path = apply_encryption(
            infile,
            password,
            owner_password=owner_password,
            permissions=permissions,
            output_path=output,
            strict=not ctx.obj.lenient,
        )
    click.echo(out_path)

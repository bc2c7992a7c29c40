import enum
import logging

import click

logger = logging.getLogger("cli")

readable_file = click.Path(exists=True, readable=True, dir_okay=False)
writable_file = click.Path(writable=True, dir_okay=False)


class PasswordStrength(enum.Enum):
    WEAK = 'weak'
    FAIR = 'fair'
    STRONG = 'strong'


def password_strength(password: str) -> PasswordStrength:
    if len(password) < 6:
        return PasswordStrength.WEAK
    elif len(password) < 9:
        return PasswordStrength.FAIR
    return PasswordStrength.STRONG


def _warn_weak_password(password: str):
    strength = password_strength(password)
    if strength != PasswordStrength.STRONG:
        click.echo(
            click.style(
                f"WARNING: password strength is {strength.value}. "
                f"Use at least 9 characters for a strong password.",
                bold=True,
            ),
            err=True,
        )

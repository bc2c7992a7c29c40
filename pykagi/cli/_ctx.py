from dataclasses import dataclass
from typing import Optional

from pykagi.cli.config import CLIConfig


@dataclass
class CLIContext:
    """
    Context object that cobbles together various CLI settings values that were
    gathered during the lifetime of a CLI invocation, either from
    configuration or from command line arguments.
    This object is passed around as a ``click`` context object.
    """

    config: Optional[CLIConfig] = None
    """
    Values for CLI configuration settings.
    """

    lenient: bool = False
    """
    Process PDF files in nonstrict mode.
    """

import pytest
from click.testing import CliRunner

from .samples import minimal_pdf, write_file

INPUT_PATH = 'input.pdf'


@pytest.fixture(scope="function")
def cli_runner():
    runner = CliRunner()
    with runner.isolated_filesystem():
        write_file(INPUT_PATH, minimal_pdf())
        yield runner

import logging
import sys
from contextlib import contextmanager

import click
from pyhanko.pdf_utils import misc as pdf_misc

from pykagi import misc
from pykagi.cli.utils import logger
from pykagi.config.errors import ConfigurationError
from pykagi.config.logging import LogConfig, StdLogOutput

__all__ = [
    'DEFAULT_CONFIG_FILE',
    'LOG_FORMAT_STRING',
    'NoStackTraceFormatter',
    'logging_setup',
    'pykagi_exception_manager',
]


class NoStackTraceFormatter(logging.Formatter):
    def formatException(self, ei) -> str:
        return ""  # pragma: nocover


LOG_FORMAT_STRING = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def logging_setup(log_configs, verbose: bool):
    log_config: LogConfig
    for module, log_config in log_configs.items():
        cur_logger = logging.getLogger(module)
        cur_logger.setLevel(log_config.level)
        # named loggers get their own handler, don't log twice
        cur_logger.propagate = module is None
        handler: logging.StreamHandler
        if isinstance(log_config.output, StdLogOutput):
            if log_config.output == StdLogOutput.STDOUT:
                handler = logging.StreamHandler(sys.stdout)
            else:
                handler = logging.StreamHandler()
            # when logging to the console, don't output stack traces
            # unless in verbose mode
            if verbose:
                formatter = logging.Formatter(LOG_FORMAT_STRING)
            else:
                formatter = NoStackTraceFormatter(LOG_FORMAT_STRING)
        else:
            handler = logging.FileHandler(log_config.output)
            formatter = logging.Formatter(LOG_FORMAT_STRING)
        handler.setFormatter(formatter)
        cur_logger.addHandler(handler)


@contextmanager
def pykagi_exception_manager():
    msg = exception = None
    try:
        yield
    except click.ClickException:
        raise
    except misc.DocumentLoadError as e:
        exception = e
        if isinstance(e.__cause__, pdf_misc.PdfStrictReadError):
            msg = (
                "Failed to read PDF file in strict mode; rerun with "
                "--no-strict-syntax to try again.\n"
                f"Error message: {e.msg}"
            )
        else:
            msg = e.msg
    except misc.OutputPathError as e:
        exception = e
        msg = f"Failed to write PDF file: {e.msg}"
    except ConfigurationError as e:
        exception = e
        msg = f"Configuration problem: {e.msg}"
    except misc.PyKagiError as e:
        exception = e
        msg = f"Error raised while processing PDF file: {e.msg}"
    except Exception as e:
        exception = e
        msg = "Generic processing error."

    if exception is not None:
        logger.error(msg, exc_info=exception)
        raise click.ClickException(msg)


DEFAULT_CONFIG_FILE = 'pykagi.yml'

import functools
import click
import sys # Import sys for sys.exc_info()
from .cli_logger import logger
from .errors import ProvisioningError

def handle_exceptions(func):
    """A decorator to handle common exceptions for CLI commands."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
        except (click.ClickException, click.exceptions.Exit):
            raise
        except ProvisioningError as e:
            logger.error(f"Provisioning failed: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
        except ValueError as e:
            logger.error(f"Invalid configuration: {e}")
            sys.exit(2)
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper

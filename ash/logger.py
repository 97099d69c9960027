"""
Logging setup for the ash command line.

Quiet by default (errors only), INFO and up with -v.
"""

import logging
import sys

LOG_FORMAT = "time=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure the 'ash' logger hierarchy.

    Args:
        verbose: Log INFO and above instead of only ERROR.

    Returns:
        The configured package logger.
    """
    log = logging.getLogger("ash")
    log.setLevel(logging.INFO if verbose else logging.ERROR)

    # Re-running setup (tests, repeated main() calls) must not stack handlers
    for handler in list(log.handlers):
        log.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    log.addHandler(handler)
    log.propagate = False
    return log

"""Check command: assert no placeholders remain under the roots."""

import logging
import os
from argparse import Namespace

from envinject.exceptions import ConfigurationError, SubstitutionError
from envinject.runner import find_leftover_placeholders
from .run import setup_logging, load_configuration, log_configuration_errors


logger = logging.getLogger(__name__)


def check_placeholders(args: Namespace) -> int:
    """
    Report files that still contain placeholders.

    Returns:
        0 if none remain, 1 if any do (or a file cannot be read),
        2 on configuration error
    """
    setup_logging(args)

    try:
        config = load_configuration(args)
        leftovers = find_leftover_placeholders(config, os.environ)
    except ConfigurationError as e:
        log_configuration_errors(e)
        return e.exit_code
    except SubstitutionError as e:
        logger.error(f"Check failed at {e.stage} stage: {e}")
        return e.exit_code

    if leftovers:
        for path, tokens in leftovers.items():
            logger.error(f"Placeholders remain in {path}: {', '.join(tokens)}")
        return 1

    logger.info("No placeholders remain")
    return 0

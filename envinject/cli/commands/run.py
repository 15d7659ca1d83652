"""Run command implementation."""

import logging
import os
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict, Optional

from envinject.exceptions import ConfigurationError, RunFailedError, SubstitutionError
from envinject.loader import ConfigLoader, Configuration
from envinject.runner import SubstitutionRunner
from envinject.security import ValueMasker, MaskingFilter
from envinject.variables import collect_pairs


logger = logging.getLogger(__name__)


def setup_logging(args: Namespace):
    """Configure the root handler and the package log level."""
    log_level = getattr(logging, args.log_level.upper())
    if args.debug:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.ERROR
    elif args.verbose:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger('envinject').setLevel(log_level)


def build_overrides(args: Namespace) -> Dict[str, Any]:
    """Collect explicit CLI settings; unset flags are None and ignored."""
    return {
        'prefix_var': args.prefix_var,
        'roots_var': args.roots_var,
        'prefix': args.prefix,
        'roots': args.root,
        'follow_symlinks': args.follow_symlinks,
        'on_error': getattr(args, 'on_error', None),
        'mask_values': getattr(args, 'mask_values', None),
        'timeout': getattr(args, 'timeout', None),
        'dry_run': getattr(args, 'dry_run', None),
    }


def load_configuration(args: Namespace) -> Configuration:
    """Resolve the configuration from the environment, file and flags."""
    config_path: Optional[Path] = Path(args.config) if args.config else None
    return ConfigLoader().resolve(os.environ, config_path, build_overrides(args))


def log_configuration_errors(error: ConfigurationError):
    for item in error.errors:
        location = f" ({item.path})" if item.path else ""
        logger.error(f"Configuration error: {item.message}{location}")


def install_masking(config: Configuration) -> Optional[MaskingFilter]:
    """Attach a masking filter to every root handler when requested."""
    if not config.mask_values:
        return None

    masker = ValueMasker(pair.value for pair in collect_pairs(config.prefix, os.environ))
    masking_filter = MaskingFilter(masker)
    for handler in logging.getLogger().handlers:
        handler.addFilter(masking_filter)
    return masking_filter


def remove_masking(masking_filter: Optional[MaskingFilter]):
    if masking_filter is None:
        return
    for handler in logging.getLogger().handlers:
        handler.removeFilter(masking_filter)


def run_substitution(args: Namespace) -> int:
    """
    Substitute placeholders under every configured root.

    Returns:
        0 on success, 2 on configuration error, 1 on any I/O failure
    """
    setup_logging(args)

    try:
        config = load_configuration(args)
    except ConfigurationError as e:
        log_configuration_errors(e)
        return e.exit_code

    masking_filter = install_masking(config)
    try:
        SubstitutionRunner(config, os.environ).run()
        return 0

    except ConfigurationError as e:
        log_configuration_errors(e)
        return e.exit_code
    except RunFailedError as e:
        logger.error(f"Substitution incomplete, {len(e.errors)} file(s) failed")
        return e.exit_code
    except SubstitutionError as e:
        logger.error(f"Substitution failed at {e.stage} stage: {e}")
        return e.exit_code
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
    finally:
        remove_masking(masking_filter)

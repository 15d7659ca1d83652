"""
Substitution runner.

Walks every configured root once and applies all matching environment
variables to each target file in a single read/modify/write. Roots that
do not exist are skipped with a warning. I/O failures stop the run
immediately (on_error='stop') or are collected and reported at the end
(on_error='continue').
"""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Set

from envinject.exceptions import (
    ConfigurationError,
    RunFailedError,
    SubstitutionError,
    SubstitutionTimeout,
    ValidationError,
)
from envinject.fs import is_directory, iter_target_files, read_target, write_in_place
from envinject.loader import Configuration
from envinject.variables import PlaceholderSubstitutor, collect_pairs, find_overlapping_keys


logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a substitution run."""
    keys: List[str] = field(default_factory=list)
    roots_scanned: List[Path] = field(default_factory=list)
    roots_skipped: List[Path] = field(default_factory=list)
    files_scanned: int = 0
    files_changed: int = 0
    replacements: int = 0
    changed_files: List[Path] = field(default_factory=list)
    errors: List[SubstitutionError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


def check_configuration(config: Configuration):
    """Fail fast before any file is touched."""
    errors = []
    if not config.prefix:
        errors.append(ValidationError(f"{config.prefix_var} must be set to a non-empty prefix", 'prefix'))
    if not config.roots:
        errors.append(ValidationError(f"{config.roots_var} must be set to one or more paths", 'roots'))
    if errors:
        raise ConfigurationError(errors)


class SubstitutionRunner:
    """Runs the placeholder substitution for one Configuration."""

    def __init__(
        self,
        config: Configuration,
        environ: Optional[Mapping[str, str]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the runner.

        Args:
            config: Resolved configuration
            environ: Environment to take substitution pairs from (default os.environ)
            clock: Monotonic clock used for the deadline
        """
        check_configuration(config)
        self.config = config
        self.environ = os.environ if environ is None else environ
        self.clock = clock
        self._deadline: Optional[float] = None

    def run(self) -> RunResult:
        """
        Apply all substitution pairs to every file under every root.

        Returns:
            RunResult describing what was done

        Raises:
            SubstitutionError: First I/O failure when on_error is 'stop'
            SubstitutionTimeout: When the deadline passes
            RunFailedError: When on_error is 'continue' and any file failed
        """
        config = self.config
        result = RunResult(dry_run=config.dry_run)

        if config.timeout is not None:
            self._deadline = self.clock() + config.timeout

        # Computed once per invocation
        pairs = collect_pairs(config.prefix, self.environ)
        result.keys = [pair.key for pair in pairs]
        substitutor = PlaceholderSubstitutor(pairs)

        if not pairs:
            logger.warning(f"No environment variables found with prefix '{config.prefix}'")
        for shorter, longer in find_overlapping_keys(pairs):
            logger.warning(
                f"Key '{shorter}' is a substring of '{longer}'; "
                f"the result of replacing either is undefined"
            )

        seen: Set[str] = set()
        for root in config.roots:
            try:
                exists = is_directory(root)
            except SubstitutionError as e:
                self._handle_error(e, result)
                continue
            if not exists:
                logger.warning(f"Directory '{root}' not found, skipping.")
                result.roots_skipped.append(root)
                continue

            logger.info(f"Scanning directory: {root}")
            result.roots_scanned.append(root)
            for pair in pairs:
                logger.info(f"  • Replacing {pair.key} → {pair.value}")

            if not pairs:
                continue

            try:
                for path in iter_target_files(root, follow_symlinks=config.follow_symlinks):
                    self._check_deadline(path)
                    real_path = os.path.realpath(path)
                    if real_path in seen:
                        continue
                    seen.add(real_path)
                    self._process_file(path, substitutor, result)
            except SubstitutionTimeout:
                raise
            except SubstitutionError as e:
                # Directory listing failures abandon the rest of this root
                self._handle_error(e, result)

        verb = "would change" if config.dry_run else "changed"
        logger.info(
            f"Applied {len(pairs)} key(s) across {len(result.roots_scanned)} root(s): "
            f"{result.files_scanned} file(s) scanned, {result.files_changed} {verb}, "
            f"{result.replacements} replacement(s)"
        )

        if result.errors:
            raise RunFailedError(result.errors, result)

        return result

    def _process_file(self, path: Path, substitutor: PlaceholderSubstitutor, result: RunResult):
        """Substitute one file, handling errors according to on_error."""
        result.files_scanned += 1
        try:
            content = read_target(path)
            new_content, counts = substitutor.substitute(content)
            if not counts:
                return

            if self.config.dry_run:
                logger.info(f"[DRY RUN] Would rewrite {path} ({sum(counts.values())} replacement(s))")
            else:
                write_in_place(path, new_content)
                logger.debug(f"Rewrote {path}: {counts}")

            result.files_changed += 1
            result.replacements += sum(counts.values())
            result.changed_files.append(path)
        except SubstitutionError as e:
            self._handle_error(e, result)

    def _handle_error(self, error: SubstitutionError, result: RunResult):
        if self.config.on_error == 'stop':
            raise error
        logger.error(str(error))
        result.errors.append(error)

    def _check_deadline(self, path: Path):
        if self._deadline is not None and self.clock() > self._deadline:
            raise SubstitutionTimeout(path, self.config.timeout)


def run(config: Configuration, environ: Optional[Mapping[str, str]] = None) -> RunResult:
    """Run the substitution for config. See SubstitutionRunner.run."""
    return SubstitutionRunner(config, environ).run()


def find_leftover_placeholders(
    config: Configuration,
    environ: Optional[Mapping[str, str]] = None
) -> Dict[Path, List[str]]:
    """
    Report files that still contain placeholders.

    When matching variables are set, looks for their keys; otherwise looks
    for the bare prefix.

    Returns:
        {path: [tokens found]} for every offending file

    Raises:
        SubstitutionError: If a root, directory or file cannot be examined
    """
    check_configuration(config)
    environ = os.environ if environ is None else environ
    substitutor = PlaceholderSubstitutor(collect_pairs(config.prefix, environ))
    prefix_bytes = os.fsencode(config.prefix)

    leftovers: Dict[Path, List[str]] = {}
    for root in config.roots:
        if not is_directory(root):
            logger.warning(f"Directory '{root}' not found, skipping.")
            continue
        for path in iter_target_files(root, follow_symlinks=config.follow_symlinks):
            content = read_target(path)
            if substitutor.pairs:
                found = substitutor.contains_any(content)
            else:
                found = [config.prefix] if prefix_bytes in content else []
            if found:
                leftovers[path] = found
    return leftovers

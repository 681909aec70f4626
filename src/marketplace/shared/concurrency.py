"""Optimistic concurrency helpers.

Protean stamps every aggregate with a ``_version`` and refuses to persist an
aggregate loaded at an older version (``ExpectedVersionError``). Commands
whose handlers reload the aggregate can simply be run again.
"""

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from marketplace.domain import logger

MAX_ATTEMPTS = 3


def process_with_retry(command, attempts: int = MAX_ATTEMPTS, process=None):
    """Process ``command`` synchronously, retrying on version conflicts.

    The last conflict propagates once ``attempts`` runs have failed.
    """
    process = process or (lambda cmd: current_domain.process(cmd, asynchronous=False))
    for attempt in range(1, attempts + 1):
        try:
            return process(command)
        except ExpectedVersionError:
            if attempt == attempts:
                raise
            logger.info(
                "version_conflict_retry",
                command=type(command).__name__,
                attempt=attempt,
            )

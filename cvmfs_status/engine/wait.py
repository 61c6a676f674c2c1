"""
Revision Wait — Re-run the pipeline until a revision reached every endpoint.

Total unavailability ends the wait immediately: no amount of waiting makes
a down repository converge.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..models.endpoint import RepositoryAssessment, Verdict
from .aggregate import aggregate

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 20
WAIT_TIMED_OUT = "revision wait timed out"


def wait_for_revision(
    run: Callable[[], RepositoryAssessment],
    target_revision: Optional[int],
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    max_attempts: Optional[int] = None,
) -> RepositoryAssessment:
    """
    Run ``run`` until every reachable endpoint serves ``target_revision``.

    Args:
        run: executes the full pipeline once
        target_revision: revision to wait for; None runs exactly once
        interval_seconds: pause between attempts
        sleep: sleep function (injectable for tests)
        max_attempts: give up after this many runs; None waits forever

    Returns:
        The last assessment
    """
    attempt = 0
    while True:
        attempt += 1
        assessment = run()

        if assessment.verdict == Verdict.DOWN:
            logger.warning(
                f"{assessment.repository} is down, not waiting",
                extra={"repository": assessment.repository, "attempt": attempt},
            )
            return assessment

        if target_revision is None:
            return assessment

        current = assessment.min_revision
        if current >= target_revision:
            logger.info(
                f"Revision {target_revision} reached everywhere after {attempt} attempt(s)",
                extra={"repository": assessment.repository, "attempt": attempt},
            )
            return assessment

        if max_attempts is not None and attempt >= max_attempts:
            logger.warning(
                f"Gave up waiting for revision {target_revision} at {current}",
                extra={"repository": assessment.repository, "attempt": attempt},
            )
            assessment.degradations.add(WAIT_TIMED_OUT)
            assessment.verdict = aggregate(assessment)
            return assessment

        logger.info(
            f"Minimum revision {current} < {target_revision}, "
            f"retrying in {interval_seconds:.0f}s",
            extra={"repository": assessment.repository, "attempt": attempt},
        )
        sleep(interval_seconds)

"""
JobPoller - wait for an appliance installation job to reach a terminal state.

Turns the fire-and-forget "trigger installation" call into a blocking
operation:

    QUEUED/RUNNING  -> sleep, poll again
    SUCCEEDED       -> return
    FAILED          -> InstallationError (with the appliance's reason)
    deadline passed -> InstallationTimeoutError (outcome unknown)

Transient status-query failures are retried up to a bounded number of
consecutive times before escalating.
"""

from dataclasses import dataclass

from opsdeploy.core.protocols import Logger, TimeProvider
from .base import ApplianceApi, JobStatus, JobStatusReport
from .exceptions import (
    ApplianceUnavailableError,
    ConfigurationError,
    InstallationError,
    InstallationTimeoutError,
)


@dataclass(frozen=True)
class PollingPolicy:
    """
    Polling cadence and limits.

    Attributes:
        interval: Seconds to wait before the first re-poll
        backoff: Multiplier applied to the interval after each poll (1.0 = fixed)
        max_interval: Upper bound for the interval
        timeout: Overall deadline in seconds for reaching a terminal state
        max_query_retries: Consecutive transient query failures tolerated
    """
    interval: float = 5.0
    backoff: float = 1.0
    max_interval: float = 30.0
    timeout: float = 7200.0
    max_query_retries: int = 5

    def __post_init__(self):
        if self.interval <= 0 or self.max_interval <= 0:
            raise ConfigurationError("Polling interval must be positive")
        if self.backoff < 1.0:
            raise ConfigurationError("Polling backoff must be >= 1.0")
        if self.timeout <= 0:
            raise ConfigurationError("Polling timeout must be positive")
        if self.max_query_retries < 0:
            raise ConfigurationError("max_query_retries must be >= 0")

    def next_interval(self, current: float) -> float:
        return min(current * self.backoff, self.max_interval)


class JobPoller:
    """Polls one installation job until it succeeds, fails or times out."""

    def __init__(
        self,
        api: ApplianceApi,
        time_provider: TimeProvider,
        logger: Logger,
        policy: PollingPolicy = PollingPolicy()
    ):
        self.api = api
        self.time = time_provider
        self.log = logger
        self.policy = policy

    def wait_for_result(self, job_id: int) -> JobStatusReport:
        """
        Block until the job reaches a terminal state.

        Args:
            job_id: Id returned by ApplianceApi.trigger_install()

        Returns:
            The final SUCCEEDED report

        Raises:
            InstallationError: Job ended in FAILED, or the appliance does not know it
            InstallationTimeoutError: Deadline elapsed with only QUEUED/RUNNING observed
            ApplianceUnavailableError: Status query kept failing past max_query_retries
        """
        deadline = self.time.current_time() + self.policy.timeout
        interval = min(self.policy.interval, self.policy.max_interval)
        failures = 0
        last_status = None

        while True:
            try:
                report = self.api.get_installation_status(job_id)
            except ApplianceUnavailableError as e:
                failures += 1
                if failures > self.policy.max_query_retries:
                    self.log.error(
                        f"Lost contact with appliance while polling installation {job_id} "
                        f"({failures} consecutive failures)"
                    )
                    raise
                self.log.warning(
                    f"Status query for installation {job_id} failed "
                    f"({failures}/{self.policy.max_query_retries}): {e}"
                )
            else:
                failures = 0
                if report.status is not last_status:
                    self.log.info(f"  Installation {job_id}: {report.status.value}")
                last_status = report.status

                if report.status.is_terminal:
                    if report.status is JobStatus.FAILED:
                        raise InstallationError(job_id, report.reason)
                    return report

            remaining = deadline - self.time.current_time()
            if remaining <= 0:
                raise InstallationTimeoutError(job_id, self.policy.timeout, last_status)

            self.time.sleep(min(interval, remaining))
            interval = self.policy.next_interval(interval)

from typing import Optional


class InspectorError(Exception):
    """Base class for inspector exceptions."""


class ConfigError(InspectorError):
    """Exception raised when settings or project IDs are missing or invalid."""


class InvalidTarget(InspectorError):
    """Exception raised when a storage target cannot be inspected."""


class JobNotificationTimeout(InspectorError):
    """Exception raised when no completion notification arrives for a job."""

    def __init__(self, job_name: str, timeout: Optional[float]) -> None:
        self.job_name = job_name
        self.timeout = timeout
        super().__init__(
            "No notification for job '{}' within {} seconds.".format(job_name, timeout)
        )


class SubscriptionClosed(InspectorError):
    """Exception raised when the streaming pull ends before the job's notification."""

    def __init__(self, subscription: str, job_name: str) -> None:
        self.subscription = subscription
        self.job_name = job_name
        super().__init__(
            "Subscription '{}' closed before job '{}' reported completion.".format(
                subscription, job_name
            )
        )

"""
Deployment exceptions.

Custom exceptions for product deployment failures with actionable error messages.

Hierarchy:
    OpsDeployError
        ConfigurationError        (fatal, reported immediately)
            VersionFormatError
            DowngradeError
        ApplianceApiError         (carries the appliance's own payload)
            ApplianceUnavailableError
            SettingsError
            UpgradeError
        InstallationError         (job reported failure, or job unknown)
        InstallationTimeoutError  (deadline exceeded, outcome unknown)
        MergeError
"""

from typing import Optional


class OpsDeployError(Exception):
    """Base class for every fatal error raised by opsdeploy."""
    pass


class ConfigurationError(OpsDeployError):
    """
    Raised when the deployment configuration is unusable.

    Examples:
        - Missing target or credentials
        - Missing product name, file path or settings template
    """
    pass


class VersionFormatError(ConfigurationError):
    """Raised when a version string has a non-numeric or empty segment."""

    def __init__(self, version: str, detail: str = "expected dot-separated non-negative integers"):
        self.version = version
        super().__init__(f"Invalid version '{version}': {detail}")


class DowngradeError(ConfigurationError):
    """
    Raised when the installed version is newer than the desired one.

    The appliance has no downgrade path, so this is treated as a
    configuration mistake rather than silently redeploying.
    """

    def __init__(self, name: str, current_version, desired_version):
        self.name = name
        self.current_version = current_version
        self.desired_version = desired_version
        super().__init__(
            f"{name} is installed at {current_version}, which is newer than the "
            f"desired version {desired_version}\n"
            f"Downgrades are not supported. Update 'desired_version' in the "
            f"config, or pass --force to redeploy the current settings."
        )


class ApplianceApiError(OpsDeployError):
    """
    Raised when the appliance rejects a request.

    Attributes:
        status_code: HTTP status code, if a response was received
        payload: Response body as returned by the appliance
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[str] = None):
        self.status_code = status_code
        self.payload = payload
        if payload:
            message = f"{message}\nAppliance response: {payload}"
        super().__init__(message)


class ApplianceUnavailableError(ApplianceApiError):
    """
    Raised on transient failures reaching the appliance.

    Covers connection timeouts, unreachable hosts and fatal (5xx) responses.
    Installation lookup treats this as "no information available"; every
    other caller lets it propagate.
    """
    pass


class SettingsError(ApplianceApiError):
    """Raised when the appliance rejects uploaded installation settings."""
    pass


class UpgradeError(ApplianceApiError):
    """Raised when the appliance rejects a product installation upgrade."""
    pass


class InstallationError(OpsDeployError):
    """
    Raised when an installation job ends in failure.

    Also raised when the appliance reports that the job does not exist
    or returns a status that cannot be interpreted.
    """

    def __init__(self, job_id, reason: Optional[str] = None):
        self.job_id = job_id
        self.reason = reason
        message = f"Installation {job_id} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InstallationTimeoutError(OpsDeployError):
    """
    Raised when an installation job does not finish before the deadline.

    The job may still be running on the appliance; nothing is rolled back.
    """

    def __init__(self, job_id, timeout: float, last_status=None):
        self.job_id = job_id
        self.timeout = timeout
        self.last_status = last_status
        super().__init__(
            f"Installation {job_id} did not finish within {timeout:.0f}s "
            f"(last status: {last_status.value if last_status else 'unknown'})\n"
            f"The job may still be running on the appliance. Check the "
            f"installation log before triggering another deployment."
        )


class MergeError(OpsDeployError):
    """Raised when the settings merge tool is missing or exits non-zero."""
    pass

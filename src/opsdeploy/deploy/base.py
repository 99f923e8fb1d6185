"""
Deployment types and collaborator protocols.

This module defines the value types the deployment engine works with and the
narrow interfaces it needs from the outside world:
    - ApplianceApi: the remote management appliance (Ops Manager)
    - SettingsMerger: the installation settings merge tool (spruce)

Any concrete client implementing these methods can be passed to the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, Optional, runtime_checkable

from .version import Version


class DeploymentAction(Enum):
    """What the engine decided to do with the product."""
    DEPLOY = "deploy"
    UPGRADE = "upgrade"
    SKIP = "skip"


class JobStatus(Enum):
    """
    Installation job states.

    QUEUED -> RUNNING -> {SUCCEEDED, FAILED}
    """
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass(frozen=True)
class JobStatusReport:
    """One observation of an installation job's status."""
    status: JobStatus
    reason: Optional[str] = None


@dataclass(frozen=True)
class DesiredRelease:
    """
    The product release this run should leave on the appliance.

    Attributes:
        name: Product name as the appliance knows it (e.g., "p-bosh")
        version: Target version string from the config (e.g., "1.6.4")
        filepath: Path to the .pivotal artifact to upload
        installation_settings_file: Settings template merged over the
            appliance's current installation settings on deploy
        stemcell: Optional stemcell to import before deploying
        desired_version: Parsed form of ``version``, derived once

    Raises:
        VersionFormatError: If ``version`` cannot be parsed
    """
    name: str
    version: str
    filepath: str
    installation_settings_file: str
    stemcell: Optional[str] = None
    desired_version: Version = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'desired_version', Version.parse(self.version))


@dataclass
class DeploymentResult:
    """
    Outcome of one deployment run.

    Attributes:
        action: Action the engine selected
        name: Product name
        version: Desired version string
        job_id: Installation job id (None when skipped)
        previous_version: Version installed before the run, if any
    """
    action: DeploymentAction
    name: str
    version: str
    job_id: Optional[int] = None
    previous_version: Optional[Version] = None

    @property
    def skipped(self) -> bool:
        return self.action is DeploymentAction.SKIP


@runtime_checkable
class ApplianceApi(Protocol):
    """
    Interface to the remote management appliance.

    Implementations:
        - OpsManagerClient: Ops Manager HTTP API over httpx

    Transient failures (connect timeout, host unreachable, fatal 5xx
    response) are raised as ApplianceUnavailableError so that callers
    which tolerate them can tell them apart from rejections.
    """

    def list_installations(self) -> list[dict]:
        """
        List product installations on the appliance.

        Returns:
            [{"name": str, "version": str, "guid": str, "prepared": bool}, ...]

        Raises:
            ApplianceUnavailableError: On transient network failure
        """
        ...

    def list_available_products(self) -> list[dict]:
        """
        List uploaded (available) products in the appliance catalog.

        Returns:
            [{"name": str, "product_version": str}, ...]
        """
        ...

    def upload_artifact(self, path: str) -> None:
        """Upload a product artifact (.pivotal file)."""
        ...

    def download_settings(self) -> str:
        """Download the current installation settings document."""
        ...

    def upload_settings(self, document: str) -> None:
        """
        Upload an installation settings document.

        Raises:
            SettingsError: If the appliance rejects the document
        """
        ...

    def trigger_install(self) -> int:
        """Start an installation job and return its id."""
        ...

    def get_installation_status(self, job_id: int) -> JobStatusReport:
        """
        Fetch the status of an installation job.

        Raises:
            InstallationError: If the job does not exist or the report is malformed
            ApplianceUnavailableError: On transient network failure
        """
        ...

    def upgrade_installation(self, guid: str, version: str) -> None:
        """
        Bind an existing product installation to a new product version.

        Raises:
            UpgradeError: If the appliance rejects the upgrade
        """
        ...

    def import_stemcell(self, path: Optional[str]) -> None:
        """Import a stemcell. No-op when path is empty."""
        ...


@runtime_checkable
class SettingsMerger(Protocol):
    """
    Interface to the installation settings merge tool.

    Merge semantics belong to the tool; the engine only relies on
    "overlay values win on conflict, result is a settings document".
    """

    def merge(self, base_path: str, overlay_path: str) -> str:
        """
        Merge overlay_path over base_path and return the merged document.

        Raises:
            MergeError: If the merge tool is unavailable or fails
        """
        ...

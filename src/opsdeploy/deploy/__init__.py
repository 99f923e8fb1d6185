"""
Product deployment subsystem.

Decides between deploy, upgrade and skip for one product on one appliance
and drives the resulting installation job to a terminal state.

Public API:
    - DeploymentEngine, decide_action: Orchestration
    - JobPoller, PollingPolicy: Installation job tracking
    - InstallationRecord, find_installation: Existing installation lookup
    - Version, parse_version, compare_versions: Version ordering
    - ApplianceApi, SettingsMerger: Collaborator protocols
    - DesiredRelease, DeploymentResult, DeploymentAction, JobStatus: Types
    - OpsDeployError and subclasses: Exceptions
"""

from .exceptions import (
    OpsDeployError,
    ConfigurationError,
    VersionFormatError,
    DowngradeError,
    ApplianceApiError,
    ApplianceUnavailableError,
    SettingsError,
    UpgradeError,
    InstallationError,
    InstallationTimeoutError,
    MergeError,
)
from .version import Version, parse_version, compare_versions
from .base import (
    ApplianceApi,
    SettingsMerger,
    DeploymentAction,
    DeploymentResult,
    DesiredRelease,
    JobStatus,
    JobStatusReport,
)
from .installation import InstallationRecord, find_installation
from .poller import JobPoller, PollingPolicy
from .engine import DeploymentEngine, decide_action

__all__ = [
    # Orchestration
    "DeploymentEngine",
    "decide_action",
    "JobPoller",
    "PollingPolicy",
    "InstallationRecord",
    "find_installation",

    # Versions
    "Version",
    "parse_version",
    "compare_versions",

    # Protocols and types
    "ApplianceApi",
    "SettingsMerger",
    "DeploymentAction",
    "DeploymentResult",
    "DesiredRelease",
    "JobStatus",
    "JobStatusReport",

    # Exceptions
    "OpsDeployError",
    "ConfigurationError",
    "VersionFormatError",
    "DowngradeError",
    "ApplianceApiError",
    "ApplianceUnavailableError",
    "SettingsError",
    "UpgradeError",
    "InstallationError",
    "InstallationTimeoutError",
    "MergeError",
]

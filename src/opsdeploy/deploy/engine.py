"""
DeploymentEngine - decide between deploy, upgrade and skip, then drive it.

Decision table (record = existing installation, desired = target version):

    no record                         -> DEPLOY
    record, forced                    -> DEPLOY
    record, not prepared              -> SKIP (a job is already pending)
    record, prepared, current <  desired -> UPGRADE
    record, prepared, current == desired -> DEPLOY (re-apply settings)
    record, prepared, current >  desired -> DowngradeError

The prepared check is read-then-act: another job can still be started on the
appliance between the check and our trigger. The appliance is the authority
and will reject or serialize the second job.
"""

import os
import tempfile
from typing import Optional

from opsdeploy.core.protocols import FileSystemService, Logger, TimeProvider
from .base import (
    ApplianceApi,
    DeploymentAction,
    DeploymentResult,
    DesiredRelease,
    SettingsMerger,
)
from .exceptions import DowngradeError
from .installation import InstallationRecord, find_installation
from .poller import JobPoller, PollingPolicy
from .version import Version

CURRENT_SETTINGS_FILE = 'installation_settings.json'
MERGED_SETTINGS_FILE = 'merged_installation_settings.yml'


def decide_action(
    record: Optional[InstallationRecord],
    desired_version: Version,
    forced: bool = False
) -> DeploymentAction:
    """
    Select the action for an installation record and desired version.

    Raises:
        DowngradeError: If the installed version is newer than desired
    """
    if record is None or forced:
        return DeploymentAction.DEPLOY
    if not record.prepared:
        return DeploymentAction.SKIP

    order = record.current_version.compare(desired_version)
    if order < 0:
        return DeploymentAction.UPGRADE
    if order == 0:
        return DeploymentAction.DEPLOY
    raise DowngradeError(record.name, record.current_version, desired_version)


class DeploymentEngine:
    """
    Orchestrates one product deployment against one appliance.

    Args:
        release: Product release to converge on
        api: Appliance client
        merger: Installation settings merge strategy
        filesystem: Filesystem abstraction for the temporary settings files
        time_provider: Time abstraction used while polling
        logger: Progress output
        polling: Polling cadence and deadline for installation jobs
        forced: Deploy even if an installation exists or is pending
    """

    def __init__(
        self,
        release: DesiredRelease,
        api: ApplianceApi,
        merger: SettingsMerger,
        filesystem: FileSystemService,
        time_provider: TimeProvider,
        logger: Logger,
        polling: PollingPolicy = PollingPolicy(),
        forced: bool = False
    ):
        self.release = release
        self.api = api
        self.merger = merger
        self.fs = filesystem
        self.time = time_provider
        self.log = logger
        self.polling = polling
        self.forced = forced

    def installation(self) -> Optional[InstallationRecord]:
        """Fetch a fresh installation record; never cached."""
        return find_installation(self.api, self.release.name, self.log)

    def run(self) -> DeploymentResult:
        """
        Converge the appliance on the desired release.

        Returns:
            DeploymentResult describing what was done

        Raises:
            OpsDeployError: Any fatal error; nothing is rolled back
        """
        record = self.installation()
        action = decide_action(record, self.release.desired_version, self.forced)
        previous = record.current_version if record else None

        if action is DeploymentAction.SKIP:
            self.log.warning(
                f"====> Skipping {self.release.name}: the product has a pending installation!"
            )
            return DeploymentResult(action, self.release.name, self.release.version,
                                    previous_version=previous)

        if self.release.stemcell:
            self.log.info(f"====> Uploading stemcell {self.release.stemcell}...")
        self.api.import_stemcell(self.release.stemcell)

        if action is DeploymentAction.UPGRADE:
            job_id = self.upgrade(record)
        else:
            job_id = self.deploy()

        self.log.info("====> Finish!")
        return DeploymentResult(action, self.release.name, self.release.version,
                                job_id=job_id, previous_version=previous)

    def upload(self) -> None:
        """Upload the product artifact unless the catalog already has it."""
        self.log.info("====> Uploading product...")
        if self.artifact_exists():
            self.log.info("  product already exists")
            return
        self.api.upload_artifact(self.release.filepath)
        self.log.info("  done")

    def artifact_exists(self) -> bool:
        """Check the appliance catalog for this product name and version."""
        for product in self.api.list_available_products():
            if product.get('name') != self.release.name:
                continue
            available = Version.from_product_version(product.get('product_version'))
            if available is not None and available == self.release.desired_version:
                return True
        return False

    def deploy(self) -> int:
        """Upload, merge and upload settings, trigger and wait. Returns the job id."""
        self.log.info(f"====> Deploying {self.release.name} version {self.release.version}...")
        self.upload()

        with tempfile.TemporaryDirectory(prefix='opsdeploy_') as workdir:
            current_path = os.path.join(workdir, CURRENT_SETTINGS_FILE)
            merged_path = os.path.join(workdir, MERGED_SETTINGS_FILE)

            self.log.info("====> Merging installation settings...")
            self.fs.write_file(current_path, self.api.download_settings())
            merged = self.merger.merge(current_path, self.release.installation_settings_file)
            self.fs.write_file(merged_path, merged)

            self.log.info("====> Uploading installation settings...")
            self.api.upload_settings(self.fs.read_file(merged_path))

        return self.trigger_and_wait()

    def upgrade(self, record: InstallationRecord) -> int:
        """Upload, bind the installation to the new version, trigger and wait."""
        self.log.info(
            f"====> Upgrading {self.release.name} version from "
            f"{record.current_version} to {self.release.version}..."
        )
        self.upload()
        self.api.upgrade_installation(record.guid, self.release.version)
        return self.trigger_and_wait()

    def trigger_and_wait(self) -> int:
        job_id = self.api.trigger_install()
        self.log.info(f"====> Installation {job_id} triggered, waiting for result...")
        JobPoller(self.api, self.time, self.log, self.polling).wait_for_result(job_id)
        return job_id

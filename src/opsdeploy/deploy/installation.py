"""Lookup of an existing product installation on the appliance."""

from dataclasses import dataclass
from typing import Optional

from opsdeploy.core.protocols import Logger
from .base import ApplianceApi
from .exceptions import ApplianceApiError, ApplianceUnavailableError, VersionFormatError
from .version import Version


@dataclass(frozen=True)
class InstallationRecord:
    """
    Snapshot of an installed product.

    A record is stale as soon as a job is triggered; fetch a new one with
    find_installation() instead of reusing it.

    Attributes:
        name: Product name
        guid: Appliance identifier of the installation
        current_version: Product version bound to the installation
        prepared: True if no installation job is pending for the product
    """
    name: str
    guid: str
    current_version: Version
    prepared: bool


def find_installation(
    api: ApplianceApi,
    name: str,
    logger: Optional[Logger] = None
) -> Optional[InstallationRecord]:
    """
    Return the installation record for a product, or None if there is none.

    Transient failures reaching the appliance are treated as "nothing
    installed": a freshly provisioned appliance often refuses connections
    until it has been set up. Every other error propagates.

    Args:
        api: Appliance client
        name: Product name to look for
        logger: Optional logger for the swallowed transient failure

    Returns:
        InstallationRecord, or None

    Raises:
        ApplianceApiError: The matching entry lacks a guid or a version
        VersionFormatError: The appliance reported an unparseable version
    """
    try:
        installations = api.list_installations()
    except ApplianceUnavailableError as e:
        if logger:
            logger.debug(f"Could not list installations, assuming none: {e}")
        return None

    for entry in installations:
        if entry.get('name') != name:
            continue
        # guid and version are present together or the entry is unusable
        missing = [key for key in ('guid', 'version') if not entry.get(key)]
        if missing:
            raise ApplianceApiError(
                f"Appliance reported installation '{name}' without {' or '.join(missing)}",
                payload=str(entry),
            )
        current_version = Version.from_product_version(entry.get('version'))
        if current_version is None:
            raise VersionFormatError(
                str(entry.get('version')),
                'appliance reported an unparseable product version'
            )
        return InstallationRecord(
            name=name,
            guid=entry['guid'],
            current_version=current_version,
            prepared=bool(entry.get('prepared', False)),
        )
    return None

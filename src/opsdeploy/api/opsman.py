"""
OpsManagerClient - Ops Manager HTTP API client.

Implements the ApplianceApi protocol on top of httpx, plus the appliance
setup calls used outside the deployment engine (first-user creation,
director version probing, product cleanup, installation asset export and
import).

Error mapping:
    connect/read timeout, connection error, 5xx -> ApplianceUnavailableError
    settings upload rejected                    -> SettingsError
    upgrade rejected                            -> UpgradeError
    unknown job / malformed job status          -> InstallationError
    any other non-2xx                           -> ApplianceApiError
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from opsdeploy.deploy import (
    ApplianceApiError,
    ApplianceUnavailableError,
    InstallationError,
    JobStatus,
    JobStatusReport,
    SettingsError,
    UpgradeError,
    Version,
)
from opsdeploy.utils.config import ApplianceTarget

logger = logging.getLogger(__name__)

DIRECTOR_PRODUCT_NAME = 'p-bosh'
SETUP_ENDPOINT_SINCE = Version.parse('1.6')
INSTALLATION_ASSETS_ENDPOINT = '/api/installation_asset_collection'
INSTALLATION_ASSETS_FILE = 'installation_assets.zip'

# Appliance status strings -> JobStatus
STATUS_MAP = {
    'queued': JobStatus.QUEUED,
    'pending': JobStatus.QUEUED,
    'running': JobStatus.RUNNING,
    'success': JobStatus.SUCCEEDED,
    'succeeded': JobStatus.SUCCEEDED,
    'failed': JobStatus.FAILED,
    'failure': JobStatus.FAILED,
}


class OpsManagerClient:
    """
    Ops Manager API client.

    Args:
        appliance: Target address and credentials
        timeout: Per-request timeout in seconds
        verify: Verify TLS certificates (appliances ship self-signed ones)
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        appliance: ApplianceTarget,
        timeout: float = 30.0,
        verify: bool = False,
        transport: Optional[httpx.BaseTransport] = None
    ):
        target = appliance.target
        if not target.startswith(('http://', 'https://')):
            target = f"https://{target}"
        self.base_url = target.rstrip('/')
        self.client = httpx.Client(
            base_url=self.base_url,
            auth=(appliance.username, appliance.password),
            verify=verify,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _request(self, method: str, path: str, transient_5xx: bool = True, **kwargs) -> httpx.Response:
        """Send a request, mapping network failures to ApplianceUnavailableError."""
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ApplianceUnavailableError(f"Timed out talking to {self.base_url}: {e}")
        except httpx.ConnectError as e:
            raise ApplianceUnavailableError(f"Could not reach {self.base_url}: {e}")
        except httpx.RequestError as e:
            raise ApplianceApiError(f"{method} {path} failed: {e}")

        logger.debug("%s %s -> %s", method, path, response.status_code)
        if transient_5xx and response.status_code >= 500:
            raise ApplianceUnavailableError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
                payload=response.text,
            )
        return response

    @staticmethod
    def _check(response: httpx.Response, error_cls=ApplianceApiError) -> httpx.Response:
        if response.is_success:
            return response
        raise error_cls(
            f"{response.request.method} {response.request.url.path} "
            f"returned {response.status_code}",
            status_code=response.status_code,
            payload=response.text,
        )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise ApplianceApiError(
                f"{response.request.url.path} returned a non-JSON body",
                status_code=response.status_code,
                payload=response.text,
            )

    def _upload_file(self, path: str, url: str, field: str) -> httpx.Response:
        with open(path, 'rb') as f:
            files = {field: (os.path.basename(path), f, 'application/octet-stream')}
            return self._request('POST', url, files=files)

    # ApplianceApi

    def list_installations(self) -> List[Dict[str, Any]]:
        response = self._check(self._request('GET', '/api/installation_settings'))
        settings = self._json(response)
        if not isinstance(settings, dict):
            raise ApplianceApiError(
                "Installation settings are not a JSON object",
                status_code=response.status_code,
                payload=response.text,
            )
        installations = []
        for product in settings.get('products', []):
            installations.append({
                'name': product.get('identifier'),
                'version': product.get('product_version'),
                'guid': product.get('guid'),
                'prepared': bool(product.get('prepared', False)),
            })
        return installations

    def list_available_products(self) -> List[Dict[str, Any]]:
        return self._json(self._check(self._request('GET', '/api/products')))

    def upload_artifact(self, path: str) -> None:
        self._check(self._upload_file(path, '/api/products', 'product[file]'))

    def download_settings(self) -> str:
        return self._check(self._request('GET', '/api/installation_settings')).text

    def upload_settings(self, document: str) -> None:
        files = {'installation[file]': ('installation_settings.yml', document, 'text/yaml')}
        response = self._request('POST', '/api/installation_settings', transient_5xx=False, files=files)
        self._check(response, SettingsError)

    def trigger_install(self) -> int:
        response = self._check(self._request(
            'POST', '/api/installation', data={'ignore_warnings': 'true'}
        ))
        body = self._json(response)
        try:
            return int(body['install']['id'])
        except (KeyError, TypeError, ValueError):
            raise ApplianceApiError(
                "Installation was triggered but no job id was returned",
                status_code=response.status_code,
                payload=response.text,
            )

    def get_installation_status(self, job_id: int) -> JobStatusReport:
        response = self._request('GET', f'/api/installation/{job_id}')
        if not response.is_success:
            raise InstallationError(job_id, f"appliance returned {response.status_code}: {response.text}")

        try:
            body = response.json()
            raw_status = str(body['status']).lower()
        except (ValueError, KeyError, TypeError):
            raise InstallationError(job_id, f"malformed status report: {response.text}")

        status = STATUS_MAP.get(raw_status)
        if status is None:
            raise InstallationError(job_id, f"unknown status '{raw_status}'")
        return JobStatusReport(status=status, reason=body.get('reason') or body.get('error'))

    def upgrade_installation(self, guid: str, version: str) -> None:
        response = self._request(
            'PUT', f'/api/installation_settings/products/{guid}',
            transient_5xx=False, data={'to_version': version}
        )
        self._check(response, UpgradeError)

    def import_stemcell(self, path: Optional[str]) -> None:
        if not path:
            return
        self._check(self._upload_file(path, '/api/stemcells', 'stemcell[file]'))

    # Appliance setup

    def current_version(self) -> Optional[str]:
        """
        Newest director version in the product catalog.

        Returns None if the appliance cannot be reached, which is the normal
        state of an appliance that has not been provisioned yet.
        """
        try:
            products = self.list_available_products()
        except ApplianceUnavailableError as e:
            logger.debug("Director version unavailable: %s", e)
            return None

        versions = [
            p['product_version'] for p in products
            if p.get('name') == DIRECTOR_PRODUCT_NAME
            and Version.from_product_version(p.get('product_version')) is not None
        ]
        if not versions:
            return None
        return max(versions, key=Version.from_product_version)

    def create_user(self, version: str, username: str, password: str) -> None:
        """Create the first admin user; the endpoint changed in 1.6."""
        if Version.parse(version) < SETUP_ENDPOINT_SINCE:
            url = '/api/users'
            data = {
                'user[user_name]': username,
                'user[password]': password,
                'user[password_confirmation]': password,
            }
        else:
            url = '/api/setup'
            data = {
                'setup[user_name]': username,
                'setup[password]': password,
                'setup[password_confirmation]': password,
                'setup[eula_accepted]': 'true',
            }
        self._check(self._request('POST', url, data=data))

    def delete_products(self) -> None:
        """Delete every uploaded product that is not installed."""
        self._check(self._request('DELETE', '/api/products'))

    # Installation assets

    def download_installation_assets(self, dest: str = INSTALLATION_ASSETS_FILE) -> str:
        """
        Export the appliance's installation assets zip.

        Args:
            dest: File to write the zip to

        Returns:
            dest
        """
        response = self._check(self._request('GET', INSTALLATION_ASSETS_ENDPOINT))
        with open(dest, 'wb') as f:
            f.write(response.content)
        logger.debug("Wrote %d bytes of installation assets to %s", len(response.content), dest)
        return dest

    def upload_installation_assets(self, path: str = INSTALLATION_ASSETS_FILE) -> None:
        """Import an installation assets zip, restoring an exported appliance."""
        with open(path, 'rb') as f:
            files = {'installation[file]': (os.path.basename(path), f, 'application/zip')}
            response = self._request(
                'POST', INSTALLATION_ASSETS_ENDPOINT, transient_5xx=False, files=files
            )
        self._check(response)

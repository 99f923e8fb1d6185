"""Unit tests for OpsManagerClient against an httpx.MockTransport."""

import json

import httpx
import pytest

from opsdeploy.api import OpsManagerClient
from opsdeploy.deploy import (
    ApplianceApi,
    ApplianceApiError,
    ApplianceUnavailableError,
    InstallationError,
    JobStatus,
    SettingsError,
    UpgradeError,
    find_installation,
)
from opsdeploy.utils.config import ApplianceTarget


class RecordingHandler:
    """MockTransport handler that records requests and serves canned responses."""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"simulated {self.error.__name__}", request=request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, text="not found")
        status, body = self.routes[key]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, text=body)


def make_client(handler):
    target = ApplianceTarget(target="1.2.3.4", username="foo", password="bar")
    return OpsManagerClient(target, transport=httpx.MockTransport(handler))


class TestClientBasics:
    """Test connection setup and error mapping."""

    def test_satisfies_appliance_protocol(self):
        client = make_client(RecordingHandler())
        assert isinstance(client, ApplianceApi)

    def test_uses_https_and_basic_auth(self):
        handler = RecordingHandler({("GET", "/api/products"): (200, [])})

        with make_client(handler) as client:
            client.list_available_products()

        request = handler.requests[0]
        assert str(request.url) == "https://1.2.3.4/api/products"
        assert request.headers["authorization"].startswith("Basic ")

    def test_explicit_scheme_is_kept(self):
        target = ApplianceTarget(target="http://opsman.local/", username="u", password="p")
        client = OpsManagerClient(target, transport=httpx.MockTransport(RecordingHandler()))
        assert client.base_url == "http://opsman.local"

    @pytest.mark.parametrize("error", [httpx.ConnectTimeout, httpx.ConnectError, httpx.ReadTimeout])
    def test_network_failures_are_transient(self, error):
        client = make_client(RecordingHandler(error=error))

        with pytest.raises(ApplianceUnavailableError):
            client.list_installations()

    def test_server_error_is_transient(self):
        handler = RecordingHandler({("GET", "/api/installation_settings"): (502, "bad gateway")})

        with pytest.raises(ApplianceUnavailableError) as exc_info:
            make_client(handler).list_installations()

        assert exc_info.value.status_code == 502

    def test_client_error_is_not_transient(self):
        handler = RecordingHandler({("GET", "/api/products"): (401, "unauthorized")})

        with pytest.raises(ApplianceApiError) as exc_info:
            make_client(handler).list_available_products()

        assert not isinstance(exc_info.value, ApplianceUnavailableError)
        assert exc_info.value.payload == "unauthorized"


class TestInstallations:
    """Test installation listing and lookup."""

    settings = {
        "products": [
            {"identifier": "p-bosh", "guid": "p-bosh-1", "product_version": "1.6.11.0", "prepared": True},
            {"identifier": "example-product", "guid": "example-product-2",
             "product_version": "1.6.2.0", "prepared": False},
        ]
    }

    def test_list_installations(self):
        handler = RecordingHandler({("GET", "/api/installation_settings"): (200, self.settings)})

        installations = make_client(handler).list_installations()

        assert installations[1] == {
            "name": "example-product",
            "version": "1.6.2.0",
            "guid": "example-product-2",
            "prepared": False,
        }

    def test_find_installation_with_real_client(self):
        handler = RecordingHandler({("GET", "/api/installation_settings"): (200, self.settings)})

        record = find_installation(make_client(handler), "example-product")

        assert record.guid == "example-product-2"
        assert not record.prepared

    @pytest.mark.parametrize("body", ["[]", "null", '"products"'])
    def test_settings_that_are_not_an_object(self, body):
        handler = RecordingHandler({("GET", "/api/installation_settings"): (200, body)})

        with pytest.raises(ApplianceApiError, match="not a JSON object"):
            make_client(handler).list_installations()

    def test_find_installation_when_appliance_unreachable(self):
        record = find_installation(make_client(RecordingHandler(error=httpx.ConnectError)), "p-bosh")
        assert record is None


class TestSettings:
    """Test settings download and upload."""

    def test_download_returns_raw_document(self):
        handler = RecordingHandler({("GET", "/api/installation_settings"): (200, '{"products": []}')})

        assert make_client(handler).download_settings() == '{"products": []}'

    def test_upload_sends_document_as_file(self):
        handler = RecordingHandler({("POST", "/api/installation_settings"): (200, {})})

        make_client(handler).upload_settings("products: []\n")

        body = handler.requests[0].content
        assert b'name="installation[file]"' in body
        assert b"products: []" in body

    @pytest.mark.parametrize("status", [422, 500])
    def test_rejected_upload_raises_settings_error(self, status):
        payload = json.dumps({"errors": ["Availability zone cannot be blank"]})
        handler = RecordingHandler({("POST", "/api/installation_settings"): (status, payload)})

        with pytest.raises(SettingsError) as exc_info:
            make_client(handler).upload_settings("products: []\n")

        assert "Availability zone" in str(exc_info.value)


class TestInstallationJobs:
    """Test trigger and status polling endpoints."""

    def test_trigger_returns_job_id(self):
        handler = RecordingHandler({("POST", "/api/installation"): (200, {"install": {"id": 10}})})

        assert make_client(handler).trigger_install() == 10
        assert handler.requests[0].content == b"ignore_warnings=true"

    def test_trigger_without_id(self):
        handler = RecordingHandler({("POST", "/api/installation"): (200, {})})

        with pytest.raises(ApplianceApiError):
            make_client(handler).trigger_install()

    @pytest.mark.parametrize("raw, expected", [
        ("running", JobStatus.RUNNING),
        ("success", JobStatus.SUCCEEDED),
        ("succeeded", JobStatus.SUCCEEDED),
        ("failed", JobStatus.FAILED),
        ("queued", JobStatus.QUEUED),
    ])
    def test_status_mapping(self, raw, expected):
        handler = RecordingHandler({("GET", "/api/installation/10"): (200, {"status": raw})})

        assert make_client(handler).get_installation_status(10).status is expected

    def test_failed_status_carries_reason(self):
        body = {"status": "failed", "reason": "unreachable VM"}
        handler = RecordingHandler({("GET", "/api/installation/10"): (200, body)})

        report = make_client(handler).get_installation_status(10)

        assert report.reason == "unreachable VM"

    def test_unknown_job(self):
        handler = RecordingHandler()

        with pytest.raises(InstallationError) as exc_info:
            make_client(handler).get_installation_status(99)

        assert exc_info.value.job_id == 99

    @pytest.mark.parametrize("body", [{"state": "running"}, {"status": "exploded"}, "<html>"])
    def test_malformed_status(self, body):
        handler = RecordingHandler({("GET", "/api/installation/10"): (200, body)})

        with pytest.raises(InstallationError):
            make_client(handler).get_installation_status(10)

    def test_status_server_error_is_transient(self):
        handler = RecordingHandler({("GET", "/api/installation/10"): (503, "")})

        with pytest.raises(ApplianceUnavailableError):
            make_client(handler).get_installation_status(10)


class TestProducts:
    """Test product upload, upgrade and catalog calls."""

    def test_upload_artifact(self, tmp_path):
        artifact = tmp_path / "example-product-1.6.4.pivotal"
        artifact.write_bytes(b"PK\x03\x04")
        handler = RecordingHandler({("POST", "/api/products"): (200, {})})

        make_client(handler).upload_artifact(str(artifact))

        body = handler.requests[0].content
        assert b'name="product[file]"' in body
        assert b'filename="example-product-1.6.4.pivotal"' in body

    def test_upgrade_installation(self):
        handler = RecordingHandler({
            ("PUT", "/api/installation_settings/products/example-product-2"): (200, {}),
        })

        make_client(handler).upgrade_installation("example-product-2", "1.6.8.0")

        assert handler.requests[0].content == b"to_version=1.6.8.0"

    @pytest.mark.parametrize("status", [422, 500])
    def test_rejected_upgrade(self, status):
        handler = RecordingHandler({
            ("PUT", "/api/installation_settings/products/g"): (status, '{"errors": ["bad version"]}'),
        })

        with pytest.raises(UpgradeError) as exc_info:
            make_client(handler).upgrade_installation("g", "1.6.8.0")

        assert exc_info.value.status_code == status

    def test_import_stemcell_skipped_without_path(self):
        handler = RecordingHandler()

        make_client(handler).import_stemcell(None)

        assert handler.requests == []

    def test_import_stemcell(self, tmp_path):
        stemcell = tmp_path / "stemcell.tgz"
        stemcell.write_bytes(b"\x1f\x8b")
        handler = RecordingHandler({("POST", "/api/stemcells"): (200, {})})

        make_client(handler).import_stemcell(str(stemcell))

        assert b'name="stemcell[file]"' in handler.requests[0].content

    def test_delete_products(self):
        handler = RecordingHandler({("DELETE", "/api/products"): (200, "")})

        make_client(handler).delete_products()

        assert handler.requests[0].method == "DELETE"


class TestApplianceSetup:
    """Test director version probing and first-user creation."""

    def test_current_version_picks_latest_director(self):
        products = [
            {"name": "p-bosh", "product_version": "1.6.8.0"},
            {"name": "p-bosh", "product_version": "1.6.11.0"},
            {"name": "cf", "product_version": "1.7.0.0"},
        ]
        handler = RecordingHandler({("GET", "/api/products"): (200, products)})

        assert make_client(handler).current_version() == "1.6.11.0"

    @pytest.mark.parametrize("error", [httpx.ConnectTimeout, httpx.ConnectError])
    def test_current_version_none_when_unreachable(self, error):
        assert make_client(RecordingHandler(error=error)).current_version() is None

    def test_current_version_none_on_server_error(self):
        handler = RecordingHandler({("GET", "/api/products"): (500, "")})
        assert make_client(handler).current_version() is None

    def test_create_user_before_1_6(self):
        handler = RecordingHandler({("POST", "/api/users"): (200, "")})

        make_client(handler).create_user("1.5.5.0", "foo", "bar")

        body = handler.requests[0].content.decode()
        assert "user%5Buser_name%5D=foo" in body

    def test_create_user_from_1_6(self):
        handler = RecordingHandler({("POST", "/api/setup"): (200, "")})

        make_client(handler).create_user("1.6.4", "foo", "bar")

        body = handler.requests[0].content.decode()
        assert "setup%5Buser_name%5D=foo" in body
        assert "setup%5Beula_accepted%5D=true" in body


class TestInstallationAssets:
    """Test installation asset export and import."""

    assets = b"PK\x03\x04installation.yml"

    def test_download_writes_zip(self, tmp_path):
        handler = RecordingHandler({
            ("GET", "/api/installation_asset_collection"): (200, self.assets),
        })
        dest = tmp_path / "installation_assets.zip"

        written = make_client(handler).download_installation_assets(str(dest))

        assert written == str(dest)
        assert dest.read_bytes() == self.assets

    def test_download_failure_writes_nothing(self, tmp_path):
        handler = RecordingHandler({
            ("GET", "/api/installation_asset_collection"): (404, "no installation"),
        })
        dest = tmp_path / "installation_assets.zip"

        with pytest.raises(ApplianceApiError):
            make_client(handler).download_installation_assets(str(dest))

        assert not dest.exists()

    def test_upload_sends_zip_as_file(self, tmp_path):
        archive = tmp_path / "installation_assets.zip"
        archive.write_bytes(self.assets)
        handler = RecordingHandler({
            ("POST", "/api/installation_asset_collection"): (200, {}),
        })

        make_client(handler).upload_installation_assets(str(archive))

        request = handler.requests[0]
        assert request.method == "POST"
        assert b'name="installation[file]"' in request.content
        assert b'filename="installation_assets.zip"' in request.content
        assert self.assets in request.content

    def test_rejected_upload_is_not_transient(self, tmp_path):
        archive = tmp_path / "installation_assets.zip"
        archive.write_bytes(self.assets)
        handler = RecordingHandler({
            ("POST", "/api/installation_asset_collection"): (500, "import failed"),
        })

        with pytest.raises(ApplianceApiError) as exc_info:
            make_client(handler).upload_installation_assets(str(archive))

        assert not isinstance(exc_info.value, ApplianceUnavailableError)
        assert exc_info.value.status_code == 500

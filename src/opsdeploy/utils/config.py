"""Product deployment configuration loading and validation"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from opsdeploy.core.protocols import ConfigLoader, EnvironmentProvider
from opsdeploy.deploy import ConfigurationError, DesiredRelease, PollingPolicy

REQUIRED_KEYS = (
    'name',
    'desired_version',
    'filepath',
    'installation_settings_file',
    'target',
    'username',
    'password',
)

# Environment variables that override the credentials in the config file
ENV_OVERRIDES = {
    'target': 'OPSDEPLOY_TARGET',
    'username': 'OPSDEPLOY_USERNAME',
    'password': 'OPSDEPLOY_PASSWORD',
}

POLLING_KEYS = ('interval', 'backoff', 'max_interval', 'timeout', 'max_query_retries')


@dataclass(frozen=True)
class ApplianceTarget:
    """Where the appliance lives and how to log in."""
    target: str
    username: str
    password: str

    def __repr__(self):
        return f"ApplianceTarget(target={self.target!r}, username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ProductDeploymentConfig:
    """Everything one deployment run needs."""
    release: DesiredRelease
    appliance: ApplianceTarget
    polling: PollingPolicy


def _parse_polling(section: Optional[Dict[str, Any]]) -> PollingPolicy:
    if not section:
        return PollingPolicy()
    if not isinstance(section, dict):
        raise ConfigurationError("'polling' must be a mapping")

    unknown = sorted(set(section) - set(POLLING_KEYS))
    if unknown:
        raise ConfigurationError(f"Unknown polling option(s): {', '.join(unknown)}")

    values = {}
    for key, value in section.items():
        try:
            values[key] = int(value) if key == 'max_query_retries' else float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Polling option '{key}' must be a number, got {value!r}")
    return PollingPolicy(**values)


def parse_product_deployment_config(
    raw: Dict[str, Any],
    environ: Optional[Dict[str, str]] = None
) -> ProductDeploymentConfig:
    """Validate a parsed config mapping.

    Args:
        raw: Mapping loaded from the YAML config
        environ: Environment used for credential overrides

    Returns:
        ProductDeploymentConfig

    Raises:
        ConfigurationError: On missing keys or bad polling options
        VersionFormatError: If desired_version is not a valid version
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("Config file must contain a YAML mapping")

    values = dict(raw)
    environ = environ or {}
    for key, env_name in ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[key] = environ[env_name]

    missing = [key for key in REQUIRED_KEYS if values.get(key) in (None, '')]
    if missing:
        raise ConfigurationError(f"Missing required config key(s): {', '.join(missing)}")

    # YAML resolves an unquoted 1.10 to the float 1.1
    desired_version = values['desired_version']
    if not isinstance(desired_version, str):
        raise ConfigurationError(
            f"'desired_version' must be a string, got {type(desired_version).__name__} "
            f"{desired_version!r}\n"
            f"Quote it in the config file, e.g. desired_version: \"{desired_version}\""
        )

    release = DesiredRelease(
        name=str(values['name']),
        version=desired_version,
        filepath=str(values['filepath']),
        installation_settings_file=str(values['installation_settings_file']),
        stemcell=values.get('stemcell') or None,
    )
    appliance = ApplianceTarget(
        target=str(values['target']),
        username=str(values['username']),
        password=str(values['password']),
    )
    return ProductDeploymentConfig(
        release=release,
        appliance=appliance,
        polling=_parse_polling(values.get('polling')),
    )


def load_product_deployment_config(
    config_path: str,
    config_loader: ConfigLoader,
    env_provider: EnvironmentProvider
) -> ProductDeploymentConfig:
    """Load and validate a product deployment config file."""
    try:
        raw = config_loader.load_yaml(config_path)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {config_path} is not valid YAML: {e}")
    return parse_product_deployment_config(raw, env_provider.get_environ())

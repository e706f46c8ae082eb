import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import dotenv_values

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class S3Config:
    access_key_id: str
    secret_access_key: str
    region: str = 'us-east-1'
    # S3-compatible services (MinIO, LocalStack, ...) set their own endpoint
    endpoint: Optional[str] = None
    service: str = 's3'
    timeout: float = 30
    verify_ssl: bool = True

    @property
    def endpoint_url(self) -> str:
        if self.endpoint:
            return self.endpoint.rstrip('/')
        return f"https://s3.{self.region}.amazonaws.com"

    def __repr__(self):
        return (f"S3Config(access_key_id={self.access_key_id!r}, secret_access_key='***', "
                f"region={self.region!r}, endpoint={self.endpoint!r}, service={self.service!r})")


def load_config(profile: str, config_file: str = ".config.yaml") -> S3Config:
    """Load the configuration for a profile from the YAML file."""
    try:
        with open(config_file, "r") as f:
            full_config = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if profile not in full_config:
        raise ConfigError(f"Profile '{profile}' not found in {config_file}")

    conf = full_config[profile] or {}
    for key in ('access_key', 'secret_key'):
        if not conf.get(key):
            raise ConfigError(f"Missing '{key}' in config for profile '{profile}'")

    logger.debug("Loaded profile %s from %s", profile, config_file)
    return S3Config(
        access_key_id=conf['access_key'],
        secret_access_key=conf['secret_key'],
        region=conf.get('region') or 'us-east-1',
        endpoint=conf.get('endpoint'),
        service=conf.get('service') or 's3',
        timeout=float(conf.get('timeout', 30)),
        verify_ssl=bool(conf.get('verify_ssl', True)),
    )


def config_from_env(env_file: str = ".env") -> S3Config:
    """Build a config from the process environment and an optional .env file.

    Process environment wins over the file. MINIO_* names are accepted as
    fallbacks for a local MinIO setup.
    """
    values = {}
    if env_file and Path(env_file).exists():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        logger.debug("Loaded .env from %s", env_file)
    values.update(os.environ)

    def first(*names):
        for name in names:
            if values.get(name):
                return values[name]
        return None

    access_key = first('AWS_ACCESS_KEY_ID', 'MINIO_ACCESS_KEY')
    secret_key = first('AWS_SECRET_ACCESS_KEY', 'MINIO_SECRET_KEY')
    if not access_key:
        raise ConfigError("Missing access key (AWS_ACCESS_KEY_ID or MINIO_ACCESS_KEY)")
    if not secret_key:
        raise ConfigError("Missing secret key (AWS_SECRET_ACCESS_KEY or MINIO_SECRET_KEY)")

    return S3Config(
        access_key_id=access_key,
        secret_access_key=secret_key,
        region=first('AWS_REGION', 'AWS_DEFAULT_REGION') or 'us-east-1',
        endpoint=first('S3_ENDPOINT', 'MINIO_PUBLIC_ENDPOINT'),
    )

"""S3-compatible object storage client with AWS Signature Version 4 signing."""

from .amzdate import format_amz_date, format_amz_datetime
from .client import S3Client
from .config import S3Config, config_from_env, load_config
from .errors import S3Error, SigningError
from .signing import Credentials, SigningParams, hash_payload, sign, sign_request

__version__ = "0.1.0"
__all__ = [
    "Credentials",
    "S3Client",
    "S3Config",
    "S3Error",
    "SigningError",
    "SigningParams",
    "config_from_env",
    "format_amz_date",
    "format_amz_datetime",
    "hash_payload",
    "load_config",
    "sign",
    "sign_request",
]

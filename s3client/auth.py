import logging
from urllib.parse import urlsplit

from .amzdate import current_timestamp
from .config import S3Config
from .signing import (
    Credentials,
    SigningParams,
    build_signing_headers,
    hash_payload,
    sign_request,
    uri_encode,
)

logger = logging.getLogger(__name__)


def encode_query(query) -> str:
    """Encode a query given as a mapping, a list of pairs or a raw string."""
    if not query:
        return ''
    if isinstance(query, str):
        return query.lstrip('?')
    items = query.items() if hasattr(query, 'items') else query
    parts = []
    for key, value in items:
        value = '' if value is None else str(value)
        parts.append(f"{uri_encode(str(key))}={uri_encode(value)}")
    return '&'.join(parts)


class Authenticator:
    """Builds path-style S3 URLs and signs requests for them with SigV4."""

    def __init__(self, config: S3Config):
        self.config = config
        self.credentials = Credentials(
            access_key=config.access_key_id,
            secret_key=config.secret_access_key,
            region=config.region,
            service=config.service,
        )
        parts = urlsplit(config.endpoint_url)
        self.endpoint = config.endpoint_url
        self.origin = f"{parts.scheme}://{parts.netloc}"
        self.host = parts.netloc.rpartition('@')[2]
        self.base_path = parts.path.rstrip('/')

    def build_path(self, bucket: str = '', object_name: str = '', query=None) -> str:
        path = self.base_path
        if bucket:
            path += f"/{uri_encode(bucket)}"
        if object_name:
            path += f"/{uri_encode(object_name, encode_slash=False)}"
        path = path or '/'
        qs = encode_query(query)
        return f"{path}?{qs}" if qs else path

    def sign(self, method: str, bucket: str = '', object_name: str = '', query=None,
             headers: dict = None, payload: bytes = None, timestamp: int = None) -> (dict, str):
        """Return (headers, url) for a signed request.

        The caller's ``headers`` are copied, never modified. ``host``,
        ``x-amz-date`` and ``x-amz-content-sha256`` are added from one
        timestamp and one payload hash, then ``Authorization``.
        """
        if isinstance(payload, str):
            payload = payload.encode('utf-8')
        if timestamp is None:
            timestamp = current_timestamp()
        payload_hash = hash_payload(payload)

        path = self.build_path(bucket, object_name, query)
        signed = {
            k: v for k, v in (headers or {}).items()
            if k.lower() not in ('host', 'x-amz-date', 'x-amz-content-sha256', 'authorization')
        }
        signed.update(build_signing_headers(self.host, timestamp, payload_hash=payload_hash))

        params = SigningParams(
            method=method,
            path=path,
            headers=signed,
            body=payload,
            timestamp=timestamp,
            payload_hash=payload_hash,
        )
        signed['Authorization'] = sign_request(self.credentials, params)
        url = self.origin + path
        logger.debug("Signed %s %s", method, url)
        return signed, url

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from .bucket import find_all, find_text, validate_bucket_name
from .errors import (
    InvalidListOptions,
    InvalidObjectKey,
    InvalidResponse,
    ObjectNotFound,
    raise_for_s3_status,
)
from .transport import send

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1024 * 1024
MAX_KEY_BYTES = 1024


@dataclass
class ObjectInfo:
    key: str
    size: int
    last_modified: str
    etag: str


@dataclass
class ListObjectsOptions:
    prefix: Optional[str] = None
    # 1-1000
    max_keys: Optional[int] = None
    start_after: Optional[str] = None

    def to_query(self) -> list:
        query = [('list-type', '2')]
        if self.prefix:
            query.append(('prefix', self.prefix))
        if self.max_keys is not None:
            if not 1 <= self.max_keys <= 1000:
                raise InvalidListOptions(
                    f"max_keys must be between 1 and 1000, got {self.max_keys}"
                )
            query.append(('max-keys', str(self.max_keys)))
        if self.start_after:
            query.append(('start-after', self.start_after))
        return query


def validate_object_key(key: str) -> None:
    if not key:
        raise InvalidObjectKey("Object key must not be empty")
    if len(key.encode('utf-8')) > MAX_KEY_BYTES:
        raise InvalidObjectKey(f"Object key exceeds {MAX_KEY_BYTES} bytes")
    # the signer resolves dot segments, so such keys could never be addressed
    if any(segment in ('.', '..') for segment in key.split('/')):
        raise InvalidObjectKey(f"Object key must not contain '.' or '..' segments: {key!r}")


class ObjectManager:
    def __init__(self, auth, http=None, max_size: int = DEFAULT_MAX_SIZE):
        self.auth = auth
        self.http = http or requests
        self.max_size = max_size

    def _send(self, method, headers, url, data=None, stream=False):
        config = self.auth.config
        return send(self.http, method, url, headers, data=data,
                    timeout=config.timeout, verify=config.verify_ssl, stream=stream)

    def put_object(self, bucket_name: str, key: str, data: bytes,
                   content_type: str = None) -> dict:
        validate_bucket_name(bucket_name)
        validate_object_key(key)
        if isinstance(data, str):
            data = data.encode('utf-8')
        headers = {'Content-Length': str(len(data))}
        if content_type:
            headers['Content-Type'] = content_type
        signed, url = self.auth.sign('PUT', bucket=bucket_name, object_name=key,
                                     headers=headers, payload=data)
        resp = self._send('PUT', signed, url, data=data)
        raise_for_s3_status(resp, resource=f"s3://{bucket_name}/{key}")
        logger.info("Uploaded s3://%s/%s (%d bytes)", bucket_name, key, len(data))
        return {'success': True, 'bucket': bucket_name, 'key': key,
                'etag': resp.headers.get('ETag')}

    def get_object(self, bucket_name: str, key: str) -> bytes:
        validate_bucket_name(bucket_name)
        validate_object_key(key)
        headers, url = self.auth.sign('GET', bucket=bucket_name, object_name=key)
        resp = self._send('GET', headers, url, stream=True)
        try:
            raise_for_s3_status(resp, not_found=ObjectNotFound,
                                resource=f"s3://{bucket_name}/{key}")
            body = bytearray()
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                body.extend(chunk)
                if len(body) > self.max_size:
                    raise InvalidResponse(
                        f"s3://{bucket_name}/{key} is larger than {self.max_size} bytes",
                        status_code=resp.status_code,
                    )
        finally:
            resp.close()
        return bytes(body)

    def delete_object(self, bucket_name: str, key: str) -> dict:
        validate_bucket_name(bucket_name)
        validate_object_key(key)
        headers, url = self.auth.sign('DELETE', bucket=bucket_name, object_name=key)
        resp = self._send('DELETE', headers, url)
        raise_for_s3_status(resp, not_found=ObjectNotFound,
                            resource=f"s3://{bucket_name}/{key}")
        logger.info("Deleted s3://%s/%s", bucket_name, key)
        return {'success': True, 'bucket': bucket_name, 'key': key}

    def list_objects(self, bucket_name: str, options: ListObjectsOptions = None) -> list:
        """List objects with ListObjectsV2; results come back sorted by key."""
        validate_bucket_name(bucket_name)
        options = options or ListObjectsOptions()
        headers, url = self.auth.sign('GET', bucket=bucket_name, query=options.to_query())
        resp = self._send('GET', headers, url)
        raise_for_s3_status(resp, resource=f"bucket {bucket_name}")
        try:
            root = ET.fromstring(resp.content)
        except ET.ParseError as e:
            raise InvalidResponse(f"Malformed ListObjectsV2 response: {e}",
                                  status_code=resp.status_code) from e
        objects = []
        for el in find_all(root, 'Contents'):
            key = find_text(el, 'Key')
            if key is None:
                continue
            try:
                size = int(find_text(el, 'Size') or 0)
            except ValueError as e:
                raise InvalidResponse(f"Invalid size for {key}", status_code=resp.status_code) from e
            objects.append(ObjectInfo(
                key=key,
                size=size,
                last_modified=find_text(el, 'LastModified') or '',
                etag=find_text(el, 'ETag') or '',
            ))
        return objects


class ObjectUploader:
    """Convenience uploads for files, text and JSON documents."""

    def __init__(self, objects: ObjectManager):
        self.objects = objects

    def upload_file(self, bucket_name: str, key: str, file_path) -> dict:
        data = Path(file_path).read_bytes()
        return self.objects.put_object(bucket_name, key, data)

    def upload_string(self, bucket_name: str, key: str, content: str) -> dict:
        return self.objects.put_object(bucket_name, key, content.encode('utf-8'),
                                       content_type='text/plain; charset=utf-8')

    def upload_json(self, bucket_name: str, key: str, data) -> dict:
        body = json.dumps(data).encode('utf-8')
        return self.objects.put_object(bucket_name, key, body, content_type='application/json')

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

import requests

from .errors import BucketNotFound, InvalidBucketName, InvalidResponse, raise_for_s3_status
from .transport import send

logger = logging.getLogger(__name__)

NS = "http://s3.amazonaws.com/doc/2006-03-01/"

_BUCKET_NAME_RE = re.compile(r'^[a-z0-9][a-z0-9-]*[a-z0-9]$')


@dataclass
class BucketInfo:
    name: str
    creation_date: str


def validate_bucket_name(bucket_name: str) -> None:
    """3-63 chars of lowercase letters, digits and hyphens, alphanumeric at both ends."""
    if not bucket_name or not 3 <= len(bucket_name) <= 63:
        raise InvalidBucketName(f"Bucket name must be 3 to 63 characters: {bucket_name!r}")
    if not _BUCKET_NAME_RE.match(bucket_name):
        raise InvalidBucketName(
            f"Bucket name may only contain lowercase letters, digits and hyphens: {bucket_name!r}"
        )


def find_text(el, tag):
    child = el.find(f'{{{NS}}}{tag}')
    if child is None:
        child = el.find(tag)
    return child.text if child is not None else None


def find_all(el, tag):
    return el.findall(f'.//{{{NS}}}{tag}') or el.findall(f'.//{tag}')


class BucketManager:
    def __init__(self, auth, http=None):
        self.auth = auth
        self.http = http or requests

    def _send(self, method, headers, url, data=None):
        config = self.auth.config
        return send(self.http, method, url, headers, data=data,
                    timeout=config.timeout, verify=config.verify_ssl)

    def create_bucket(self, bucket_name: str) -> dict:
        validate_bucket_name(bucket_name)
        headers, url = self.auth.sign('PUT', bucket=bucket_name)
        resp = self._send('PUT', headers, url)
        raise_for_s3_status(resp, resource=f"bucket {bucket_name}")
        logger.info("Created bucket %s", bucket_name)
        return {'success': True, 'bucket': bucket_name}

    def delete_bucket(self, bucket_name: str) -> dict:
        validate_bucket_name(bucket_name)
        headers, url = self.auth.sign('DELETE', bucket=bucket_name)
        resp = self._send('DELETE', headers, url)
        raise_for_s3_status(resp, not_found=BucketNotFound, resource=f"bucket {bucket_name}")
        logger.info("Deleted bucket %s", bucket_name)
        return {'success': True, 'bucket': bucket_name}

    def list_buckets(self) -> list:
        headers, url = self.auth.sign('GET')
        resp = self._send('GET', headers, url)
        raise_for_s3_status(resp, resource="bucket listing")
        try:
            root = ET.fromstring(resp.content)
        except ET.ParseError as e:
            raise InvalidResponse(f"Malformed ListBuckets response: {e}",
                                  status_code=resp.status_code) from e
        buckets = []
        for el in find_all(root, 'Bucket'):
            name = find_text(el, 'Name')
            if not name:
                continue
            buckets.append(BucketInfo(name=name, creation_date=find_text(el, 'CreationDate') or ''))
        return buckets

import logging

import requests

from .auth import Authenticator
from .bucket import BucketManager
from .config import S3Config
from .objects import DEFAULT_MAX_SIZE, ListObjectsOptions, ObjectManager, ObjectUploader

logger = logging.getLogger(__name__)


class S3Client:
    """Bucket and object operations against one S3-compatible endpoint.

    Usage::

        with S3Client(config) as client:
            client.create_bucket('my-bucket')
            client.put_object('my-bucket', 'hello.txt', b'Hello, S3!')
    """

    def __init__(self, config: S3Config, session: requests.Session = None,
                 max_size: int = DEFAULT_MAX_SIZE):
        self.config = config
        self.session = session or requests.Session()
        self.auth = Authenticator(config)
        self.bucket_mgr = BucketManager(self.auth, self.session)
        self.object_mgr = ObjectManager(self.auth, self.session, max_size=max_size)
        logger.debug("Client ready for %s", self.auth.endpoint)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # Buckets
    def create_bucket(self, bucket_name: str) -> dict:
        return self.bucket_mgr.create_bucket(bucket_name)

    def delete_bucket(self, bucket_name: str) -> dict:
        return self.bucket_mgr.delete_bucket(bucket_name)

    def list_buckets(self) -> list:
        return self.bucket_mgr.list_buckets()

    # Objects
    def put_object(self, bucket_name: str, key: str, data: bytes) -> dict:
        return self.object_mgr.put_object(bucket_name, key, data)

    def get_object(self, bucket_name: str, key: str) -> bytes:
        return self.object_mgr.get_object(bucket_name, key)

    def delete_object(self, bucket_name: str, key: str) -> dict:
        return self.object_mgr.delete_object(bucket_name, key)

    def list_objects(self, bucket_name: str, options: ListObjectsOptions = None) -> list:
        return self.object_mgr.list_objects(bucket_name, options)

    def uploader(self) -> ObjectUploader:
        return ObjectUploader(self.object_mgr)

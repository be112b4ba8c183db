import io
import logging
from functools import lru_cache

from minio import Minio
from eventapi.config import config

logger = logging.getLogger(__name__)


class MinioStorage:
    """Certificate templates kept as objects in a single MinIO bucket."""

    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    def ensure_bucket(self) -> None:
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
        logger.info(f"MinIO bucket '{self.bucket}' is ready.")

    def put(self, object_name: str, data: bytes, content_type: str) -> None:
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    def get(self, object_name: str) -> bytes:
        response = self.client.get_object(self.bucket, object_name)
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def remove(self, object_name: str) -> None:
        # a failed removal only orphans the object
        try:
            self.client.remove_object(self.bucket, object_name)
        except Exception as e:
            logger.warning(f"Could not remove object '{object_name}': {e}")


@lru_cache()
def get_storage() -> MinioStorage:
    client = Minio(
        endpoint=config.MINIO_ENDPOINT,
        access_key=config.MINIO_ROOT_USER,
        secret_key=config.MINIO_ROOT_PASSWORD,
        secure=config.MINIO_SECURE,
    )
    return MinioStorage(client, config.MINIO_BUCKET)

"""
This module provides a client for interacting with Minio object storage.
It encapsulates common operations such as uploading, downloading, listing and removing
objects, and specifically handles JSON serialization/deserialization for workflow persistence.
"""
import json
from functools import lru_cache
from io import BytesIO
from typing import Any, Dict, Iterator

from minio import Minio
from minio.error import S3Error

from config import config
from utils.exceptions import StorageError


@lru_cache(maxsize=1)
def get_client() -> Minio:
    """
    Returns the shared Minio client, built on first use from the application config.
    The MINIO_ENDPOINT, MINIO_ACCESS_KEY, MINIO_SECRET_KEY and MINIO_SECURE settings
    should be set in the .env file or the environment where the application runs.

    Raises:
        StorageError: If no Minio endpoint is configured.
    """
    if not config.minio_endpoint:
        raise StorageError("MINIO_ENDPOINT is not set but the Minio workflow store was requested.")
    return Minio(
        config.minio_endpoint,
        access_key=config.minio_access_key,
        secret_key=config.minio_secret_key,
        secure=config.minio_secure,
    )


def upload(bucket: str, path: str, content: bytes) -> None:
    """
    Uploads raw byte content to a specified path within a Minio bucket.
    If the bucket does not exist, it will be created.

    Args:
        bucket (str): The name of the Minio bucket.
        path (str): The object path within the bucket (e.g., "folder/file.txt").
        content (bytes): The byte content to be uploaded.

    Raises:
        StorageError: If the upload operation fails due to an S3 error.
    """
    client = get_client()
    try:
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
        client.put_object(bucket, path, data=BytesIO(content), length=len(content))
    except S3Error as e:
        raise StorageError(f"Failed to upload to Minio bucket '{bucket}', path '{path}': {e}") from e


def download(bucket: str, path: str) -> str:
    """
    Downloads content from a specified path within a Minio bucket as a UTF-8 decoded string.

    Raises:
        StorageError: If the download operation fails due to an S3 error or if the object does not exist.
    """
    response = None
    try:
        response = get_client().get_object(bucket, path)
        return response.read().decode("utf-8")
    except S3Error as e:
        raise StorageError(f"Failed to download from Minio bucket '{bucket}', path '{path}': {e}") from e
    finally:
        if response is not None:
            response.close()
            response.release_conn()


def object_exists(bucket: str, path: str) -> bool:
    """
    Checks whether an object exists. A missing bucket counts as a missing object.

    Raises:
        StorageError: For any S3 error other than a missing key or bucket.
    """
    try:
        get_client().stat_object(bucket, path)
        return True
    except S3Error as e:
        if e.code in ("NoSuchKey", "NoSuchBucket", "NoSuchObject"):
            return False
        raise StorageError(f"Failed to stat Minio object '{bucket}/{path}': {e}") from e


def remove(bucket: str, path: str) -> None:
    """Removes a single object from a Minio bucket."""
    try:
        get_client().remove_object(bucket, path)
    except S3Error as e:
        raise StorageError(f"Failed to remove Minio object '{bucket}/{path}': {e}") from e


def list_paths(bucket: str, prefix: str) -> Iterator[str]:
    """Yields the object paths under a prefix. Yields nothing if the bucket does not exist yet."""
    client = get_client()
    try:
        if not client.bucket_exists(bucket):
            return
        for obj in client.list_objects(bucket, prefix=prefix, recursive=True):
            yield obj.object_name
    except S3Error as e:
        raise StorageError(f"Failed to list Minio bucket '{bucket}' under '{prefix}': {e}") from e


def upload_json(bucket: str, path: str, data_dict: Dict[str, Any]) -> None:
    """
    Uploads a Python dictionary as a JSON file to a specified path within a Minio bucket.

    Raises:
        StorageError: If the upload operation fails.
    """
    json_bytes = json.dumps(data_dict, ensure_ascii=False, indent=2).encode("utf-8")
    upload(bucket, path, json_bytes)


def download_json(bucket: str, path: str) -> Dict[str, Any]:
    """
    Downloads a JSON file from a specified path within a Minio bucket and
    deserializes it into a Python dictionary.

    Raises:
        StorageError: If the download fails or the content is not valid JSON.
    """
    content = download(bucket, path)
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageError(f"Minio object '{bucket}/{path}' is not valid JSON: {e}") from e

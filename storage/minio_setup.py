"""
This module provides a setup routine for the Minio object storage.
It ensures that the application can connect to the Minio server and that
the bucket holding workflow records exists, with retry logic for robustness.
It is called when the service starts with the Minio workflow store, and can
also be run directly as a script before the service comes up.
"""
import logging
import sys
import time

from minio import Minio
from minio.error import S3Error

from config import config
from storage.minio_client import get_client
from utils.exceptions import StorageError

# Maximum number of attempts to connect to Minio before giving up.
MAX_RETRIES = 10
# Delay in seconds between connection retry attempts.
RETRY_DELAY = 5 # seconds


def ensure_bucket(client: Minio, bucket_name: str, max_retries: int = MAX_RETRIES,
                  retry_delay: float = RETRY_DELAY) -> None:
    """
    Waits for the Minio server to become available and ensures that the bucket exists.

    Args:
        client (Minio): The Minio client to use.
        bucket_name (str): The bucket that must exist.
        max_retries (int): Connection attempts before giving up.
        retry_delay (float): Seconds to wait between attempts.

    Raises:
        StorageError: If Minio stays unreachable or the bucket cannot be created.
    """
    # --- Connection Retry Logic ---
    retries = 0
    while True:
        try:
            # Perform a simple operation to check connectivity
            client.list_buckets()
            logging.info("Successfully connected to Minio.")
            break
        except Exception as e:
            retries += 1
            if retries >= max_retries:
                raise StorageError(f"Could not connect to Minio after {max_retries} attempts: {e}") from e
            logging.info(f"Waiting for Minio to be ready... (Attempt {retries}/{max_retries})")
            time.sleep(retry_delay)

    # --- Bucket Creation/Verification ---
    try:
        if not client.bucket_exists(bucket_name):
            logging.info(f"Bucket '{bucket_name}' not found. Creating it...")
            client.make_bucket(bucket_name)
    except S3Error as e:
        raise StorageError(f"Error interacting with bucket '{bucket_name}': {e}") from e


def main() -> None:
    """Script entry point: exits with an error code if Minio is not usable."""
    try:
        ensure_bucket(get_client(), config.minio_bucket)
    except StorageError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Bucket '{config.minio_bucket}' is ready.")


if __name__ == "__main__":
    main()

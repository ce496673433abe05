"""
Object storage client

Uploads product and reference images to the hosted storage bucket over its
HTTP API and hands back public URLs.
"""

import logging
import mimetypes
import random
import string
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests
from flask import current_app
import newrelic.agent
from werkzeug.utils import secure_filename

from storefront.config import SupabaseConfig
from storefront.services.error_handler import ErrorCategory, record_error

logger = logging.getLogger(__name__)

PRODUCT_PREFIX = 'products'
REFERENCE_PREFIX = 'reference-images'

_BASE36 = string.digits + string.ascii_lowercase


class StorageError(Exception):
    """Upload to the object store failed"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 path: Optional[str] = None, original_error: Exception = None):
        super().__init__(message)
        self.status_code = status_code
        self.path = path
        self.original_error = original_error


def random_suffix(length: int = 6) -> str:
    """Random base-36 string"""
    return ''.join(random.choice(_BASE36) for _ in range(length))


def file_extension(filename: str) -> str:
    if filename and '.' in filename:
        return filename.rsplit('.', 1)[1].lower()
    return ''


def product_image_path(filename: str, now_ms: Optional[int] = None) -> str:
    """products/<epoch-ms>_<base36>.<ext>; collisions are only unlikely, not impossible"""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    name = f"{now_ms}_{random_suffix()}"
    ext = file_extension(filename)
    if ext:
        name = f"{name}.{ext}"
    return f"{PRODUCT_PREFIX}/{name}"


def reference_image_path(filename: str, now_ms: Optional[int] = None) -> str:
    """reference-images/<epoch-ms>-<original name>"""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    safe_name = secure_filename(filename or '') or f"{random_suffix()}.bin"
    return f"{REFERENCE_PREFIX}/{now_ms}-{safe_name}"


class StorageClient:
    """HTTP client for a single storage bucket"""

    def __init__(self, config: SupabaseConfig):
        self.config = config
        logger.info(f"StorageClient initialized: bucket={config.bucket}")

    @property
    def configured(self) -> bool:
        return bool(self.config.url and self.config.key)

    def _headers(self, content_type: str) -> dict:
        return {
            'Authorization': f'Bearer {self.config.key}',
            'apikey': self.config.key,
            'Content-Type': content_type,
            'x-upsert': 'false',
        }

    def public_url(self, path: str) -> str:
        return f"{self.config.url}/storage/v1/object/public/{self.config.bucket}/{quote(path)}"

    @newrelic.agent.function_trace()
    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Upload bytes to path in the bucket and return the public URL"""
        if not self.configured:
            raise StorageError('Object storage is not configured', path=path)

        content_type = content_type or mimetypes.guess_type(path)[0] or 'application/octet-stream'
        endpoint_url = f"{self.config.url}/storage/v1/object/{self.config.bucket}/{quote(path)}"
        start_time = time.time()

        try:
            # One call per thread during fan-out, so no shared requests.Session
            response = requests.post(
                endpoint_url,
                data=data,
                headers=self._headers(content_type),
                timeout=self.config.timeout
            )
        except requests.exceptions.RequestException as req_err:
            record_error(req_err, ErrorCategory.STORAGE, {'path': path})
            raise StorageError(
                f"Upload request failed for {path}: {req_err}",
                path=path,
                original_error=req_err
            )

        execution_time = time.time() - start_time

        if response.status_code not in (200, 201):
            try:
                error_data = response.json()
            except ValueError:
                error_data = {'message': response.text}
            message = error_data.get('message') or error_data.get('error') or 'Unknown error'
            error = StorageError(
                f"HTTP {response.status_code}: {message}",
                status_code=response.status_code,
                path=path
            )
            record_error(error, ErrorCategory.STORAGE, {
                'path': path,
                'status_code': response.status_code,
            })
            raise error

        logger.info(f"Uploaded {path} in {execution_time:.3f}s")
        return self.public_url(path)

    def upload_file(self, file, path: str) -> str:
        """Upload a werkzeug FileStorage (or anything with read/filename/mimetype)"""
        data = file.read()
        content_type = getattr(file, 'mimetype', None) or None
        return self.upload(path, data, content_type)

    def upload_product_images(self, files: Sequence) -> List[str]:
        """
        Upload every file concurrently and return the URLs in input order.

        Raises StorageError if any single upload fails; no partial list is
        returned in that case.
        """
        files = list(files)
        if not files:
            return []

        paths = [product_image_path(f.filename) for f in files]
        logger.info(f"Uploading {len(files)} product image(s)")

        with ThreadPoolExecutor(max_workers=min(len(files), 8)) as executor:
            futures = [
                executor.submit(self.upload_file, f, path)
                for f, path in zip(files, paths)
            ]
            # Joins every upload; the first failure propagates
            return [future.result() for future in futures]

    def upload_reference_image(self, file) -> str:
        return self.upload_file(file, reference_image_path(file.filename))


def get_storage() -> StorageClient:
    return current_app.extensions['storage']

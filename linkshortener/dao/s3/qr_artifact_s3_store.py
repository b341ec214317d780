"""QR code artifact store backed by Amazon S3

Rendered QR codes are stored as `<prefix><short code>.png` (e.g.
`qr/abc1234.png`) and referenced by their public URL.

Classes:
    QRArtifactS3Store:
        ArtifactBaseStore implementation on top of a boto3 S3 client.

Example:
    >>> store = QRArtifactS3Store(bucket='linkshortener-qr', public_base_url='https://cdn.example.com')
    >>> store.put('abc1234', png_bytes)
    'https://cdn.example.com/qr/abc1234.png'
    >>> store.delete_many(['abc1234'])
    1
"""

from collections.abc import Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from linkshortener.constants import Defaults
from linkshortener.dao.base import ArtifactBaseStore
from linkshortener.dao.exceptions import ArtifactStoreError
from linkshortener.types import S3Client


# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


class QRArtifactS3Store(ArtifactBaseStore):
    def __init__(
        self,
        bucket: str,
        prefix: str = Defaults.ARTIFACT_PREFIX,
        public_base_url: str | None = None,
        s3_client: S3Client | None = None,
    ):
        """Initialize an S3-backed artifact store

        Args:
            bucket (str):
                Bucket holding the rendered QR codes.
            prefix (str):
                Key prefix for QR codes. Defaults to 'qr/'.
            public_base_url (str | None):
                Base URL the bucket is served from (e.g. a CloudFront
                distribution). Defaults to the bucket's virtual-hosted S3 URL.
            s3_client (S3Client | None):
                Pre-initialized boto3 S3 client. If None, a new client is created.
        """
        if not bucket:
            raise ValueError('An S3 bucket name is required for the QR artifact store.')

        self.bucket = bucket
        self.prefix = prefix
        self.public_base_url = (public_base_url or f'https://{bucket}.s3.amazonaws.com').rstrip('/')
        self.s3 = s3_client or boto3.client('s3')

    def key_for(self, short_code: str) -> str:
        return f'{self.prefix}{short_code}.png'

    def url_for(self, short_code: str) -> str:
        return f'{self.public_base_url}/{self.key_for(short_code)}'

    def put(self, short_code: str, data: bytes) -> str:
        """Upload (or overwrite) the QR code of a link

        Returns:
            str: public URL of the uploaded image.

        Raises:
            ArtifactStoreError: if S3 rejects the upload.
        """
        key = self.key_for(short_code)
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType='image/png')
        except (ClientError, BotoCoreError) as e:
            raise ArtifactStoreError(f"Failed to upload QR code s3://{self.bucket}/{key}.") from e
        return self.url_for(short_code)

    def delete_many(self, short_codes: Iterable[str]) -> int:
        """Delete the QR codes of the given links

        Missing objects are not an error (S3 treats them as deleted).

        Returns:
            int: number of keys S3 reported as deleted.

        Raises:
            ArtifactStoreError: if a batch request fails or S3 reports per-key errors.
        """
        keys = [self.key_for(short_code) for short_code in short_codes]
        deleted = 0

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            try:
                response = self.s3.delete_objects(
                    Bucket=self.bucket,
                    Delete={'Objects': [{'Key': key} for key in batch], 'Quiet': False},
                )
            except (ClientError, BotoCoreError) as e:
                raise ArtifactStoreError(f'Failed to delete {len(batch)} QR code(s) from s3://{self.bucket}.') from e

            errors = response.get('Errors') or []
            if errors:
                failed = ', '.join(error.get('Key', '?') for error in errors)
                raise ArtifactStoreError(f'S3 failed to delete QR code(s): {failed}.')
            deleted += len(response.get('Deleted') or [])

        return deleted

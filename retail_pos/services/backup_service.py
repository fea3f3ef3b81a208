"""
Cloud backup service.

A backup is one JSON document {timestamp, products, sales, customers, users,
settings}. It is always written to the ``cloudBackup`` key; when S3_BUCKET is
configured the same document is uploaded to S3-compatible storage (MinIO,
AWS S3, DigitalOcean Spaces) through boto3.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from retail_pos.exceptions import BusinessLogicError
from retail_pos.services.customer_service import aggregate_customers
from retail_pos.services.storage_service import StateStore, CLOUD_BACKUP
from retail_pos.state import AppState

logger = logging.getLogger(__name__)


class BackupUploader:
    """
    Uploads backup documents to an S3 bucket.

    Usage:
        uploader = BackupUploader.from_config(current_app.config)
        key = uploader.upload(document, datetime.now())
    """

    def __init__(self, bucket: str, prefix: str = 'backups', endpoint: Optional[str] = None,
                 access_key: Optional[str] = None, secret_key: Optional[str] = None,
                 region: Optional[str] = None, client=None):
        self.bucket = bucket
        self.prefix = prefix.strip('/')
        self.client = client or boto3.client(
            's3',
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version='s3v4')
        )

    @classmethod
    def from_config(cls, config) -> Optional['BackupUploader']:
        """Uploader for the configured bucket, or None when no bucket is set."""
        bucket = config.get('S3_BUCKET')
        if not bucket:
            return None
        return cls(
            bucket=bucket,
            prefix=config.get('S3_BACKUP_PREFIX') or 'backups',
            endpoint=config.get('S3_ENDPOINT') or None,
            access_key=config.get('S3_ACCESS_KEY') or None,
            secret_key=config.get('S3_SECRET_KEY') or None,
            region=config.get('S3_REGION') or None,
        )

    def object_name(self, timestamp: datetime) -> str:
        return f"{self.prefix}/pos_backup_{timestamp.strftime('%Y%m%dT%H%M%S')}.json"

    def upload(self, document: Dict[str, Any], timestamp: datetime) -> str:
        """
        Upload a backup document.

        Returns:
            The object key

        Raises:
            ClientError: if the upload fails
        """
        object_name = self.object_name(timestamp)
        logger.info(f"[BACKUP] Uploading '{object_name}' to bucket '{self.bucket}'...")
        self.client.put_object(
            Bucket=self.bucket,
            Key=object_name,
            Body=json.dumps(document, indent=2).encode('utf-8'),
            ContentType='application/json',
        )
        logger.info(f"[BACKUP] ✓ Backup uploaded: {object_name}")
        return object_name


def build_backup(state: AppState, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Backup document for the current state. Password hashes are included."""
    now = now or datetime.now()
    sales = state.ledger.snapshot()
    return {
        'timestamp': now.isoformat(),
        'products': [p.to_dict() for p in state.catalog],
        'sales': [s.to_dict() for s in sales],
        'customers': {
            key: customer.to_dict(include_orders=True)
            for key, customer in aggregate_customers(sales).items()
        },
        'users': [u.to_dict() for u in state.users],
        'settings': state.settings,
    }


def perform_cloud_backup(state: AppState, store: StateStore, uploader: Optional[BackupUploader] = None,
                         now: Optional[datetime] = None, require_enabled: bool = True) -> Dict[str, Any]:
    """
    Write a backup to the ``cloudBackup`` key and, when configured, to S3.

    Raises:
        BusinessLogicError: if cloud backup is disabled or the backup could not be stored
    """
    if require_enabled and not state.external_services.get('cloudBackupEnabled'):
        raise BusinessLogicError('Cloud backup is not enabled')

    now = now or datetime.now()
    with state.lock:
        document = build_backup(state, now)

    if not store.write({CLOUD_BACKUP: document}):
        raise BusinessLogicError('Error saving backup', status_code=500)

    if uploader is None:
        uploader = BackupUploader.from_config(current_app.config)

    object_name = None
    if uploader is not None:
        try:
            object_name = uploader.upload(document, now)
        except (BotoCoreError, ClientError) as e:
            logger.exception(f"[BACKUP] ✗ Upload failed: {e}")
            raise BusinessLogicError('Backup saved locally but the upload failed', status_code=502)

    logger.info("[BACKUP] Cloud backup completed")
    return {
        'timestamp': document['timestamp'],
        'products': len(document['products']),
        'sales': len(document['sales']),
        'object': object_name,
    }

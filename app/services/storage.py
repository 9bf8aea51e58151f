from typing import Dict
import logging
import re
import uuid

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.errors import UpstreamError

logger = logging.getLogger(__name__)

UPLOAD_URL_EXPIRES = 900  # 15 minutes


def get_s3_client():
    return boto3.client(
        's3',
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_REGION,
        endpoint_url=f"https://s3.{settings.AWS_REGION}.amazonaws.com"
    )


def _safe_filename(filename: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]", "_", filename or "").strip("._")
    return cleaned or "file"


def presign_attachment_upload(ticket_id: str, filename: str, content_type: str) -> Dict:
    if not settings.AWS_BUCKET_NAME:
        raise UpstreamError("Attachment storage is not configured")

    file_key = f"support/{ticket_id}/{uuid.uuid4()}-{_safe_filename(filename)}"
    try:
        upload_url = get_s3_client().generate_presigned_url(
            'put_object',
            Params={
                'Bucket': settings.AWS_BUCKET_NAME,
                'Key': file_key,
                'ContentType': content_type,
            },
            ExpiresIn=UPLOAD_URL_EXPIRES,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Presign failed for {file_key}: {e}")
        raise UpstreamError("Could not create upload URL")

    return {"upload_url": upload_url, "file_key": file_key, "expires_in": UPLOAD_URL_EXPIRES}

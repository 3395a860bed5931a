"""S3 Storage Service for profile photos.

Uploads midwife portrait photos to S3/MinIO in a few fixed sizes and
removes the previous set when a photo is replaced.
"""

import logging
import uuid
from io import BytesIO
from typing import BinaryIO

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from homebirth.config import settings
from homebirth.core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


class StorageService:
    """S3/MinIO storage service for file uploads."""

    # Allowed image types
    ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
    MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB

    # Image sizes for resizing
    IMAGE_SIZES = {
        "thumbnail": (200, 200),
        "medium": (800, 800),
    }

    def __init__(self) -> None:
        """Initialize S3 client."""
        self._client = None
        self._bucket = settings.s3_bucket_name

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            config = Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            self._client = boto3.client(
                "s3",
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region,
                endpoint_url=settings.s3_endpoint_url,  # For MinIO in dev
                config=config,
            )
        return self._client

    def public_url(self, key: str) -> str:
        if settings.s3_endpoint_url:
            # MinIO in development
            return f"{settings.s3_endpoint_url}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{settings.aws_region}.amazonaws.com/{key}"

    def _prepare_image(self, image_data: bytes, content_type: str | None) -> Image.Image:
        if content_type and content_type not in self.ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Unsupported image type {content_type}")
        if len(image_data) > self.MAX_IMAGE_SIZE:
            raise ValidationError(
                f"Image exceeds maximum size of {self.MAX_IMAGE_SIZE // 1024 // 1024}MB"
            )
        try:
            image = Image.open(BytesIO(image_data))
            image.load()
        except (UnidentifiedImageError, OSError):
            raise ValidationError("File is not a readable image")

        # Convert RGBA to RGB for JPEG
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")
        return image

    async def upload_profile_photo(
        self,
        file: BinaryIO,
        profile_id: str,
        content_type: str | None = None,
    ) -> dict[str, str]:
        """Upload a profile photo in every configured size.

        Returns:
            dict: URLs for each size {'thumbnail': url, 'medium': url}
        """
        image = self._prepare_image(file.read(), content_type)
        base_key = f"profiles/{profile_id}/photo/{uuid.uuid4().hex[:12]}"

        urls = {}
        try:
            for size_name, dimensions in self.IMAGE_SIZES.items():
                resized = image.copy()
                resized.thumbnail(dimensions, Image.Resampling.LANCZOS)

                buffer = BytesIO()
                resized.save(buffer, format="JPEG", quality=85, optimize=True)
                buffer.seek(0)

                key = f"{base_key}_{size_name}.jpg"
                self.client.upload_fileobj(
                    buffer,
                    self._bucket,
                    key,
                    ExtraArgs={"ContentType": "image/jpeg", "ACL": "public-read"},
                )
                urls[size_name] = self.public_url(key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Photo upload for profile {profile_id} failed: {e}")
            raise ExternalServiceError("storage", "Photo upload failed")

        return urls

    async def delete_file(self, url_or_key: str) -> bool:
        """Delete a file from S3.

        Args:
            url_or_key: Full URL or S3 key

        Returns:
            bool: True if deleted successfully
        """
        # Extract key from URL if needed
        if url_or_key.startswith("http"):
            key = url_or_key.split(f"{self._bucket}/")[-1]
            if url_or_key.startswith(f"https://{self._bucket}.s3."):
                key = url_or_key.split(".amazonaws.com/", 1)[-1]
        else:
            key = url_or_key

        try:
            self.client.delete_object(Bucket=self._bucket, Key=key)
            return True
        except ClientError as e:
            logger.warning(f"Could not delete {key}: {e}")
            return False


# Singleton instance
storage_service = StorageService()

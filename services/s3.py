import logging
import os
import uuid
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import ClientError
from fastapi import UploadFile, HTTPException

from models.errors import ValidationError

logger = logging.getLogger(__name__)

IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


class S3Service:
    def __init__(
            self,
            bucket_name: str,
            client: boto3.client,
            public_url: Optional[str] = None,
            max_size_mb: int = 5,
    ):
        """
        Initialize the S3 service with bucket name and the base URL images are served from
        """
        self.bucket_name = bucket_name
        self.s3 = client
        self.max_size_mb = max_size_mb
        if public_url is None:
            region = self.s3.meta.region_name
            public_url = f"https://{bucket_name}.s3.{region}.amazonaws.com"
        self.public_url = public_url.rstrip("/")

    @staticmethod
    def image_extension(file: UploadFile) -> str:
        """
        Return the lowercase extension of an uploaded image

        Raises:
            ValidationError: If the file is not a JPEG or PNG image
        """
        extension = os.path.splitext(file.filename or "")[1].lower()
        if IMAGE_TYPES.get(extension) is None or file.content_type not in IMAGE_TYPES.values():
            raise ValidationError("Images only! (jpg, jpeg, png)")
        return extension

    async def upload_image(self, file: UploadFile, user_id: str) -> str:
        """
        Upload a post image to S3 with user ownership metadata

        Args:
            file: The image to upload
            user_id: The ID of the user uploading the image

        Returns:
            The unique S3 key for the uploaded image

        Raises:
            ValidationError: If the file is not an accepted image or is too large
            HTTPException: If the upload itself fails
        """
        extension = self.image_extension(file)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        unique_filename = f"images/{user_id}/{timestamp}-{uuid.uuid4()}{extension}"

        file_content = await file.read()
        if len(file_content) > self.max_size_mb * 1024 * 1024:
            raise ValidationError(f"File size exceeds {self.max_size_mb}MB limit")

        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=unique_filename,
                Body=file_content,
                ContentType=IMAGE_TYPES[extension],
                Metadata={
                    'user_id': user_id
                }
            )
        except ClientError as e:
            logger.error("S3 upload error: %s", e)
            raise HTTPException(status_code=500, detail="Failed to upload image")

        return unique_filename

    def get_public_url(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    async def delete_file(self, key: str) -> bool:
        """
        Delete a stored image

        Returns:
            True if S3 accepted the delete, False otherwise
        """
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.warning("S3 delete failed for %s: %s", key, e)
            return False

import boto3
import os
from botocore.exceptions import NoCredentialsError
from urllib.parse import urlparse


def _client():
    return boto3.client(
        "s3",
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        region_name=os.getenv("AWS_REGION"),
    )


def _bucket_url(bucket_name):
    region = os.getenv("AWS_REGION")
    if region:
        return f"https://{bucket_name}.s3.{region}.amazonaws.com"
    return f"https://{bucket_name}.s3.amazonaws.com"


def upload_file_to_s3(file, filename, bucket_name, base_url=None):
    s3 = _client()
    try:
        s3.upload_fileobj(
            file,
            bucket_name,
            filename,
            ExtraArgs={"ACL": "public-read", "ContentType": file.mimetype},
        )
    except NoCredentialsError:
        raise Exception("AWS credentials not found. Check environment variables.")

    base_url = base_url or os.getenv("S3_BASE_URL") or _bucket_url(bucket_name)
    return f"{base_url}/{filename}"


def delete_file_from_s3(image_url, bucket_name):
    s3 = _client()
    key = urlparse(image_url).path.lstrip("/")
    try:
        s3.delete_object(Bucket=bucket_name, Key=key)
    except NoCredentialsError:
        raise Exception("AWS credentials not found. Check environment variables.")
    return True

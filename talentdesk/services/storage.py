import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from talentdesk.core.config import get_settings

settings = get_settings()

s3_client = boto3.client(
    "s3",
    endpoint_url=settings.S3_ENDPOINT,
    aws_access_key_id=settings.S3_ACCESS_KEY,
    aws_secret_access_key=settings.S3_SECRET_KEY,
    config=Config(signature_version="s3v4"),
    region_name="us-east-1",
)


def ensure_bucket(bucket_name: str):
    try:
        s3_client.head_bucket(Bucket=bucket_name)
    except ClientError:
        s3_client.create_bucket(Bucket=bucket_name)


def public_url(bucket: str, key: str) -> str:
    return f"{settings.S3_PUBLIC_URL.rstrip('/')}/{bucket}/{key}"


def key_from_public_url(bucket: str, url: str) -> str | None:
    marker = f"/{bucket}/"
    if marker not in url:
        return None
    return url.split(marker, 1)[1]


def upload_bytes(bucket: str, key: str, content: bytes, content_type: str | None = None) -> str:
    ensure_bucket(bucket)
    s3_client.put_object(
        Bucket=bucket,
        Key=key,
        Body=content,
        ContentType=content_type or "application/octet-stream",
    )
    return public_url(bucket, key)


def download_file(bucket: str, key: str) -> bytes:
    response = s3_client.get_object(Bucket=bucket, Key=key)
    return response["Body"].read()


def delete_files(bucket: str, keys: list[str]):
    if not keys:
        return
    s3_client.delete_objects(Bucket=bucket, Delete={"Objects": [{"Key": k} for k in keys]})

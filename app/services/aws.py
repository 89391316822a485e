"""Shared AWS helpers for service clients."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import boto3

from app.config.settings import settings


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
) -> Any:
    """Instantiate a boto3 client, preferring explicit keys over the S3 ones.

    Without any configured keys boto3 falls back to its default credential
    chain (environment, profile, instance role).
    """

    client_kwargs: dict[str, Any] = {"region_name": region_name or settings.s3.region}
    if aws_access_key_id and aws_secret_access_key:
        client_kwargs["aws_access_key_id"] = aws_access_key_id
        client_kwargs["aws_secret_access_key"] = aws_secret_access_key
    elif settings.s3.access_key and settings.s3.secret_key:
        client_kwargs["aws_access_key_id"] = settings.s3.access_key
        client_kwargs["aws_secret_access_key"] = settings.s3.secret_key
    return boto3.client(service_name, **client_kwargs)


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    """Lazily created S3 client used to read ``s3://`` media locators."""

    return create_boto3_client("s3", region_name=settings.s3.region)


__all__ = ["create_boto3_client", "get_s3_client"]

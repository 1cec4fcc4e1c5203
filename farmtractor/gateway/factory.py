from __future__ import annotations

from typing import Any, Optional

import boto3
from loguru import logger

from farmtractor.config import AwsSettings

# Device Farm is only served from us-west-2.
DEFAULT_REGION = "us-west-2"


def build_boto_session(settings: AwsSettings) -> boto3.session.Session:
    """
    Pick the credential source for the Device Farm client.

    Explicit keys win (with the session token when one is given); without keys a
    named profile is used, and failing that boto3's default provider chain.
    """

    if not settings.access_key_id or not settings.secret_access_key:
        if settings.profile_name:
            logger.info("Using the AWS credentials of profile {}", settings.profile_name)
            return boto3.session.Session(profile_name=settings.profile_name)
        logger.info("Using the default AWS credentials")
        return boto3.session.Session()

    if not settings.session_token:
        logger.info("Creating the Device Farm client with the provided credentials")
        return boto3.session.Session(
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
        )

    logger.info("Creating the Device Farm client with the provided credentials and session token")
    return boto3.session.Session(
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=settings.secret_access_key,
        aws_session_token=settings.session_token,
    )


def build_devicefarm_client(settings: AwsSettings, *, session: Optional[boto3.session.Session] = None) -> Any:
    session = session or build_boto_session(settings)
    region = settings.region or DEFAULT_REGION
    logger.info("Creating the Device Farm client in region {}", region)
    return session.client("devicefarm", region_name=region)

"""AWS client factory helpers."""

import boto3
from botocore.config import Config


def get_session(profile_name=None, region_name=None):
    if profile_name:
        return boto3.Session(profile_name=profile_name, region_name=region_name)
    return boto3.Session(region_name=region_name)


def build_client_config(max_attempts=None, connect_timeout=None, read_timeout=None):
    kwargs = {}
    if max_attempts:
        kwargs["retries"] = {"max_attempts": max_attempts, "mode": "standard"}
    if connect_timeout:
        kwargs["connect_timeout"] = connect_timeout
    if read_timeout:
        kwargs["read_timeout"] = read_timeout
    return Config(**kwargs) if kwargs else None


def get_client(service_name, profile_name=None, region_name=None, endpoint_url=None, config=None):
    session = get_session(profile_name=profile_name, region_name=region_name)
    kwargs = {"region_name": region_name}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if config is not None:
        kwargs["config"] = config
    return session.client(service_name, **kwargs)

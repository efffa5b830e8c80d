"""DynamoDB service wrapper."""

from dynamo_jobs.providers.aws.clients import build_client_config, get_client


def client(profile_name=None, region_name=None, endpoint_url=None, config=None):
    return get_client(
        "dynamodb",
        profile_name=profile_name,
        region_name=region_name,
        endpoint_url=endpoint_url,
        config=config,
    )


def client_from_config(store_config):
    return client(
        profile_name=store_config.profile,
        region_name=store_config.region,
        endpoint_url=store_config.endpoint_url,
        config=build_client_config(
            max_attempts=store_config.max_attempts,
            connect_timeout=store_config.connect_timeout,
            read_timeout=store_config.read_timeout,
        ),
    )

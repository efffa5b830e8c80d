"""AWS error inspection helpers.

The job store lets store failures propagate; these helpers are for the
places that need to look at one: conditional writes inside the store, and
the CLI turning an exception into a one-line message.
"""

from __future__ import annotations

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    ProfileNotFound,
)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

_CREDENTIAL_ERROR_CODES = frozenset(
    {
        "ExpiredTokenException",
        "ExpiredToken",
        "InvalidClientTokenId",
        "UnrecognizedClientException",
        "SignatureDoesNotMatch",
        "AccessDenied",
        "AccessDeniedException",
    }
)

_THROTTLING_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
    }
)


def error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return ""


def is_conditional_check_failed(exc: BaseException) -> bool:
    return error_code(exc) == CONDITIONAL_CHECK_FAILED


def is_credential_error(exc: BaseException) -> bool:
    """Return True if *exc* is an AWS credential / token related error."""
    if isinstance(exc, (NoCredentialsError, ProfileNotFound)):
        return True
    return error_code(exc) in _CREDENTIAL_ERROR_CODES


def friendly_message(exc: BaseException, profile: str = "", table: str = "") -> str:
    """Return a user-facing message for a store failure."""
    who = f"profile '{profile}'" if profile else "the default credentials"

    if isinstance(exc, NoCredentialsError):
        return f"AWS credentials not found for {who}. Run: aws configure or aws sso login"
    if isinstance(exc, ProfileNotFound):
        return f"AWS profile '{profile}' not found in ~/.aws/config or ~/.aws/credentials."
    if isinstance(exc, EndpointConnectionError):
        return f"Cannot reach the DynamoDB endpoint: {exc}"

    code = error_code(exc)
    if code in ("ExpiredTokenException", "ExpiredToken"):
        return f"AWS session token expired for {who}. Run: aws sso login"
    if code in ("AccessDenied", "AccessDeniedException"):
        return f"Access denied on table '{table}' for {who}. Check IAM permissions."
    if code == "ResourceNotFoundException":
        return f"Table '{table}' does not exist in this account/region."
    if code in _THROTTLING_ERROR_CODES:
        return f"Table '{table}' is throttling requests; retry later."

    return str(exc)


def classify_aws_error(exc: BaseException, profile: str = "", table: str = "") -> dict:
    """Classify an exception and return a structured error dict.

    Returns a dict with keys:
        error_type: 'credential' | 'aws_api' | 'unexpected'
        error: human-readable message
        is_credential_error: bool
    """
    if is_credential_error(exc):
        return {
            "error_type": "credential",
            "error": friendly_message(exc, profile, table),
            "is_credential_error": True,
        }

    if isinstance(exc, (BotoCoreError, ClientError)):
        return {
            "error_type": "aws_api",
            "error": friendly_message(exc, profile, table),
            "is_credential_error": False,
        }

    return {
        "error_type": "unexpected",
        "error": str(exc),
        "is_credential_error": False,
    }

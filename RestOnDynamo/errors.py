from enum import Enum, IntEnum
from typing import Dict, Optional, Union

from botocore.exceptions import ClientError, BotoCoreError, ParamValidationError, NoCredentialsError, \
    PartialCredentialsError, HTTPClientError, ConnectionError as BotoCoreConnectionError


class ErrorStatusCodeRange(IntEnum):
    CLIENT = 400
    SERVER = 500


class ErrorType(IntEnum):
    """Error types in the REST sense, valued with their recommended http status code."""
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class SuccessType(IntEnum):
    OK = 200
    CREATED = 201
    NO_CONTENT = 204


class AwsErrorCode(str, Enum):
    # See https://docs.aws.amazon.com/amazondynamodb/latest/developerguide/Programming.Errors.html
    ACCESS_DENIED_EXCEPTION = 'AccessDeniedException'
    CONDITIONAL_CHECK_FAILED_EXCEPTION = 'ConditionalCheckFailedException'
    INCOMPLETE_SIGNATURE_EXCEPTION = 'IncompleteSignatureException'
    ITEM_COLLECTION_SIZE_LIMIT_EXCEEDED_EXCEPTION = 'ItemCollectionSizeLimitExceededException'
    LIMIT_EXCEEDED_EXCEPTION = 'LimitExceededException'
    MISSING_AUTHENTICATION_TOKEN_EXCEPTION = 'MissingAuthenticationTokenException'
    PROVISIONED_THROUGHPUT_EXCEEDED_EXCEPTION = 'ProvisionedThroughputExceededException'
    REQUEST_LIMIT_EXCEEDED = 'RequestLimitExceeded'
    RESOURCE_IN_USE_EXCEPTION = 'ResourceInUseException'
    RESOURCE_NOT_FOUND_EXCEPTION = 'ResourceNotFoundException'
    THROTTLING_EXCEPTION = 'ThrottlingException'
    UNRECOGNIZED_CLIENT_EXCEPTION = 'UnrecognizedClientException'
    VALIDATION_EXCEPTION = 'ValidationException'


ErrorTypeOverride = Dict[str, ErrorType]

# A ClientError is a failure reported by DynamoDB itself, a BotoCoreError happened before or
# while reaching it (credentials, configuration, parameters, network).
BackendError = Union[ClientError, BotoCoreError]

# Status codes with a fixed classification. Anything else is a client range failure,
# which is resolved with the error code override before defaulting to BAD_REQUEST.
_SERVER_STATUS_CODES_TO_ERROR_TYPES: Dict[int, ErrorType] = {
    503: ErrorType.SERVICE_UNAVAILABLE,
    500: ErrorType.INTERNAL_SERVER_ERROR,
}

# Looked up along the mro of the error, so subclasses (EndpointConnectionError, ReadTimeoutError...)
# are matched by their base. Any other BotoCoreError is an INTERNAL_SERVER_ERROR.
_BOTOCORE_ERRORS_TO_ERROR_TYPES: Dict[type, ErrorType] = {
    ParamValidationError: ErrorType.BAD_REQUEST,
    NoCredentialsError: ErrorType.UNAUTHORIZED,
    PartialCredentialsError: ErrorType.UNAUTHORIZED,
    BotoCoreConnectionError: ErrorType.SERVICE_UNAVAILABLE,
    HTTPClientError: ErrorType.SERVICE_UNAVAILABLE,
}


def determine_error_status_range(status_code: int) -> ErrorStatusCodeRange:
    return ErrorStatusCodeRange.SERVER if status_code >= 500 else ErrorStatusCodeRange.CLIENT


def aws_error_status_code(aws_error: ClientError) -> int:
    return aws_error.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 400)


def aws_error_code(aws_error: ClientError) -> Optional[str]:
    return aws_error.response.get('Error', {}).get('Code', None)


def aws_error_message(aws_error: BackendError) -> str:
    if not isinstance(aws_error, ClientError):
        return str(aws_error)
    error_message: Optional[str] = aws_error.response.get('Error', {}).get('Message', None)
    return error_message if error_message is not None else str(aws_error)


def _classify_botocore_error(botocore_error: BotoCoreError) -> ErrorType:
    for error_class in type(botocore_error).__mro__:
        error_type: Optional[ErrorType] = _BOTOCORE_ERRORS_TO_ERROR_TYPES.get(error_class, None)
        if error_type is not None:
            return error_type
    return ErrorType.INTERNAL_SERVER_ERROR


def classify_backend_error(aws_error: BackendError, error_code_override: Optional[ErrorTypeOverride] = None) -> ErrorType:
    if not isinstance(aws_error, ClientError):
        return _classify_botocore_error(botocore_error=aws_error)

    server_error_type: Optional[ErrorType] = _SERVER_STATUS_CODES_TO_ERROR_TYPES.get(aws_error_status_code(aws_error), None)
    if server_error_type is not None:
        return server_error_type

    overridden_error_type: Optional[ErrorType] = (error_code_override or {}).get(aws_error_code(aws_error), None)
    return overridden_error_type if overridden_error_type is not None else ErrorType.BAD_REQUEST

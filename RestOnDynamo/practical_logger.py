from pprint import pformat
from typing import Optional, Union

from botocore.exceptions import ClientError, BotoCoreError


def message_with_vars(message: str, vars_dict: Optional[dict] = None) -> str:
    output_message = f"\n{message}"
    if vars_dict is not None:
        for var_key, var_value in vars_dict.items():
            output_message += f"\n  --{var_key}:{pformat(var_value)}"
    return output_message


def backend_error_vars(backend_error: Union[ClientError, BotoCoreError]) -> dict:
    if not isinstance(backend_error, ClientError):
        # Raised by botocore before DynamoDB could answer, so there is no response to read
        return {'errorClass': type(backend_error).__name__, 'errorMessage': str(backend_error)}

    error_dict: dict = backend_error.response.get('Error', {})
    return {
        'operationName': backend_error.operation_name,
        'errorCode': error_dict.get('Code'),
        'errorMessage': error_dict.get('Message'),
        'httpStatusCode': backend_error.response.get('ResponseMetadata', {}).get('HTTPStatusCode'),
    }

from RestOnDynamo.client import RestOnDynamoClient, Id, RestOnDynamoCallback, KEY_SCHEMA_VIOLATION_MESSAGE
from RestOnDynamo.result import Ok, Err, Result
from RestOnDynamo.errors import ErrorType, SuccessType, ErrorStatusCodeRange, AwsErrorCode, determine_error_status_range, classify_backend_error
from RestOnDynamo.dynamodb.dynamodb_core import DynamoDBCoreAdapter
from RestOnDynamo.dynamodb.utils import parse_dynamo_update_args
from RestOnDynamo.exceptions import *

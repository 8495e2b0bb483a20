import asyncio
import functools
import logging
from typing import Optional, List, Dict, Any, Callable, Awaitable, Mapping

import boto3
from botocore.exceptions import ClientError, BotoCoreError

from RestOnDynamo.dynamodb.dynamodb_core import DynamoDBCoreAdapter
from RestOnDynamo.dynamodb.utils import parse_dynamo_update_args
from RestOnDynamo.errors import ErrorType, SuccessType, AwsErrorCode, ErrorTypeOverride, BackendError
from RestOnDynamo.practical_logger import message_with_vars, backend_error_vars
from RestOnDynamo.rest import BaseRestInterface
from RestOnDynamo.result import Ok, Err, Result, ok_response, aws_err_response, rest_err_response


Id = Dict[str, Any]
RestOnDynamoCallback = Callable[[Optional[Err], Optional[Ok]], None]

KEY_SCHEMA_VIOLATION_MESSAGE = "key schema violation"

_CONDITIONAL_CHECK_FAILED_AS_CONFLICT: ErrorTypeOverride = {
    AwsErrorCode.CONDITIONAL_CHECK_FAILED_EXCEPTION.value: ErrorType.CONFLICT
}
_CONDITIONAL_CHECK_FAILED_AS_NOT_FOUND: ErrorTypeOverride = {
    AwsErrorCode.CONDITIONAL_CHECK_FAILED_EXCEPTION.value: ErrorType.NOT_FOUND
}


def _deliver_to_callback(callback: RestOnDynamoCallback, future: asyncio.Future) -> None:
    if future.cancelled():
        return
    exception: Optional[BaseException] = future.exception()
    if exception is None:
        callback(None, future.result())
    elif isinstance(exception, Err):
        callback(exception, None)
    else:
        # Every failure of DynamoDB or botocore is an Err by now, anything else is a bug.
        raise exception


class RestOnDynamoClient(BaseRestInterface[Id, dict, Result]):
    """
    REST verbs over a DynamoDB table. Every verb returns a Result, whose future resolves with an Ok or is rejected with an Err.

    The key schema of the table is retrieved on the first call of any verb, and then kept for the lifetime of the client.
    Concurrent first calls share the same describe table request.

    The verbs must be called while an event loop is running (from a coroutine, for example one started
    with asyncio.run), even when the outcome is only received through a callback. Otherwise they raise
    a NoRunningEventLoopException and no request is sent.
    """

    def __init__(
            self, table_name: str, dynamodb: Optional[Any] = None,
            region_name: Optional[str] = None, boto_session: Optional[boto3.Session] = None
    ):
        self.table_name = table_name
        self.dynamodb = dynamodb if dynamodb is not None else DynamoDBCoreAdapter(region_name=region_name, boto_session=boto_session)
        self._keys: Optional[List[str]] = None
        self._key_schema_sync_task: Optional[asyncio.Future] = None

    @property
    def keys(self) -> Optional[List[str]]:
        return self._keys

    @property
    def key_not_exist_conditional_expression(self) -> str:
        return ' AND '.join(f"attribute_not_exists({key_name})" for key_name in self._keys)

    @property
    def key_exist_conditional_expression(self) -> str:
        return ' AND '.join(f"attribute_exists({key_name})" for key_name in self._keys)

    @property
    def key_projection_expression(self) -> str:
        return ','.join(self._keys)

    async def _run_store_operation(
            self, operation: Callable[..., Any], error_code_override: Optional[ErrorTypeOverride] = None, **kwargs
    ) -> Any:
        """
        Run a request of the store, and turn any of its ClientError or BotoCoreError into a classified Err.
        The error_code_override only applies to the error codes answered by DynamoDB.
        """
        # boto3 is blocking, so the requests are run in the default executor of the loop
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(operation, **kwargs))
        except (ClientError, BotoCoreError) as e:
            raise self._classified_err(aws_error=e, error_code_override=error_code_override) from e

    async def _describe_key_schema(self) -> List[str]:
        try:
            keys: List[str] = await self._run_store_operation(self.dynamodb.describe_key_schema, table_name=self.table_name)
        except BaseException:
            # A failed resolution is not kept, the next call will try again.
            self._key_schema_sync_task = None
            raise
        self._keys = keys
        return keys

    async def _key_schema_sync(self) -> List[str]:
        if self._keys is not None:
            return self._keys
        if self._key_schema_sync_task is None:
            logging.debug(message_with_vars(
                message="Resolving the key schema of the table",
                vars_dict={'tableName': self.table_name}
            ))
            self._key_schema_sync_task = asyncio.ensure_future(self._describe_key_schema())
        # Shielded, so that a caller abandoning its own call does not cancel the resolution of the others
        return await asyncio.shield(self._key_schema_sync_task)

    def _validate_id(self, id: Any) -> None:
        if not isinstance(id, Mapping) or set(id.keys()) != set(self._keys):
            logging.debug(message_with_vars(
                message="Rejected an id not matching the key schema of the table",
                vars_dict={'tableName': self.table_name, 'id': id, 'keySchema': self._keys}
            ))
            raise rest_err_response(error_type=ErrorType.BAD_REQUEST, message=KEY_SCHEMA_VIOLATION_MESSAGE)

    @staticmethod
    def _validate_data(data: Any) -> None:
        if not isinstance(data, Mapping):
            raise rest_err_response(error_type=ErrorType.BAD_REQUEST, message="data must be a mapping of attributes")

    def _classified_err(self, aws_error: BackendError, error_code_override: Optional[ErrorTypeOverride] = None) -> Err:
        err = aws_err_response(aws_error=aws_error, error_code_override=error_code_override)
        logging.warning(message_with_vars(
            message="DynamoDB request failed",
            vars_dict={
                'tableName': self.table_name,
                'defaultStatusCode': err.default_status_code,
                **backend_error_vars(aws_error)
            }
        ))
        return err

    def _dispatch(self, id: Id, middleware: Callable[[], Awaitable[Ok]], callback: Optional[RestOnDynamoCallback]) -> Result:
        async def call() -> Ok:
            await self._key_schema_sync()
            self._validate_id(id=id)
            return await middleware()

        result = Result(call())
        if callback is not None:
            result.future().add_done_callback(functools.partial(_deliver_to_callback, callback))
        return result

    def get(self, id: Id, callback: Optional[RestOnDynamoCallback] = None) -> Result:
        """Get the item with the id."""
        async def middleware() -> Ok:
            item: Optional[dict] = await self._run_store_operation(
                self.dynamodb.get_item, table_name=self.table_name, key=dict(id)
            )
            if item is None:
                raise rest_err_response(error_type=ErrorType.NOT_FOUND, message="Key does not exist")
            return ok_response(default_status_code=SuccessType.OK, data=item)
        return self._dispatch(id=id, middleware=middleware, callback=callback)

    def head(self, id: Id, callback: Optional[RestOnDynamoCallback] = None) -> Result:
        """Check the presence of an item with the id."""
        async def middleware() -> Ok:
            # Only the key attributes are projected, to shrink down the data transferred
            item: Optional[dict] = await self._run_store_operation(
                self.dynamodb.get_item, table_name=self.table_name, key=dict(id),
                projection_expression=self.key_projection_expression
            )
            if item is None:
                raise rest_err_response(error_type=ErrorType.NOT_FOUND, message="Key not found")
            return ok_response(default_status_code=SuccessType.NO_CONTENT)
        return self._dispatch(id=id, middleware=middleware, callback=callback)

    def post(self, id: Id, data: dict, callback: Optional[RestOnDynamoCallback] = None) -> Result:
        """
        Create a new item in the table.

        A RESTful POST should not have an id, but since DynamoDB cannot generate unique keys,
        it is up to the caller to generate the id (for example with uuid4) before invoking post.
        """
        async def middleware() -> Ok:
            self._validate_data(data=data)
            item: dict = {**data, **id}
            await self._run_store_operation(
                self.dynamodb.put_item, error_code_override=_CONDITIONAL_CHECK_FAILED_AS_CONFLICT,
                table_name=self.table_name, item=item,
                condition_expression=self.key_not_exist_conditional_expression
            )
            return ok_response(default_status_code=SuccessType.CREATED, data=item)
        return self._dispatch(id=id, middleware=middleware, callback=callback)

    def put(self, id: Id, data: dict, callback: Optional[RestOnDynamoCallback] = None) -> Result:
        """Overwrite an existing item of the table."""
        async def middleware() -> Ok:
            self._validate_data(data=data)
            item: dict = {**data, **id}
            await self._run_store_operation(
                self.dynamodb.put_item, error_code_override=_CONDITIONAL_CHECK_FAILED_AS_NOT_FOUND,
                table_name=self.table_name, item=item,
                condition_expression=self.key_exist_conditional_expression
            )
            return ok_response(default_status_code=SuccessType.OK, data=item)
        return self._dispatch(id=id, middleware=middleware, callback=callback)

    def patch(self, id: Id, data: dict, callback: Optional[RestOnDynamoCallback] = None) -> Result:
        """
        Partially update an existing item, and resolve with the whole item after the update.
        Only a surface level merge is done, nested values are replaced and not deep merged.
        """
        async def middleware() -> Ok:
            self._validate_data(data=data)
            if len(data) == 0:
                raise rest_err_response(error_type=ErrorType.BAD_REQUEST, message="No attribute to patch")
            updated_item: dict = await self._run_store_operation(
                self.dynamodb.update_item, error_code_override=_CONDITIONAL_CHECK_FAILED_AS_NOT_FOUND,
                table_name=self.table_name, key=dict(id),
                condition_expression=self.key_exist_conditional_expression,
                update_args=parse_dynamo_update_args(data=dict(data))
            )
            return ok_response(default_status_code=SuccessType.OK, data=updated_item)
        return self._dispatch(id=id, middleware=middleware, callback=callback)

    def delete(self, id: Id, callback: Optional[RestOnDynamoCallback] = None) -> Result:
        """Remove an item from the table. Deleting an item that does not exist also succeeds."""
        async def middleware() -> Ok:
            await self._run_store_operation(self.dynamodb.delete_item, table_name=self.table_name, key=dict(id))
            return ok_response(default_status_code=SuccessType.NO_CONTENT)
        return self._dispatch(id=id, middleware=middleware, callback=callback)

import copy
import re
import threading
from typing import Optional, Any, Dict, List, Tuple

from botocore.exceptions import ClientError

from RestOnDynamo import RestOnDynamoClient
from RestOnDynamo.dynamodb.models import DynamoUpdateArgs


PLAYGROUND_TABLE_NAME = "restondynamo-playground"
PLAYGROUND_COMPOSITE_TABLE_NAME = "restondynamo-playground-composite"
TEST_ITEM_ID = "test-id-0"

_CONDITION_CLAUSE_REGEX = re.compile(r'^attribute_(not_exists|exists)\((\w+)\)$')


def make_client_error(operation_name: str, error_code: str, message: str = "fake aws error message", http_status_code: int = 400) -> ClientError:
    return ClientError(
        error_response={
            'Error': {'Code': error_code, 'Message': message},
            'ResponseMetadata': {'HTTPStatusCode': http_status_code}
        },
        operation_name=operation_name
    )


class InMemoryDynamoDBStore:
    """
    Stand-in for the DynamoDBCoreAdapter, that keeps the tables in memory while enforcing
    the same condition expressions, and raising the same ClientError's as DynamoDB.
    """

    def __init__(self, tables_key_schemas: Dict[str, List[str]]):
        self.tables_key_schemas = tables_key_schemas
        self.tables: Dict[str, Dict[Tuple, dict]] = {table_name: {} for table_name in tables_key_schemas.keys()}
        self.operations_calls: List[Tuple[str, dict]] = []
        self._pending_failures: Dict[str, Exception] = {}
        self._lock = threading.Lock()

    def fail_next(self, operation_name: str, error: Exception) -> None:
        self._pending_failures[operation_name] = error

    def calls_of(self, operation_name: str) -> List[dict]:
        return [kwargs for name, kwargs in self.operations_calls if name == operation_name]

    def _record_call(self, operation_name: str, **kwargs) -> None:
        self.operations_calls.append((operation_name, kwargs))
        pending_failure: Optional[Exception] = self._pending_failures.pop(operation_name, None)
        if pending_failure is not None:
            raise pending_failure

    def _table(self, table_name: str, operation_name: str) -> Dict[Tuple, dict]:
        table: Optional[Dict[Tuple, dict]] = self.tables.get(table_name, None)
        if table is None:
            raise make_client_error(operation_name, 'ResourceNotFoundException', message="Requested resource not found")
        return table

    def _key_tuple(self, table_name: str, key: Dict[str, Any], operation_name: str) -> Tuple:
        key_schema: List[str] = self.tables_key_schemas[table_name]
        if set(key.keys()) != set(key_schema):
            raise make_client_error(operation_name, 'ValidationException', message="The provided key element does not match the schema")
        return tuple(key[key_name] for key_name in key_schema)

    @staticmethod
    def _condition_passes(condition_expression: Optional[str], existing_item: Optional[dict]) -> bool:
        if condition_expression is None:
            return True
        for clause in condition_expression.split(' AND '):
            match = _CONDITION_CLAUSE_REGEX.match(clause.strip())
            if match is None:
                raise ValueError(f"Unsupported condition clause : {clause}")
            function_name, attribute_name = match.groups()
            attribute_exists: bool = existing_item is not None and attribute_name in existing_item
            if attribute_exists != (function_name == 'exists'):
                return False
        return True

    def describe_key_schema(self, table_name: str) -> List[str]:
        self._record_call('DescribeTable', table_name=table_name)
        self._table(table_name, 'DescribeTable')
        return list(self.tables_key_schemas[table_name])

    def get_item(self, table_name: str, key: Dict[str, Any], projection_expression: Optional[str] = None) -> Optional[dict]:
        self._record_call('GetItem', table_name=table_name, key=key, projection_expression=projection_expression)
        table = self._table(table_name, 'GetItem')
        with self._lock:
            existing_item: Optional[dict] = table.get(self._key_tuple(table_name, key, 'GetItem'), None)
            if existing_item is None:
                return None
            if projection_expression is not None:
                projected_attributes: List[str] = projection_expression.split(',')
                return {name: copy.deepcopy(value) for name, value in existing_item.items() if name in projected_attributes}
            return copy.deepcopy(existing_item)

    def put_item(self, table_name: str, item: Dict[str, Any], condition_expression: Optional[str] = None) -> None:
        self._record_call('PutItem', table_name=table_name, item=item, condition_expression=condition_expression)
        table = self._table(table_name, 'PutItem')
        key_schema: List[str] = self.tables_key_schemas[table_name]
        with self._lock:
            key_tuple: Tuple = self._key_tuple(table_name, {key_name: item.get(key_name) for key_name in key_schema}, 'PutItem')
            if not self._condition_passes(condition_expression, table.get(key_tuple, None)):
                raise make_client_error('PutItem', 'ConditionalCheckFailedException', message="The conditional request failed")
            table[key_tuple] = copy.deepcopy(item)

    def delete_item(self, table_name: str, key: Dict[str, Any]) -> None:
        self._record_call('DeleteItem', table_name=table_name, key=key)
        table = self._table(table_name, 'DeleteItem')
        with self._lock:
            table.pop(self._key_tuple(table_name, key, 'DeleteItem'), None)

    def update_item(self, table_name: str, key: Dict[str, Any], condition_expression: Optional[str], update_args: DynamoUpdateArgs) -> dict:
        update_expression: str = update_args.update_expression
        expression_attribute_values: Dict[str, Any] = update_args.expression_attribute_values
        self._record_call(
            'UpdateItem', table_name=table_name, key=key, condition_expression=condition_expression,
            update_expression=update_expression, expression_attribute_values=expression_attribute_values
        )
        table = self._table(table_name, 'UpdateItem')
        with self._lock:
            key_tuple: Tuple = self._key_tuple(table_name, key, 'UpdateItem')
            existing_item: Optional[dict] = table.get(key_tuple, None)
            if not self._condition_passes(condition_expression, existing_item):
                raise make_client_error('UpdateItem', 'ConditionalCheckFailedException', message="The conditional request failed")

            updated_item: dict = copy.deepcopy(existing_item) if existing_item is not None else dict(key)
            for clause in update_expression[len('SET '):].split(','):
                attribute_name, value_binding = [part.strip() for part in clause.split('=')]
                updated_item[attribute_name] = copy.deepcopy(expression_attribute_values[value_binding])
            table[key_tuple] = updated_item
            return copy.deepcopy(updated_item)


def make_playground_store() -> InMemoryDynamoDBStore:
    return InMemoryDynamoDBStore(tables_key_schemas={
        PLAYGROUND_TABLE_NAME: ['id'],
        PLAYGROUND_COMPOSITE_TABLE_NAME: ['accountId', 'projectId'],
    })


class PlaygroundRestOnDynamoClient(RestOnDynamoClient):
    def __init__(self, store: Optional[InMemoryDynamoDBStore] = None, table_name: str = PLAYGROUND_TABLE_NAME):
        self.store = store if store is not None else make_playground_store()
        super().__init__(table_name=table_name, dynamodb=self.store)

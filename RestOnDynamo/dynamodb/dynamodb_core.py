import logging
from typing import List, Optional, Any, Dict

import boto3
from boto3.session import Session

from RestOnDynamo.dynamodb.models import TableKeySchema, DynamoUpdateArgs
from RestOnDynamo.dynamodb.utils import DynamoDBUtils
from RestOnDynamo.practical_logger import message_with_vars


class DynamoDBCoreAdapter:
    """
    Thin wrapper around a low-level boto3 DynamoDB client. Every failure is left to propagate as a
    botocore ClientError or BotoCoreError, the classification of the failures is done by the callers.
    """
    _EXISTING_DATABASE_CLIENTS = {}

    def __init__(self, region_name: Optional[str] = None, boto_session: Optional[boto3.Session] = None, dynamodb_client: Optional[Any] = None):
        if dynamodb_client is not None:
            self.dynamodb = dynamodb_client
        elif boto_session is not None:
            # A custom session can hold its own credentials, so its clients are never shared.
            self.dynamodb = boto_session.client('dynamodb', region_name=region_name)
        else:
            self.dynamodb = self._get_or_create_shared_client(region_name=region_name)

    @classmethod
    def _get_or_create_shared_client(cls, region_name: Optional[str]) -> Any:
        # We store the database clients in a static variable, so that if we init the class with
        # the same region_name, we do not need to wait for a new initialization of the client.
        if region_name is not None and region_name in cls._EXISTING_DATABASE_CLIENTS:
            return cls._EXISTING_DATABASE_CLIENTS[region_name]

        if region_name is not None and region_name in Session().get_available_regions('dynamodb'):
            dynamodb_client = boto3.client('dynamodb', region_name=region_name)
            cls._EXISTING_DATABASE_CLIENTS[region_name] = dynamodb_client
            logging.info(message_with_vars(
                message="Initialized a new dynamodb client",
                vars_dict={'regionName': region_name}
            ))
            return dynamodb_client

        existing_default_client: Optional[Any] = cls._EXISTING_DATABASE_CLIENTS.get('default', None)
        if existing_default_client is not None:
            return existing_default_client

        if region_name is not None:
            logging.debug(message_with_vars(
                message="The specified dynamodb region_name is not a valid region_name. "
                        "The dynamodb client has been initialized without specifying the region.",
                vars_dict={'regionName': region_name}
            ))
        dynamodb_client = boto3.client('dynamodb')
        cls._EXISTING_DATABASE_CLIENTS['default'] = dynamodb_client
        return dynamodb_client

    def describe_key_schema(self, table_name: str) -> List[str]:
        response: dict = self.dynamodb.describe_table(TableName=table_name)
        key_schema = TableKeySchema(**response['Table'])
        logging.debug(message_with_vars(
            message="Retrieved the key schema of a table",
            vars_dict={'tableName': table_name, 'keySchema': key_schema.attributes_names}
        ))
        return key_schema.attributes_names

    def get_item(self, table_name: str, key: Dict[str, Any], projection_expression: Optional[str] = None) -> Optional[dict]:
        kwargs = {
            'TableName': table_name,
            'Key': DynamoDBUtils.serialize_item(item=key),
        }
        if projection_expression is not None:
            kwargs['ProjectionExpression'] = projection_expression

        response: dict = self.dynamodb.get_item(**kwargs)
        if 'Item' not in response:
            return None
        return DynamoDBUtils.deserialize_item(dynamodb_item=response['Item'])

    def put_item(self, table_name: str, item: Dict[str, Any], condition_expression: Optional[str] = None) -> None:
        kwargs = {
            'TableName': table_name,
            'Item': DynamoDBUtils.serialize_item(item=item),
        }
        if condition_expression is not None:
            kwargs['ConditionExpression'] = condition_expression
        self.dynamodb.put_item(**kwargs)

    def delete_item(self, table_name: str, key: Dict[str, Any]) -> None:
        self.dynamodb.delete_item(TableName=table_name, Key=DynamoDBUtils.serialize_item(item=key))

    def update_item(self, table_name: str, key: Dict[str, Any], condition_expression: Optional[str], update_args: DynamoUpdateArgs) -> dict:
        kwargs = {
            'TableName': table_name,
            'Key': DynamoDBUtils.serialize_item(item=key),
            'ReturnValues': 'ALL_NEW',
            **update_args.to_query_kwargs(),
        }
        kwargs['ExpressionAttributeValues'] = DynamoDBUtils.serialize_item(item=kwargs['ExpressionAttributeValues'])
        if condition_expression is not None:
            kwargs['ConditionExpression'] = condition_expression

        response: dict = self.dynamodb.update_item(**kwargs)
        return DynamoDBUtils.deserialize_item(dynamodb_item=response.get('Attributes', {}))

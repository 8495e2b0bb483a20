import decimal
from decimal import Decimal, Context
from typing import Any, Dict, Optional

from boto3.dynamodb.types import TypeSerializer, TypeDeserializer
from botocore.exceptions import ParamValidationError

from RestOnDynamo.dynamodb.models import DynamoUpdateArgs


def _decimal_to_python(decimal_number: Decimal) -> int or float:
    return int(decimal_number) if decimal_number == decimal_number.to_integral_value() else float(decimal_number)


def _float_to_decimal(float_number: float) -> Decimal:
    # The string representation is used to not carry the binary imprecision of the float into the Decimal
    return DynamoDBUtils.DECIMAL_DYNAMODB_CONTEXT.create_decimal(f"{float_number}")


class DynamoDBUtils:
    DECIMAL_DYNAMODB_CONTEXT = Context(
        prec=38, rounding=decimal.ROUND_HALF_EVEN,
        Emin=-128, Emax=126,
        capitals=1, clamp=0,
        flags=[], traps=[]
    )
    # 38 is the maximum numbers of Decimals numbers that DynamoDB can support.

    # The serializer and deserializer can be static, since they hold no state.
    _serializer: Optional[TypeSerializer] = None
    _deserializer: Optional[TypeDeserializer] = None

    @classmethod
    def serializer(cls) -> TypeSerializer:
        if cls._serializer is None:
            cls._serializer = TypeSerializer()
        return cls._serializer

    @classmethod
    def deserializer(cls) -> TypeDeserializer:
        if cls._deserializer is None:
            cls._deserializer = TypeDeserializer()
        return cls._deserializer

    @staticmethod
    def python_to_dynamodb_compatible(python_object: Any) -> Any:
        """Returns a copy of the python object where floats are replaced by Decimals, which boto3 requires for numbers."""
        if isinstance(python_object, bool):
            return python_object
        elif isinstance(python_object, float):
            return _float_to_decimal(float_number=python_object)
        elif isinstance(python_object, dict):
            return {key: DynamoDBUtils.python_to_dynamodb_compatible(item) for key, item in python_object.items()}
        elif isinstance(python_object, list):
            return [DynamoDBUtils.python_to_dynamodb_compatible(item) for item in python_object]
        elif isinstance(python_object, set):
            return {DynamoDBUtils.python_to_dynamodb_compatible(item) for item in python_object}
        return python_object

    @staticmethod
    def dynamodb_to_python_higher_level(dynamodb_object: Any) -> Any:
        if isinstance(dynamodb_object, Decimal):
            return _decimal_to_python(decimal_number=dynamodb_object)
        elif isinstance(dynamodb_object, list):
            return [DynamoDBUtils.dynamodb_to_python_higher_level(item) for item in dynamodb_object]
        elif isinstance(dynamodb_object, dict):
            return {key: DynamoDBUtils.dynamodb_to_python_higher_level(item) for key, item in dynamodb_object.items()}
        elif isinstance(dynamodb_object, set):
            return {DynamoDBUtils.dynamodb_to_python_higher_level(item) for item in dynamodb_object}
        return dynamodb_object

    @staticmethod
    def serialize_item(item: Dict[str, Any]) -> Dict[str, dict]:
        serializer = DynamoDBUtils.serializer()
        serialized_item: Dict[str, dict] = {}
        for key, value in item.items():
            try:
                serialized_item[key] = serializer.serialize(DynamoDBUtils.python_to_dynamodb_compatible(value))
            except (TypeError, ArithmeticError) as e:
                # Same failure as the parameters botocore itself rejects, before any request is sent
                raise ParamValidationError(report=f"Attribute {key!r} cannot be stored in DynamoDB: {e}") from e
        return serialized_item

    @staticmethod
    def deserialize_item(dynamodb_item: Dict[str, dict]) -> Dict[str, Any]:
        deserializer = DynamoDBUtils.deserializer()
        return {
            key: DynamoDBUtils.dynamodb_to_python_higher_level(deserializer.deserialize(value))
            for key, value in dynamodb_item.items()
        }


def parse_dynamo_update_args(data: Dict[str, Any]) -> DynamoUpdateArgs:
    """
    Parse the partial of a record to update into an UpdateExpression and its ExpressionAttributeValues.
    Only the surface level attributes are set, nested values replace the existing ones wholesale.
    """
    if len(data) == 0:
        raise ValueError("Cannot build an update expression without any attribute to set")

    update_expression_clauses = []
    expression_attribute_values: Dict[str, Any] = {}
    for key, value in data.items():
        update_expression_clauses.append(f"{key} = :{key}")
        expression_attribute_values[f":{key}"] = value

    return DynamoUpdateArgs(
        update_expression=f"SET {','.join(update_expression_clauses)}",
        expression_attribute_values=expression_attribute_values
    )

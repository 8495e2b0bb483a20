from typing import List, Dict, Any

from pydantic import BaseModel, ConfigDict


HASH_KEY_TYPE = "HASH"
SORT_KEY_TYPE = "RANGE"


class DynamoUpdateArgs(BaseModel):
    model_config = ConfigDict(frozen=True)

    update_expression: str
    expression_attribute_values: Dict[str, Any]

    def to_query_kwargs(self) -> dict:
        return {
            'UpdateExpression': self.update_expression,
            'ExpressionAttributeValues': self.expression_attribute_values,
        }


class KeySchemaElement(BaseModel):
    AttributeName: str
    KeyType: str


class TableKeySchema(BaseModel):
    """Key schema of a table, as found in the Table part of a DescribeTable response."""
    KeySchema: List[KeySchemaElement]

    @property
    def attributes_names(self) -> List[str]:
        # The hash key is always listed first, regardless of the order DynamoDB returned the elements in
        hash_keys: List[str] = [element.AttributeName for element in self.KeySchema if element.KeyType == HASH_KEY_TYPE]
        sort_keys: List[str] = [element.AttributeName for element in self.KeySchema if element.KeyType == SORT_KEY_TYPE]
        return hash_keys + sort_keys


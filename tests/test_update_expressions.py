import unittest
from decimal import Decimal

from RestOnDynamo import parse_dynamo_update_args
from RestOnDynamo.dynamodb.utils import DynamoDBUtils


class TestParseDynamoUpdateArgs(unittest.TestCase):
    def test_parse_update_args(self):
        update_args = parse_dynamo_update_args(data={
            'key1': 'string value 1',
            'key2': 123,
            'key3': {'objKey': 'objValue'}
        })
        self.assertEqual('SET key1 = :key1,key2 = :key2,key3 = :key3', update_args.update_expression)
        self.assertEqual({
            ':key1': 'string value 1',
            ':key2': 123,
            ':key3': {'objKey': 'objValue'}
        }, update_args.expression_attribute_values)

    def test_order_follows_insertion(self):
        update_args = parse_dynamo_update_args(data={'b': 1, 'a': 2})
        self.assertEqual('SET b = :b,a = :a', update_args.update_expression)
        self.assertEqual([':b', ':a'], list(update_args.expression_attribute_values.keys()))

    def test_query_kwargs(self):
        update_args = parse_dynamo_update_args(data={'attr1': 'v1'})
        self.assertEqual({
            'UpdateExpression': 'SET attr1 = :attr1',
            'ExpressionAttributeValues': {':attr1': 'v1'}
        }, update_args.to_query_kwargs())

    def test_empty_data(self):
        with self.assertRaises(ValueError):
            parse_dynamo_update_args(data={})


class TestDynamoDBValuesConversion(unittest.TestCase):
    def test_floats_are_converted_to_decimals(self):
        converted = DynamoDBUtils.python_to_dynamodb_compatible({'price': 1.5, 'nested': [0.1, {'deep': 2.25}], 'flag': True, 'count': 3})
        self.assertEqual({'price': Decimal('1.5'), 'nested': [Decimal('0.1'), {'deep': Decimal('2.25')}], 'flag': True, 'count': 3}, converted)

    def test_source_is_not_mutated(self):
        source = {'nested': {'value': 1.5}}
        DynamoDBUtils.python_to_dynamodb_compatible(source)
        self.assertEqual({'nested': {'value': 1.5}}, source)

    def test_decimals_are_converted_back(self):
        converted = DynamoDBUtils.dynamodb_to_python_higher_level({'count': Decimal('3'), 'price': Decimal('1.5'), 'list': [Decimal('10')]})
        self.assertEqual({'count': 3, 'price': 1.5, 'list': [10]}, converted)
        self.assertIsInstance(converted['count'], int)
        self.assertIsInstance(converted['price'], float)

    def test_serialize_and_deserialize_item(self):
        serialized = DynamoDBUtils.serialize_item({'id': 'x', 'count': 2, 'price': 0.5})
        self.assertEqual({'id': {'S': 'x'}, 'count': {'N': '2'}, 'price': {'N': '0.5'}}, serialized)
        self.assertEqual({'id': 'x', 'count': 2, 'price': 0.5}, DynamoDBUtils.deserialize_item(serialized))


if __name__ == '__main__':
    unittest.main()

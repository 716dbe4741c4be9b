import json
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from models import InstanceDescriptor

NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_instance(instance_id, instance_type, seconds_ago=3600, tags=None):
    return InstanceDescriptor(
        id=instance_id,
        instance_type=instance_type,
        launch_time=NOW - timedelta(seconds=seconds_ago),
        tags=tags or {'tracking': 'CC'},
    )


def raw_instance(instance_id, instance_type, seconds_ago=3600):
    """describe_instances shape for one instance"""
    return {
        'InstanceId': instance_id,
        'InstanceType': instance_type,
        'LaunchTime': NOW - timedelta(seconds=seconds_ago),
        'State': {'Name': 'running'},
        'Tags': [{'Key': 'tracking', 'Value': 'CC'}, {'Key': 'Name', 'Value': instance_id}],
    }


def price_document(instance_type, usd):
    """A trimmed get_products PriceList entry"""
    return json.dumps({
        'product': {
            'productFamily': 'Compute Instance',
            'attributes': {'instanceType': instance_type, 'operatingSystem': 'Linux'},
            'sku': 'SKU123',
        },
        'serviceCode': 'AmazonEC2',
        'terms': {
            'OnDemand': {
                'SKU123.JRTCKXETXF': {
                    'priceDimensions': {
                        'SKU123.JRTCKXETXF.6YS6EN2CT7': {
                            'unit': 'Hrs',
                            'pricePerUnit': {'USD': usd},
                        }
                    },
                    'sku': 'SKU123',
                }
            }
        },
    })


@pytest.fixture
def ec2_client():
    """EC2 client whose describe_instances paginator yields the pages set on it"""
    client = Mock()
    client.pages = []
    client.get_paginator.return_value.paginate.side_effect = lambda **kwargs: iter(client.pages)
    return client


@pytest.fixture
def pricing_client():
    """Pricing client answering from a {instance_type: usd} table"""
    client = Mock()
    client.rates = {}

    def get_products(ServiceCode, Filters, MaxResults):
        instance_type = next(f['Value'] for f in Filters if f['Field'] == 'instanceType')
        if instance_type not in client.rates:
            return {'PriceList': []}
        return {'PriceList': [price_document(instance_type, client.rates[instance_type])]}

    client.get_products.side_effect = get_products
    return client


@pytest.fixture
def cloudwatch_client():
    return Mock()

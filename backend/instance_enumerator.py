"""
Instance Enumerator
Lists running EC2 instances carrying a tracking tag
"""
import logging
from datetime import datetime, timezone
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from errors import EnumerationError
from models import InstanceDescriptor

logger = logging.getLogger(__name__)


class InstanceEnumerator:
    """Read-only view of the tagged, running fleet"""

    def __init__(self, ec2_client):
        self.ec2 = ec2_client

    def enumerate(self, tag_key: str, tag_value: str) -> List[InstanceDescriptor]:
        """Follow every describe_instances page and flatten reservations in provider order"""
        filters = [
            {'Name': f'tag:{tag_key}', 'Values': [tag_value]},
            {'Name': 'instance-state-name', 'Values': ['running']},
        ]
        instances = []
        try:
            paginator = self.ec2.get_paginator('describe_instances')
            for page in paginator.paginate(Filters=filters):
                for res in page.get('Reservations', []):
                    for inst in res.get('Instances', []):
                        instances.append(self._to_descriptor(inst))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"describe_instances failed for tag {tag_key}={tag_value}: {e}")
            raise EnumerationError(
                f"Failed to list instances tagged {tag_key}={tag_value}: {e}",
                operation='describe_instances',
                cause=e,
            ) from e

        logger.info(f"Found {len(instances)} running instances tagged {tag_key}={tag_value}")
        return instances

    @staticmethod
    def _to_descriptor(inst) -> InstanceDescriptor:
        launch_time = inst['LaunchTime']
        if isinstance(launch_time, str):
            launch_time = datetime.fromisoformat(launch_time.replace('Z', '+00:00'))
        if launch_time.tzinfo is None:
            launch_time = launch_time.replace(tzinfo=timezone.utc)

        return InstanceDescriptor(
            id=inst['InstanceId'],
            instance_type=inst['InstanceType'],
            launch_time=launch_time,
            tags={t['Key']: t['Value'] for t in inst.get('Tags', [])},
        )

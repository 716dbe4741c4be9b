"""
Metric Publisher
Sends the aggregate cost as a single CloudWatch datapoint
"""
import logging

from botocore.exceptions import BotoCoreError, ClientError

from errors import PublishError
from models import AggregateCostReport

logger = logging.getLogger(__name__)


class MetricPublisher:
    """Write-only CloudWatch sink for the cost total"""

    NAMESPACE = 'Cost_Canary/EC2'
    METRIC_NAME = 'EC2_Costs'
    DIMENSION_NAME = 'Total_Costs'
    DIMENSION_VALUE = 'Dollars'
    # Dollars are reported as a plain count
    UNIT = 'Count'

    def __init__(self, cloudwatch_client):
        self.cw_client = cloudwatch_client

    def publish(self, report: AggregateCostReport) -> None:
        try:
            self.cw_client.put_metric_data(
                Namespace=self.NAMESPACE,
                MetricData=[
                    {
                        'MetricName': self.METRIC_NAME,
                        'Dimensions': [{'Name': self.DIMENSION_NAME, 'Value': self.DIMENSION_VALUE}],
                        'Timestamp': report.computed_at,
                        'Unit': self.UNIT,
                        'Value': report.total_cost_usd,
                    }
                ],
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"put_metric_data failed for {self.NAMESPACE}/{self.METRIC_NAME}: {e}")
            raise PublishError(
                f"Failed to publish {self.METRIC_NAME}: {e}",
                operation='put_metric_data',
                cause=e,
            ) from e

        logger.info(f"Published {self.NAMESPACE}/{self.METRIC_NAME} = {report.total_cost_usd}")

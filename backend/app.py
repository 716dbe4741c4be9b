import os
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import boto3

from cost_aggregator import CostAggregator
from errors import CostCanaryError, PriceNotFoundError
from instance_enumerator import InstanceEnumerator
from metric_publisher import MetricPublisher
from models import AggregateCostReport
from price_resolver import PriceResolver
from type_deduplicator import count_by_type

# -------------------------------------------------------------------------
# Logging Setup
# -------------------------------------------------------------------------
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

class CorrelationIdFilter(logging.Filter):
    def filter(self, record):
        record.correlation_id = getattr(record, 'correlation_id', 'root')
        return True

handler = logging.StreamHandler()
handler.addFilter(CorrelationIdFilter())
formatter = logging.Formatter(
    '%(asctime)s [%(correlation_id)s] %(levelname)s %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
handler.setFormatter(formatter)
logger.addHandler(handler)

# -------------------------------------------------------------------------
# Configuration
# -------------------------------------------------------------------------
CONFIG = {
    'DEFAULT_TAG_KEY': 'tracking',
    'DEFAULT_TAG_VALUE': 'CC',
    'PRICING_REGION': PriceResolver.PRICING_REGION,
}


def load_config(environ: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Tag filter from the environment, falling back to the stack defaults"""
    environ = os.environ if environ is None else environ
    return {
        'TAG_KEY': environ.get('TAG_KEY') or CONFIG['DEFAULT_TAG_KEY'],
        'TAG_VALUE': environ.get('TAG_VALUE') or CONFIG['DEFAULT_TAG_VALUE'],
    }

# -------------------------------------------------------------------------
# Pipeline
# -------------------------------------------------------------------------
class CostCanary:
    """One invocation: enumerate, price, aggregate, publish"""

    def __init__(self, ec2_client, pricing_client, cloudwatch_client, tag_key: str, tag_value: str,
                 clock: Optional[Callable[[], datetime]] = None, correlation_id: str = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())[:8]
        self.tag_key = tag_key
        self.tag_value = tag_value
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.enumerator = InstanceEnumerator(ec2_client)
        self.resolver = PriceResolver(pricing_client)
        self.aggregator = CostAggregator()
        self.publisher = MetricPublisher(cloudwatch_client)

    @classmethod
    def from_session(cls, session: boto3.Session, config: Dict[str, str], correlation_id: str = None) -> 'CostCanary':
        return cls(
            ec2_client=session.client('ec2'),
            pricing_client=session.client('pricing', region_name=CONFIG['PRICING_REGION']),
            cloudwatch_client=session.client('cloudwatch'),
            tag_key=config['TAG_KEY'],
            tag_value=config['TAG_VALUE'],
            correlation_id=correlation_id,
        )

    def run(self) -> AggregateCostReport:
        logger.info(f"[{self.correlation_id}] Cost canary run for tag {self.tag_key}={self.tag_value}")

        instances = self.enumerator.enumerate(self.tag_key, self.tag_value)
        counts = count_by_type(instances)
        logger.info(f"[{self.correlation_id}] Instance types: {counts}")

        # Sequential on purpose: one Pricing API call at a time
        price_results = {}
        for instance_type in counts:
            result = self.resolver.resolve(instance_type)
            if not result.found:
                raise PriceNotFoundError(
                    f"No on-demand price found for {instance_type}",
                    operation='resolve',
                    instance_type=instance_type,
                )
            price_results[instance_type] = result

        report = self.aggregator.aggregate(instances, price_results, self.clock())
        logger.info(
            f"[{self.correlation_id}] Total accrued cost for {report.instance_count} instances: "
            f"${report.total_cost_usd:.2f}"
        )

        self.publisher.publish(report)
        return report

# -------------------------------------------------------------------------
# Lambda Handler
# -------------------------------------------------------------------------
def lambda_handler(event, context):
    request_id = getattr(context, 'aws_request_id', None)
    correlation_id = request_id[:8] if request_id else None
    canary = CostCanary.from_session(boto3.Session(), load_config(), correlation_id)
    try:
        canary.run()
    except CostCanaryError as e:
        logger.error(f"[{canary.correlation_id}] Cost canary failed: {json.dumps(e.to_dict())}")
        raise

# -------------------------------------------------------------------------
# Flask Local Test Server
# -------------------------------------------------------------------------
if __name__ == '__main__':
    from flask import Flask, jsonify
    flask_app = Flask(__name__)

    @flask_app.route('/health', methods=['GET'])
    def health_check():
        """Quick health check endpoint"""
        return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})

    @flask_app.route('/run', methods=['POST'])
    def run_canary():
        """Run one invocation against the configured account and publish"""
        canary = CostCanary.from_session(boto3.Session(), load_config())
        try:
            report = canary.run()
        except CostCanaryError as e:
            logger.error(f"[{canary.correlation_id}] Cost canary failed: {json.dumps(e.to_dict())}")
            return jsonify(e.to_dict()), 500
        return jsonify({'status': 'success', 'report': report.to_dict()})

    print("Starting Flask test server at http://localhost:5000")
    print("GET /health → health check")
    print("POST /run → one cost canary invocation (publishes to CloudWatch)")
    flask_app.run(host='0.0.0.0', port=5000, debug=True, use_reloader=False)

"""
Price Resolver using AWS Pricing API
Looks up the on-demand Linux hourly rate for one EC2 instance type
"""
import json
import logging
from typing import Any, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from errors import PriceNotFoundError
from models import PriceQuoteFilter, PriceQuoteResult

logger = logging.getLogger(__name__)

CURRENCY_KEY = 'USD'
ON_DEMAND_TERM = 'OnDemand'


def find_currency_rate(document: Any, currency: str = CURRENCY_KEY,
                       path: Tuple = ()) -> Optional[Tuple[Any, Tuple]]:
    """
    Depth-first search for the first mapping holding the currency key.

    Dict keys are visited in insertion order and lists by index, parents
    before children. Returns (rate, path-to-mapping) or None. The offer
    term type is not checked: the first match wins.
    """
    if isinstance(document, dict):
        if currency in document:
            return document[currency], path
        children = document.items()
    elif isinstance(document, list):
        children = enumerate(document)
    else:
        return None

    for key, value in children:
        found = find_currency_rate(value, currency, path + (key,))
        if found is not None:
            return found
    return None


def decode_price_list(price_list: List[Any]) -> List[Any]:
    """PriceList entries arrive as JSON strings"""
    return [json.loads(item) if isinstance(item, (str, bytes)) else item for item in price_list]


class PriceResolver:
    """Resolve on-demand hourly rates from the Pricing API"""

    # Pricing API only in us-east-1
    PRICING_REGION = 'us-east-1'
    MAX_RESULTS = 1

    def __init__(self, pricing_client):
        self.pricing = pricing_client

    def resolve(self, instance_type: str) -> PriceQuoteResult:
        """Get the hourly USD rate; hourly_rate_usd is None when the catalog has no match"""
        quote_filter = PriceQuoteFilter(instance_type=instance_type)

        try:
            response = self.pricing.get_products(
                ServiceCode=quote_filter.service_code,
                Filters=quote_filter.to_filters(),
                MaxResults=self.MAX_RESULTS,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Pricing API error for {instance_type}: {e}")
            raise PriceNotFoundError(
                f"Pricing lookup failed for {instance_type}: {e}",
                operation='get_products',
                instance_type=instance_type,
                cause=e,
            ) from e

        try:
            documents = decode_price_list(response.get('PriceList', []))
        except ValueError as e:
            raise PriceNotFoundError(
                f"Unreadable price document for {instance_type}: {e}",
                operation='get_products',
                instance_type=instance_type,
                cause=e,
            ) from e

        found = find_currency_rate(documents)
        if found is None:
            logger.warning(f"No {CURRENCY_KEY} rate in {len(documents)} price documents for {instance_type}")
            return PriceQuoteResult(instance_type=instance_type)

        raw_rate, match_path = found
        if ON_DEMAND_TERM not in match_path:
            logger.warning(
                f"Rate for {instance_type} matched outside an {ON_DEMAND_TERM} term at "
                f"{'/'.join(str(p) for p in match_path)}"
            )

        hourly_rate = self._parse_rate(instance_type, raw_rate)
        logger.info(f"Resolved {instance_type}: ${hourly_rate}/hour")
        return PriceQuoteResult(instance_type=instance_type, hourly_rate_usd=hourly_rate)

    @staticmethod
    def _parse_rate(instance_type: str, raw_rate: Any) -> float:
        try:
            rate = float(raw_rate)
        except (TypeError, ValueError) as e:
            raise PriceNotFoundError(
                f"Rate {raw_rate!r} for {instance_type} is not a number",
                operation='get_products',
                instance_type=instance_type,
                cause=e,
            ) from e
        # also rejects NaN
        if not rate >= 0:
            raise PriceNotFoundError(
                f"Invalid rate {rate} for {instance_type}",
                operation='get_products',
                instance_type=instance_type,
            )
        return rate

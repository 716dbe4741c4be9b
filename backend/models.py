"""
Records passed between the pipeline stages
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class InstanceDescriptor:
    id: str
    instance_type: str
    launch_time: datetime
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceQuoteFilter:
    instance_type: str
    service_code: str = 'AmazonEC2'
    capacity_status: str = 'Used'
    tenancy: str = 'Shared'
    pre_installed_sw: str = 'NA'
    operating_system: str = 'Linux'

    def to_filters(self) -> List[Dict[str, str]]:
        """Render as Pricing API TERM_MATCH filters"""
        return [
            {'Type': 'TERM_MATCH', 'Field': 'instanceType', 'Value': self.instance_type},
            {'Type': 'TERM_MATCH', 'Field': 'ServiceCode', 'Value': self.service_code},
            {'Type': 'TERM_MATCH', 'Field': 'capacitystatus', 'Value': self.capacity_status},
            {'Type': 'TERM_MATCH', 'Field': 'tenancy', 'Value': self.tenancy},
            {'Type': 'TERM_MATCH', 'Field': 'preInstalledSw', 'Value': self.pre_installed_sw},
            {'Type': 'TERM_MATCH', 'Field': 'operatingSystem', 'Value': self.operating_system},
        ]


@dataclass(frozen=True)
class PriceQuoteResult:
    instance_type: str
    hourly_rate_usd: Optional[float] = None  # None: no catalog match

    @property
    def found(self) -> bool:
        return self.hourly_rate_usd is not None


@dataclass
class InstanceCost:
    instance_id: str
    instance_type: str
    hourly_rate_usd: float
    elapsed_seconds: float
    accrued_cost_usd: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'instanceId': self.instance_id,
            'instanceType': self.instance_type,
            'hourlyCost': round(self.hourly_rate_usd, 4),
            'elapsedSeconds': self.elapsed_seconds,
            'accruedCost': round(self.accrued_cost_usd, 4),
        }


@dataclass
class AggregateCostReport:
    total_cost_usd: float
    computed_at: datetime
    instance_costs: List[InstanceCost] = field(default_factory=list)

    @property
    def instance_count(self) -> int:
        return len(self.instance_costs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalCost': self.total_cost_usd,
            'computedAt': self.computed_at.isoformat(),
            'instanceCount': self.instance_count,
            'details': [c.to_dict() for c in self.instance_costs],
        }

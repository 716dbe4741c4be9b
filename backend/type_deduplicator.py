"""
Type Deduplicator
Groups instances by type so each type is priced once per run
"""
from typing import Dict, Iterable, List, Set

from models import InstanceDescriptor


def count_by_type(instances: Iterable[InstanceDescriptor]) -> Dict[str, int]:
    """Instance count per type, keyed in first-seen order"""
    counts: Dict[str, int] = {}
    for instance in instances:
        if instance.instance_type in counts:
            counts[instance.instance_type] += 1
        else:
            counts[instance.instance_type] = 1
    return counts


def distinct_types(instances: Iterable[InstanceDescriptor]) -> List[str]:
    return list(count_by_type(instances))


def dedupe(instances: Iterable[InstanceDescriptor]) -> Set[str]:
    return {instance.instance_type for instance in instances}

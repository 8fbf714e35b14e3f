"""Occurrence ordering policy implementations."""

from .base import OrderingPolicy
from .urgency import UrgencyPolicy

POLICIES = {
    'urgency': UrgencyPolicy,
}


def create_policy(config: dict) -> OrderingPolicy:
    """Create the ordering policy named in the allocation config."""
    name = config.get('allocation', {}).get('policy', 'urgency')
    try:
        policy_class = POLICIES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown policy: {name}") from None
    return policy_class(config)


__all__ = ['OrderingPolicy', 'UrgencyPolicy', 'POLICIES', 'create_policy']

"""Membership tier checks."""

from collections.abc import Iterable

from financeu.models.user import MembershipTier

TIER_ORDER = [tier.value for tier in MembershipTier]


def tier_level(tier: str) -> int:
    """Position of ``tier`` in the hierarchy, -1 if unknown."""
    try:
        return TIER_ORDER.index(tier)
    except ValueError:
        return -1


def tiers_at_or_above(tier: str) -> frozenset[str]:
    """All tiers that include ``tier``'s access (``premium`` -> premium and pro)."""
    level = tier_level(tier)
    if level < 0:
        raise ValueError(f"Unknown membership tier: {tier}")
    return frozenset(TIER_ORDER[level:])


def tier_allows(tier: str | None, allowed: Iterable[str]) -> bool:
    """Admit ``tier`` only if it is a known tier listed in ``allowed``."""
    return tier is not None and tier_level(tier) >= 0 and tier in set(allowed)

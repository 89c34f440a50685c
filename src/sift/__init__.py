"""Sift - an ordered to-do list built on fractional order keys."""
from sift.order import InvalidArgument, is_well_formed, midpoint

__all__ = ["InvalidArgument", "is_well_formed", "midpoint"]

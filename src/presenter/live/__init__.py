"""Runtime reloading of the routing table."""

from .reload import RoutingReloader

__all__ = ["RoutingReloader"]

"""Upstream resolvers and the resolution service that orchestrates them."""

from trackgate.resolver.base import Resolver
from trackgate.resolver.http import HttpResolver
from trackgate.resolver.service import ResolutionService, validate_track_id

__all__ = ["HttpResolver", "ResolutionService", "Resolver", "validate_track_id"]

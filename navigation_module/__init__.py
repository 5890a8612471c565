"""Walking directions for navigation mode."""

from navigation_module.navigation_service import (
    NavigationError,
    NavigationService,
    NavigationStep,
    StaticLocationProvider,
)

__all__ = [
    "NavigationError",
    "NavigationService",
    "NavigationStep",
    "StaticLocationProvider",
]

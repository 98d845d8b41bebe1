"""Short link allocation and redirect resolution."""

from shortlinks.allocator import UniquenessAllocator
from shortlinks.analytics import AnalyticsReader
from shortlinks.resolver import RedirectResolver
from shortlinks.service import ShorteningService

__all__ = ["AnalyticsReader", "RedirectResolver", "ShorteningService", "UniquenessAllocator"]

from infrawatch.domain.tracking.util.di.provider import TrackingProvider

__all__ = ["TrackingProvider"]

"""Application services built on the API layer."""

from bunny_stream.services.offload import VideoOffloader

__all__ = ["VideoOffloader"]

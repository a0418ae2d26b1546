"""Logo and profile picture handling."""

from finvue.services.branding.images import InvalidImageError, encode_image_data_url

__all__ = ["InvalidImageError", "encode_image_data_url"]

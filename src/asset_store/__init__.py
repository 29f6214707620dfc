"""Asset store used to rehome exported attachments to durable URLs."""

from .errors import AssetError
from .s3_uploader import S3AssetStore, ASSET_MODES, DEFAULT_PUBLIC_URL_TEMPLATE

__all__ = [
    'AssetError',
    'S3AssetStore',
    'ASSET_MODES',
    'DEFAULT_PUBLIC_URL_TEMPLATE',
]

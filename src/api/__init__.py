"""Request-level API over the content store."""

from .content_api import ContentAPI, FileContent, error_payload, node_to_dict

__all__ = [
    'ContentAPI',
    'FileContent',
    'error_payload',
    'node_to_dict',
]

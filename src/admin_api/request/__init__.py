"""Request input access and value transformation."""

from admin_api.request.request_data import RequestData
from admin_api.request.transformer import RequestTransformer, get_request_transformer

__all__ = ["RequestData", "RequestTransformer", "get_request_transformer"]

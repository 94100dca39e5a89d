from bff.client.api import ApiClient
from bff.client.errors import ApiError

__all__ = ["ApiClient", "ApiError"]

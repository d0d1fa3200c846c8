"""
Middleware package exports.
"""

from middleware.request_id import RequestIDMiddleware, RequestIdFilter, get_request_id, get_client_ip
from middleware.rate_limiter import limiter, get_user_id

__all__ = ["RequestIDMiddleware", "RequestIdFilter", "get_request_id", "get_client_ip", "limiter", "get_user_id"]

"""External system integrations."""

from .n8n import N8nApiError, N8nClient, N8nError, get_n8n_client

__all__ = ["N8nApiError", "N8nClient", "N8nError", "get_n8n_client"]

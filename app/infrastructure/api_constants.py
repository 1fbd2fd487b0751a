"""
API endpoint constants and configuration.

This module contains the activity log store endpoint paths and related constants.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""


# Activity Log Store Endpoints
class LogStoreEndpoints:
    """Activity log store endpoint paths."""

    TREE_LOGS = "/trees/{tree_id}/logs"

    @classmethod
    def get_tree_logs(cls, tree_id: str) -> str:
        """
        Get the activity log endpoint for a specific tree.

        Args:
            tree_id: Tree identifier

        Returns:
            Formatted endpoint path
        """
        return cls.TREE_LOGS.format(tree_id=tree_id)


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # Pagination
    DEFAULT_PAGE_SIZE = 100
    MAX_PAGES = 50

"""
Pagination classes for chat API.

Cursor-based pagination keeps pages stable while new messages are appended
and needs no offset calculation.
"""

from rest_framework.pagination import CursorPagination


class MessageCursorPagination(CursorPagination):
    """
    Cursor pagination for message history.

    Orders messages oldest-first, using (created_at, id) for a stable cursor
    position (the same order as MessageLogService.stream_ordered).

    Default: 50 messages per page
    Maximum: 100 messages per page
    """

    page_size = 50
    max_page_size = 100
    page_size_query_param = "page_size"
    ordering = ("created_at", "id")
    cursor_query_param = "cursor"

"""
Chat app for real-time pairwise messaging.

This app handles:
- Conversation identity derived from the two participant ids
- Message sending and ordered history
- Conversation summaries with per-user unread counters
- Change streams for conversation lists and message lists

Related apps:
    - authentication: User model and profile store for participants

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ConversationSummaryService, MessageLogService

    result = MessageLogService.send_message(sender, recipient, "Hello!")
    ConversationSummaryService.mark_read(result.data.conversation_id, recipient)
"""

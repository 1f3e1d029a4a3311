"""
Social graph application.

Approval-based follow relationships between users, stored as three
per-user collections (following edges, follower edges, follow requests),
with on-demand counters and a periodic reconciliation pass.
"""

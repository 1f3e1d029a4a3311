"""
Django admin configuration for the social graph.

Rows edited here bypass FollowService; the periodic reconciliation task
repairs pairs left inconsistent.
"""

from django.contrib import admin

from social.models import FollowEdge, FollowerEdge, FollowRequest


@admin.register(FollowEdge)
class FollowEdgeAdmin(admin.ModelAdmin):
    list_display = ["id", "owner", "target", "status", "requested_at", "followed_at"]
    list_filter = ["status"]
    search_fields = ["owner__email", "target__email"]
    raw_id_fields = ["owner", "target"]
    readonly_fields = ["status", "created_at", "updated_at"]


@admin.register(FollowerEdge)
class FollowerEdgeAdmin(admin.ModelAdmin):
    list_display = ["id", "owner", "follower", "followed_at"]
    search_fields = ["owner__email", "follower__email"]
    raw_id_fields = ["owner", "follower"]


@admin.register(FollowRequest)
class FollowRequestAdmin(admin.ModelAdmin):
    list_display = ["id", "owner", "requester", "requested_at"]
    search_fields = ["owner__email", "requester__email"]
    raw_id_fields = ["owner", "requester"]

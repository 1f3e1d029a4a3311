"""Admin site registration for users and profiles."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from authentication.models import Profile, User


class ProfileInline(admin.StackedInline):
    model = Profile
    can_delete = False
    fields = ("username", "first_name", "last_name")


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """Email-based user admin; handle and names are edited inline."""

    inlines = (ProfileInline,)
    list_display = ("email", "profile_handle", "is_active", "is_staff", "date_joined")
    list_filter = ("is_active", "is_staff", "is_superuser")
    search_fields = ("email", "profile__username")
    ordering = ("-date_joined",)
    readonly_fields = ("date_joined", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Access", {"fields": ("is_active", "is_staff", "is_superuser")}),
        ("Permissions", {"fields": ("groups", "user_permissions")}),
        ("Dates", {"fields": ("date_joined", "last_login")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "password1", "password2")}),
    )

    @admin.display(description="Handle", ordering="profile__username")
    def profile_handle(self, obj):
        return obj.get_short_name()


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("username", "user", "first_name", "last_name", "created_at")
    search_fields = ("username", "first_name", "last_name", "user__email")
    raw_id_fields = ("user",)
    readonly_fields = ("created_at", "updated_at")
    ordering = ("username",)

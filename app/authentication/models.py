"""
Identity records read by the chat and social apps.

User is the account (email login, integer id used as the opaque user
identifier in conversation keys and follow edges). Profile holds the public
handle and names used to enrich inbox rows and follower lists.

Access tokens come from an external identity provider; nothing here issues
them.
"""

import re

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager
from core.models import BaseModel

HANDLE_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{3,30}$")

# Route names and staff-sounding words
RESERVED_HANDLES = frozenset(
    {
        "about", "admin", "administrator", "anonymous", "api", "auth",
        "help", "login", "logout", "moderator", "null", "privacy",
        "profile", "root", "security", "settings", "signup", "staff",
        "support", "system", "terms", "undefined", "user", "users", "www",
    }
)


def validate_handle_format(value):
    if not HANDLE_PATTERN.match(value):
        raise ValidationError(
            "Handles are 3 to 30 characters long and may contain letters, "
            "digits, '_', '.' and '-'."
        )


def validate_handle_not_reserved(value):
    if value.lower() in RESERVED_HANDLES:
        raise ValidationError(f"'{value}' is a reserved handle.")


class User(AbstractBaseUser, PermissionsMixin):
    """
    Account keyed by email.

    Deactivating (``is_active=False``) stands in for deletion: the row and
    its messages stay, but the user can no longer read or be messaged.
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="Login email",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Cleared when the account is deactivated",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="May sign in to the admin site",
    )
    date_joined = models.DateTimeField(auto_now_add=True, help_text="Account creation time")
    updated_at = models.DateTimeField(auto_now=True, help_text="Last change to the account")

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def _profile(self):
        try:
            return self.profile
        except Profile.DoesNotExist:
            return None

    def get_full_name(self):
        profile = self._profile()
        return (profile and profile.display_name) or self.email

    def get_short_name(self):
        profile = self._profile()
        return (profile and profile.username) or self.email.split("@")[0]


class Profile(BaseModel):
    """
    Public face of a user.

    Handles are stored lower-cased and are unique ignoring case. A blank
    handle marks a profile that was never completed.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="Owning user",
    )
    username = models.CharField(
        max_length=30,
        blank=True,
        db_index=True,
        validators=[validate_handle_format, validate_handle_not_reserved],
        help_text="Public handle, case-insensitive",
    )
    first_name = models.CharField(max_length=150, blank=True, help_text="Given name")
    last_name = models.CharField(max_length=150, blank=True, help_text="Family name")

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        constraints = [
            models.UniqueConstraint(
                Lower("username"),
                name="unique_username_case_insensitive",
                condition=models.Q(username__gt=""),
            ),
        ]

    def __str__(self):
        return self.username or str(self.user)

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def display_name(self):
        """Name shown next to messages: full name, else handle."""
        return self.full_name or self.username

    def clean(self):
        super().clean()
        self.username = self.username.lower()

    def save(self, *args, **kwargs):
        self.username = self.username.lower()
        super().save(*args, **kwargs)

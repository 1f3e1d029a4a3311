"""Manager for the email-keyed User model."""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Creates users from an email address.

    Accounts mirrored from the identity provider have no local password; those
    get an unusable one. Profiles are added by the post_save signal.
    """

    def _create(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An email address is required")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        """Admin-site account; both staff flags are forced on."""
        extra_fields.update(is_staff=True, is_superuser=True)
        return self._create(email, password, **extra_fields)

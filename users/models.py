"""User model for authentication and member profiles.

Extends Django's `AbstractUser` with a unique normalized email and the
profile fields other parts of the site consult (membership type, board
position, admin flag).
"""

from common.choices import UserType
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Site member.

    Fields:
    - email: primary email, unique at the database level (normalized).
    - user_type: membership category; `board_member` is assigned by admins.
    - board_position: current board role, blank for non-board members.
    - is_admin: grants access to admin-only shop operations.
    """

    email = models.EmailField(unique=True)
    user_type = models.CharField(max_length=16, choices=UserType.choices, default=UserType.UNDERGRAD)
    board_position = models.CharField(max_length=120, blank=True)
    is_admin = models.BooleanField(default=False)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_shop_admin(self) -> bool:
        return bool(self.is_admin or self.is_staff or self.is_superuser)

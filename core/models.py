"""
Accounts. One login model serves passengers, employees (through a linked
Employee profile) and administrators.
"""
from django.core.validators import RegexValidator
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.utils import timezone

phone_validator = RegexValidator(r'^\+?\d{10,15}$', 'Enter a phone number of 10 to 15 digits.')


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An email address is required')
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        """Passenger account. Employee profiles are linked separately."""
        for flag in ('is_staff', 'is_superuser', 'is_admin'):
            extra_fields.setdefault(flag, False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        """Railway administrator: Django admin access plus the admin-only API."""
        for flag in ('is_staff', 'is_superuser', 'is_admin'):
            if extra_fields.setdefault(flag, True) is not True:
                raise ValueError(f'Superuser must have {flag}=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Login identity. Tickets paid for by a passenger point here; free
    employee tickets point at the Employee profile instead.
    """
    email = models.EmailField(unique=True, max_length=255)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=16, blank=True, null=True, validators=[phone_validator])
    # grants the admin-only train management and analytics endpoints
    is_admin = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        db_table = 'users'
        ordering = ['email']
        indexes = [
            models.Index(fields=['is_active', 'is_admin']),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"

    def get_full_name(self):
        return self.name

    def get_short_name(self):
        return self.name.split()[0] if self.name else self.email

    @property
    def is_employee(self):
        return hasattr(self, 'employee_profile')

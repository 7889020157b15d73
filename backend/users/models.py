from django.contrib.auth.models import (
    AbstractBaseUser,
    BaseUserManager,
    PermissionsMixin,
)
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The email address must be set")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.Role.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        CUSTOMER = "customer", _("Customer")
        WAITER = "waiter", _("Waiter")
        CHEF = "chef", _("Chef")
        CASHIER = "cashier", _("Cashier")
        MANAGER = "manager", _("Manager")
        OWNER = "owner", _("Owner")
        ADMIN = "admin", _("Admin")

    # Roles allowed to see and change every order.
    PRIVILEGED_ROLES = frozenset({Role.ADMIN.value, Role.MANAGER.value, Role.OWNER.value})
    # Front-of-house and kitchen roles that work on other people's orders.
    STAFF_ROLES = frozenset({Role.WAITER.value, Role.CHEF.value, Role.CASHIER.value})

    email = models.EmailField(_("email address"), unique=True)
    name = models.CharField(_("name"), max_length=150, blank=True)
    phone_number = models.CharField(
        _("phone number"), max_length=20, blank=True, null=True
    )

    role = models.CharField(
        _("role"), max_length=20, choices=Role.choices, default=Role.CUSTOMER
    )

    is_active = models.BooleanField(_("active"), default=True)
    is_staff = models.BooleanField(
        _("staff status"),
        default=False,
        help_text=_("Designates whether the user can log into this admin site."),
    )
    date_joined = models.DateTimeField(_("date joined"), default=timezone.now)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _("user")
        verbose_name_plural = _("users")
        indexes = [
            models.Index(fields=["role", "is_active"], name="user_role_active_idx"),
        ]

    def __str__(self):
        return self.email

    @property
    def is_privileged(self):
        """Admins, managers and owners see and manage every order."""
        return role_value(self.role) in self.PRIVILEGED_ROLES

    @property
    def is_order_staff(self):
        """Waiters, chefs and cashiers handle orders they do not own."""
        return role_value(self.role) in self.STAFF_ROLES


def role_value(role):
    """Return the plain string value of ``role`` (enum member or raw string)."""
    return str(role) if role is not None else ""

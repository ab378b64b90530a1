from django.contrib.auth.models import UserManager


class CustomUserManager(UserManager):
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        # Superusers operam sem negócio fixo (visão de plataforma)
        extra_fields.setdefault("role", "PLATFORM_ADMIN")
        extra_fields.setdefault("business", None)
        return super().create_superuser(username, email, password, **extra_fields)

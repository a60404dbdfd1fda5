"""Django app configuration for sharing app."""

from django.apps import AppConfig


class SharingConfig(AppConfig):
    """Configuration for sharing app."""

    name = 'server.apps.sharing'
    verbose_name = 'Sharing'

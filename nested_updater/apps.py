"""
Django app configuration for nested-updater.

The app validates the ``NESTED_UPDATER`` settings block when Django starts so
that malformed relation configuration is reported early.
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for nested-updater."""

    name = "nested_updater"
    verbose_name = "Nested Updater"
    label = "nested_updater"

    def ready(self):
        """Validate library configuration after Django has loaded."""
        try:
            self._validate_configuration()
        except ImproperlyConfigured as e:
            logger.error(f"Invalid nested updater configuration: {e}")
            if self._is_debug_mode():
                raise

    def _validate_configuration(self):
        from .core.settings import NestingSettings
        from .exceptions import InvalidRelationConfig
        from .nesting.policy import is_nested_config, resolve_policy

        settings = NestingSettings.from_django_settings()
        for label, relations in settings.relations.items():
            for key, raw in relations.items():
                if not is_nested_config(raw):
                    continue
                try:
                    resolve_policy(raw)
                except ValueError as e:
                    raise InvalidRelationConfig(label, key, str(e)) from e
        logger.debug(
            f"Nested updater configuration validated ({len(settings.relations)} models)"
        )

    def _is_debug_mode(self):
        from django.conf import settings as django_settings

        return getattr(django_settings, "DEBUG", False)

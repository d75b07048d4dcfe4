"""
Settings used by the nested-updater test suite.
"""

SECRET_KEY = "nested-updater-test-key"
DEBUG = False
USE_TZ = True

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "nested_updater",
    "test_app",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
MIGRATION_MODULES = {"test_app": None}

NESTED_UPDATER = {
    "relations": {
        "test_app.Post": {
            "comments": True,
            "comment-has-one": {"method": "detail"},
            "detail": True,
            "genre": True,
            "authors": {"link-only": True},
            "tags": True,
            "specials": True,
        },
        "test_app.Comment": {
            "author": True,
            "post": {"link-only": True},
        },
        "test_app.Author": {
            "posts": True,
        },
    },
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"console": {"class": "logging.StreamHandler"}},
    "loggers": {
        "nested_updater": {"handlers": ["console"], "level": "WARNING"},
    },
}

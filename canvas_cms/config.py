"""
Canvas CMS Configuration Module

Configuration settings for database, languages, entity types, workflows
and rendering. All sensitive values are loaded from environment variables.
"""

import os
from pathlib import Path


class Config:
    """Base configuration class with default settings."""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Base Directory
    BASE_DIR = Path(__file__).parent.resolve()

    # Database Settings (SQLite)
    DATABASE_PATH = Path(os.environ.get('CANVAS_CMS_DATABASE_PATH', BASE_DIR / 'data' / 'canvas_cms.db'))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f'sqlite:///{DATABASE_PATH}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Frontend builder payloads are small JSON documents
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    # Server Settings
    PORT = int(os.environ.get('CANVAS_CMS_PORT', 5002))
    HOST = os.environ.get('CANVAS_CMS_HOST', '0.0.0.0')

    # Rate limiting (Flask-Limiter)
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = ["200 per day", "50 per hour"]

    # Bearer session lifetime for the frontend builder
    SESSION_LIFETIME_HOURS = int(os.environ.get('CANVAS_CMS_SESSION_HOURS', 8))

    # Languages
    DEFAULT_LANGUAGE = os.environ.get('CANVAS_CMS_DEFAULT_LANGUAGE', 'en')
    LANGUAGES = ['en', 'fr', 'de', 'es']

    # Prefix of canvas keys in the frontend builder payload and editor settings
    CANVAS_KEY_PREFIX = 'canvas-'

    # Asset library attached when a canvas is rendered for an editor
    FRONTEND_EDIT_LIBRARY = 'layout_canvas/frontend-edit'

    # Entity type definitions for parent entities
    ENTITY_TYPES = {
        'node': {
            'label': 'Content',
            'revisionable': True,
            'bundle_entity_type': 'content_type',
        },
        'block_content': {
            'label': 'Custom block',
            'revisionable': True,
            'bundle_entity_type': 'content_type',
        },
        'taxonomy_term': {
            'label': 'Taxonomy term',
            'revisionable': False,
            'bundle_entity_type': None,
        },
    }

    # Entity type id -> template token type, where they differ
    TOKEN_TYPE_MAP = {
        'taxonomy_term': 'term',
        'taxonomy_vocabulary': 'vocabulary',
    }

    # Template context name -> cache context
    CACHE_CONTEXT_MAP = {
        'user': 'user',
        'user_roles': 'user.roles',
        'language': 'languages:language_interface',
        'route': 'route',
        'url': 'url.path',
        'query': 'url.query_args',
        'theme': 'theme',
        'timezone': 'timezone',
    }

    # Editorial workflows. Transitions require a minimum user role.
    WORKFLOWS = {
        'editorial': {
            'label': 'Editorial',
            'default_state': 'draft',
            'states': {
                'draft': {'label': 'Draft', 'published': False, 'default_revision': False},
                'published': {'label': 'Published', 'published': True, 'default_revision': True},
                'archived': {'label': 'Archived', 'published': False, 'default_revision': True},
            },
            'transitions': {
                'create_new_draft': {
                    'label': 'Create New Draft',
                    'from': ['draft', 'published'],
                    'to': 'draft',
                    'role': 'content_manager',
                },
                'publish': {
                    'label': 'Publish',
                    'from': ['draft', 'published'],
                    'to': 'published',
                    'role': 'project_manager',
                },
                'archive': {
                    'label': 'Archive',
                    'from': ['published'],
                    'to': 'archived',
                    'role': 'admin',
                },
                'restore_draft': {
                    'label': 'Restore to Draft',
                    'from': ['archived'],
                    'to': 'draft',
                    'role': 'admin',
                },
            },
        },
    }

    # Super admin account created on first run (temporary password is logged)
    DEFAULT_ADMIN_EMAIL = os.environ.get('CANVAS_CMS_ADMIN_EMAIL')

    # Bundles created on first run
    DEFAULT_CONTENT_TYPES = [
        {'id': 'page', 'entity_type': 'node', 'label': 'Basic page', 'new_revision': True, 'workflow': 'editorial'},
        {'id': 'landing_page', 'entity_type': 'node', 'label': 'Landing page', 'new_revision': False, 'workflow': None},
    ]

    @classmethod
    def init_app(cls, app):
        """Initialize application with this configuration."""
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(Config):
    """Development configuration with debug enabled."""

    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration with test database."""

    DEBUG = True
    TESTING = True
    DATABASE_PATH = Path(Config.BASE_DIR / 'data' / 'canvas_cms_test.db')
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False
    DEFAULT_ADMIN_EMAIL = None
    DEFAULT_CONTENT_TYPES = []


class ProductionConfig(Config):
    """Production configuration with strict security settings."""

    DEBUG = False
    TESTING = False

    @classmethod
    def init_app(cls, app):
        """Production-specific initialization."""
        Config.init_app(app)

        required_vars = [
            'SECRET_KEY',
        ]
        missing = [var for var in required_vars if not os.environ.get(var)]
        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")


# Configuration mapping by environment name
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig,
}


def get_config(env_name=None):
    """Get configuration class by environment name.

    Args:
        env_name: Environment name ('development', 'testing', 'production').
                  If None, reads from FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env_name is None:
        env_name = os.environ.get('FLASK_ENV', 'development')
    return config.get(env_name, config['default'])

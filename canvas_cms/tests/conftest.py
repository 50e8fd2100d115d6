"""
Pytest configuration and fixtures for Canvas CMS tests.

This module provides shared fixtures for testing:
- Flask application with test configuration
- In-memory SQLite database
- Test client
- Users for every role, with session tokens
- Content types, content entities and layout canvases
"""

import pytest

from canvas_cms.app import create_app
from canvas_cms.models import db, ContentType, User, UserSession
from canvas_cms.services.entity_storage import EntityStorageService


HEADING_JSON = {
    'canvas': [
        {'uid': 'cpt_heading', 'type': 'item', 'title': 'Heading', 'children': []},
    ],
    'mapper': {},
    'model': {'cpt_heading': {'settings': {'title': 'Heading'}}},
}

HEADING_TEMPLATE = '<h1 class="canvas-heading">{{ node.title }}</h1>'
HEADING_STYLES = '.canvas-heading { color: #333; }'


@pytest.fixture(scope='function')
def app():
    """
    Create a Flask application configured for testing.

    This fixture provides an isolated Flask app with:
    - In-memory SQLite database
    - Testing mode enabled
    - Clean database tables

    Yields:
        Flask application instance
    """
    application = create_app(config_name='testing')

    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """
    Create a test client for the Flask application.

    Args:
        app: Flask application fixture

    Returns:
        Flask test client
    """
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """
    Provide a database session for testing.

    Args:
        app: Flask application fixture

    Yields:
        SQLAlchemy session
    """
    with app.app_context():
        yield db.session


# =============================================================================
# Users and sessions
# =============================================================================

def create_test_user(db_session, email, name, role, status='active',
                     password='TestPassword123!'):
    """
    Helper function to create a user with custom attributes.

    Args:
        db_session: Database session
        email: User email address
        name: User's display name
        role: User role
        status: Account status (default: 'active')
        password: Password to set (default: 'TestPassword123!')

    Returns:
        User instance
    """
    user = User(
        email=email,
        name=name,
        role=role,
        status=status,
    )
    user.set_password(password)
    db_session.add(user)
    db_session.commit()
    return user


def create_test_session(db_session, user, lifetime_hours=None):
    """
    Helper function to open a bearer session for a user.

    Returns:
        UserSession instance
    """
    session = UserSession.open_for(user, lifetime_hours=lifetime_hours)
    db_session.add(session)
    db_session.commit()
    return session


def auth_headers_for(db_session, user):
    """Create a session for the user and return bearer Authorization headers."""
    session = create_test_session(db_session, user)
    return {'Authorization': f'Bearer {session.token}'}


@pytest.fixture(scope='function')
def sample_admin(db_session):
    return create_test_user(db_session, 'admin@test.com', 'Test Admin', 'admin')


@pytest.fixture(scope='function')
def sample_project_manager(db_session):
    return create_test_user(db_session, 'publisher@test.com', 'Test Publisher', 'project_manager')


@pytest.fixture(scope='function')
def sample_content_manager(db_session):
    return create_test_user(db_session, 'editor@test.com', 'Test Editor', 'content_manager')


@pytest.fixture(scope='function')
def sample_viewer(db_session):
    return create_test_user(db_session, 'viewer@test.com', 'Test Viewer', 'viewer')


@pytest.fixture(scope='function')
def sample_suspended_user(db_session):
    return create_test_user(db_session, 'suspended@test.com', 'Suspended Editor',
                            'content_manager', status='suspended')


@pytest.fixture(scope='function')
def editor_headers(db_session, sample_content_manager):
    return auth_headers_for(db_session, sample_content_manager)


@pytest.fixture(scope='function')
def publisher_headers(db_session, sample_project_manager):
    return auth_headers_for(db_session, sample_project_manager)


@pytest.fixture(scope='function')
def viewer_headers(db_session, sample_viewer):
    return auth_headers_for(db_session, sample_viewer)


# =============================================================================
# Content types, entities and canvases
# =============================================================================

@pytest.fixture(scope='function')
def page_type(db_session):
    """
    Moderated content type that creates a new revision on every save.

    Returns:
        ContentType instance
    """
    content_type = ContentType(
        id='page',
        entity_type='node',
        label='Basic page',
        new_revision=True,
        workflow='editorial',
    )
    db_session.add(content_type)
    db_session.commit()
    return content_type


@pytest.fixture(scope='function')
def landing_type(db_session):
    """
    Unmoderated content type saved in place.

    Returns:
        ContentType instance
    """
    content_type = ContentType(
        id='landing_page',
        entity_type='node',
        label='Landing page',
        new_revision=False,
        workflow=None,
    )
    db_session.add(content_type)
    db_session.commit()
    return content_type


def canvas_translations(langcodes=('en', 'fr'), json_values=None, template=HEADING_TEMPLATE,
                        styles=HEADING_STYLES, template_contexts=('user', 'url')):
    """Build the translations mapping accepted by create_layout_canvas()."""
    return {
        langcode: {
            'json_values': json_values if json_values is not None else HEADING_JSON,
            'template': template,
            'styles': styles,
            'template_contexts': list(template_contexts),
        }
        for langcode in langcodes
    }


@pytest.fixture(scope='function')
def published_page(db_session, page_type):
    """
    Published, moderated page.

    Returns:
        ContentEntity instance
    """
    return EntityStorageService.create_entity('page', 'About us', moderation_state='published')


@pytest.fixture(scope='function')
def page_canvas(db_session, published_page):
    """
    Layout canvas in the 'field_layout' field of the published page,
    translated to English and French.

    Returns:
        LayoutCanvas instance
    """
    return EntityStorageService.create_layout_canvas(
        published_page, 'field_layout', canvas_translations()
    )


@pytest.fixture(scope='function')
def landing_page(db_session, landing_type):
    """
    Published, unmoderated landing page.

    Returns:
        ContentEntity instance
    """
    return EntityStorageService.create_entity('landing_page', 'Spring campaign', published=True)


@pytest.fixture(scope='function')
def landing_canvas(db_session, landing_page):
    """
    Layout canvas in the 'field_layout' field of the landing page.

    Returns:
        LayoutCanvas instance
    """
    return EntityStorageService.create_layout_canvas(
        landing_page, 'field_layout', canvas_translations(langcodes=('en',))
    )

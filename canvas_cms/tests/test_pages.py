"""
Integration tests for the page rendering routes.

- GET /content/<entity_id>
- GET /layout-canvas/<canvas_id>
"""

import pytest

from canvas_cms.app import create_app
from canvas_cms.config import TestingConfig
from canvas_cms.services.entity_storage import EntityStorageService
from canvas_cms.services.frontend_builder import FrontendBuilderService
from canvas_cms.tests.conftest import HEADING_STYLES


DRAFT_JSON = {'canvas': [{'uid': 'cpt_draft'}]}


class TestContentPage:

    def test_anonymous_page(self, client, published_page, page_canvas):
        response = client.get(f'/content/{published_page.id}')

        assert response.status_code == 200
        assert response.content_type == 'text/html; charset=utf-8'
        html = response.get_data(as_text=True)
        assert '<h1 class="canvas-heading">About us</h1>' in html
        assert f'<style>{HEADING_STYLES}</style>' in html
        assert 'data-layout-canvas-settings' not in html

        tags = response.headers['X-Cache-Tags'].split()
        assert f'node:{published_page.id}' in tags
        assert f'layout_formatter.{published_page.uuid}' in tags
        assert response.headers['X-Cache-Contexts'] == 'url.path user'

    def test_editor_gets_builder_settings(self, client, editor_headers, published_page, page_canvas):
        response = client.get(f'/content/{published_page.id}', headers=editor_headers)

        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert 'data-layout-canvas-settings' in html
        assert f'"canvas-{page_canvas.id}"' in html
        assert 'data-library="layout_canvas/frontend-edit"' in html

    def test_editor_logged_in_with_cookie(self, client, sample_content_manager, published_page, page_canvas):
        client.post('/api/v1/auth/login', json={'email': 'editor@test.com', 'password': 'TestPassword123!'})

        response = client.get(f'/content/{published_page.id}')

        assert response.status_code == 200
        assert 'data-layout-canvas-settings' in response.get_data(as_text=True)

    def test_missing_entity(self, client):
        response = client.get('/content/404')

        assert response.status_code == 404
        assert response.get_json()['error'] == 'Not Found'

    def test_latest_revision_requires_edit_access(self, client, published_page, page_canvas):
        response = client.get(f'/content/{published_page.id}?revision=latest')

        assert response.status_code == 403

    def test_latest_revision_for_editor(self, client, editor_headers, sample_content_manager,
                                        published_page, page_canvas):
        FrontendBuilderService.save(
            {'canvases': {f'canvas-{page_canvas.id}': DRAFT_JSON}, 'moderationState': 'draft'},
            sample_content_manager,
            'en',
        )

        response = client.get(f'/content/{published_page.id}?revision=latest', headers=editor_headers)

        assert response.status_code == 200
        assert '"cpt_draft"' in response.get_data(as_text=True)

    def test_unpublished_page_is_hidden(self, client, editor_headers, landing_page, landing_canvas):
        landing_page.set_unpublished()
        landing_page.set_field('field_layout', landing_canvas)
        EntityStorageService.save(landing_page)

        assert client.get(f'/content/{landing_page.id}').status_code == 404
        assert client.get(f'/content/{landing_page.id}', headers=editor_headers).status_code == 200

    def test_french_page(self, client, app, published_page):
        EntityStorageService.create_layout_canvas(published_page, 'field_layout', {
            'en': {'json_values': {}, 'template': '<p>Hello</p>'},
            'fr': {'json_values': {}, 'template': '<p>Bonjour</p>'},
        })

        response = client.get(f'/content/{published_page.id}?language=fr')

        assert '<p>Bonjour</p>' in response.get_data(as_text=True)

    def test_accept_language_header(self, client, app, published_page):
        EntityStorageService.create_layout_canvas(published_page, 'field_layout', {
            'en': {'json_values': {}, 'template': '<p>Hello</p>'},
            'fr': {'json_values': {}, 'template': '<p>Bonjour</p>'},
        })

        response = client.get(f'/content/{published_page.id}',
                              headers={'Accept-Language': 'fr-FR,fr;q=0.9'})

        assert '<p>Bonjour</p>' in response.get_data(as_text=True)


class TestLayoutCanvasPage:

    def test_standalone_canvas(self, client, editor_headers, page_canvas):
        response = client.get(f'/layout-canvas/{page_canvas.id}', headers=editor_headers)

        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert '<h1 class="canvas-heading">About us</h1>' in html
        assert 'data-layout-canvas-settings' not in html

    def test_missing_canvas(self, client):
        assert client.get('/layout-canvas/12').status_code == 404


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'


@pytest.fixture(scope='function')
def rate_limited_client(monkeypatch):
    """Client for an app enforcing a low default rate limit."""
    monkeypatch.setattr(TestingConfig, 'RATELIMIT_ENABLED', True)
    monkeypatch.setattr(TestingConfig, 'RATELIMIT_DEFAULT', ['3 per hour'])
    return create_app(config_name='testing').test_client()


class TestRateLimits:

    def test_pages_are_not_rate_limited(self, rate_limited_client):
        statuses = {rate_limited_client.get('/layout-canvas/1').status_code for _ in range(5)}
        statuses |= {rate_limited_client.get('/content/1').status_code for _ in range(5)}

        assert statuses == {404}

    def test_health_is_not_rate_limited(self, rate_limited_client):
        statuses = {rate_limited_client.get('/health').status_code for _ in range(5)}

        assert statuses == {200}

    def test_api_is_rate_limited(self, rate_limited_client):
        statuses = [rate_limited_client.post('/api/v1/layout-canvas/error-log').status_code
                    for _ in range(4)]

        assert statuses == [401, 401, 401, 429]

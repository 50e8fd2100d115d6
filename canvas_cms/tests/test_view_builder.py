"""
Tests for LayoutCanvasViewBuilder render arrays and the HTML renderer.
"""

from canvas_cms.services.entity_storage import EntityStorageService
from canvas_cms.services.frontend_builder import FrontendBuilderService
from canvas_cms.services.layout_view_builder import LayoutCanvasViewBuilder
from canvas_cms.services.renderer import merge_attachments, render_build, render_page
from canvas_cms.tests.conftest import HEADING_JSON, HEADING_STYLES, HEADING_TEMPLATE


DRAFT_JSON = {'canvas': [{'uid': 'cpt_draft', 'type': 'item'}], 'mapper': {}, 'model': {}}


def build_for_editor(canvas, page, user, **kwargs):
    return LayoutCanvasViewBuilder.view(
        canvas.default_revision,
        langcode='en',
        user=user,
        route_entities=[page],
        referring_item=True,
        **kwargs
    )


class TestRenderArray:

    def test_anonymous_build(self, app, published_page, page_canvas):
        revision = page_canvas.default_revision

        build = LayoutCanvasViewBuilder.view(revision, langcode='en')

        assert build['type'] == 'inline_template'
        assert build['view_mode'] == 'full'
        assert build['template'] == HEADING_TEMPLATE
        assert build['context']['node'].id == published_page.id
        assert build['context']['layout_builder_entity'] == {
            'entity': page_canvas,
            'entity_type_id': 'layout_canvas',
            'id': page_canvas.id,
            'revision_id': revision.id,
        }
        assert build['cache'] == {
            'contexts': ['url.path', 'user'],
            'tags': [f'layout_formatter.{published_page.uuid}'],
        }
        assert build['attached'] == {'styles': [f'<style>{HEADING_STYLES}</style>']}

    def test_view_mode_is_passed_through(self, app, page_canvas):
        build = LayoutCanvasViewBuilder.view(page_canvas.default_revision, langcode='en',
                                             view_mode='teaser')

        assert build['view_mode'] == 'teaser'

    def test_translation_and_fallback(self, app, published_page):
        canvas = EntityStorageService.create_layout_canvas(published_page, 'field_layout', {
            'en': {'json_values': HEADING_JSON, 'template': '<p>Hello</p>'},
            'fr': {'json_values': HEADING_JSON, 'template': '<p>Bonjour</p>'},
        })
        revision = canvas.default_revision

        assert LayoutCanvasViewBuilder.view(revision, langcode='fr')['template'] == '<p>Bonjour</p>'
        assert LayoutCanvasViewBuilder.view(revision, langcode='de')['template'] == '<p>Hello</p>'

    def test_language_defaults_to_request_language(self, app, published_page):
        canvas = EntityStorageService.create_layout_canvas(published_page, 'field_layout', {
            'en': {'json_values': HEADING_JSON, 'template': '<p>Hello</p>'},
            'fr': {'json_values': HEADING_JSON, 'template': '<p>Bonjour</p>'},
        })

        with app.test_request_context('/content/1?language=fr'):
            build = LayoutCanvasViewBuilder.view(canvas.default_revision)

        assert build['template'] == '<p>Bonjour</p>'

    def test_unknown_template_contexts_are_ignored(self, app, published_page):
        canvas = EntityStorageService.create_layout_canvas(published_page, 'field_layout', {
            'en': {'json_values': HEADING_JSON, 'template_contexts': ['language', 'weather', 'language']},
        })

        build = LayoutCanvasViewBuilder.view(canvas.default_revision, langcode='en')

        assert build['cache']['contexts'] == ['languages:language_interface']

    def test_term_host_uses_term_token(self, app):
        term = EntityStorageService.create_entity('tags', 'Red', entity_type='taxonomy_term')
        canvas = EntityStorageService.create_layout_canvas(term, 'field_layout', {
            'en': {'json_values': HEADING_JSON, 'template': '{{ term.title }}'},
        })

        build = LayoutCanvasViewBuilder.view(canvas.default_revision, langcode='en')

        assert build['context']['term'].id == term.id
        assert 'taxonomy_term' not in build['context']


class TestEditorSettings:

    def test_editor_gets_builder_settings(self, app, sample_content_manager, published_page, page_canvas):
        build = build_for_editor(page_canvas, published_page, sample_content_manager)

        settings = build['attached']['settings']['layout_canvas']
        assert settings['canvases'] == {f'canvas-{page_canvas.id}': HEADING_JSON}
        assert 'isLatest' not in settings
        assert settings['moderationStates'] == [{'state': 'draft', 'label': 'Draft'}]
        assert build['attached']['library'] == ['layout_canvas/frontend-edit']

    def test_no_settings_for_viewer(self, app, sample_viewer, published_page, page_canvas):
        build = build_for_editor(page_canvas, published_page, sample_viewer)

        assert 'settings' not in build['attached']
        assert 'library' not in build['attached']

    def test_no_settings_for_anonymous(self, app, published_page, page_canvas):
        build = build_for_editor(page_canvas, published_page, None)

        assert 'settings' not in build['attached']

    def test_no_settings_outside_referring_field(self, app, sample_content_manager,
                                                 published_page, page_canvas):
        build = LayoutCanvasViewBuilder.view(
            page_canvas.default_revision,
            langcode='en',
            user=sample_content_manager,
            route_entities=[published_page],
            referring_item=False,
        )

        assert 'settings' not in build['attached']

    def test_no_settings_on_another_route(self, app, sample_content_manager,
                                          page_canvas, landing_page):
        build = build_for_editor(page_canvas, landing_page, sample_content_manager)

        assert 'settings' not in build['attached']

    def test_forward_draft_is_edited(self, app, sample_content_manager, published_page, page_canvas):
        FrontendBuilderService.save(
            {'canvases': {f'canvas-{page_canvas.id}': DRAFT_JSON}, 'moderationState': 'draft'},
            sample_content_manager,
            'en',
        )

        build = build_for_editor(page_canvas, published_page, sample_content_manager)

        # The published canvas is rendered, the draft JSON is edited
        assert build['template'] == HEADING_TEMPLATE
        settings = build['attached']['settings']['layout_canvas']
        assert settings['canvases'] == {f'canvas-{page_canvas.id}': DRAFT_JSON}
        assert settings['isLatest'] is False
        assert settings['moderationStates'] == [
            {'state': 'draft', 'label': 'Draft', 'selected': True},
        ]


class TestRenderer:

    def test_render_build(self, app, published_page, page_canvas):
        build = LayoutCanvasViewBuilder.view(page_canvas.default_revision, langcode='en')

        markup = render_build(build)

        assert str(markup) == f'<style>{HEADING_STYLES}</style><h1 class="canvas-heading">About us</h1>'

    def test_template_values_are_escaped(self, app, page_type):
        page = EntityStorageService.create_entity('page', '<b>Bold</b>', moderation_state='published')
        canvas = EntityStorageService.create_layout_canvas(page, 'field_layout', {
            'en': {'json_values': HEADING_JSON, 'template': '{{ node.title }}'},
        })

        markup = render_build(LayoutCanvasViewBuilder.view(canvas.default_revision, langcode='en'))

        assert '&lt;b&gt;Bold&lt;/b&gt;' in str(markup)

    def test_templates_cannot_reach_app_globals(self, app, published_page):
        canvas = EntityStorageService.create_layout_canvas(published_page, 'field_layout', {
            'en': {
                'json_values': HEADING_JSON,
                'template': '{{ config is defined }}|{{ request is defined }}|{{ g is defined }}',
            },
        })

        with app.test_request_context(f'/content/{published_page.id}'):
            markup = render_build(LayoutCanvasViewBuilder.view(canvas.default_revision, langcode='en'))

        assert str(markup) == '<style></style>False|False|False'

    def test_merge_attachments(self):
        target = {}
        merge_attachments(target, {
            'library': ['layout_canvas/frontend-edit'],
            'settings': {'layout_canvas': {'canvases': {'canvas-1': {}}}},
        })
        merge_attachments(target, {
            'library': ['layout_canvas/frontend-edit'],
            'settings': {'layout_canvas': {'canvases': {'canvas-2': {}}, 'isLatest': False}},
        })

        assert target['library'] == ['layout_canvas/frontend-edit']
        assert target['settings'] == {
            'layout_canvas': {
                'canvases': {'canvas-1': {}, 'canvas-2': {}},
                'isLatest': False,
            }
        }

    def test_render_page_merges_cache_metadata(self, app, sample_content_manager,
                                               published_page, page_canvas):
        builds = [
            build_for_editor(page_canvas, published_page, sample_content_manager),
            LayoutCanvasViewBuilder.view(page_canvas.default_revision, langcode='en'),
        ]

        html, cache = render_page(builds, title='About us')

        assert cache == {
            'contexts': ['url.path', 'user'],
            'tags': [f'layout_formatter.{published_page.uuid}'],
        }
        assert html.count('<div class="layout-canvas">') == 2
        assert '<title>About us</title>' in html
        assert 'data-layout-canvas-settings' in html
        assert f'"canvas-{page_canvas.id}"' in html

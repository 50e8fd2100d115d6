"""
Tests for ModerationService workflow lookups and state options.
"""

from canvas_cms.services.entity_storage import EntityStorageService
from canvas_cms.services.moderation import ModerationService, Workflow


def transition_ids(transitions):
    return [transition.id for transition in transitions]


class TestWorkflowConfig:

    def test_editorial_workflow(self, app):
        workflow = ModerationService.get_workflow('editorial')

        assert workflow.default_state == 'draft'
        assert set(workflow.states) == {'draft', 'published', 'archived'}
        assert workflow.get_state('published').published is True
        assert workflow.get_state('archived').default_revision is True
        assert transition_ids(workflow.get_transitions_from('archived')) == ['restore_draft']

    def test_unknown_workflow(self, app):
        assert ModerationService.get_workflow('missing') is None

    def test_default_state_falls_back_to_first_state(self):
        workflow = Workflow.from_config('simple', {
            'states': {'review': {'label': 'Review'}, 'live': {'published': True}},
            'transitions': {'go_live': {'from': ['review'], 'to': 'live'}},
        })

        assert workflow.default_state == 'review'
        assert workflow.get_state('live').label == 'live'
        assert workflow.transitions[0].role == 'super_admin'


class TestModeratedEntity:

    def test_moderation_follows_bundle_workflow(self, app, published_page, landing_page):
        assert ModerationService.is_moderated_entity(published_page)
        assert not ModerationService.is_moderated_entity(landing_page)

    def test_original_state(self, app, published_page):
        assert ModerationService.get_original_state(published_page).id == 'published'

    def test_original_state_falls_back_to_default(self, app, published_page):
        published_page.latest_revision.moderation_state = None

        assert ModerationService.get_original_state(published_page).id == 'draft'

    def test_valid_transitions_by_role(self, app, published_page, sample_viewer,
                                       sample_content_manager, sample_project_manager, sample_admin):
        assert ModerationService.get_valid_transitions(published_page, None) == []
        assert ModerationService.get_valid_transitions(published_page, sample_viewer) == []
        assert transition_ids(
            ModerationService.get_valid_transitions(published_page, sample_content_manager)
        ) == ['create_new_draft']
        assert transition_ids(
            ModerationService.get_valid_transitions(published_page, sample_project_manager)
        ) == ['create_new_draft', 'publish']
        assert transition_ids(
            ModerationService.get_valid_transitions(published_page, sample_admin)
        ) == ['create_new_draft', 'publish', 'archive']

    def test_default_revision_states(self, app, published_page, landing_page):
        assert ModerationService.is_default_revision_state(published_page, 'published')
        assert ModerationService.is_default_revision_state(published_page, 'archived')
        assert not ModerationService.is_default_revision_state(published_page, 'draft')
        assert ModerationService.is_default_revision_state(landing_page, 'draft')


class TestStateOptions:

    def test_published_page_for_admin(self, app, published_page, sample_admin):
        assert ModerationService.get_state_options(published_page, sample_admin) == [
            {'state': 'draft', 'label': 'Draft'},
            {'state': 'published', 'label': 'Published', 'selected': True},
            {'state': 'archived', 'label': 'Archived'},
        ]

    def test_draft_page_for_publisher(self, app, page_type, sample_project_manager):
        page = EntityStorageService.create_entity('page', 'New page')

        assert ModerationService.get_state_options(page, sample_project_manager) == [
            {'state': 'draft', 'label': 'Draft', 'selected': True},
            {'state': 'published', 'label': 'Published'},
        ]

    def test_archived_page_for_editor(self, app, page_type, sample_content_manager):
        page = EntityStorageService.create_entity('page', 'Old page', moderation_state='archived')

        assert ModerationService.get_state_options(page, sample_content_manager) == []

    def test_unmoderated_options(self, app, landing_page, sample_viewer):
        assert ModerationService.get_state_options(landing_page, sample_viewer) == [
            {'state': 'published', 'label': 'Published', 'selected': True},
            {'state': 'unpublished', 'label': 'Unpublished'},
        ]

    def test_unmoderated_unpublished_options(self, app, landing_type, sample_viewer):
        page = EntityStorageService.create_entity('landing_page', 'Hidden', published=False)

        assert ModerationService.get_state_options(page, sample_viewer) == [
            {'state': 'published', 'label': 'Published'},
            {'state': 'unpublished', 'label': 'Unpublished', 'selected': True},
        ]

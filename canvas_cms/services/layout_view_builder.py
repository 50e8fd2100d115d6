"""
Render controller for layout canvases.

LayoutCanvasViewBuilder.view() turns a layout canvas revision into a
render array: the canvas template with its context, cache metadata and
attached styles. When the canvas is displayed through its host's field
on the host's own page, to a user allowed to edit the host, the render
array also carries the frontend builder settings: the latest canvas JSON
and the moderation states the host can move to.
"""

import logging

from flask import current_app

from canvas_cms.models.content import ContentEntity
from canvas_cms.services.cache_metadata import CacheContexts, TokenEntityMapper
from canvas_cms.services.entity_storage import EntityStorageService
from canvas_cms.services.moderation import ModerationService
from canvas_cms.utils.language import get_current_language
from canvas_cms.utils.permissions import can_edit_entity


logger = logging.getLogger(__name__)


class LayoutCanvasViewBuilder:
    """Builds render arrays for layout canvas revisions."""

    @classmethod
    def view(cls, revision, langcode=None, user=None, route_entities=(),
             referring_item=False, view_mode='full'):
        """
        Build the render array for a layout canvas revision.

        Args:
            revision: LayoutCanvasRevision being displayed
            langcode: Language to render (defaults to the request language)
            user: User viewing the canvas, or None for anonymous visitors
            route_entities: Entities loaded from the current route
            referring_item: True when rendered through the host's field
            view_mode: View mode name

        Returns:
            dict render array with 'type', 'template', 'context', 'cache'
            and 'attached' keys
        """
        canvas = revision.canvas
        langcode = langcode or get_current_language()
        translation = cls._get_translation(revision, langcode, canvas.default_langcode)

        host = canvas.get_parent_entity()
        variables = {}
        cache_tags = []
        if host is not None:
            token_type = TokenEntityMapper.get_token_type_for_entity_type(host.entity_type)
            variables[token_type] = host
            cache_tags.append(f'layout_formatter.{host.uuid}')

        variables['layout_builder_entity'] = {
            'entity': canvas,
            'entity_type_id': canvas.entity_type_id,
            'id': canvas.id,
            'revision_id': revision.id,
        }

        template_contexts = translation.template_contexts if translation is not None else []
        styles = translation.styles if translation is not None else ''

        build = {
            'type': 'inline_template',
            'view_mode': view_mode,
            'template': translation.template if translation is not None else '',
            'context': variables,
            'cache': {
                'contexts': CacheContexts.get_from_context_name(template_contexts),
                'tags': cache_tags,
            },
            'attached': {
                'styles': [f'<style>{styles}</style>'],
            },
        }

        if (host is not None and referring_item
                and cls._is_host_route(host, route_entities)
                and can_edit_entity(user, host)):
            cls._attach_editor_settings(build, revision, host, langcode, user)

        return build

    @classmethod
    def _get_translation(cls, revision, langcode, default_langcode):
        if revision is None:
            return None
        translation = revision.get_translation(langcode)
        if translation is None:
            translation = revision.get_translation(default_langcode)
        return translation

    @classmethod
    def _is_host_route(cls, host, route_entities):
        for entity in route_entities or ():
            if (isinstance(entity, ContentEntity)
                    and entity.entity_type == host.entity_type
                    and entity.id == host.id):
                return True
        return False

    @classmethod
    def _attach_editor_settings(cls, build, revision, host, langcode, user):
        canvas = revision.canvas
        prefix = current_app.config.get('CANVAS_KEY_PREFIX', 'canvas-')
        attached = build['attached']
        settings = attached.setdefault('settings', {}).setdefault('layout_canvas', {})

        # The builder always edits the newest canvas JSON
        latest = revision
        if not revision.is_latest_revision():
            latest_revision_id = EntityStorageService.get_latest_revision_id(canvas)
            latest = EntityStorageService.load_revision(canvas, latest_revision_id)
        latest_translation = cls._get_translation(latest, langcode, canvas.default_langcode)
        settings.setdefault('canvases', {})[f'{prefix}{canvas.id}'] = (
            latest_translation.get_json_values() if latest_translation is not None else None
        )

        if not host.is_latest_revision():
            settings['isLatest'] = False

        settings['moderationStates'] = ModerationService.get_state_options(host, user)
        attached.setdefault('library', []).append(
            current_app.config.get('FRONTEND_EDIT_LIBRARY', 'layout_canvas/frontend-edit')
        )
        logger.debug('Attached frontend builder settings for canvas %s', canvas.id)

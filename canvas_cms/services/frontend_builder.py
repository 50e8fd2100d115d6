"""
Frontend Builder Service for Canvas CMS.

Persists layout canvas JSON saved from the frontend visual builder onto
the parent content entity:

1. Resolve each submitted canvas and its translation for the current language
2. Stage and validate the new JSON values
3. Assign the canvas to its parent's field (one parent per request)
4. Apply the bundle's revision policy and record revision metadata
5. Apply the requested moderation or publication state
6. Save, then report the moderation states the entity can now move to
"""

import json
import logging
import re
from datetime import datetime, timezone

from flask import current_app

from canvas_cms.models import db
from canvas_cms.models.layout_canvas import LayoutCanvas
from canvas_cms.services.entity_storage import EntityStorageService, get_entity_type_definition
from canvas_cms.services.moderation import ModerationService


logger = logging.getLogger(__name__)

CANVAS_ID_PATTERN = re.compile(r'[0-9]+')

# Largest SQLite INTEGER
MAX_CANVAS_ID = 2 ** 63 - 1


class FrontendBuilderError(ValueError):
    """A frontend builder payload that cannot be saved (HTTP 400)."""

    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class FrontendBuilderService:
    """Saves frontend builder payloads."""

    @classmethod
    def canvas_id_from_key(cls, canvas_key):
        prefix = current_app.config.get('CANVAS_KEY_PREFIX', 'canvas-')
        return str(canvas_key).replace(prefix, '')

    @classmethod
    def load_canvas(cls, canvas_id):
        """Load a canvas by its key id, or None when the id is not a stored canvas id."""
        if not CANVAS_ID_PATTERN.fullmatch(canvas_id):
            return None

        numeric_id = int(canvas_id)
        if numeric_id > MAX_CANVAS_ID:
            return None
        return db.session.get(LayoutCanvas, numeric_id)

    @classmethod
    def save(cls, payload, user, langcode):
        """
        Save the canvases of a frontend builder payload.

        Args:
            payload: Decoded request body, expected to be
                {'canvases': {'canvas-<id>': {...}}, 'moderationState': '...'}
            user: User performing the save
            langcode: Current request language

        Returns:
            dict: {'entity': ContentEntity, 'moderation_states': [...],
                   'canvas_ids': [...], 'new_revision': bool}

        Raises:
            FrontendBuilderError: When the payload is invalid, a canvas or
                translation is missing, or no parent entity can be found.
                Nothing is persisted in that case.
        """
        touched = []
        try:
            return cls._save(payload, user, langcode, touched)
        except FrontendBuilderError:
            db.session.rollback()
            for obj in touched:
                obj._reset_pending()
            raise

    @classmethod
    def _save(cls, payload, user, langcode, touched):
        if not isinstance(payload, dict) or not isinstance(payload.get('canvases'), dict):
            raise FrontendBuilderError('Missing data canvases')

        entity = None
        canvas_ids = []
        for canvas_key, canvas_data in payload['canvases'].items():
            canvas_id = cls.canvas_id_from_key(canvas_key)
            canvas = cls.load_canvas(canvas_id)
            if canvas is None:
                raise FrontendBuilderError(
                    f'Cannot find entity Layout canvas with id: {canvas_id}'
                )

            if not canvas.has_translation(langcode):
                raise FrontendBuilderError(
                    f'Cannot find translation for language {langcode} '
                    f'for Layout canvas entity id: {canvas_id}'
                )

            touched.append(canvas)
            canvas.set_json_value(json.dumps(canvas_data), langcode)
            canvas.set_needs_save(True)

            errors = canvas.json_values_errors(langcode)
            if errors:
                raise FrontendBuilderError(errors['error'])

            parent = canvas.get_parent_entity()
            if parent is None:
                logger.warning('Layout canvas %s has no parent entity', canvas.id)
                canvas.clear_pending()
                continue

            if entity is None:
                entity = parent
                touched.append(entity)
            elif entity is not parent:
                # Only one entity is processed per request
                logger.info(
                    'Skipping layout canvas %s: it belongs to a different entity', canvas.id
                )
                canvas.clear_pending()
                continue

            entity.set_field(canvas.parent_field_name, canvas)
            canvas_ids.append(canvas.id)

            cls._apply_revision_policy(entity, user)

            if isinstance(payload.get('moderationState'), str):
                cls._apply_moderation_state(entity, payload['moderationState'])

        if entity is None:
            raise FrontendBuilderError(
                "An error occurred, the entity for the layout canvas can't be found"
            )

        new_revision = entity.is_new_revision()
        EntityStorageService.save(entity)

        return {
            'entity': entity,
            'canvas_ids': canvas_ids,
            'new_revision': new_revision,
            'moderation_states': ModerationService.get_state_options(entity, user),
        }

    @classmethod
    def _apply_revision_policy(cls, entity, user):
        definition = get_entity_type_definition(entity.entity_type)
        if not definition.is_revisionable():
            return

        if definition.bundle_entity_type:
            bundle = EntityStorageService.load_bundle_entity(entity)
            if bundle is not None:
                entity.set_new_revision(bundle.should_create_new_revision())

        if entity.is_new_revision():
            entity.set_revision_user_id(user.id if user is not None else None)
            entity.set_revision_creation_time(cls._request_time())

    @classmethod
    def _apply_moderation_state(cls, entity, state):
        if ModerationService.is_moderated_entity(entity):
            workflow = ModerationService.get_workflow_for_entity(entity)
            if workflow.has_state(state):
                entity.set_moderation_state(state)
        elif state == 'published':
            entity.set_published()
        elif state == 'unpublished':
            entity.set_unpublished()

    @classmethod
    def _request_time(cls):
        return datetime.now(timezone.utc)

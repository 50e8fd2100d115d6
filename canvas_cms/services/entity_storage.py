"""
Entity Storage Service for Canvas CMS.

Persists content entities and the layout canvases they reference:
- Entity type definitions (revisionable, bundle entity type)
- Bundle loading for revision policy decisions
- Saving pending entity changes, as a new revision or in place
- Cascading saves to layout canvases flagged as needing a save
- Moving default revision pointers according to moderation rules
- Creating entities and canvases (seeding and tests)
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from flask import current_app

from canvas_cms.models import db
from canvas_cms.models.content import ContentType, ContentEntity, ContentRevision
from canvas_cms.models.layout_canvas import LayoutCanvas, LayoutCanvasRevision, LayoutCanvasTranslation
from canvas_cms.services.moderation import ModerationService


logger = logging.getLogger(__name__)


class EntityTypeNotFoundError(ValueError):
    """Raised when an entity type id has no definition."""


@dataclass(frozen=True)
class EntityTypeDefinition:
    """Static description of a parent entity type."""
    id: str
    label: str
    revisionable: bool = True
    bundle_entity_type: Optional[str] = None

    def is_revisionable(self):
        return self.revisionable


# Bundle entity type id -> bundle model
BUNDLE_MODELS = {
    'content_type': ContentType,
}


def get_entity_type_definition(entity_type_id):
    """
    Look up an entity type definition from configuration.

    Raises:
        EntityTypeNotFoundError: If the entity type is not configured
    """
    definition = current_app.config.get('ENTITY_TYPES', {}).get(entity_type_id)
    if definition is None:
        raise EntityTypeNotFoundError(f'The "{entity_type_id}" entity type does not exist.')
    return EntityTypeDefinition(
        id=entity_type_id,
        label=definition.get('label', entity_type_id),
        revisionable=bool(definition.get('revisionable', True)),
        bundle_entity_type=definition.get('bundle_entity_type'),
    )


class EntityStorageService:
    """
    Storage operations for content entities and layout canvases.

    All methods are class methods using the Flask-SQLAlchemy session.
    """

    @classmethod
    def load_bundle_entity(cls, entity):
        """
        Load the bundle config entity of a content entity.

        Returns:
            ContentType or None when the entity type has no bundle entity type
        """
        definition = get_entity_type_definition(entity.entity_type)
        model = BUNDLE_MODELS.get(definition.bundle_entity_type)
        if model is None:
            return None
        return db.session.get(model, entity.bundle)

    @classmethod
    def get_latest_revision_id(cls, entity):
        return entity.latest_revision_id

    @classmethod
    def load_revision(cls, entity, revision_id):
        """
        Load a specific revision of a content entity or layout canvas.

        Returns:
            ContentRevision / LayoutCanvasRevision, or None if it does not
            belong to the entity
        """
        if isinstance(entity, LayoutCanvas):
            revision = db.session.get(LayoutCanvasRevision, revision_id)
            return revision if revision and revision.canvas_id == entity.id else None

        revision = db.session.get(ContentRevision, revision_id)
        return revision if revision and revision.entity_id == entity.id else None

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    @classmethod
    def save(cls, entity):
        """
        Save a content entity's pending changes and the canvases it references.

        A new revision is created when the entity has no revision yet, or
        when the entity type is revisionable and the entity was flagged
        with set_new_revision(True). Otherwise the latest revision is
        updated in place.

        Args:
            entity: ContentEntity with pending changes

        Returns:
            ContentRevision: The saved revision

        Raises:
            EntityTypeNotFoundError: If the entity type is not configured
        """
        definition = get_entity_type_definition(entity.entity_type)

        if entity.id is None:
            db.session.add(entity)
            db.session.flush()

        base = entity.latest_revision
        create_revision = base is None or (definition.is_revisionable() and entity.is_new_revision())

        if create_revision:
            revision = base.copy() if base is not None else ContentRevision(entity_id=entity.id)
            revision.entity_id = entity.id
            revision.revision_user_id = None
            revision.revision_log = None
            revision.revision_created_at = datetime.now(timezone.utc)
        else:
            revision = base

        pending = entity.pending_changes
        for key in ('title', 'status', 'moderation_state', 'revision_user_id',
                    'revision_created_at', 'revision_log'):
            if key in pending:
                setattr(revision, key, pending[key])

        workflow = ModerationService.get_workflow_for_entity(entity)
        if workflow is not None:
            if not workflow.has_state(revision.moderation_state):
                revision.moderation_state = workflow.default_state
            revision.status = workflow.get_state(revision.moderation_state).published

        if create_revision:
            db.session.add(revision)
        db.session.flush()

        field_values = dict(revision.field_values or {})
        saved_canvases = []
        for field_name, canvas in entity.pending_fields.items():
            canvas_revision = cls._save_canvas(canvas, create_revision)
            field_values[field_name] = {
                'target_id': canvas.id,
                'target_revision_id': canvas_revision.id,
            }
            saved_canvases.append((canvas, canvas_revision))
        revision.field_values = field_values

        if cls._becomes_default_revision(entity, revision):
            entity.revision_id = revision.id
            for canvas, canvas_revision in saved_canvases:
                canvas.revision_id = canvas_revision.id

        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        entity._reset_pending()
        logger.info(
            'Saved %s %s revision %s (new_revision=%s, default=%s)',
            entity.entity_type, entity.id, revision.id, create_revision,
            entity.revision_id == revision.id
        )
        return revision

    @classmethod
    def _becomes_default_revision(cls, entity, revision):
        # Same rule for new revisions and forward drafts saved in place
        if entity.revision_id is None or entity.revision_id == revision.id:
            return True

        if not ModerationService.is_moderated_entity(entity):
            return True

        if ModerationService.is_default_revision_state(entity, revision.moderation_state):
            return True

        # A draft becomes the default while nothing is published
        current_default = entity.default_revision
        return current_default is None or not current_default.is_published()

    @classmethod
    def _save_canvas(cls, canvas, new_revision):
        """
        Persist a canvas's pending JSON values.

        Args:
            canvas: LayoutCanvas with pending values
            new_revision: Create a new canvas revision (copying every
                translation) instead of updating the latest one

        Returns:
            LayoutCanvasRevision holding the saved values
        """
        base = canvas.latest_revision

        if base is None or new_revision:
            revision = LayoutCanvasRevision(canvas_id=canvas.id)
            if base is not None:
                for translation in base.translations:
                    revision.translations.append(translation.copy())
            db.session.add(revision)
        else:
            revision = base

        for langcode, value in canvas.pending_json.items():
            translation = revision.get_translation(langcode)
            if translation is None:
                source = revision.get_translation(canvas.default_langcode)
                translation = source.copy() if source is not None else LayoutCanvasTranslation()
                translation.langcode = langcode
                revision.translations.append(translation)
            translation.json_values = value

        db.session.flush()
        canvas.clear_pending()
        return revision

    # ------------------------------------------------------------------
    # Creation helpers
    # ------------------------------------------------------------------

    @classmethod
    def create_entity(cls, bundle, title, entity_type='node', langcode=None,
                      published=True, moderation_state=None):
        """
        Create and save a content entity with its first revision.

        Args:
            bundle: ContentType id
            title: Entity title
            entity_type: Entity type id
            langcode: Revision language (defaults to DEFAULT_LANGUAGE)
            published: Published flag for non-moderated entities
            moderation_state: Initial state for moderated entities

        Returns:
            ContentEntity
        """
        entity = ContentEntity(entity_type=entity_type, bundle=bundle)
        db.session.add(entity)
        db.session.flush()

        revision = ContentRevision(
            entity_id=entity.id,
            langcode=langcode or current_app.config.get('DEFAULT_LANGUAGE', 'en'),
            title=title,
            status=published,
            moderation_state=moderation_state,
            field_values={},
        )
        db.session.add(revision)
        db.session.flush()

        workflow = ModerationService.get_workflow_for_entity(entity)
        if workflow is not None:
            if not workflow.has_state(revision.moderation_state):
                revision.moderation_state = workflow.default_state
            revision.status = workflow.get_state(revision.moderation_state).published

        entity.revision_id = revision.id
        db.session.commit()
        return entity

    @classmethod
    def create_layout_canvas(cls, parent, field_name, translations, default_langcode=None):
        """
        Create a layout canvas attached to a field of a parent entity.

        The parent's default revision is updated in place to reference the
        canvas.

        Args:
            parent: ContentEntity hosting the canvas
            field_name: Name of the parent field referencing the canvas
            translations: Mapping of langcode -> dict with 'json_values'
                (str or JSON-serializable), 'template', 'styles' and
                'template_contexts'
            default_langcode: Canvas default language

        Returns:
            LayoutCanvas
        """
        default_langcode = default_langcode or current_app.config.get('DEFAULT_LANGUAGE', 'en')
        canvas = LayoutCanvas(
            parent_type=parent.entity_type,
            parent_id=parent.id,
            parent_field_name=field_name,
            default_langcode=default_langcode,
        )
        db.session.add(canvas)
        db.session.flush()

        revision = LayoutCanvasRevision(canvas_id=canvas.id)
        for langcode, values in translations.items():
            json_values = values.get('json_values', {})
            if not isinstance(json_values, str):
                json_values = json.dumps(json_values)
            revision.translations.append(LayoutCanvasTranslation(
                langcode=langcode,
                json_values=json_values,
                template=values.get('template', ''),
                styles=values.get('styles', ''),
                template_contexts=list(values.get('template_contexts', [])),
            ))
        db.session.add(revision)
        db.session.flush()
        canvas.revision_id = revision.id

        parent_revision = parent.default_revision
        if parent_revision is not None:
            field_values = dict(parent_revision.field_values or {})
            field_values[field_name] = {
                'target_id': canvas.id,
                'target_revision_id': revision.id,
            }
            parent_revision.field_values = field_values

        db.session.commit()
        return canvas

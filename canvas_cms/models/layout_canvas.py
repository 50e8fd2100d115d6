"""
Layout Canvas Models for Canvas CMS.

A layout canvas is a child entity holding the JSON description of a page
fragment built in the visual frontend builder, together with the
compiled template, styles and template contexts used to render it.

- LayoutCanvas: the entity, with a reference back to its parent
  (parent_type, parent_id, parent_field_name)
- LayoutCanvasRevision: one revision of the canvas
- LayoutCanvasTranslation: per-language values of a revision

JSON submitted by the frontend builder is held as a pending value on the
LayoutCanvas until the parent entity is saved.
"""

from datetime import datetime, timezone
import json
import uuid

from sqlalchemy import func
from sqlalchemy.orm import reconstructor

from canvas_cms.models import db, DateTimeUTC


ENTITY_TYPE_ID = 'layout_canvas'


def validate_canvas_json(value):
    """
    Validate the JSON values of a layout canvas.

    The document must be a JSON object. When it carries a 'canvas' list,
    every element in it (and in nested 'children' lists) must be an
    object with a non-empty string 'uid'.

    Args:
        value: JSON string

    Returns:
        Error message string, or None if the JSON is valid
    """
    try:
        document = json.loads(value)
    except (TypeError, ValueError):
        return 'Layout canvas JSON could not be decoded'

    if not isinstance(document, dict):
        return 'Layout canvas JSON must be an object'

    elements = document.get('canvas', [])
    if not isinstance(elements, list):
        return "Layout canvas 'canvas' value must be a list"

    stack = list(elements)
    while stack:
        element = stack.pop()
        if not isinstance(element, dict):
            return 'Layout canvas elements must be objects'
        uid = element.get('uid')
        if not isinstance(uid, str) or not uid:
            return 'Layout canvas element is missing a uid'
        children = element.get('children', [])
        if not isinstance(children, list):
            return f"Layout canvas element {uid} has invalid children"
        stack.extend(children)

    return None


class LayoutCanvasTranslation(db.Model):
    """
    Per-language values of a layout canvas revision.

    Attributes:
        id: Row ID
        revision_id: Foreign key to the canvas revision
        langcode: Language code
        json_values: JSON document produced by the frontend builder
        template: Jinja template markup rendered for the canvas
        styles: CSS emitted alongside the markup
        template_contexts: List of template context names (for cache contexts)
    """

    __tablename__ = 'layout_canvas_translations'
    __table_args__ = (
        db.UniqueConstraint('revision_id', 'langcode', name='uq_layout_canvas_translation'),
    )

    id = db.Column(db.Integer, primary_key=True)
    revision_id = db.Column(
        db.Integer,
        db.ForeignKey('layout_canvas_revisions.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    langcode = db.Column(db.String(12), nullable=False, default='en')
    json_values = db.Column(db.Text, nullable=False, default='{}')
    template = db.Column(db.Text, nullable=False, default='')
    styles = db.Column(db.Text, nullable=False, default='')
    template_contexts = db.Column(db.JSON, nullable=False, default=list)

    def get_json_values(self):
        """Decode the stored JSON values, returning None when undecodable."""
        try:
            return json.loads(self.json_values)
        except (TypeError, ValueError):
            return None

    def copy(self):
        return LayoutCanvasTranslation(
            langcode=self.langcode,
            json_values=self.json_values,
            template=self.template,
            styles=self.styles,
            template_contexts=list(self.template_contexts or []),
        )

    def to_dict(self):
        return {
            'langcode': self.langcode,
            'json_values': self.get_json_values(),
            'template': self.template,
            'styles': self.styles,
            'template_contexts': self.template_contexts or [],
        }


class LayoutCanvasRevision(db.Model):
    """
    One revision of a layout canvas.

    Attributes:
        id: Revision ID
        canvas_id: Foreign key to the layout canvas
        created_at: When the revision was created
        translations: Per-language values
    """

    __tablename__ = 'layout_canvas_revisions'

    id = db.Column(db.Integer, primary_key=True)
    canvas_id = db.Column(
        db.Integer,
        db.ForeignKey('layout_canvases.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc))

    translations = db.relationship(
        'LayoutCanvasTranslation',
        backref='revision',
        cascade='all, delete-orphan',
        order_by='LayoutCanvasTranslation.id'
    )

    def get_translation(self, langcode):
        for translation in self.translations:
            if translation.langcode == langcode:
                return translation
        return None

    def has_translation(self, langcode):
        return self.get_translation(langcode) is not None

    def is_latest_revision(self):
        return self.id == self.canvas.latest_revision_id

    def is_default_revision(self):
        return self.id == self.canvas.revision_id

    def __repr__(self):
        return f'<LayoutCanvasRevision {self.id} canvas={self.canvas_id}>'


class LayoutCanvas(db.Model):
    """
    SQLAlchemy model representing a layout canvas entity.

    Attributes:
        id: Entity ID
        uuid: Globally unique identifier
        parent_type: Entity type id of the parent entity
        parent_id: ID of the parent entity
        parent_field_name: Name of the parent's field referencing this canvas
        default_langcode: Language used when no translation matches
        revision_id: ID of the default revision
        created_at: Timestamp when the canvas was created
    """

    __tablename__ = 'layout_canvases'

    entity_type_id = ENTITY_TYPE_ID

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))
    parent_type = db.Column(db.String(64), nullable=True)
    parent_id = db.Column(db.Integer, nullable=True, index=True)
    parent_field_name = db.Column(db.String(64), nullable=True)
    default_langcode = db.Column(db.String(12), nullable=False, default='en')
    # No FK constraint: layout_canvas_revisions already references this table
    revision_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc))

    revisions = db.relationship(
        'LayoutCanvasRevision',
        backref='canvas',
        lazy='dynamic',
        cascade='all, delete-orphan',
        order_by='LayoutCanvasRevision.id'
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._reset_pending()

    @reconstructor
    def _init_on_load(self):
        self._reset_pending()

    def _reset_pending(self):
        self._pending_json = {}
        self.needs_save = False

    @property
    def default_revision(self):
        if self.revision_id is None:
            return None
        return db.session.get(LayoutCanvasRevision, self.revision_id)

    @property
    def latest_revision_id(self):
        return db.session.query(func.max(LayoutCanvasRevision.id)).filter(
            LayoutCanvasRevision.canvas_id == self.id
        ).scalar()

    @property
    def latest_revision(self):
        latest_id = self.latest_revision_id
        if latest_id is None:
            return None
        return db.session.get(LayoutCanvasRevision, latest_id)

    def get_parent_entity(self):
        """
        Load the entity that hosts this canvas.

        Returns:
            ContentEntity or None when the canvas has no (existing) parent
        """
        if not self.parent_type or self.parent_id is None:
            return None

        from canvas_cms.models.content import ContentEntity
        return ContentEntity.query.filter_by(
            id=self.parent_id,
            entity_type=self.parent_type
        ).first()

    def has_translation(self, langcode):
        """Check the latest revision for a translation in the given language."""
        revision = self.latest_revision
        return revision is not None and revision.has_translation(langcode)

    def set_json_value(self, value, langcode):
        """
        Stage new JSON values for a language until the parent is saved.

        Args:
            value: JSON string from the frontend builder
            langcode: Language of the translation being edited
        """
        self._pending_json[langcode] = value

    def get_json_value(self, langcode):
        if langcode in self._pending_json:
            return self._pending_json[langcode]
        revision = self.latest_revision
        translation = revision.get_translation(langcode) if revision else None
        return translation.json_values if translation else None

    @property
    def pending_json(self):
        return dict(self._pending_json)

    def set_needs_save(self, value=True):
        self.needs_save = bool(value)

    def json_values_errors(self, langcode):
        """
        Validate the (pending) JSON values of a translation.

        Returns:
            dict with an 'error' key, or None when the values are valid
        """
        error = validate_canvas_json(self.get_json_value(langcode))
        if error:
            return {'error': error}
        return None

    def clear_pending(self):
        self._reset_pending()

    def to_dict(self):
        """
        Serialize the canvas to a dictionary for API responses.

        Returns:
            Dictionary containing canvas fields
        """
        return {
            'id': self.id,
            'uuid': self.uuid,
            'parent_type': self.parent_type,
            'parent_id': self.parent_id,
            'parent_field_name': self.parent_field_name,
            'default_langcode': self.default_langcode,
            'revision_id': self.revision_id,
            'latest_revision_id': self.latest_revision_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<LayoutCanvas {self.id} parent={self.parent_type}/{self.parent_id}>'

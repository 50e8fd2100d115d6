"""
Content Models for Canvas CMS.

Represents the parent content entities that host layout canvases:
- ContentType: bundle configuration (revision policy, workflow)
- ContentEntity: the entity itself, pointing at its default revision
- ContentRevision: revisioned values (title, published flag,
  moderation state, field references to layout canvases)

Content entities keep a set of pending, unsaved changes in memory so a
controller can assign fields and states across several steps before a
single call to EntityStorageService.save() persists them.
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import func
from sqlalchemy.orm import reconstructor

from canvas_cms.models import db, DateTimeUTC


class ContentType(db.Model):
    """
    SQLAlchemy model representing a content bundle (e.g. 'page').

    Attributes:
        id: Machine name of the bundle
        entity_type: Entity type the bundle belongs to (default 'node')
        label: Human-readable bundle name
        new_revision: Whether saving entities of this bundle creates a new revision
        workflow: Optional workflow id; entities of a bundle with a workflow are moderated
    """

    __tablename__ = 'content_types'

    id = db.Column(db.String(64), primary_key=True)
    entity_type = db.Column(db.String(64), nullable=False, default='node')
    label = db.Column(db.String(255), nullable=False)
    new_revision = db.Column(db.Boolean, nullable=False, default=True)
    workflow = db.Column(db.String(64), nullable=True)

    def should_create_new_revision(self):
        return bool(self.new_revision)

    def to_dict(self):
        return {
            'id': self.id,
            'entity_type': self.entity_type,
            'label': self.label,
            'new_revision': self.new_revision,
            'workflow': self.workflow,
        }

    def __repr__(self):
        return f'<ContentType {self.entity_type}.{self.id}>'


class ContentRevision(db.Model):
    """
    SQLAlchemy model representing one revision of a content entity.

    Attributes:
        id: Revision ID (monotonically increasing across all content)
        entity_id: Foreign key to the owning content entity
        langcode: Language of the revision values
        title: Entity title
        status: Published flag
        moderation_state: Workflow state id for moderated entities
        field_values: JSON mapping of field name to
            {'target_id': ..., 'target_revision_id': ...}
        revision_user_id: User who created the revision
        revision_created_at: When the revision was created
        revision_log: Optional revision log message
    """

    __tablename__ = 'content_revisions'

    id = db.Column(db.Integer, primary_key=True)
    entity_id = db.Column(db.Integer, db.ForeignKey('content_entities.id', ondelete='CASCADE'), nullable=False, index=True)
    langcode = db.Column(db.String(12), nullable=False, default='en')
    title = db.Column(db.String(255), nullable=False, default='')
    status = db.Column(db.Boolean, nullable=False, default=True)
    moderation_state = db.Column(db.String(64), nullable=True)
    field_values = db.Column(db.JSON, nullable=False, default=dict)
    revision_user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True)
    revision_created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc))
    revision_log = db.Column(db.Text, nullable=True)

    def is_published(self):
        return bool(self.status)

    def get_field_target(self, field_name):
        """
        Get the entity reference stored in a field.

        Returns:
            dict with 'target_id' and 'target_revision_id', or None
        """
        return (self.field_values or {}).get(field_name)

    def is_latest_revision(self):
        return self.id == self.entity.latest_revision_id

    def copy(self):
        """
        Create an unsaved copy of this revision for a new revision.

        Returns:
            ContentRevision: New revision carrying the same values
        """
        return ContentRevision(
            entity_id=self.entity_id,
            langcode=self.langcode,
            title=self.title,
            status=self.status,
            moderation_state=self.moderation_state,
            field_values=dict(self.field_values or {}),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'entity_id': self.entity_id,
            'langcode': self.langcode,
            'title': self.title,
            'status': self.status,
            'moderation_state': self.moderation_state,
            'field_values': self.field_values or {},
            'revision_user_id': self.revision_user_id,
            'revision_created_at': self.revision_created_at.isoformat() if self.revision_created_at else None,
            'revision_log': self.revision_log,
        }

    def __repr__(self):
        return f'<ContentRevision {self.id} entity={self.entity_id}>'


class ContentEntity(db.Model):
    """
    SQLAlchemy model representing a content entity that can host layout canvases.

    Attributes:
        id: Entity ID
        uuid: Globally unique identifier (used for cache tags)
        entity_type: Entity type id (e.g. 'node')
        bundle: Foreign key to the ContentType
        revision_id: ID of the default revision
        created_at: Timestamp when the entity was created
    """

    __tablename__ = 'content_entities'

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))
    entity_type = db.Column(db.String(64), nullable=False, default='node', index=True)
    bundle = db.Column(db.String(64), db.ForeignKey('content_types.id'), nullable=False, index=True)
    # No FK constraint: content_revisions already references this table
    revision_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc))

    content_type = db.relationship('ContentType')
    revisions = db.relationship(
        'ContentRevision',
        backref='entity',
        lazy='dynamic',
        cascade='all, delete-orphan',
        order_by='ContentRevision.id'
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._reset_pending()

    @reconstructor
    def _init_on_load(self):
        self._reset_pending()

    def _reset_pending(self):
        self._pending = {}
        self._pending_fields = {}
        self._new_revision = False

    # ------------------------------------------------------------------
    # Revision access
    # ------------------------------------------------------------------

    @property
    def default_revision(self):
        if self.revision_id is None:
            return None
        return db.session.get(ContentRevision, self.revision_id)

    @property
    def latest_revision_id(self):
        return db.session.query(func.max(ContentRevision.id)).filter(
            ContentRevision.entity_id == self.id
        ).scalar()

    @property
    def latest_revision(self):
        latest_id = self.latest_revision_id
        if latest_id is None:
            return None
        return db.session.get(ContentRevision, latest_id)

    def is_latest_revision(self):
        """
        Check whether the default revision is also the newest revision.

        Returns False when forward (e.g. draft) revisions exist.
        """
        return self.revision_id is not None and self.revision_id == self.latest_revision_id

    @property
    def title(self):
        revision = self.default_revision or self.latest_revision
        return revision.title if revision else ''

    def is_published(self):
        revision = self.default_revision or self.latest_revision
        return revision.is_published() if revision else False

    # ------------------------------------------------------------------
    # Pending changes
    # ------------------------------------------------------------------

    def set_field(self, field_name, canvas):
        """Reference a layout canvas from a field on the next save."""
        self._pending_fields[field_name] = canvas

    def set_title(self, title):
        self._pending['title'] = title

    def set_published(self):
        self._pending['status'] = True

    def set_unpublished(self):
        self._pending['status'] = False

    def set_moderation_state(self, state_id):
        self._pending['moderation_state'] = state_id

    def set_new_revision(self, value=True):
        self._new_revision = bool(value)

    def is_new_revision(self):
        return self._new_revision

    def set_revision_user_id(self, user_id):
        self._pending['revision_user_id'] = user_id

    def set_revision_creation_time(self, timestamp):
        self._pending['revision_created_at'] = timestamp

    def set_revision_log_message(self, message):
        self._pending['revision_log'] = message

    @property
    def pending_changes(self):
        return dict(self._pending)

    @property
    def pending_fields(self):
        return dict(self._pending_fields)

    def to_dict(self):
        """
        Serialize the entity to a dictionary for API responses.

        Returns:
            Dictionary containing entity fields and its default revision
        """
        default_revision = self.default_revision
        return {
            'id': self.id,
            'uuid': self.uuid,
            'entity_type': self.entity_type,
            'bundle': self.bundle,
            'revision_id': self.revision_id,
            'latest_revision_id': self.latest_revision_id,
            'title': self.title,
            'published': self.is_published(),
            'moderation_state': default_revision.moderation_state if default_revision else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<ContentEntity {self.entity_type}/{self.id}>'

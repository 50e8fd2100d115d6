"""
Moderation Service for Canvas CMS.

Answers the questions the layout canvas controllers ask about editorial
workflows:
- Is an entity moderated, and by which workflow?
- What is the entity's current (original) moderation state?
- Which transitions may a given user perform from that state?
- Which moderation state options should the frontend builder offer?

Workflows are read from the WORKFLOWS configuration; a content bundle
opts into moderation by naming a workflow.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from flask import current_app

from canvas_cms.utils.permissions import has_permission


@dataclass(frozen=True)
class WorkflowState:
    """A single workflow state."""
    id: str
    label: str
    published: bool = False
    default_revision: bool = False


@dataclass(frozen=True)
class Transition:
    """A move between workflow states, gated by a minimum user role."""
    id: str
    label: str
    from_states: Tuple[str, ...]
    to_state: WorkflowState
    role: str


@dataclass
class Workflow:
    """A workflow definition: its states and allowed transitions."""
    id: str
    label: str
    default_state: str
    states: Dict[str, WorkflowState] = field(default_factory=dict)
    transitions: List[Transition] = field(default_factory=list)

    @classmethod
    def from_config(cls, workflow_id: str, definition: dict) -> 'Workflow':
        states = {
            state_id: WorkflowState(
                id=state_id,
                label=state.get('label', state_id),
                published=bool(state.get('published', False)),
                default_revision=bool(state.get('default_revision', False)),
            )
            for state_id, state in definition.get('states', {}).items()
        }
        transitions = [
            Transition(
                id=transition_id,
                label=transition.get('label', transition_id),
                from_states=tuple(transition.get('from', [])),
                to_state=states[transition['to']],
                role=transition.get('role', 'super_admin'),
            )
            for transition_id, transition in definition.get('transitions', {}).items()
        ]
        default_state = definition.get('default_state') or next(iter(states), None)
        return cls(
            id=workflow_id,
            label=definition.get('label', workflow_id),
            default_state=default_state,
            states=states,
            transitions=transitions,
        )

    def has_state(self, state_id) -> bool:
        return state_id in self.states

    def get_state(self, state_id) -> Optional[WorkflowState]:
        return self.states.get(state_id)

    def get_transitions_from(self, state_id) -> List[Transition]:
        return [t for t in self.transitions if state_id in t.from_states]


class ModerationService:
    """
    Workflow lookups for content entities.

    All methods are class methods and read workflow definitions from the
    current application's configuration.
    """

    @classmethod
    def get_workflow(cls, workflow_id) -> Optional[Workflow]:
        definition = current_app.config.get('WORKFLOWS', {}).get(workflow_id)
        if definition is None:
            return None
        return Workflow.from_config(workflow_id, definition)

    @classmethod
    def get_workflow_for_entity(cls, entity) -> Optional[Workflow]:
        """
        Get the workflow governing an entity's bundle.

        Args:
            entity: ContentEntity

        Returns:
            Workflow, or None when the entity is not moderated
        """
        content_type = entity.content_type
        if content_type is None or not content_type.workflow:
            return None
        return cls.get_workflow(content_type.workflow)

    @classmethod
    def is_moderated_entity(cls, entity) -> bool:
        return cls.get_workflow_for_entity(entity) is not None

    @classmethod
    def get_original_state(cls, entity) -> Optional[WorkflowState]:
        """
        Get the stored moderation state of the entity's latest revision.

        Falls back to the workflow's default state for revisions saved
        before the bundle was moderated.
        """
        workflow = cls.get_workflow_for_entity(entity)
        if workflow is None:
            return None

        revision = entity.latest_revision
        state_id = revision.moderation_state if revision is not None else None
        if not workflow.has_state(state_id):
            state_id = workflow.default_state
        return workflow.get_state(state_id)

    @classmethod
    def get_valid_transitions(cls, entity, user) -> List[Transition]:
        """
        Get the transitions a user may perform from the entity's current state.

        Args:
            entity: ContentEntity
            user: User performing the transition (None means anonymous)

        Returns:
            List of Transition objects in workflow order
        """
        workflow = cls.get_workflow_for_entity(entity)
        if workflow is None:
            return []

        current_state = cls.get_original_state(entity)
        return [
            transition for transition in workflow.get_transitions_from(current_state.id)
            if has_permission(user, transition.role)
        ]

    @classmethod
    def is_default_revision_state(cls, entity, state_id) -> bool:
        workflow = cls.get_workflow_for_entity(entity)
        if workflow is None:
            return True
        state = workflow.get_state(state_id)
        return bool(state and state.default_revision)

    @classmethod
    def get_state_options(cls, entity, user) -> List[dict]:
        """
        Build the moderation state options offered by the frontend builder.

        Moderated entities get one option per reachable state, with the
        current state marked as selected. Other entities get a
        published/unpublished pair.

        Args:
            entity: ContentEntity (its latest revision is inspected)
            user: User the options are computed for

        Returns:
            List of {'state', 'label'[, 'selected']} dictionaries
        """
        options = {}

        if cls.is_moderated_entity(entity):
            current_state = cls.get_original_state(entity)
            for transition in cls.get_valid_transitions(entity, user):
                to_state = transition.to_state
                options[to_state.id] = {
                    'state': to_state.id,
                    'label': to_state.label,
                }
                if current_state.id == to_state.id:
                    options[to_state.id]['selected'] = True
        else:
            options['published'] = {
                'state': 'published',
                'label': 'Published',
            }
            options['unpublished'] = {
                'state': 'unpublished',
                'label': 'Unpublished',
            }

            revision = entity.latest_revision
            if revision is not None and revision.is_published():
                options['published']['selected'] = True
            else:
                options['unpublished']['selected'] = True

        return list(options.values())

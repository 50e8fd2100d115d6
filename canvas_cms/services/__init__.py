"""
Canvas CMS Services Package.

Business logic for layout canvases including:
- LayoutCanvasViewBuilder: Builds render arrays (and frontend builder settings)
- FrontendBuilderService: Saves layout canvas JSON from the frontend builder
- ModerationService: Workflow states, transitions and state options
- EntityStorageService: Revision-aware saving of entities and canvases
"""

from canvas_cms.services.entity_storage import EntityStorageService
from canvas_cms.services.frontend_builder import FrontendBuilderService, FrontendBuilderError
from canvas_cms.services.layout_view_builder import LayoutCanvasViewBuilder
from canvas_cms.services.moderation import ModerationService

__all__ = [
    'EntityStorageService',
    'FrontendBuilderService',
    'FrontendBuilderError',
    'LayoutCanvasViewBuilder',
    'ModerationService',
]

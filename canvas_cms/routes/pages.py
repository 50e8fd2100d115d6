"""
Canvas CMS Page Routes

Blueprint rendering content entities and their layout canvases as HTML:
- GET /content/<entity_id>: Render the entity's layout canvases
  (?revision=latest renders the newest revision for editors)
- GET /layout-canvas/<canvas_id>: Render a single canvas without builder settings

Cache metadata of the rendered canvases is exposed in the
X-Cache-Tags and X-Cache-Contexts response headers.
"""

from flask import Blueprint, request, abort, make_response

from canvas_cms.models import db, ContentEntity, LayoutCanvas, LayoutCanvasRevision
from canvas_cms.services.layout_view_builder import LayoutCanvasViewBuilder
from canvas_cms.services.renderer import render_page
from canvas_cms.utils.auth import resolve_optional_user
from canvas_cms.utils.language import get_current_language
from canvas_cms.utils.permissions import can_edit_entity


pages_bp = Blueprint('pages', __name__)


def _html_response(html, cache, extra_tags=()):
    response = make_response(html)
    response.headers['Content-Type'] = 'text/html; charset=utf-8'
    response.headers['X-Cache-Tags'] = ' '.join(list(extra_tags) + cache['tags'])
    response.headers['X-Cache-Contexts'] = ' '.join(cache['contexts'])
    return response


@pages_bp.route('/content/<int:entity_id>', methods=['GET'])
def view_content(entity_id):
    """
    Render a content entity's layout canvases.

    Query Parameters:
        revision: 'latest' to render the newest revision (editors only)
        language: Language code to render

    Returns:
        200: HTML page
        403: Latest revision requested without edit access
        404: Entity not found, or unpublished and not editable
    """
    entity = db.session.get(ContentEntity, entity_id)
    if entity is None:
        abort(404)

    user = resolve_optional_user()
    may_edit = can_edit_entity(user, entity)

    if request.args.get('revision') == 'latest':
        if not may_edit:
            abort(403)
        revision = entity.latest_revision
    else:
        revision = entity.default_revision

    if revision is None or (not revision.is_published() and not may_edit):
        abort(404)

    langcode = get_current_language()
    builds = []
    for field_name in sorted(revision.field_values or {}):
        target = revision.field_values[field_name]
        canvas_revision = db.session.get(LayoutCanvasRevision, target.get('target_revision_id'))
        if canvas_revision is None:
            continue
        builds.append(LayoutCanvasViewBuilder.view(
            canvas_revision,
            langcode=langcode,
            user=user,
            route_entities=[entity],
            referring_item=True,
        ))

    html, cache = render_page(builds, title=revision.title)
    return _html_response(html, cache, extra_tags=[f'{entity.entity_type}:{entity.id}'])


@pages_bp.route('/layout-canvas/<int:canvas_id>', methods=['GET'])
def view_layout_canvas(canvas_id):
    """
    Render the default revision of a single layout canvas.

    Returns:
        200: HTML page
        404: Canvas not found or without revisions
    """
    canvas = db.session.get(LayoutCanvas, canvas_id)
    if canvas is None or canvas.default_revision is None:
        abort(404)

    user = resolve_optional_user()
    build = LayoutCanvasViewBuilder.view(
        canvas.default_revision,
        langcode=get_current_language(),
        user=user,
    )
    html, cache = render_page([build])
    return _html_response(html, cache)

"""
Layout Canvas API Routes

Blueprint for the frontend visual builder:
- POST /frontend-builder: Save layout canvas JSON onto the parent entity
- POST /error-log: Record JavaScript errors reported by the builder

All endpoints are prefixed with /api/v1/layout-canvas when registered with the app.
"""

import logging

from flask import Blueprint, request, jsonify

from canvas_cms.models import db
from canvas_cms.services.frontend_builder import FrontendBuilderService, FrontendBuilderError
from canvas_cms.utils.audit import log_action
from canvas_cms.utils.auth import login_required, get_current_user
from canvas_cms.utils.language import get_current_language
from canvas_cms.utils.permissions import require_role, EDIT_ROLE


logger = logging.getLogger(__name__)

canvas_bp = Blueprint('layout_canvas', __name__)


@canvas_bp.route('/frontend-builder', methods=['POST'])
@login_required
@require_role(EDIT_ROLE)
def save_frontend_builder():
    """
    Save layout canvases from the frontend builder.

    Request Body:
        {
            "canvases": {
                "canvas-12": { layout canvas JSON } (required, one or more)
            },
            "moderationState": "published" (optional)
        }

    Returns:
        200: Saved
            {
                "data": {
                    "moderationStates": [
                        {"state": "draft", "label": "Draft", "selected": true},
                        {"state": "published", "label": "Published"}
                    ]
                }
            }
        400: Invalid payload, unknown canvas, missing translation,
             invalid canvas JSON or no parent entity
            {
                "data": "error message"
            }
        401: Not authenticated
        403: Insufficient permissions
    """
    payload = request.get_json(silent=True)
    user = get_current_user()
    langcode = get_current_language()

    try:
        result = FrontendBuilderService.save(payload, user, langcode)
    except FrontendBuilderError as e:
        logger.info('Frontend builder save rejected: %s', e.message)
        return jsonify({'data': e.message}), e.status_code
    except Exception:
        db.session.rollback()
        logger.exception('Frontend builder save failed')
        return jsonify({'data': 'An error occurred while saving the layout canvas'}), 500

    entity = result['entity']
    log_action(
        action='layout_canvas.save',
        action_category='layouts',
        resource_type=entity.entity_type,
        resource_id=str(entity.id),
        resource_name=entity.title,
        details={
            'canvas_ids': result['canvas_ids'],
            'langcode': langcode,
            'new_revision': result['new_revision'],
            'moderation_state': (payload or {}).get('moderationState'),
        },
    )

    return jsonify({
        'data': {
            'moderationStates': result['moderation_states'],
        }
    }), 200


@canvas_bp.route('/error-log', methods=['POST'])
@login_required
def log_frontend_error():
    """
    Record a JavaScript error reported by the frontend builder.

    Request Body:
        {
            "message": "TypeError: ..." (required to be logged)
        }

    Returns:
        200: Always, with an empty object
    """
    error_data = request.get_json(silent=True)
    if isinstance(error_data, dict) and error_data.get('message'):
        logger.error('Frontend builder error: %s', error_data['message'])

    return jsonify({}), 200

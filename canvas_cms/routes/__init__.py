"""
Canvas CMS Routes Package.

Blueprints:
- canvas_bp: Frontend builder save and error logging (/api/v1/layout-canvas)
- auth_bp: Login, logout and current user (/api/v1/auth)
- pages_bp: Content and layout canvas pages (/)
"""

from canvas_cms.routes.auth import auth_bp
from canvas_cms.routes.canvas import canvas_bp
from canvas_cms.routes.pages import pages_bp

__all__ = [
    'auth_bp',
    'canvas_bp',
    'pages_bp',
]

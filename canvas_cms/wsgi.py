"""
WSGI Entry Point for Canvas CMS.
"""

from canvas_cms.app import create_app

application = create_app()
app = application

if __name__ == "__main__":
    application.run()

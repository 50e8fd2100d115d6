"""
Language negotiation for Canvas CMS requests.

The current language is chosen from, in order:
1. the ``language`` query argument, when it names a configured language
2. the best match of the Accept-Language header
3. the DEFAULT_LANGUAGE setting
"""

from flask import current_app, has_request_context, request


def get_current_language():
    """
    Get the language code of the current request.

    Returns:
        Language code string (e.g. 'en')
    """
    default = current_app.config.get('DEFAULT_LANGUAGE', 'en')
    languages = current_app.config.get('LANGUAGES') or [default]

    if not has_request_context():
        return default

    requested = request.args.get('language')
    if requested in languages:
        return requested

    return request.accept_languages.best_match(languages) or default

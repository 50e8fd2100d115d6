"""
Render array to HTML.

Renders the inline templates produced by LayoutCanvasViewBuilder in a
sandboxed Jinja environment without the Flask globals (config, request,
session, g), and collects the attachments (styles, libraries, frontend
builder settings) and cache metadata of several render arrays into one page.
"""

from flask import render_template_string
from jinja2.sandbox import ImmutableSandboxedEnvironment
from jinja2.utils import htmlsafe_json_dumps
from markupsafe import Markup

from canvas_cms.services.cache_metadata import merge_cache_metadata


# Canvas templates are stored content
canvas_template_env = ImmutableSandboxedEnvironment(autoescape=True)


def render_build(build):
    """
    Render a single render array to markup.

    Args:
        build: Render array from LayoutCanvasViewBuilder.view()

    Returns:
        Markup: attached styles followed by the rendered template
    """
    template = canvas_template_env.from_string(build.get('template') or '')
    markup = template.render(**build.get('context', {}))
    styles = ''.join(build.get('attached', {}).get('styles', []))
    return Markup(styles) + Markup(markup)


def _merge_settings(target, source):
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_settings(target[key], value)
        else:
            target[key] = value
    return target


def merge_attachments(target, source):
    """
    Merge the 'attached' section of a render array into an accumulator.

    Libraries keep their first-seen order without duplicates; settings
    are merged recursively.
    """
    target.setdefault('styles', []).extend(source.get('styles', []))

    libraries = target.setdefault('library', [])
    for library in source.get('library', []):
        if library not in libraries:
            libraries.append(library)

    if source.get('settings'):
        _merge_settings(target.setdefault('settings', {}), source['settings'])
    return target


def render_page(builds, title=''):
    """
    Render several canvas render arrays into one HTML document.

    Args:
        builds: List of render arrays
        title: Page title

    Returns:
        Tuple of (html string, cache metadata dict with 'contexts' and 'tags')
    """
    cache = {'contexts': [], 'tags': []}
    attached = {}
    bodies = []
    for build in builds:
        merge_cache_metadata(cache, build.get('cache', {}))
        merge_attachments(attached, {key: value for key, value in build.get('attached', {}).items() if key != 'styles'})
        bodies.append(render_build(build))

    html = render_template_string(
        PAGE_TEMPLATE,
        title=title,
        bodies=bodies,
        libraries=attached.get('library', []),
        settings_json=htmlsafe_json_dumps(attached['settings']) if attached.get('settings') else None,
    )
    return html, cache


PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
{% for library in libraries %}<link rel="preload" as="script" data-library="{{ library }}">
{% endfor %}</head>
<body>
{% for body in bodies %}<div class="layout-canvas">{{ body }}</div>
{% endfor %}{% if settings_json %}<script type="application/json" data-layout-canvas-settings>{{ settings_json }}</script>
{% endif %}</body>
</html>
"""

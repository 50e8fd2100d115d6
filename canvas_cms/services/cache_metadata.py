"""
Cache metadata lookups used when rendering layout canvases.

- CacheContexts maps the template context names stored on a canvas to
  the cache contexts a rendered canvas varies by.
- TokenEntityMapper maps an entity type id to the token type under which
  the host entity is exposed to canvas templates.
"""

from flask import current_app


class CacheContexts:
    """Template context name to cache context mapping (CACHE_CONTEXT_MAP)."""

    @classmethod
    def get_from_context_name(cls, context_names):
        """
        Resolve template context names to cache contexts.

        Unknown names are ignored; the result is de-duplicated and sorted.

        Args:
            context_names: Iterable of template context names (or None)

        Returns:
            Sorted list of cache context ids
        """
        mapping = current_app.config.get('CACHE_CONTEXT_MAP', {})
        contexts = {mapping[name] for name in (context_names or []) if name in mapping}
        return sorted(contexts)


class TokenEntityMapper:
    """Entity type id to token type mapping (TOKEN_TYPE_MAP)."""

    @classmethod
    def get_token_type_for_entity_type(cls, entity_type_id, fallback=None):
        mapping = current_app.config.get('TOKEN_TYPE_MAP', {})
        if entity_type_id in mapping:
            return mapping[entity_type_id]
        return fallback if fallback is not None else entity_type_id


def merge_cache_metadata(target, source):
    """
    Merge the 'cache' section of one render array into an accumulator.

    Args:
        target: dict with 'contexts' and 'tags' lists, updated in place
        source: render array 'cache' dict

    Returns:
        The updated target
    """
    for key in ('contexts', 'tags'):
        merged = set(target.get(key, [])) | set(source.get(key, []))
        target[key] = sorted(merged)
    return target

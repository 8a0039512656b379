"""
The apply family of functions and a tutorial that walks through them
"""

from .functional import (
    DimensionError,
    ValueTemplateError,
    apply,
    lapply,
    sapply,
    vapply,
    tapply,
    mapply,
    numeric,
    integer,
    logical,
    character,
    vector,
    rep,
)

__all__ = [
    'DimensionError', 'ValueTemplateError',
    'apply', 'lapply', 'sapply', 'vapply', 'tapply', 'mapply',
    'numeric', 'integer', 'logical', 'character', 'vector', 'rep',
]

"""
Relations - scoped queries between model types
"""

from .relation import Relation, snake_case, foreign_key_for
from .has_one import HasOne
from .belongs_to import BelongsTo
from .has_many import HasMany
from .belongs_to_many import BelongsToMany
from .pivot import Pivot, pivot_model

__all__ = [
    "Relation", "HasOne", "BelongsTo", "HasMany", "BelongsToMany",
    "Pivot", "pivot_model", "snake_case", "foreign_key_for"
]

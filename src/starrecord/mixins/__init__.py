"""
Model mixins - access control and caching
"""

from .acl import ACLModel
from .cacheable import Cacheable

__all__ = ["ACLModel", "Cacheable"]

"""Mixins composing the Model class."""

from recordkit.models.mixins.attributes import AttributeMixin
from recordkit.models.mixins.persistence import PersistenceMixin

__all__ = ["AttributeMixin", "PersistenceMixin"]

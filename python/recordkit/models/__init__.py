"""Record models.

Classes:
    Model: Base class for table records. Provides:
        - get(), set(), unset(), has() with change tracking and listeners
        - load(), save(), insert(), update(), delete() coroutines
        - Model.find() and Model.load_schema() at class level

    ModelConfig: Validated form of a model's Meta options.

Functions:
    define_model(): Create a Model subclass from a table name and options.

Example:
    from recordkit import Model

    class User(Model):
        class Meta:
            table_name = "users"

    user = User(email="john@example.com")
    await user.save()
"""

from .base import Model, ModelConfig, define_model

__all__ = [
    "Model",
    "ModelConfig",
    "define_model",
]

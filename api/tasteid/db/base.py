"""Import all models here so metadata.create_all sees every table."""

from tasteid.db.base_class import Base
from tasteid.models import catalog, taste  # noqa: F401

__all__ = ["Base"]

from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(constraint_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class PrimaryKeyUUIDMixin:
    @declared_attr.directive
    def id(cls) -> Mapped[Any]:
        from uuid import uuid4

        from broadcast_ledger.models.types import GUID

        return mapped_column(GUID(), primary_key=True, default=uuid4)

"""Declarative base shared by all ORM models."""

import enum

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

_NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for typed declarative models."""

    metadata = MetaData(naming_convention=_NAMING_CONVENTION)


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum ``value``s rather than member names."""
    return [item.value for item in enum_cls]

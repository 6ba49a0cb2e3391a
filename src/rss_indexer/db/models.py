"""SQLAlchemy table definitions for sites and articles."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Site(Base):
    __tablename__ = "sites"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    url: Mapped[str] = mapped_column(Text)
    title: Mapped[str] = mapped_column(Text)
    link: Mapped[str] = mapped_column(Text)
    description: Mapped[str] = mapped_column(Text)


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text)
    link: Mapped[str] = mapped_column(Text)
    description: Mapped[str] = mapped_column(Text)
    pubdate: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    site_id: Mapped[str] = mapped_column(Text, ForeignKey("sites.id"))


TABLES = {
    "sites": Site,
    "articles": Article,
}

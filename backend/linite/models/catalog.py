"""
Linite Backend — Package Catalog ORM Models
============================================

What:  SQLAlchemy models for the tables the command engine reads.
How:   Declarative 2.0 mappings on the shared `Base`; Alembic reads them for
       migrations. Ids are opaque strings so catalogs can be imported from any
       upstream store.

Tables:
    distros ──< distro_sources >── sources
    apps ──< packages >── sources

Command template columns (setup_cmd, cleanup_cmd, package_setup_cmd,
package_cleanup_cmd) hold either a plain command string or JSON text:
    "flatpak remote-add --if-not-exists flathub https://..."
    {"debian": "sudo add-apt-repository -y ppa:x/y", "*": "echo skip"}
They are parsed once by the catalog loader, never per resolution.
"""

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linite.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Source(Base):
    """A package manager or distribution channel (apt, flatpak, snap, nix, script...)."""

    __tablename__ = "sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    install_cmd: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Batch install prefix, e.g. 'apt install -y'",
    )
    remove_cmd: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Batch remove prefix; NULL when the source cannot uninstall",
    )
    require_sudo: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True,
        default=False,
        server_default=text("false"),
    )
    setup_cmd: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Run once before installing from this source (string or family JSON map)",
    )
    cleanup_cmd: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Reverse of setup_cmd, run after removal (string or family JSON map)",
    )
    supports_dependency_cleanup: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True,
        default=False,
        server_default=text("false"),
    )
    dependency_cleanup_cmd: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Orphan cleanup, e.g. 'apt autoremove -y'",
    )

    def __repr__(self) -> str:
        return f"<Source(slug='{self.slug}')>"


class Distro(Base):
    """A target operating system with an ordered set of package sources."""

    __tablename__ = "distros"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    family: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Coarse lineage used for family-specific commands: debian, rhel, arch, suse, independent",
    )

    distro_sources: Mapped[List["DistroSource"]] = relationship(
        back_populates="distro",
        order_by="DistroSource.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_distros_family", "family"),
    )

    def __repr__(self) -> str:
        return f"<Distro(slug='{self.slug}', family='{self.family}')>"


class DistroSource(Base):
    """Attaches a source to a distro with a ranking priority and default flag."""

    __tablename__ = "distro_sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    distro_id: Mapped[str] = mapped_column(
        ForeignKey("distros.id", ondelete="CASCADE"), nullable=False
    )
    source_id: Mapped[str] = mapped_column(
        ForeignKey("sources.id", ondelete="CASCADE"), nullable=False
    )
    priority: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, default=0, server_default=text("0")
    )
    is_default: Mapped[Optional[bool]] = mapped_column(
        Boolean, nullable=True, default=False, server_default=text("false")
    )

    distro: Mapped[Distro] = relationship(back_populates="distro_sources")
    source: Mapped[Source] = relationship()

    __table_args__ = (
        Index("idx_distro_sources_distro_source", "distro_id", "source_id"),
    )


class App(Base):
    """A user-facing application that may be packaged by several sources."""

    __tablename__ = "apps"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)

    packages: Mapped[List["Package"]] = relationship(
        back_populates="app",
        order_by="Package.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<App(slug='{self.slug}')>"


class Package(Base):
    """One app as published by one source, under a source-specific identifier."""

    __tablename__ = "packages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    app_id: Mapped[str] = mapped_column(
        ForeignKey("apps.id", ondelete="CASCADE"), nullable=False
    )
    source_id: Mapped[str] = mapped_column(ForeignKey("sources.id"), nullable=False)
    identifier: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Package-manager-specific name, e.g. org.mozilla.firefox",
    )
    version: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    maintainer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_available: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    # "metadata" is reserved on declarative classes, hence the attribute name
    package_metadata: Mapped[Optional[str]] = mapped_column(
        "metadata",
        Text,
        nullable=True,
        comment="JSON; scriptUrl.{linux,windows} drives script-based sources",
    )
    package_setup_cmd: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    package_cleanup_cmd: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    uninstall_metadata: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="JSON: {linux?, windows?, manualInstructions?}",
    )

    app: Mapped[App] = relationship(back_populates="packages")
    source: Mapped[Source] = relationship()

    __table_args__ = (
        Index("idx_packages_app_source", "app_id", "source_id"),
        Index("idx_packages_is_available", "is_available"),
    )

    def __repr__(self) -> str:
        return f"<Package(identifier='{self.identifier}', app_id='{self.app_id}')>"

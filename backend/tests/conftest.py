"""
Linite Backend — Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment overrides are applied before anything from `linite` is
       imported, so the settings singleton never sees a real database.

Fixture Hierarchy:
    Snapshot builders (no database):
    ├── sources:         SourceConfig per slug (apt, flatpak, snap, nix, script, appimage)
    ├── ubuntu / nixos / windows: DistroCatalog snapshots
    ├── make_package / make_app / make_selection: factories
    └── mock_db_session: AsyncMock session

    Database (in-memory aiosqlite, fresh per test):
    ├── db_engine:       engine with all catalog tables created
    ├── db_session:      AsyncSession on a seeded catalog
    └── test_client:     httpx AsyncClient with get_db_session overridden

Seeded catalog:
    ubuntu (debian):  apt 10 default, flatpak 5, snap 3, script 1, appimage 0
    nixos:            nix 10 default, flatpak 5
    windows:          script 10 default
    emptyos:          no sources
"""

import json
import os

# Before any linite import: settings are read once at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CATALOG_RETRY_ATTEMPTS"] = "3"
os.environ["CATALOG_RETRY_MIN_WAIT"] = "0"
os.environ["CATALOG_RETRY_MAX_WAIT"] = "0"
os.environ["CATALOG_RETRY_JITTER"] = "0"

from typing import AsyncGenerator, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from linite.database import Base, get_db_session  # noqa: E402
from linite.models.catalog import App, Distro, DistroSource, Package, Source  # noqa: E402
from linite.schemas.catalog import (  # noqa: E402
    CatalogApp,
    CatalogPackage,
    DistroCatalog,
    DistroSourceConfig,
    FamilyCommand,
    ResolvedSelection,
    SourceConfig,
    UniversalCommand,
)

FLATHUB_SETUP = (
    "flatpak remote-add --if-not-exists flathub https://dl.flathub.org/repo/flathub.flatpakrepo"
)
SPOTIFY_PPA = "add-apt-repository -y ppa:spotify/stable"
SPOTIFY_PPA_REMOVE = "add-apt-repository -r -y ppa:spotify/stable"


# ══════════════════════════════════════════════════════════════════════════
# Snapshot Builders
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sources():
    return {
        "apt": SourceConfig(
            id="src-apt",
            name="APT",
            slug="apt",
            install_cmd="apt install -y",
            remove_cmd="apt remove -y",
            require_sudo=True,
            supports_dependency_cleanup=True,
            dependency_cleanup_cmd="apt autoremove -y",
        ),
        "flatpak": SourceConfig(
            id="src-flatpak",
            name="Flatpak",
            slug="flatpak",
            install_cmd="flatpak install -y flathub",
            remove_cmd="flatpak uninstall -y",
            setup_cmd=UniversalCommand(command=FLATHUB_SETUP),
            cleanup_cmd=UniversalCommand(command="flatpak remote-delete flathub"),
            supports_dependency_cleanup=True,
            dependency_cleanup_cmd="flatpak uninstall --unused -y",
        ),
        "snap": SourceConfig(
            id="src-snap",
            name="Snap",
            slug="snap",
            install_cmd="snap install",
            remove_cmd="snap remove",
            require_sudo=True,
            setup_cmd=FamilyCommand(
                commands={"rhel": "sudo dnf install -y snapd", "arch": "sudo pacman -S --noconfirm snapd"}
            ),
        ),
        "nix": SourceConfig(
            id="src-nix",
            name="Nix",
            slug="nix",
            install_cmd="nix-shell -p",
        ),
        "script": SourceConfig(
            id="src-script",
            name="Script",
            slug="script",
            install_cmd="curl -fsSL",
        ),
        "appimage": SourceConfig(
            id="src-appimage",
            name="AppImage",
            slug="appimage",
            install_cmd="appimage-install",
        ),
    }


def _distro(distro_id, name, family, *entries) -> DistroCatalog:
    return DistroCatalog(
        id=distro_id,
        name=name,
        slug=distro_id,
        family=family,
        sources=[
            DistroSourceConfig(source=source, priority=priority, is_default=is_default)
            for source, priority, is_default in entries
        ],
    )


@pytest.fixture
def ubuntu(sources):
    return _distro(
        "ubuntu",
        "Ubuntu",
        "debian",
        (sources["apt"], 10, True),
        (sources["flatpak"], 5, False),
        (sources["snap"], 3, False),
        (sources["script"], 1, False),
        (sources["appimage"], 0, False),
    )


@pytest.fixture
def nixos(sources):
    return _distro(
        "nixos",
        "NixOS",
        "independent",
        (sources["nix"], 10, True),
        (sources["flatpak"], 5, False),
    )


@pytest.fixture
def windows(sources):
    return _distro("windows", "Windows", "windows", (sources["script"], 10, True))


@pytest.fixture
def make_package():
    def _make(source: SourceConfig, identifier: str, app_id: str = "app", **kwargs) -> CatalogPackage:
        kwargs.setdefault("id", f"pkg-{app_id}-{source.slug}")
        return CatalogPackage(app_id=app_id, source=source, identifier=identifier, **kwargs)

    return _make


@pytest.fixture
def make_app():
    def _make(app_id: str, *packages: CatalogPackage, display_name: Optional[str] = None) -> CatalogApp:
        return CatalogApp(
            id=app_id,
            display_name=display_name or app_id.title(),
            packages=list(packages),
        )

    return _make


@pytest.fixture
def make_selection(make_package):
    def _make(
        app_id: str,
        source: SourceConfig,
        identifier: Optional[str] = None,
        distro_id: str = "ubuntu",
        priority: int = 0,
        **package_kwargs,
    ) -> ResolvedSelection:
        package = make_package(source, identifier or app_id, app_id=app_id, **package_kwargs)
        return ResolvedSelection(
            app_id=app_id,
            app_name=app_id.title(),
            distro_id=distro_id,
            package=package,
            calculated_priority=priority,
        )

    return _make


@pytest.fixture
def mock_db_session():
    """AsyncMock standing in for an AsyncSession."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

def _seed_rows():
    apt = Source(
        id="src-apt", name="APT", slug="apt",
        install_cmd="apt install -y", remove_cmd="apt remove -y", require_sudo=True,
        supports_dependency_cleanup=True, dependency_cleanup_cmd="apt autoremove -y",
    )
    flatpak = Source(
        id="src-flatpak", name="Flatpak", slug="flatpak",
        install_cmd="flatpak install -y flathub", remove_cmd="flatpak uninstall -y",
        require_sudo=False,
        setup_cmd=FLATHUB_SETUP,
        cleanup_cmd='"flatpak remote-delete flathub"',
        supports_dependency_cleanup=True, dependency_cleanup_cmd="flatpak uninstall --unused -y",
    )
    snap = Source(
        id="src-snap", name="Snap", slug="snap",
        install_cmd="snap install", remove_cmd="snap remove", require_sudo=True,
        setup_cmd=json.dumps({"rhel": "sudo dnf install -y snapd", "*": None}),
    )
    nix = Source(id="src-nix", name="Nix", slug="nix", install_cmd="nix-shell -p")
    script = Source(id="src-script", name="Script", slug="script", install_cmd="curl -fsSL")
    appimage = Source(
        id="src-appimage", name="AppImage", slug="appimage",
        install_cmd="appimage-install", setup_cmd="{not valid json",
    )

    ubuntu = Distro(id="distro-ubuntu", name="Ubuntu", slug="ubuntu", family="debian")
    ubuntu.distro_sources = [
        DistroSource(id="ds-ubuntu-1", source=apt, priority=10, is_default=True),
        DistroSource(id="ds-ubuntu-2", source=flatpak, priority=5, is_default=False),
        DistroSource(id="ds-ubuntu-3", source=snap, priority=3, is_default=False),
        DistroSource(id="ds-ubuntu-4", source=script, priority=1, is_default=False),
        DistroSource(id="ds-ubuntu-5", source=appimage, priority=0, is_default=False),
    ]
    nixos = Distro(id="distro-nixos", name="NixOS", slug="nixos", family="independent")
    nixos.distro_sources = [
        DistroSource(id="ds-nixos-1", source=nix, priority=10, is_default=True),
        DistroSource(id="ds-nixos-2", source=flatpak, priority=5, is_default=False),
    ]
    windows = Distro(id="distro-windows", name="Windows", slug="windows", family="windows")
    windows.distro_sources = [
        DistroSource(id="ds-windows-1", source=script, priority=10, is_default=True),
    ]
    emptyos = Distro(id="distro-emptyos", name="EmptyOS", slug="emptyos", family="independent")

    firefox = App(id="firefox", slug="firefox", display_name="Firefox")
    firefox.packages = [
        Package(id="pkg-firefox-apt", source=apt, identifier="firefox"),
        Package(id="pkg-firefox-flatpak", source=flatpak, identifier="org.mozilla.firefox"),
        Package(id="pkg-firefox-snap", source=snap, identifier="firefox"),
        Package(id="pkg-firefox-nix", source=nix, identifier="firefox"),
    ]
    vlc = App(id="vlc", slug="vlc", display_name="VLC")
    vlc.packages = [
        Package(id="pkg-vlc-apt", source=apt, identifier="vlc"),
        Package(id="pkg-vlc-flatpak", source=flatpak, identifier="org.videolan.VLC"),
        Package(id="pkg-vlc-nix", source=nix, identifier="vlc"),
    ]
    spotify = App(id="spotify", slug="spotify", display_name="Spotify")
    spotify.packages = [
        Package(
            id="pkg-spotify-apt", source=apt, identifier="spotify-client",
            package_setup_cmd=json.dumps({"debian": SPOTIFY_PPA}),
            package_cleanup_cmd=json.dumps({"debian": SPOTIFY_PPA_REMOVE}),
        ),
        Package(id="pkg-spotify-flatpak", source=flatpak, identifier="com.spotify.Client"),
    ]
    ohmyzsh = App(id="ohmyzsh", slug="ohmyzsh", display_name="Oh My Zsh")
    ohmyzsh.packages = [
        Package(
            id="pkg-ohmyzsh-script", source=script, identifier="ohmyzsh",
            package_metadata=json.dumps({"scriptUrl": {"linux": "https://install.ohmyz.sh"}}),
            uninstall_metadata=json.dumps(
                {"manualInstructions": "Run uninstall_oh_my_zsh from a zsh shell"}
            ),
        ),
    ]
    rustup = App(id="rustup", slug="rustup", display_name="Rustup")
    rustup.packages = [
        Package(
            id="pkg-rustup-script", source=script, identifier="rustup",
            package_metadata=json.dumps({
                "scriptUrl": {
                    "linux": "https://sh.rustup.rs",
                    "windows": "https://win.rustup.rs/x86_64/rustup-init.exe",
                }
            }),
            uninstall_metadata=json.dumps({
                "linux": "rustup self uninstall -y",
                "windows": "rustup self uninstall -y",
            }),
        ),
    ]
    obsidian = App(id="obsidian", slug="obsidian", display_name="Obsidian")
    obsidian.packages = [
        Package(id="pkg-obsidian-appimage", source=appimage, identifier="obsidian"),
    ]
    retired = App(id="retired", slug="retired", display_name="Retired")
    retired.packages = [
        Package(id="pkg-retired-apt", source=apt, identifier="retired", is_available=False),
    ]

    return [
        apt, flatpak, snap, nix, script, appimage,
        ubuntu, nixos, windows, emptyos,
        firefox, vlc, spotify, ohmyzsh, rustup, obsidian, retired,
    ]


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with the catalog seeded.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(_seed_rows())
        await session.commit()

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app (fresh rate-limit state).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from linite.main import create_app

    app = create_app()

    async def _override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


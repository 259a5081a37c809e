"""
Linite Backend — API Route Tests
=================================

What we test:
    ✅ POST /api/generate camelCase contract and status codes
    ✅ Error mapping: 404 unknown distro, 422 no sources / bad body
    ✅ POST /api/uninstall and the script download endpoints
    ✅ GET /health
    ✅ X-Request-ID handling and the rate limiter
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from linite.middleware.rate_limit import RateLimitMiddleware
from linite.middleware.request_id import RequestIDMiddleware


class TestGenerateEndpoint:

    @pytest.mark.asyncio
    async def test_generate_returns_camel_case(self, test_client):
        response = await test_client.post(
            "/api/generate",
            json={"distroSlug": "ubuntu", "appIds": ["firefox"], "sourcePreference": "flatpak"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["commands"]["bySource"] == [
            {"sourceSlug": "flatpak", "command": "flatpak install -y flathub org.mozilla.firefox"}
        ]
        assert body["breakdown"][0]["calculatedPriority"] == 105
        assert body["breakdown"][0]["packageIdentifier"] == "org.mozilla.firefox"
        assert body["errors"] == []

    @pytest.mark.asyncio
    async def test_per_app_errors_do_not_fail_request(self, test_client):
        response = await test_client.post(
            "/api/generate", json={"distroSlug": "ubuntu", "appIds": ["firefox", "ghost"]}
        )

        assert response.status_code == 200
        assert response.json()["errors"] == [
            {"appId": "ghost", "reason": "AppNotFound", "message": "App 'ghost' was not found"}
        ]

    @pytest.mark.asyncio
    async def test_unknown_distro_is_404(self, test_client):
        response = await test_client.post(
            "/api/generate", json={"distroSlug": "not-a-distro", "appIds": ["firefox"]}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_all_apps_unknown_is_404(self, test_client):
        response = await test_client.post(
            "/api/generate", json={"distroSlug": "ubuntu", "appIds": ["ghost"]}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_distro_without_sources_is_422(self, test_client):
        response = await test_client.post(
            "/api/generate", json={"distroSlug": "emptyos", "appIds": ["firefox"]}
        )
        assert response.status_code == 422
        assert response.json()["error"] == "configuration_error"

    @pytest.mark.asyncio
    async def test_schema_violations_are_422(self, test_client):
        response = await test_client.post("/api/generate", json={"appIds": ["firefox"]})
        assert response.status_code == 422
        assert "detail" in response.json()

    @pytest.mark.asyncio
    async def test_too_many_apps_is_422(self, test_client):
        response = await test_client.post(
            "/api/generate",
            json={"distroSlug": "ubuntu", "appIds": [f"app-{i}" for i in range(101)]},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_nix_method_is_422(self, test_client):
        response = await test_client.post(
            "/api/generate",
            json={"distroSlug": "nixos", "appIds": ["vlc"], "nixInstallMethod": "nix-magic"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_chain_commands(self, test_client):
        response = await test_client.post(
            "/api/generate",
            json={"distroSlug": "ubuntu", "appIds": ["spotify"], "chainCommands": True},
        )
        assert " && sudo apt install -y spotify-client" in response.json()["commands"]["final"]


class TestUninstallEndpoint:

    @pytest.mark.asyncio
    async def test_uninstall_contract(self, test_client):
        response = await test_client.post(
            "/api/uninstall",
            json={
                "distroSlug": "ubuntu",
                "appIds": ["vlc", "ohmyzsh"],
                "includeDependencyCleanup": True,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["commands"]["bySource"][0]["command"] == "sudo apt remove -y vlc"
        assert body["commands"]["dependencyCleanup"] == ["sudo apt autoremove -y"]
        assert body["manualSteps"][0]["appId"] == "ohmyzsh"

    @pytest.mark.asyncio
    async def test_nix_shell_uninstall(self, test_client):
        response = await test_client.post(
            "/api/uninstall",
            json={"distroSlug": "nixos", "appIds": ["vlc"], "nixInstallMethod": "nix-shell"},
        )
        body = response.json()
        assert body["commands"]["final"] == ""
        assert body["warnings"] == ["nix-shell environments are ephemeral - no uninstall needed"]


class TestScriptEndpoints:

    @pytest.mark.asyncio
    async def test_install_script_download(self, test_client):
        response = await test_client.post(
            "/api/generate/script", json={"distroSlug": "nixos", "appIds": ["vlc"]}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'filename="linite-install.sh"' in response.headers["content-disposition"]
        assert response.text.startswith("#!/run/current-system/sw/bin/bash")
        assert "nix-shell -p vlc" in response.text

    @pytest.mark.asyncio
    async def test_uninstall_script_for_windows(self, test_client):
        response = await test_client.post(
            "/api/uninstall/script", json={"distroSlug": "windows", "appIds": ["rustup"]}
        )

        assert response.status_code == 200
        assert 'filename="linite-uninstall.ps1"' in response.headers["content-disposition"]
        assert "rustup self uninstall -y" in response.text

    @pytest.mark.asyncio
    async def test_script_errors_use_json_handlers(self, test_client):
        response = await test_client.post(
            "/api/generate/script", json={"distroSlug": "not-a-distro", "appIds": ["vlc"]}
        )
        assert response.status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_when_missing(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_id_is_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_unsafe_client_id_is_replaced(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "bad id; injected"})
        assert response.headers["X-Request-ID"] != "bad id; injected"


class TestRateLimit:

    def _app(self):
        app = FastAPI()

        @app.post("/api/generate")
        async def generate():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        app.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)
        app.add_middleware(RequestIDMiddleware)
        return app

    @pytest.mark.asyncio
    async def test_limit_applies_to_generation(self):
        transport = ASGITransport(app=self._app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.post("/api/generate")).status_code for _ in range(3)]
            limited = await client.post("/api/generate")

        assert statuses == [200, 200, 429]
        assert int(limited.headers["Retry-After"]) > 0
        assert limited.json()["error"] == "rate_limit_exceeded"

    @pytest.mark.asyncio
    async def test_health_is_never_limited(self):
        transport = ASGITransport(app=self._app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(5)]

        assert statuses == [200] * 5

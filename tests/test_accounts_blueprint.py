"""Tests for account usage, admin and asset browsing endpoints."""

ADMIN = {"X-Admin-Token": "test-admin-token"}


class TestCurrentUser:
    """Tests for GET /api/user."""

    def test_usage_for_known_account(self, client, ledger, account):
        ledger.consume(account)

        response = client.get("/api/user", headers={"X-Account-Id": account})

        assert response.status_code == 200
        assert response.get_json() == {
            "accountId": account,
            "usageCount": 1,
            "maxUsage": 3,
            "isPermanent": False,
            "remaining": 2,
        }

    def test_unlimited_account_reports_minus_one(self, client, ledger, account):
        ledger.set_unlimited(account, True)

        response = client.get("/api/user", headers={"X-Account-Id": account})

        assert response.get_json()["remaining"] == -1

    def test_anonymous(self, client):
        response = client.get("/api/user")

        assert response.status_code == 401

    def test_unknown_account(self, client):
        response = client.get("/api/user", headers={"X-Account-Id": "ghost"})

        assert response.status_code == 404


class TestAdminAccounts:
    """Tests for the admin account endpoints."""

    def test_requires_token(self, client):
        assert client.get("/api/admin/accounts").status_code == 403
        assert (
            client.get("/api/admin/accounts", headers={"X-Admin-Token": "wrong"}).status_code
            == 403
        )

    def test_disabled_without_configured_token(self, app, client):
        app.config["ADMIN_TOKEN"] = None

        response = client.get("/api/admin/accounts", headers=ADMIN)

        assert response.status_code == 403
        assert response.get_json()["message"] == "Admin API is disabled"

    def test_create_and_list(self, client):
        created = client.post("/api/admin/accounts", json={"accountId": "new-1"}, headers=ADMIN)

        assert created.status_code == 201
        assert created.get_json()["maxUsage"] == 3

        listing = client.get("/api/admin/accounts", headers=ADMIN).get_json()
        assert listing["total"] == 1
        assert listing["accounts"][0]["id"] == "new-1"

    def test_create_requires_account_id(self, client):
        response = client.post("/api/admin/accounts", json={}, headers=ADMIN)

        assert response.status_code == 400

    def test_toggle_unlimited(self, client, account):
        response = client.patch(
            f"/api/admin/accounts/{account}", json={"unlimited": True}, headers=ADMIN
        )

        assert response.status_code == 200
        assert response.get_json()["isPermanent"] is True
        assert response.get_json()["remaining"] == -1

    def test_unlimited_must_be_bool(self, client, account):
        response = client.patch(
            f"/api/admin/accounts/{account}", json={"unlimited": "yes"}, headers=ADMIN
        )

        assert response.status_code == 400

    def test_reset_and_increase(self, client, ledger, account):
        for _ in range(3):
            ledger.consume(account)

        response = client.patch(
            f"/api/admin/accounts/{account}",
            json={"resetUsage": True, "increaseUsage": 2},
            headers=ADMIN,
        )

        payload = response.get_json()
        assert payload["usageCount"] == 0
        assert payload["maxUsage"] == 5
        assert payload["remaining"] == 5

    def test_invalid_increase(self, client, account):
        response = client.patch(
            f"/api/admin/accounts/{account}", json={"increaseUsage": -4}, headers=ADMIN
        )

        assert response.status_code == 400

    def test_unknown_account(self, client):
        response = client.patch(
            "/api/admin/accounts/ghost", json={"resetUsage": True}, headers=ADMIN
        )

        assert response.status_code == 404


class TestAssets:
    """Tests for browsing stored generations."""

    def _generate(self, client, account, description, kind="graphics"):
        return client.post(
            "/api/generate",
            json={"description": description, "contentKind": kind},
            headers={"X-Account-Id": account},
        ).get_json()

    def test_list_own_assets_without_code(self, client, ledger, account, mock_backend):
        ledger.set_unlimited(account, True)
        self._generate(client, account, "one")
        self._generate(client, account, "two")

        response = client.get("/api/assets", headers={"X-Account-Id": account})

        payload = response.get_json()
        assert payload["total"] == 2
        assert {a["description"] for a in payload["assets"]} == {"one", "two"}
        assert all("code" not in a for a in payload["assets"])

    def test_filter_by_type(self, client, ledger, account, mock_backend):
        ledger.set_unlimited(account, True)
        self._generate(client, account, "svg one")
        mock_backend.response_content = "<p>page</p>"
        self._generate(client, account, "page one", kind="document")

        response = client.get(
            "/api/assets?type=document", headers={"X-Account-Id": account}
        )

        payload = response.get_json()
        assert payload["total"] == 1
        assert payload["assets"][0]["contentKind"] == "document"

    def test_invalid_type_filter(self, client):
        response = client.get("/api/assets?type=pdf")

        assert response.status_code == 400

    def test_invalid_page(self, client):
        response = client.get("/api/assets?page=zero")

        assert response.status_code == 400

    def test_get_asset_with_code(self, client, account, mock_backend):
        created = self._generate(client, account, "a circle")

        response = client.get(f"/api/assets/{created['assetId']}")

        assert response.status_code == 200
        asset = response.get_json()["asset"]
        assert asset["code"] == created["markup"]
        assert asset["description"] == "a circle"

    def test_missing_asset(self, client):
        assert client.get("/api/assets/nope").status_code == 404

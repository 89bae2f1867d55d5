import dataclasses
import json
import unittest
from unittest.mock import patch

import _env  # noqa: F401

import httpx

from swipehire.core.config import settings
from swipehire.schemas.portfolio import PortfolioCreate, PortfolioFilters, PortfolioUpdate
from swipehire.services import portfolio_service
from swipehire.services.portfolio_service import PortfolioBackendError


class PortfolioProxyTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.requests: list[httpx.Request] = []
        self.responder = lambda request: httpx.Response(200, json={"success": True, "data": []})

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self.responder(request)

        transport_patch = patch.object(portfolio_service, "_transport", httpx.MockTransport(handler))
        settings_patch = patch.object(
            portfolio_service,
            "settings",
            dataclasses.replace(settings, custom_backend_url="http://backend.test/", demo_user_id="demo-user-id"),
        )
        transport_patch.start()
        settings_patch.start()
        self.addCleanup(transport_patch.stop)
        self.addCleanup(settings_patch.stop)

    def test_resolve_user_falls_back_to_demo(self):
        self.assertEqual(portfolio_service.resolve_user(None), "demo-user-id")
        self.assertEqual(portfolio_service.resolve_user("  "), "demo-user-id")
        self.assertEqual(portfolio_service.resolve_user("token-123"), "token-123")

    async def test_list_forwards_filters_and_auth(self):
        filters = PortfolioFilters(search="design", tags="ux,ui", sort_by="views", page=2)
        result = await portfolio_service.list_portfolios("token-123", filters)

        self.assertEqual(result, {"success": True, "data": []})
        request = self.requests[0]
        self.assertEqual(request.url.path, "/api/portfolios/my")
        self.assertEqual(request.url.params["sortBy"], "views")
        self.assertEqual(request.url.params["page"], "2")
        self.assertEqual(request.url.params["search"], "design")
        self.assertEqual(request.url.params["includePrivate"], "true")
        self.assertEqual(request.headers["Authorization"], "Bearer token-123")

    async def test_demo_user_sends_no_auth_header(self):
        await portfolio_service.list_portfolios("demo-user-id", PortfolioFilters())
        self.assertNotIn("Authorization", self.requests[0].headers)

    async def test_create_sends_camel_case_body_with_owner(self):
        await portfolio_service.create_portfolio("token-123", PortfolioCreate(title="Work", is_published=True))
        body = json.loads(self.requests[0].content)
        self.assertEqual(body["title"], "Work")
        self.assertTrue(body["isPublished"])
        self.assertEqual(body["userId"], "token-123")
        self.assertEqual(self.requests[0].method, "POST")

    async def test_update_only_sends_changed_fields(self):
        await portfolio_service.update_portfolio("p1", "token-123", PortfolioUpdate(title="Renamed"))
        self.assertEqual(json.loads(self.requests[0].content), {"title": "Renamed"})
        self.assertEqual(self.requests[0].url.path, "/api/portfolios/p1")

    async def test_get_with_view_increment(self):
        await portfolio_service.get_portfolio("p1", None, increment_views=True)
        self.assertEqual(self.requests[0].url.params["incrementViews"], "true")

    async def test_backend_status_and_message_pass_through(self):
        self.responder = lambda request: httpx.Response(404, json={"success": False, "message": "Portfolio missing"})
        with self.assertRaises(PortfolioBackendError) as ctx:
            await portfolio_service.delete_portfolio("p1", "token-123")
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.message, "Portfolio missing")

    async def test_backend_error_without_message_uses_default(self):
        self.responder = lambda request: httpx.Response(500, text="oops")
        with self.assertRaises(PortfolioBackendError) as ctx:
            await portfolio_service.create_portfolio("token-123", PortfolioCreate(title="Work"))
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.message, "Failed to create portfolio")

    async def test_empty_body_reports_success(self):
        self.responder = lambda request: httpx.Response(204)
        self.assertEqual(await portfolio_service.delete_portfolio("p1", "token-123"), {"success": True})

    async def test_unreachable_backend(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        self.responder = refuse
        with self.assertRaises(PortfolioBackendError) as ctx:
            await portfolio_service.list_portfolios("token-123", PortfolioFilters())
        self.assertEqual(ctx.exception.status_code, 502)


class PortfolioConfigurationTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_backend_url(self):
        with patch.object(portfolio_service, "settings", dataclasses.replace(settings, custom_backend_url=None)):
            with self.assertRaises(PortfolioBackendError) as ctx:
                await portfolio_service.list_portfolios("token-123", PortfolioFilters())
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.message, "Backend URL not configured")


if __name__ == "__main__":
    unittest.main()

"""
Testes para o sistema de logging estruturado.
"""

import json
import logging
import sys
from unittest.mock import Mock, patch

import pytest
from django.http import HttpResponse
from django.test import RequestFactory

from beautyhq_backend.logging_utils import (
    DevelopmentFormatter,
    JSONFormatter,
    RequestContextFilter,
    clear_logging_context,
    get_request_id,
    setup_logging_context,
)
from beautyhq_backend.middleware import RequestLoggingMiddleware
from users.identity import TenantPrincipal


def _record(msg="Test message", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="core",
        level=level,
        pathname="/app/core/views.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
        func="post",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def setup_method(self):
        self.formatter = JSONFormatter()

    def test_basic_fields(self):
        data = json.loads(self.formatter.format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "core"
        assert data["message"] == "Test message"
        assert data["function"] == "post"
        assert data["line"] == 42
        assert data["timestamp"].endswith("Z")

    def test_context_fields_are_top_level(self):
        record = _record(
            request_id="req-123",
            user_id="7",
            business_id=3,
            endpoint="/api/appointments/recurring/",
            status_code=201,
        )

        data = json.loads(self.formatter.format(record))

        assert data["request_id"] == "req-123"
        assert data["user_id"] == "7"
        assert data["business_id"] == 3
        assert data["endpoint"] == "/api/appointments/recurring/"
        assert data["status_code"] == 201
        assert "extra" not in data

    def test_other_fields_go_to_extra(self):
        data = json.loads(
            self.formatter.format(_record(frequency="weekly", series_size=4))
        )

        assert data["extra"] == {"frequency": "weekly", "series_size": 4}

    def test_exception_info(self):
        try:
            raise ValueError("Regra inválida")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(self.formatter.format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "Regra inválida"
        assert "Traceback" in data["exception"]["traceback"]

    def test_non_ascii_preserved(self):
        output = self.formatter.format(_record("Localização padrão"))

        assert "Localização padrão" in output


class TestDevelopmentFormatter:
    def test_readable_output_with_context(self):
        formatter = DevelopmentFormatter()
        record = _record(
            request_id="abcdef123456", user_id="7", business_id=3, endpoint="/api/"
        )

        output = formatter.format(record)

        assert "Test message" in output
        assert "req_id=abcdef12" in output
        assert "user=7" in output
        assert "business=3" in output
        assert "(views:42)" in output

    def test_level_colors(self):
        formatter = DevelopmentFormatter()

        output = formatter.format(_record(level=logging.ERROR))

        assert DevelopmentFormatter.COLORS["ERROR"] in output
        assert DevelopmentFormatter.COLORS["RESET"] in output


@pytest.mark.django_db
class TestRequestContextFilter:
    def setup_method(self):
        self.factory = RequestFactory()
        self.filter = RequestContextFilter()

    def teardown_method(self):
        clear_logging_context()

    def test_without_request_context(self):
        clear_logging_context()
        record = _record()

        assert self.filter.filter(record) is True
        assert not hasattr(record, "request_id")

    def test_adds_request_context(self, owner, business):
        request = self.factory.get("/api/clients/")
        request.request_id = "req-123"
        request.user = owner
        request.principal = TenantPrincipal(
            user_id=owner.id, role="OWNER", business_id=business.id, is_platform_admin=False
        )
        setup_logging_context(request)
        record = _record()

        assert self.filter.filter(record) is True
        assert record.request_id == "req-123"
        assert record.user_id == str(owner.id)
        assert record.business_id == business.id
        assert record.endpoint == "/api/clients/"
        assert record.method == "GET"

    def test_does_not_override_explicit_fields(self):
        request = self.factory.get("/api/clients/")
        setup_logging_context(request)
        record = _record(request_id="explicit", endpoint="/outro/")

        self.filter.filter(record)

        assert record.request_id == "explicit"
        assert record.endpoint == "/outro/"


@pytest.mark.django_db
class TestRequestLoggingMiddleware:
    def setup_method(self):
        self.factory = RequestFactory()
        self.middleware = RequestLoggingMiddleware(Mock())

    def teardown_method(self):
        clear_logging_context()

    def test_process_request_adds_request_id(self):
        request = self.factory.get("/api/clients/")

        self.middleware.process_request(request)

        assert request.request_id
        assert hasattr(request, "start_time")

    def test_process_request_uses_existing_request_id(self):
        request = self.factory.get("/api/clients/", HTTP_X_REQUEST_ID="existing-123")

        self.middleware.process_request(request)

        assert request.request_id == "existing-123"

    def test_process_response_adds_header(self):
        request = self.factory.get("/api/clients/")
        request.request_id = "test-123"
        request.start_time = 1234567890.0

        with patch("time.time", return_value=1234567890.1):
            response = self.middleware.process_response(request, HttpResponse(b"OK"))

        assert response["X-Request-ID"] == "test-123"

    @patch("beautyhq_backend.middleware.logger")
    def test_logging_request_start(self, mock_logger):
        request = self.factory.get("/api/clients/")

        self.middleware.process_request(request)

        mock_logger.info.assert_called_once()
        args, kwargs = mock_logger.info.call_args
        assert args[0] == "Request started"
        assert kwargs["extra"]["method"] == "GET"
        assert kwargs["extra"]["endpoint"] == "/api/clients/"

    @patch("beautyhq_backend.middleware.logger")
    def test_logging_request_completion(self, mock_logger, owner, business):
        request = self.factory.get("/api/clients/")
        request.request_id = "test-123"
        request.start_time = 1234567890.0
        request.user = owner
        request.principal = TenantPrincipal(
            user_id=owner.id, role="OWNER", business_id=business.id, is_platform_admin=False
        )

        with patch("time.time", return_value=1234567890.1):
            self.middleware.process_response(request, HttpResponse(b"OK"))

        args, kwargs = mock_logger.info.call_args
        assert args[0] == "Request completed"
        extra = kwargs["extra"]
        assert extra["request_id"] == "test-123"
        assert extra["status_code"] == 200
        assert extra["duration_ms"] == pytest.approx(100, abs=1)
        assert extra["user_id"] == str(owner.id)
        assert extra["business_id"] == business.id

    @patch("beautyhq_backend.middleware.logger")
    def test_logging_exception(self, mock_logger):
        request = self.factory.get("/api/clients/")
        request.request_id = "test-123"
        request.start_time = 1234567890.0

        with patch("time.time", return_value=1234567890.1):
            self.middleware.process_exception(request, ValueError("Test exception"))

        mock_logger.error.assert_called_once()
        args, kwargs = mock_logger.error.call_args
        assert "Request failed with exception" in args[0]
        assert kwargs["extra"]["exception_type"] == "ValueError"
        assert kwargs["exc_info"] is True

    def test_client_ip_behind_proxy(self):
        request = self.factory.get(
            "/api/clients/", HTTP_X_FORWARDED_FOR="203.0.113.5, 10.0.0.1"
        )

        assert self.middleware._get_client_ip(request) == "203.0.113.5"


class TestLoggingUtilities:
    def test_get_request_id_is_unique(self):
        first = get_request_id()

        assert len(first) == 36
        assert first != get_request_id()

    def test_setup_logging_context_assigns_request_id(self):
        request = RequestFactory().get("/api/")

        setup_logging_context(request)
        try:
            assert request.request_id
        finally:
            clear_logging_context()


@pytest.mark.django_db
def test_request_id_header_on_api_response(owner_client):
    response = owner_client.get("/api/clients/", HTTP_X_REQUEST_ID="corr-42")

    assert response.status_code == 200
    assert response["X-Request-ID"] == "corr-42"

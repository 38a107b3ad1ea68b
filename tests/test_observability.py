"""
Tests for structured logging, masking, metrics and the request middleware.
"""

import json
import logging

import pytest

from medvoice.observability.logging import (
    AuditLogger,
    HumanFormatter,
    JSONFormatter,
    clear_request_context,
    get_request_context,
    log_llm_request,
    mask_sensitive_data,
    set_request_context,
)
from medvoice.observability.metrics import MetricsRegistry
from medvoice.observability.middleware import REQUEST_ID_HEADER, normalize_path


def _make_record(message="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="medvoice.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestMasking:
    def test_patient_identifiers_redacted(self):
        data = {
            "patient_phone": "+15550100",
            "dob": "1980-01-01",
            "nested": [{"api_key": "abc", "note": "fine"}],
        }
        assert mask_sensitive_data(data) == {
            "patient_phone": "[REDACTED]",
            "dob": "[REDACTED]",
            "nested": [{"api_key": "[REDACTED]", "note": "fine"}],
        }

    def test_key_like_strings_truncated(self):
        masked = mask_sensitive_data("sk-ant-REDACTED")
        assert masked == "sk-ant-a...[REDACTED]"
        assert mask_sensitive_data("short") == "short"

    def test_conversation_content_reduced_to_size(self):
        data = {
            "conversation_id": "c1",
            "transcript": [{"role": "user", "content": "I have chest pain"}],
            "message_length": 17,
            "audio": {"data": "UklGRg==", "format": "mp3"},
        }
        masked = mask_sensitive_data(data)
        assert masked == {
            "conversation_id": "c1",
            "transcript": "[turns: 1]",
            "message_length": 17,
            "audio": "[audio chars: 8]",
        }
        assert "chest pain" not in json.dumps(masked)

    def test_turn_text_summarized(self):
        assert mask_sensitive_data({"content": "I have chest pain"}) == {"content": "[chars: 17]"}

    def test_token_counts_are_not_secrets(self):
        masked = mask_sensitive_data({"tokens_input": 40, "refresh_token": "abc"})
        assert masked == {"tokens_input": 40, "refresh_token": "[REDACTED]"}


class TestFormatters:
    def teardown_method(self):
        clear_request_context()

    def test_json_includes_context_and_masked_extras(self):
        set_request_context(request_id="req-123", organization_id="org-9")
        record = _make_record(patient_phone="+15550100", conversation_id="c1")

        line = JSONFormatter().format(record)
        data = json.loads(line)

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-123"
        assert data["organization_id"] == "org-9"
        assert data["extra"] == {"patient_phone": "[REDACTED]", "conversation_id": "c1"}

    def test_human_format(self):
        set_request_context(request_id="abcdefgh-1234")
        line = HumanFormatter(use_colors=False).format(_make_record("started"))
        assert "INFO" in line
        assert "[req=abcdefgh]" in line
        assert line.endswith("started")

    def test_context_cleared(self):
        set_request_context(request_id="r", user_id="u")
        clear_request_context()
        assert get_request_context() == {
            "request_id": None,
            "organization_id": None,
            "user_id": None,
        }


class TestDomainEvents:
    def test_audit_event_names_agent(self, caplog):
        caplog.set_level(logging.INFO, logger="medvoice.audit")

        AuditLogger().log(
            action="conversation.message",
            resource_type="conversations",
            resource_id="c1",
            details={"message_length": 12},
            success=False,
            agent_id="agent-1",
        )

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "AUDIT conversation.message conversations/c1"
        assert record.agent_id == "agent-1"
        assert record.details == {"message_length": 12}

    def test_llm_event_serializes_with_counts(self, caplog):
        caplog.set_level(logging.INFO, logger="medvoice.llm")

        log_llm_request("openai", "gpt-4", 40, 12, 321.4, agent_type="front_desk")

        record = caplog.records[-1]
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "LLM openai/gpt-4 ok in 321ms (40+12 tokens)"
        assert data["extra"]["agent_type"] == "front_desk"
        assert data["extra"]["tokens_input"] == 40
        assert data["extra"]["tokens_output"] == 12


class TestMetricsRegistry:
    def test_registries_are_independent(self):
        first = MetricsRegistry()
        second = MetricsRegistry()
        first.record_conversation_message("ai")

        assert first.registry.get_sample_value(
            "medvoice_conversation_messages_total", {"outcome": "ai"}
        ) == 1.0
        assert second.registry.get_sample_value(
            "medvoice_conversation_messages_total", {"outcome": "ai"}
        ) is None

    def test_token_histograms_skip_zero(self):
        registry = MetricsRegistry()
        registry.record_provider_request("openai", "gpt-4", "success", 0.2, tokens_input=40)

        assert registry.registry.get_sample_value(
            "medvoice_provider_tokens_count", {"provider": "openai", "direction": "input"}
        ) == 1.0
        assert registry.registry.get_sample_value(
            "medvoice_provider_tokens_count", {"provider": "openai", "direction": "output"}
        ) is None

    def test_exposition(self):
        registry = MetricsRegistry(namespace="clinic")
        registry.record_tts_synthesis("elevenlabs", success=False)
        text = registry.generate_latest().decode()
        assert 'clinic_tts_syntheses_total{provider="elevenlabs",status="error"} 1.0' in text
        assert registry.content_type.startswith("text/plain")


class TestNormalizePath:
    def test_ids_replaced(self):
        path = "/api/conversations/3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b/message"
        assert normalize_path(path) == "/api/conversations/{uuid}/message"
        assert normalize_path("/api/items/42") == "/api/items/{id}"


class TestRequestMiddleware:
    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/api/health", headers={REQUEST_ID_HEADER: "trace-abc"})
        assert response.headers[REQUEST_ID_HEADER] == "trace-abc"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/api/health")
        assert len(response.headers[REQUEST_ID_HEADER]) == 36

    @pytest.mark.asyncio
    async def test_requests_counted(self, client, seed, auth_headers, metrics):
        await client.get("/api/conversations", headers=auth_headers)
        await client.get("/health/live")

        assert metrics.registry.get_sample_value(
            "medvoice_http_requests_total",
            {"method": "GET", "endpoint": "/api/conversations", "status_code": "200"},
        ) == 1.0
        assert metrics.registry.get_sample_value(
            "medvoice_http_requests_total",
            {"method": "GET", "endpoint": "/health/live", "status_code": "200"},
        ) is None

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, client, seed, auth_headers):
        response = await client.get(
            "/api/conversations/missing",
            headers={**auth_headers, REQUEST_ID_HEADER: "trace-404"},
        )
        assert response.status_code == 404
        assert response.json()["request_id"] == "trace-404"

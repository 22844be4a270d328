"""Tests for POST /api/chat/stream."""

import pytest
from fastapi.testclient import TestClient

from snowgoose.models.common import UsageSummary
from snowgoose.models.events import (
    ImageDataEvent,
    MetaEvent,
    StreamCompleteEvent,
    TextDeltaEvent,
    parse_event,
)
from snowgoose.routes.chat import encode_frame

from conftest import RED_PIXEL_PNG, parse_frames

STREAM_URL = "/api/chat/stream"


def _meta(total_cost: float = 0.01, did_generate_image: bool = False) -> MetaEvent:
    return MetaEvent(
        response_id="resp_1",
        usage=UsageSummary(
            input_tokens=12,
            output_tokens=34,
            total_cost=total_cost,
            did_generate_image=did_generate_image,
        ),
    )


class TestPreflightErrors:
    """Failures before the stream opens are HTTP errors."""

    def test_missing_token(self, client: TestClient, fake_adapter, simple_chat_request: dict):
        response = client.post(STREAM_URL, json=simple_chat_request)
        assert response.status_code == 401
        assert response.json()["type"] == "error"
        assert fake_adapter.calls == []

    def test_zero_balance_never_calls_adapter(
        self, client: TestClient, fake_adapter, broke_headers: dict, simple_chat_request: dict
    ):
        fake_adapter.reset([TextDeltaEvent(text="should not run")])
        response = client.post(STREAM_URL, headers=broke_headers, json=simple_chat_request)

        assert response.status_code == 402
        assert response.json() == {
            "type": "error",
            "publicMessage": "Insufficient credits. Please purchase more credits to continue.",
        }
        assert fake_adapter.calls == []

    def test_unknown_model(self, client: TestClient, fake_adapter, auth_headers: dict, simple_chat_request: dict):
        request = {**simple_chat_request, "modelId": 999}
        response = client.post(STREAM_URL, headers=auth_headers, json=request)

        assert response.status_code == 500
        assert response.json() == {"type": "error", "publicMessage": "Model or model vendor not found."}

    def test_unconfigured_vendor(self, client: TestClient, auth_headers: dict, simple_chat_request: dict):
        """Without the fake adapter registered, the vendor has no adapter."""
        response = client.post(STREAM_URL, headers=auth_headers, json=simple_chat_request)

        assert response.status_code == 500
        assert response.json()["publicMessage"] == "The selected model does not support streaming."

    def test_missing_credit_ratio(
        self, client: TestClient, services, fake_adapter, auth_headers: dict, simple_chat_request: dict
    ):
        services.credits.dollars_per_credit = None
        response = client.post(STREAM_URL, headers=auth_headers, json=simple_chat_request)

        assert response.status_code == 500
        assert response.json()["publicMessage"] == "The server is misconfigured."
        assert fake_adapter.calls == []

    def test_malformed_image_data(
        self, client: TestClient, fake_adapter, auth_headers: dict, simple_chat_request: dict
    ):
        request = {
            **simple_chat_request,
            "responseHistory": [
                {"role": "user", "content": [{"type": "image", "url": "placeholder"}]}
            ],
            "imageData": "data:image/png;base64",
        }
        response = client.post(STREAM_URL, headers=auth_headers, json=request)

        assert response.status_code == 400
        assert fake_adapter.calls == []

    def test_image_upload_failure(
        self, client: TestClient, storage, fake_adapter, auth_headers: dict, simple_chat_request: dict
    ):
        storage.fail_on.add(RED_PIXEL_PNG)
        request = {
            **simple_chat_request,
            "responseHistory": [
                {"role": "user", "content": [{"type": "image", "url": "placeholder"}]}
            ],
            "imageData": f"data:image/png;base64,{RED_PIXEL_PNG}",
        }
        response = client.post(STREAM_URL, headers=auth_headers, json=request)

        assert response.status_code == 500
        assert response.json()["publicMessage"] == "Failed to upload image."
        assert fake_adapter.calls == []

    def test_empty_history_rejected(self, client: TestClient, auth_headers: dict, seed):
        response = client.post(
            STREAM_URL,
            headers=auth_headers,
            json={"modelId": seed["chat_model"].id, "responseHistory": []},
        )
        assert response.status_code == 422


class TestStreaming:
    """Successful and failing streams."""

    def test_text_stream(
        self, client: TestClient, services, fake_adapter, auth_headers: dict, simple_chat_request: dict, seed
    ):
        fake_adapter.reset([TextDeltaEvent(text="Hel"), TextDeltaEvent(text="lo"), _meta(0.01)])

        response = client.post(STREAM_URL, headers=auth_headers, json=simple_chat_request)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"

        frames = parse_frames(response.text)
        assert [f["type"] for f in frames] == ["text", "text", "meta", "stream-complete"]
        assert frames[2]["responseId"] == "resp_1"
        assert frames[2]["usage"]["totalCost"] == 0.01
        assert fake_adapter.closed == 1

    async def test_balance_deducted(
        self, async_client, services, fake_adapter, auth_headers: dict, simple_chat_request: dict, seed
    ):
        fake_adapter.reset([TextDeltaEvent(text="hi"), _meta(0.01)])

        response = await async_client.post(STREAM_URL, headers=auth_headers, json=simple_chat_request)

        assert response.status_code == 200
        balance = await services.users.get_credit_balance(seed["alice"].id)
        assert balance == pytest.approx(9.9)

    def test_generated_image_uploaded(
        self, client: TestClient, storage, fake_adapter, auth_headers: dict, seed
    ):
        fake_adapter.reset(
            [
                ImageDataEvent(generation_id="ig_1", data="UEFSVElBTA==", partial_index=0),
                ImageDataEvent(generation_id="ig_1", data="RklOQUw="),
                _meta(0.02, did_generate_image=True),
            ]
        )
        request = {
            "modelId": seed["image_model"].id,
            "responseHistory": [{"role": "user", "content": "draw a goose"}],
            "useImageGeneration": True,
        }

        response = client.post(STREAM_URL, headers=auth_headers, json=request)

        frames = parse_frames(response.text)
        assert [f["type"] for f in frames] == [
            "image_data",
            "image_data",
            "meta",
            "image",
            "stream-complete",
        ]
        assert frames[3] == {"type": "image", "url": "https://storage.test/1", "generationId": "ig_1"}
        assert [u["data"] for u in storage.uploads] == ["RklOQUw="]
        assert fake_adapter.calls[0].tools == [{"type": "image_generation", "partial_images": 1}]

    def test_upstream_error_is_terminal(
        self, client: TestClient, fake_adapter, auth_headers: dict, simple_chat_request: dict
    ):
        fake_adapter.reset([TextDeltaEvent(text="partial"), RuntimeError("upstream secret detail")])

        response = client.post(STREAM_URL, headers=auth_headers, json=simple_chat_request)

        assert response.status_code == 200
        frames = parse_frames(response.text)
        assert frames == [
            {"type": "text", "text": "partial"},
            {
                "type": "error",
                "publicMessage": "An internal error occurred while generating the response.",
            },
        ]
        assert "secret" not in response.text

    def test_uploaded_image_reaches_adapter(
        self, client: TestClient, storage, fake_adapter, auth_headers: dict, simple_chat_request: dict
    ):
        fake_adapter.reset([_meta(0.0)])
        request = {
            **simple_chat_request,
            "responseHistory": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "what is this"},
                        {"type": "image", "url": "placeholder"},
                    ],
                }
            ],
            "imageData": f"data:image/png;base64,{RED_PIXEL_PNG}",
        }

        response = client.post(STREAM_URL, headers=auth_headers, json=request)

        assert response.status_code == 200
        sent = fake_adapter.calls[0].messages[-1].content
        assert sent[1].url == "https://storage.test/1"
        assert storage.uploads[0]["data"] == RED_PIXEL_PNG


class TestFrameEncoding:
    """Wire format of individual frames."""

    def test_frame_is_json_plus_blank_line(self):
        frame = encode_frame(TextDeltaEvent(text="a\n\nb"))
        assert frame == '{"type":"text","text":"a\\n\\nb"}\n\n'

    def test_none_fields_omitted(self):
        frame = encode_frame(MetaEvent(response_id="r"))
        assert frame == '{"type":"meta","responseId":"r"}\n\n'

    def test_frames_parse_back(self):
        events = [TextDeltaEvent(text="x"), _meta(), StreamCompleteEvent()]
        body = "".join(encode_frame(e) for e in events)
        assert [parse_event(f) for f in parse_frames(body)] == events

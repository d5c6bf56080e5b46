"""Tests for the HTTP API."""

import base64
import io

import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image

from photo_translator import main
from photo_translator.main import create_app
from photo_translator.pipeline import PipelineContext
from photo_translator.translate import TranslatorChain


@pytest.fixture
def client(fake_ocr_engine):
    context = PipelineContext(ocr_factory=lambda: fake_ocr_engine, translator=TranslatorChain([]))
    return TestClient(create_app(context))


@pytest.fixture
def image_b64(png):
    return base64.b64encode(png((200, 100))).decode("ascii")


@pytest.fixture
def session_id(client, image_b64):
    response = client.post("/sessions", json={"image_b64": image_b64})
    assert response.status_code == 200
    return response.json()["session_id"]


class TestMetadata:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_languages_and_styles(self, client):
        body = client.get("/languages").json()

        assert len(body["languages"]) == 15
        assert {"code": "hi", "name": "Hindi"} in body["languages"]
        assert [style["id"] for style in body["overlay_styles"]] == [
            "adaptive",
            "solid",
            "transparent",
            "outline",
            "shadow",
        ]


class TestSessions:
    """Upload, inspect and delete."""

    def test_create_session(self, client, image_b64):
        body = client.post("/sessions", json={"image_b64": image_b64}).json()

        assert body["ocr_image_size"] == {"w": 200, "h": 100}
        assert body["detected_language"] == "English"
        assert [w["text"] for w in body["words"]] == ["Hello", "World", "Bye"]
        assert body["records"] == []
        assert body["style"] == "adaptive"
        assert body["visible"] is True

    def test_data_uri_is_accepted(self, client, image_b64):
        response = client.post("/sessions", json={"image_b64": f"data:image/png;base64,{image_b64}"})

        assert response.status_code == 200

    def test_missing_image(self, client):
        assert client.post("/sessions", json={}).status_code == 400

    def test_invalid_base64(self, client):
        assert client.post("/sessions", json={"image_b64": "@@not base64@@"}).status_code == 400

    def test_unreadable_image_is_422(self, client):
        payload = base64.b64encode(b"plain text, not pixels").decode("ascii")

        assert client.post("/sessions", json={"image_b64": payload}).status_code == 422

    def test_image_url_failure_is_502(self, client, monkeypatch):
        def refuse(*args, **kwargs):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(main.requests, "get", refuse)

        response = client.post("/sessions", json={"image_url": "https://img.example/photo.png"})

        assert response.status_code == 502

    def test_get_and_delete(self, client, session_id):
        assert client.get(f"/sessions/{session_id}").json()["session_id"] == session_id

        assert client.delete(f"/sessions/{session_id}").status_code == 200
        assert client.get(f"/sessions/{session_id}").status_code == 404
        assert client.delete(f"/sessions/{session_id}").status_code == 404


class TestTranslation:
    """Translation passes with every service unavailable."""

    def test_translate_falls_back_to_dictionary(self, client, session_id):
        response = client.post(f"/sessions/{session_id}/translate", json={"target_language": "hi"})

        assert response.status_code == 200
        assert response.json()["committed"] is True
        records = response.json()["records"]
        assert [r["translated_text"] for r in records] == ["नमस्ते दुनिया", "Bye"]
        assert records[0]["to_language"] == "Hindi"
        assert records[0]["bbox"] == {"x0": 0, "y0": 0, "x1": 110, "y1": 20}

    def test_results_text(self, client, session_id):
        client.post(f"/sessions/{session_id}/translate", json={"target_language": "hi"})

        text = client.get(f"/sessions/{session_id}/text").json()["text"]

        assert text == "1. Hello World → नमस्ते दुनिया\n\n2. Bye → Bye"

    def test_retranslation_replaces_records(self, client, session_id):
        client.post(f"/sessions/{session_id}/translate", json={"target_language": "hi"})
        client.post(f"/sessions/{session_id}/translate", json={"target_language": "es"})

        body = client.get(f"/sessions/{session_id}").json()

        assert body["target_language"] == "es"
        assert [r["translated_text"] for r in body["records"]] == ["hola mundo", "Bye"]

    def test_unsupported_language(self, client, session_id):
        response = client.post(f"/sessions/{session_id}/translate", json={"target_language": "tlh"})

        assert response.status_code == 400

    def test_unknown_session(self, client):
        assert client.post("/sessions/missing/translate", json={"target_language": "hi"}).status_code == 404


class TestOverlayAndRendering:
    """Style changes, overlay layers and export."""

    def test_update_overlay(self, client, session_id):
        response = client.put(f"/sessions/{session_id}/overlay", json={"style": "shadow", "visible": False})

        assert response.json() == {"style": "shadow", "visible": False}

    def test_unknown_style_is_rejected(self, client, session_id):
        response = client.put(f"/sessions/{session_id}/overlay", json={"style": "sparkly"})

        assert response.status_code == 400

    def test_render_returns_display_sized_png(self, client, session_id):
        client.post(f"/sessions/{session_id}/translate", json={"target_language": "es"})

        response = client.post(
            f"/sessions/{session_id}/render",
            json={"display_width": 100, "display_height": 50},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        with Image.open(io.BytesIO(response.content)) as im:
            assert im.size == (100, 50)
            assert im.mode == "RGBA"
            assert im.getchannel("A").getbbox() is not None

    def test_render_rejects_empty_display(self, client, session_id):
        response = client.post(
            f"/sessions/{session_id}/render",
            json={"display_width": 0, "display_height": 50},
        )

        assert response.status_code == 422

    def test_export_is_native_size_attachment(self, client, session_id):
        client.post(f"/sessions/{session_id}/translate", json={"target_language": "fr"})

        response = client.get(f"/sessions/{session_id}/export")

        assert response.status_code == 200
        assert 'filename="translated-image.png"' in response.headers["content-disposition"]
        with Image.open(io.BytesIO(response.content)) as im:
            assert im.size == (200, 100)
            assert im.mode == "RGB"

    def test_export_with_hidden_overlay_matches_original(self, client, session_id):
        client.post(f"/sessions/{session_id}/translate", json={"target_language": "fr"})
        client.put(f"/sessions/{session_id}/overlay", json={"visible": False})

        response = client.get(f"/sessions/{session_id}/export", params={"match_interactive": True})

        with Image.open(io.BytesIO(response.content)) as im:
            assert set(im.getdata()) == {(255, 255, 255)}

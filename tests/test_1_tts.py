import dataclasses

import httpx

from conftest import API_KEY

FAKE_AUDIO = b"RIFF\x24\x00\x00\x00WAVEfmt fake-audio-bytes"


def test_tts_post_success(client, upstream):
    upstream.reply(200, FAKE_AUDIO, "audio/wav")
    response = client.post("/api/tts", json={"text": "hi", "format": "wav"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.headers["content-disposition"] == 'inline; filename="speech.wav"'
    assert response.content == FAKE_AUDIO

    call = upstream.calls[0]
    assert call["url"] == "https://api.openai.com/v1/audio/speech"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["json"] == {
        "model": "gpt-4o-mini-tts",
        "input": "hi",
        "voice": "alloy",
        "response_format": "wav",
    }


def test_tts_defaults_to_mp3(client, upstream):
    upstream.reply(200, b"ID3mp3", "audio/mpeg")
    response = client.post("/api/tts", json={"text": "hello", "voice": "nova"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.headers["content-disposition"] == 'inline; filename="speech.mp3"'
    assert upstream.calls[0]["json"]["voice"] == "nova"


def test_tts_opus_content_type(client, upstream):
    upstream.reply(200, b"OggS", "audio/ogg")
    response = client.post("/api/tts", json={"text": "hello", "format": "opus"})
    assert response.headers["content-type"] == "audio/ogg; codecs=opus"


def test_tts_unknown_format_falls_back_to_mpeg(client, upstream):
    upstream.reply(200, b"data", "application/octet-stream")
    response = client.post("/api/tts", json={"text": "hello", "format": "xyz"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.headers["content-disposition"] == 'inline; filename="speech.xyz"'


def test_tts_blank_text(client, upstream):
    response = client.post("/api/tts", json={"text": ""})
    assert response.status_code == 400
    assert "error" in response.json()

    response = client.post("/api/tts", json={"text": "   "})
    assert response.status_code == 400
    assert upstream.calls == []


def test_tts_missing_body(client, upstream):
    response = client.post("/api/tts")
    assert response.status_code == 400
    assert upstream.calls == []


def test_tts_rejects_header_unsafe_format(client, upstream):
    response = client.post("/api/tts", json={"text": "hi", "format": 'mp3"\r\nX-Evil: 1'})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid request"
    assert upstream.calls == []


def test_tts_missing_api_key(make_client, config, upstream):
    client = make_client(dataclasses.replace(config, openai_api_key=None))
    response = client.post("/api/tts", json={"text": "hi"})

    assert response.status_code == 500
    assert response.json() == {"error": "missing OPENAI_API_KEY"}
    assert upstream.calls == []


def test_tts_upstream_error_relayed(client, upstream):
    upstream.reply(503, '{"error":{"message":"overloaded"}}')
    response = client.post("/api/tts", json={"text": "hi"})

    assert response.status_code == 503
    assert response.json() == {"error": '{"error":{"message":"overloaded"}}'}


def test_tts_upstream_error_empty_body(client, upstream):
    upstream.reply(429, b"")
    response = client.post("/api/tts", json={"text": "hi"})

    assert response.status_code == 429
    assert response.json() == {"error": "TTS error"}


def test_tts_transport_failure(client, upstream):
    upstream.fail(httpx.ReadTimeout("timed out"))
    response = client.post("/api/tts", json={"text": "hi"})

    assert response.status_code == 502
    assert response.json() == {"error": "timed out"}


def test_tts_shared_secret(make_client, config, upstream):
    client = make_client(dataclasses.replace(config, api_key=API_KEY))

    response = client.post("/api/tts", json={"text": "hi"})
    assert response.status_code == 401
    assert response.json()["error"] == "invalid or missing API key"
    assert upstream.calls == []

    upstream.reply(200, b"ID3", "audio/mpeg")
    response = client.post(
        "/api/tts", json={"text": "hi"}, headers={"Authorization": f"Bearer {API_KEY}"}
    )
    assert response.status_code == 200

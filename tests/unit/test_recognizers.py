"""Tests for the recognition providers (mocked SDK clients, no network)."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.cloud import speech

import lectra.services.recognition.whisper as whisper_module
from lectra.core.config import Settings
from lectra.core.exceptions import RecognitionError
from lectra.services.recognition import create_recognizer
from lectra.services.recognition.google import (
    GoogleSpeechRecognizer,
    encoding_for_mime_type,
    extract_transcript,
)
from lectra.services.recognition.whisper import WhisperRecognizer, whisper_language


def _response(*transcripts):
    """Build a Speech API style response; ``None`` gives a result with no alternatives."""
    results = [
        SimpleNamespace(alternatives=[] if t is None else [SimpleNamespace(transcript=t)])
        for t in transcripts
    ]
    return SimpleNamespace(results=results)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateRecognizer:
    def test_google(self):
        assert isinstance(create_recognizer("google"), GoogleSpeechRecognizer)

    @pytest.mark.parametrize("provider", ["local", "whisper"])
    def test_local(self, provider):
        assert isinstance(create_recognizer(provider), WhisperRecognizer)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown recognition provider"):
            create_recognizer("nope")


# ---------------------------------------------------------------------------
# Google Cloud Speech-to-Text
# ---------------------------------------------------------------------------


class TestEncoding:
    @pytest.mark.parametrize(
        "mime,encoding",
        [
            ("audio/wav", "LINEAR16"),
            ("audio/mpeg", "MP3"),
            ("audio/m4a", "MP3"),
            ("audio/ogg", "OGG_OPUS"),
            ("audio/webm", "WEBM_OPUS"),
            ("audio/flac", "FLAC"),
        ],
    )
    def test_known(self, mime, encoding):
        assert encoding_for_mime_type(mime) == encoding

    def test_unknown_falls_back_to_linear16(self):
        assert encoding_for_mime_type("audio/3gpp") == "LINEAR16"
        assert encoding_for_mime_type(None) == "LINEAR16"


class TestExtractTranscript:
    def test_joins_results_with_newlines(self):
        assert extract_transcript(_response("hello", "world")) == "hello\nworld"

    def test_no_results_is_empty(self):
        assert extract_transcript(_response()) == ""

    def test_result_without_alternatives_contributes_blank_line(self):
        assert extract_transcript(_response("a", None, "b")) == "a\n\nb"


@pytest.fixture
def speech_client():
    client = MagicMock()
    client.recognize.return_value = _response("hello world")
    operation = MagicMock()
    operation.result.return_value = _response("a long", "lecture")
    client.long_running_recognize.return_value = operation
    return client


@pytest.fixture
def google(speech_client):
    settings = Settings(recognition_timeout_seconds=42.0, recognition_model="latest_long")
    return GoogleSpeechRecognizer(client=speech_client, settings=settings)


class TestGoogleSpeechRecognizer:
    async def test_transcribe_sends_config(self, google, speech_client):
        text = await google.transcribe(b"RIFF", "audio/wav", "es-ES")

        assert text == "hello world"
        kwargs = speech_client.recognize.call_args.kwargs
        config = kwargs["config"]
        assert config.encoding == speech.RecognitionConfig.AudioEncoding.LINEAR16
        assert config.language_code == "es-ES"
        assert config.sample_rate_hertz == 16000
        assert config.enable_automatic_punctuation is True
        assert config.model == "latest_long"
        assert kwargs["audio"].content == b"RIFF"

    async def test_transcribe_long_waits_for_operation(self, google, speech_client):
        text = await google.transcribe_long(b"ID3", "audio/mpeg", "en-US")

        assert text == "a long\nlecture"
        speech_client.long_running_recognize.return_value.result.assert_called_once_with(
            timeout=42.0
        )
        config = speech_client.long_running_recognize.call_args.kwargs["config"]
        assert config.encoding == speech.RecognitionConfig.AudioEncoding.MP3

    async def test_empty_result_is_not_an_error(self, google, speech_client):
        speech_client.recognize.return_value = _response()
        assert await google.transcribe(b"RIFF", "audio/wav", "en-US") == ""

    async def test_provider_failure_is_wrapped(self, google, speech_client):
        speech_client.recognize.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(RecognitionError, match="quota exceeded") as exc_info:
            await google.transcribe(b"RIFF", "audio/wav", "en-US")
        assert exc_info.value.status_code == 502

    async def test_long_failure_is_wrapped(self, google, speech_client):
        speech_client.long_running_recognize.side_effect = RuntimeError("deadline")

        with pytest.raises(RecognitionError, match="Long transcription failed"):
            await google.transcribe_long(b"RIFF", "audio/wav", "en-US")

    def test_client_from_credentials_file(self):
        settings = Settings(google_application_credentials="/secrets/sa.json")
        recognizer = GoogleSpeechRecognizer(settings=settings)

        with patch.object(speech.SpeechClient, "from_service_account_file") as from_file:
            client = recognizer._get_client()

        from_file.assert_called_once_with("/secrets/sa.json")
        assert client is from_file.return_value
        assert recognizer._get_client() is client


# ---------------------------------------------------------------------------
# faster-whisper
# ---------------------------------------------------------------------------


def _make_segment(text):
    """Create a mock faster-whisper segment object."""
    return SimpleNamespace(text=text, start=0.0, end=1.0)


@pytest.fixture(autouse=True)
def _clear_model_cache():
    """Ensure module-level model cache is cleared before each test."""
    original = whisper_module._model_cache
    whisper_module._model_cache = None
    yield
    whisper_module._model_cache = original


@pytest.fixture
def mock_whisper_model():
    """Create a mock WhisperModel that returns two segments."""
    model = MagicMock()
    model.transcribe.return_value = (
        iter([_make_segment(" Hello"), _make_segment(" world ")]),
        SimpleNamespace(language="en"),
    )
    return model


@pytest.fixture
def whisper(mock_whisper_model):
    """WhisperRecognizer whose model loader returns the mock."""
    recognizer = WhisperRecognizer(model_size="base", device="cpu")
    recognizer._get_model = MagicMock(return_value=mock_whisper_model)
    return recognizer


class TestWhisperRecognizer:
    def test_language_reduction(self):
        assert whisper_language("pt-BR") == "pt"
        assert whisper_language("EN-us") == "en"

    async def test_joins_segments(self, whisper, mock_whisper_model):
        text = await whisper.transcribe(b"RIFF", "audio/wav", "en-US")

        assert text == "Hello world"
        kwargs = mock_whisper_model.transcribe.call_args.kwargs
        assert kwargs["language"] == "en"
        assert kwargs["beam_size"] == 1
        assert kwargs["vad_filter"] is True

    async def test_long_uses_wider_beam(self, whisper, mock_whisper_model):
        await whisper.transcribe_long(b"RIFF", "audio/wav", "fr-FR")

        kwargs = mock_whisper_model.transcribe.call_args.kwargs
        assert kwargs["language"] == "fr"
        assert kwargs["beam_size"] == 5

    async def test_failure_is_wrapped(self, whisper, mock_whisper_model):
        mock_whisper_model.transcribe.side_effect = RuntimeError("bad audio")

        with pytest.raises(RecognitionError, match="bad audio"):
            await whisper.transcribe(b"junk", "audio/wav", "en-US")

    def test_model_loaded_once_and_cached(self):
        with patch.object(whisper_module, "WhisperModel") as model_cls:
            first = WhisperRecognizer(model_size="tiny")._get_model()
            second = WhisperRecognizer(model_size="tiny")._get_model()

        model_cls.assert_called_once_with("tiny", device="cpu", compute_type="int8")
        assert first is second

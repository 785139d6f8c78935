import pytest

from family_ledger.api import build_classifier, build_dispatcher, build_replier
from family_ledger.categorize import OpenAIClassifier
from family_ledger.config import Settings, SettingsError, load_settings
from family_ledger.line_client import LineReplyClient, LoggingReplyClient
from tests.helpers.doubles import MemoryDocumentStore


def test_defaults_from_empty_environment() -> None:
    s = load_settings({})
    assert s == Settings(database_url=None, openai_api_key=None)
    assert s.openai_model == "gpt-4o"
    assert s.openai_timeout_seconds == 60.0
    assert s.timezone == "Asia/Taipei"
    assert s.port == 8080
    assert not s.classifier_configured


def test_values_are_read_and_trimmed() -> None:
    s = load_settings(
        {
            "DATABASE_URL": " sqlite:///x.db ",
            "OPENAI_API_KEY": "sk-test",
            "FAMILY_LEDGER_OPENAI_MODEL": "gpt-4o-mini",
            "FAMILY_LEDGER_OPENAI_TIMEOUT_SECONDS": "15",
            "LINE_CHANNEL_ACCESS_TOKEN": "line-token",
            "FAMILY_LEDGER_TIMEZONE": "UTC",
            "PORT": "9000",
        }
    )
    assert s.database_url == "sqlite:///x.db"
    assert s.openai_model == "gpt-4o-mini"
    assert s.openai_timeout_seconds == 15.0
    assert s.timezone == "UTC"
    assert s.port == 9000
    assert s.classifier_configured


@pytest.mark.parametrize(
    "env",
    [
        {"FAMILY_LEDGER_OPENAI_TIMEOUT_SECONDS": "soon"},
        {"FAMILY_LEDGER_OPENAI_TIMEOUT_SECONDS": "0"},
        {"PORT": "http"},
        {"FAMILY_LEDGER_TIMEZONE": "Mars/Olympus_Mons"},
    ],
)
def test_invalid_values_raise_settings_error(env: dict[str, str]) -> None:
    with pytest.raises(SettingsError):
        load_settings(env)


def test_load_settings_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert load_settings().openai_api_key == "sk-env"


def test_wiring_follows_settings() -> None:
    bare = Settings(database_url=None, openai_api_key=None)
    assert build_classifier(bare) is None
    assert isinstance(build_replier(bare), LoggingReplyClient)

    full = Settings(
        database_url=None,
        openai_api_key="sk-test",
        openai_model="gpt-4o-mini",
        line_channel_access_token="tok",
    )
    classifier = build_classifier(full)
    assert isinstance(classifier, OpenAIClassifier)
    assert classifier.model == "gpt-4o-mini"
    replier = build_replier(full)
    assert isinstance(replier, LineReplyClient)
    replier.close()

    dispatcher = build_dispatcher(full, store=MemoryDocumentStore())
    assert dispatcher.classifier is not None

import pytest

CREDENTIAL_ENV_VARS = ("MQTT_USERNAME", "MQTT_PASSWORD", "AMQP_USERNAME", "AMQP_PASSWORD")


@pytest.fixture(autouse=True)
def clean_credentials_env(monkeypatch):
    """Las credenciales del entorno del desarrollador no deben filtrarse a los tests."""
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from alarm_sender.config import SenderConfig

    config = SenderConfig.from_preset("mqtt-alarm")
    config = SenderConfig.from_yaml("config/alarm_sender/config.yaml")
"""
from .schemas import (
    SenderConfig,
    BrokerSettings,
    MessageSettings,
    LoggingSettings,
    MQTTCredentialsEnv,
    AMQPCredentialsEnv,
    env_credentials,
)
from .presets import (
    PRESETS,
    DEFAULT_PRESET,
    ALARM_DELIMITER,
    get_preset,
    available_presets,
)

__all__ = [
    # Pydantic models
    'SenderConfig',
    'BrokerSettings',
    'MessageSettings',
    'LoggingSettings',
    'MQTTCredentialsEnv',
    'AMQPCredentialsEnv',
    'env_credentials',
    # Presets
    'PRESETS',
    'DEFAULT_PRESET',
    'ALARM_DELIMITER',
    'get_preset',
    'available_presets',
]

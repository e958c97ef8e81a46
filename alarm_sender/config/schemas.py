"""
Pydantic Configuration Schemas
================================

Type-safe configuration validation usando Pydantic v2.

Benefits:
- Validación en load time (no al momento de publicar)
- Credenciales desde variables de entorno (pydantic-settings)
- Mejores mensajes de error

Usage:
    config = SenderConfig.from_yaml("config/alarm_sender/config.yaml")
    config = SenderConfig.from_preset("mqtt-alarm")
"""
from typing import Literal, Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PORTS = {"mqtt": 1883, "amqp": 5672}


# ============================================================================
# Broker Configuration
# ============================================================================

class BrokerSettings(BaseModel):
    """Conexión al broker (MQTT o AMQP)"""
    protocol: Literal['mqtt', 'amqp'] = Field(
        default='mqtt',
        description="Broker protocol"
    )
    host: str = Field(
        default="localhost",
        min_length=1,
        description="Broker hostname"
    )
    port: Optional[int] = Field(
        default=None,
        ge=1,
        le=65535,
        description="Broker port (None = protocol default: 1883 MQTT, 5672 AMQP)"
    )
    username: Optional[str] = Field(
        default=None,
        description="Username (optional, overridable from env)"
    )
    password: Optional[str] = Field(
        default=None,
        description="Password (optional, overridable from env)"
    )
    client_id: str = Field(
        default="JavaPublisher",
        description="MQTT client identifier / AMQP connection name"
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Seconds to wait for the connection (and QoS>0 acknowledgement)"
    )
    keepalive: int = Field(
        default=60,
        ge=5,
        description="MQTT keepalive / AMQP heartbeat in seconds"
    )
    auto_reconnect: bool = Field(
        default=True,
        description="Library-level automatic reconnect"
    )
    clean_session: bool = Field(
        default=True,
        description="MQTT clean session (3.1.1) / clean start (5)"
    )
    mqtt_version: Literal['3.1.1', '5'] = Field(
        default='3.1.1',
        description="MQTT protocol version"
    )
    virtual_host: str = Field(
        default="/",
        description="AMQP virtual host"
    )

    @model_validator(mode='after')
    def apply_default_port(self):
        """Puerto por defecto según protocolo"""
        if self.port is None:
            self.port = DEFAULT_PORTS[self.protocol]
        return self

    @model_validator(mode='after')
    def validate_credentials_pair(self):
        """Password sin username no tiene sentido"""
        if self.password and not self.username:
            raise ValueError("password given without username")
        return self

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


# ============================================================================
# Message Configuration
# ============================================================================

class MessageSettings(BaseModel):
    """Mensaje a publicar (destino + payload)"""
    destination: str = Field(
        default="JF/Alarm",
        min_length=1,
        description="MQTT topic or AMQP queue (routing key)"
    )
    payload: str = Field(
        default="Alarm TLF!",
        min_length=1,
        description="UTF-8 text payload"
    )
    qos: Literal[0, 1, 2] = Field(
        default=1,
        description="MQTT QoS (ignored by AMQP)"
    )
    retained: bool = Field(
        default=False,
        description="MQTT retain flag (ignored by AMQP)"
    )
    declare_queue: bool = Field(
        default=False,
        description="AMQP: declare the queue (durable) before publishing"
    )

    @field_validator('destination')
    @classmethod
    def validate_destination(cls, v: str) -> str:
        """Topics de publicación no admiten wildcards"""
        if '+' in v or '#' in v:
            raise ValueError(f"destination must not contain wildcards, got {v!r}")
        return v


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingSettings(BaseModel):
    """Logging configuration (JSON structured logging)"""
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO',
        description="Log level"
    )
    json_indent: Optional[int] = Field(
        default=None,
        ge=0,
        le=4,
        description="JSON indent for pretty-print (None=compact, 2=readable)"
    )
    library_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='WARNING',
        description="paho-mqtt / pika log level"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (None=stdout). If specified, enables file rotation."
    )
    max_bytes: int = Field(
        default=10485760,  # 10 MB
        ge=1024,
        description="Maximum bytes per log file before rotation (default 10 MB)"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep"
    )


# ============================================================================
# Environment Credentials
# ============================================================================

class MQTTCredentialsEnv(BaseSettings):
    """MQTT_USERNAME / MQTT_PASSWORD"""
    model_config = SettingsConfigDict(env_prefix="MQTT_", extra="ignore")

    username: Optional[str] = None
    password: Optional[str] = None


class AMQPCredentialsEnv(BaseSettings):
    """AMQP_USERNAME / AMQP_PASSWORD"""
    model_config = SettingsConfigDict(env_prefix="AMQP_", extra="ignore")

    username: Optional[str] = None
    password: Optional[str] = None


CREDENTIALS_ENV = {
    "mqtt": MQTTCredentialsEnv,
    "amqp": AMQPCredentialsEnv,
}


def env_credentials(protocol: str) -> Dict[str, str]:
    """Credenciales definidas en el entorno para el protocolo (solo las seteadas)."""
    creds = CREDENTIALS_ENV[protocol]()
    return {k: v for k, v in creds.model_dump().items() if v}


# ============================================================================
# Root Configuration
# ============================================================================

class SenderConfig(BaseModel):
    """
    Root configuration del one-shot sender.

    Environment variables override YAML/preset values for credentials.
    """
    broker: BrokerSettings = Field(default_factory=BrokerSettings)
    message: MessageSettings = Field(default_factory=MessageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: str, use_env: bool = True) -> 'SenderConfig':
        """
        Load and validate configuration from YAML file.

        Args:
            config_path: Path to config.yaml
            use_env: Override credentials from environment variables

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If the file is not valid YAML
            ValueError: If the top level is not a mapping
            ValidationError: If config is invalid
        """
        import yaml

        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create it from config/alarm_sender/config.yaml.example"
            )

        with open(config_file, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f) or {}

        if not isinstance(config_dict, dict):
            raise ValueError(
                f"Config file {config_path} must contain a mapping at top level, "
                f"got {type(config_dict).__name__}"
            )

        if use_env:
            config_dict = cls._apply_env_credentials(config_dict)

        return cls(**config_dict)

    @classmethod
    def from_preset(cls, name: str, use_env: bool = True) -> 'SenderConfig':
        """
        Configuración de uno de los presets (amqp-alarm, mqtt-alarm, mqtt-hello).

        Raises:
            KeyError: Si el preset no existe
        """
        from .presets import get_preset

        config_dict = get_preset(name)
        if use_env:
            config_dict = cls._apply_env_credentials(config_dict)
        return cls(**config_dict)

    @staticmethod
    def _apply_env_credentials(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        broker = dict(config_dict.get('broker') or {})
        protocol = broker.get('protocol', 'mqtt')
        broker.update(env_credentials(protocol))
        return {**config_dict, 'broker': broker}

    def with_env_credentials(self) -> 'SenderConfig':
        """Copia con las credenciales de entorno del protocolo actual aplicadas."""
        return type(self)(**self._apply_env_credentials(self.model_dump()))

    def with_overrides(self, **overrides: Any) -> 'SenderConfig':
        """
        Copia validada con overrides "seccion.campo" (None = no override).

        Cambiar broker.protocol resetea el puerto y descarta las credenciales
        del protocolo anterior (salvo que vengan también como override).

        Example:
            config.with_overrides(**{"broker.port": 1884, "message.qos": 0})
        """
        data = self.model_dump()
        for dotted, value in overrides.items():
            if value is None:
                continue
            section, _, name = dotted.partition('.')
            if section not in data or not name:
                raise KeyError(f"Unknown config field: {dotted}")
            data[section][name] = value

        # Cambio de protocolo: puerto y credenciales del protocolo anterior no aplican
        new_protocol = overrides.get('broker.protocol')
        if new_protocol and new_protocol != self.broker.protocol:
            for name in ('port', 'username', 'password'):
                if overrides.get(f'broker.{name}') is None:
                    data['broker'][name] = None

        return type(self)(**data)

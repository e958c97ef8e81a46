"""
Transport Registry
==================

Registry explícito de protocolos de broker disponibles.

- Registry explícito: solo se registran transports disponibles
- Validación temprana: error claro si el protocolo no existe
- Introspección: listar protocolos disponibles
"""
from typing import Callable, Dict, Set, TYPE_CHECKING
import logging

from .base import BrokerTransport

if TYPE_CHECKING:
    from ..config.schemas import SenderConfig

logger = logging.getLogger(__name__)

TransportFactory = Callable[['SenderConfig'], BrokerTransport]


class ProtocolNotAvailableError(Exception):
    """Protocolo no registrado."""
    pass


class TransportRegistry:
    """
    Registry de transports por protocolo.

    Usage:
        registry = TransportRegistry()
        registry.register('mqtt', lambda cfg: MQTTTransport(cfg.broker), "MQTT (paho)")

        transport = registry.create(config)
    """

    def __init__(self):
        self._factories: Dict[str, TransportFactory] = {}
        self._descriptions: Dict[str, str] = {}

    def register(self, protocol: str, factory: TransportFactory, description: str = ""):
        """
        Registra un protocolo.

        Note:
            Si el protocolo ya existe, se sobrescribe con warning.
        """
        if protocol in self._factories:
            logger.warning(f"⚠️ Protocolo '{protocol}' ya registrado, sobrescribiendo")

        self._factories[protocol] = factory
        self._descriptions[protocol] = description
        logger.debug(f"📝 Protocolo registrado: '{protocol}' - {description}")

    def create(self, config: 'SenderConfig') -> BrokerTransport:
        """
        Construye la transport para config.broker.protocol.

        Raises:
            ProtocolNotAvailableError: Si el protocolo no está registrado
        """
        protocol = config.broker.protocol
        if not self.is_available(protocol):
            available = ', '.join(sorted(self.available_protocols))
            raise ProtocolNotAvailableError(
                f"Protocol '{protocol}' not available. "
                f"Available protocols: {available}"
            )
        return self._factories[protocol](config)

    def is_available(self, protocol: str) -> bool:
        return protocol in self._factories

    @property
    def available_protocols(self) -> Set[str]:
        return set(self._factories.keys())

    def get_help(self) -> Dict[str, str]:
        return dict(self._descriptions)

    def __repr__(self) -> str:
        protocols = ', '.join(sorted(self.available_protocols))
        return f"TransportRegistry({len(self._factories)} protocols: {protocols})"


def default_registry() -> TransportRegistry:
    """Registry con MQTT (paho-mqtt) y AMQP (pika)."""
    from .amqp import AMQPTransport
    from .mqtt import MQTTTransport

    registry = TransportRegistry()
    registry.register(
        'mqtt',
        lambda cfg: MQTTTransport(cfg.broker),
        "MQTT 3.1.1/5 via paho-mqtt",
    )
    registry.register(
        'amqp',
        lambda cfg: AMQPTransport(cfg.broker, declare_queue=cfg.message.declare_queue),
        "AMQP 0-9-1 via pika",
    )
    return registry

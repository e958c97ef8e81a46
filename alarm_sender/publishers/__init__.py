"""
Publishers
==========

Publishers especializados para formatear payloads.

Responsabilidad:
- Conocen estructura de mensajes (lógica de negocio)
- NO conocen detalles del broker (eso es de las transports)
"""
from .alarm import AlarmMessage, AlarmPublisher

__all__ = ['AlarmMessage', 'AlarmPublisher']

"""
Structured Logging Infrastructure
==================================

Logging JSON-based para queryability (stdout o archivo con rotation).

Design Philosophy:
- Solo JSON (no dual output - pragmatismo > complejidad)
- Trace correlation vía contextvars (un trace_id por envío)
- Helpers para casos comunes (publicación, errores)
- Mantiene emojis en mensaje (human-readable dentro de JSON)

Usage:
    from alarm_sender.logging import setup_logging, trace_context

    setup_logging(level="INFO")

    with trace_context(generate_trace_id("pub")):
        logger.info("📤 Enviando alarma", extra={"destination": "JF/Alarm"})
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Dict, Any
import uuid

from pythonjsonlogger.json import JsonFormatter

# ============================================================================
# Trace Context
# ============================================================================

trace_id_var: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)

# Loggers de las librerías de broker (nivel configurable aparte)
LIBRARY_LOGGERS = ("paho", "pika")


def get_trace_id() -> Optional[str]:
    """Obtiene el trace_id actual del contexto (o None)."""
    return trace_id_var.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Genera un nuevo trace ID único.

    Args:
        prefix: Prefijo para el trace ID (ej: "pub", "amqp", "mqtt")

    Returns:
        Trace ID en formato: {prefix}-{short_uuid}
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Context manager para propagar trace_id en toda la call stack.

    Args:
        trace_id: ID de trace a propagar. Si None, genera uno automático.
    """
    if trace_id is None:
        trace_id = generate_trace_id()

    token = trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        trace_id_var.reset(token)


# ============================================================================
# Logger Setup
# ============================================================================

def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    add_fields: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    library_level: str = "WARNING",
) -> None:
    """
    Configura structured logging (JSON) para toda la aplicación.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        indent: JSON indent para pretty-print (None = compact, 2 = readable)
        add_fields: Campos adicionales globales (ej: {"preset": "mqtt-alarm"})
        log_file: Path al archivo de logs (None = stdout). Si se especifica, usa rotation.
        max_bytes: Tamaño máximo por archivo antes de rotar (default 10 MB)
        backup_count: Número de archivos backup a mantener (default 5)
        library_level: Nivel para los loggers de paho-mqtt y pika
    """
    class CustomJsonFormatter(JsonFormatter):
        def add_fields(self, log_record, record, message_dict):
            super().add_fields(log_record, record, message_dict)

            # Renombrar campos para consistencia
            if 'levelname' in log_record:
                log_record['level'] = log_record.pop('levelname')

            if 'name' in log_record:
                log_record['logger'] = log_record.pop('name')

            current_trace_id = get_trace_id()
            if current_trace_id and not log_record.get('trace_id'):
                log_record['trace_id'] = current_trace_id

            if add_fields:
                for key, value in add_fields.items():
                    if key not in log_record:
                        log_record[key] = value

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        print(f"📄 Logging to file: {log_file} (max: {max_bytes//1024//1024}MB, backups: {backup_count})", file=sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stdout)

    formatter = CustomJsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'asctime': 'timestamp'},
        json_indent=indent,
        json_ensure_ascii=False,
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(getattr(logging, library_level.upper()))


# ============================================================================
# Helper Functions
# ============================================================================

def log_broker_publish(
    logger: logging.Logger,
    protocol: str,
    destination: str,
    payload_size: int,
    qos: Optional[int] = None,
    retained: bool = False,
    success: bool = True,
    error_code: Optional[int] = None,
    component: str = "transport",
) -> None:
    """
    Helper para logs de publicación (MQTT topic o AMQP queue).

    Args:
        logger: Logger instance
        protocol: "mqtt" o "amqp"
        destination: Topic o queue
        payload_size: Tamaño del payload en bytes
        qos: QoS level (solo MQTT)
        retained: Retain flag (solo MQTT)
        success: Si la publicación fue exitosa
        error_code: Código de error de la librería (si success=False)
        component: Componente que genera el log
    """
    extra = {
        "component": component,
        "protocol": protocol,
        "destination": destination,
        "payload_size_bytes": payload_size,
        "success": success,
    }

    if qos is not None:
        extra["qos"] = qos
        extra["retained"] = retained

    if error_code is not None:
        extra["error_code"] = error_code

    if success:
        logger.debug(f"📤 Mensaje publicado a {destination}", extra=extra)
    else:
        logger.warning(f"⚠️ Error publicando a {destination}", extra=extra)


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[BaseException] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    **kwargs: Any
) -> None:
    """
    Helper para logs de errores con contexto completo.

    Args:
        logger: Logger instance
        message: Mensaje de error
        exception: Excepción capturada (opcional)
        component: Componente donde ocurrió el error
        event: Evento que causó el error
        trace_id: Trace ID (usa contexto si no se especifica)
        **kwargs: Contexto adicional (broker_host, destination, etc.)
    """
    extra = {
        "component": component,
        "trace_id": trace_id or get_trace_id()
    }

    if event:
        extra["event"] = event

    if exception:
        extra["error_type"] = type(exception).__name__
        extra["error_message"] = str(exception)

    extra.update(kwargs)

    if exception:
        logger.error(
            f"{message}: {exception}",
            extra=extra,
            exc_info=(type(exception), exception, exception.__traceback__),
        )
    else:
        logger.error(message, extra=extra)


__all__ = [
    # Setup
    "setup_logging",
    # Trace context
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    # Helpers
    "log_broker_publish",
    "log_error_with_context",
]

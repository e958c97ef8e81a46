#!/usr/bin/env python3
"""
CLI para enviar una alarma a un broker MQTT / AMQP
===================================================

Uso:
    alarm-sender                      # preset mqtt-alarm
    alarm-sender amqp-alarm
    alarm-sender mqtt-hello --host 192.168.1.100
    alarm-sender mqtt-alarm --keyword "Brand 3" --address "Hauptstrasse 12" --info "Keine Person"
    alarm-sender --config config/alarm_sender/config.yaml
    alarm-sender --list-presets

Credenciales: MQTT_USERNAME/MQTT_PASSWORD o AMQP_USERNAME/AMQP_PASSWORD
(también desde .env). Precedencia: flag > entorno > YAML/preset.

Exit code: 0 si el mensaje se publicó, 1 si falló.
"""
import argparse
import logging
import sys
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ..config import (
    DEFAULT_PRESET,
    PRESETS,
    SenderConfig,
    available_presets,
)
from ..logging import setup_logging
from ..publishers import AlarmMessage, AlarmPublisher
from ..transport import default_registry
from .sender import publish_once

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alarm-sender",
        description="Publica un único mensaje en un broker MQTT o AMQP y termina"
    )
    parser.add_argument(
        "preset",
        nargs="?",
        default=DEFAULT_PRESET,
        choices=available_presets(),
        help=f"Preset de configuración (default: {DEFAULT_PRESET})"
    )
    parser.add_argument(
        "--config",
        help="YAML de configuración (reemplaza al preset)"
    )
    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="Lista los presets disponibles y termina"
    )
    parser.add_argument(
        "--list-protocols",
        action="store_true",
        help="Lista los protocolos de broker soportados y termina"
    )
    parser.add_argument(
        "--no-env",
        action="store_true",
        help="No leer credenciales desde variables de entorno"
    )

    broker = parser.add_argument_group("broker")
    broker.add_argument("--protocol", choices=["mqtt", "amqp"])
    broker.add_argument("--host", help="Broker host")
    broker.add_argument("--port", type=int, help="Broker port")
    broker.add_argument("--username")
    broker.add_argument("--password")
    broker.add_argument("--client-id", help="MQTT client id / AMQP connection name")
    broker.add_argument("--mqtt-version", choices=["3.1.1", "5"])
    broker.add_argument("--timeout", type=float, help="Connect/ack timeout en segundos")

    message = parser.add_argument_group("message")
    message.add_argument("--destination", help="MQTT topic / AMQP queue")
    payload = message.add_mutually_exclusive_group()
    payload.add_argument("--payload", help="Payload de texto literal")
    payload.add_argument("--keyword", help="Alarmstichwort (arma el payload de alarma)")
    message.add_argument("--address", default="", help="Dirección de la alarma (con --keyword)")
    message.add_argument("--info", default="", help="Info adicional (con --keyword)")
    message.add_argument(
        "--json",
        action="store_true",
        help="Con --keyword: payload JSON en lugar de delimitado con ###"
    )
    message.add_argument("--qos", type=int, choices=[0, 1, 2])
    message.add_argument("--retain", action="store_true", default=None)
    message.add_argument(
        "--declare-queue",
        action="store_true",
        default=None,
        help="AMQP: declarar la queue (durable) antes de publicar"
    )

    logs = parser.add_argument_group("logging")
    logs.add_argument("--log-level", choices=LOG_LEVELS)
    logs.add_argument("--log-file", help="Archivo de log con rotation (default: stdout)")

    return parser


def build_payload(args: argparse.Namespace) -> Optional[str]:
    """Payload literal, o armado desde --keyword/--address/--info."""
    if args.keyword is None:
        return args.payload

    publisher = AlarmPublisher()
    alarm = AlarmMessage(keyword=args.keyword, address=args.address, info=args.info)
    if args.json:
        return publisher.format_json(alarm)
    return publisher.format_delimited(alarm)


def load_config(args: argparse.Namespace) -> SenderConfig:
    """
    Config base (YAML o preset) + overrides de la línea de comandos.

    Raises:
        ValidationError: config inválida
        FileNotFoundError: --config no existe
        yaml.YAMLError: --config no es YAML válido
        ValueError: payload de alarma inválido / YAML sin mapping
    """
    if args.config:
        config = SenderConfig.from_yaml(args.config, use_env=False)
    else:
        config = SenderConfig.from_preset(args.preset, use_env=False)

    # Precedencia: flag > entorno (del protocolo final) > YAML/preset
    config = config.with_overrides(**{
        "broker.protocol": args.protocol,
        "broker.host": args.host,
        "broker.port": args.port,
        "broker.client_id": args.client_id,
        "broker.mqtt_version": args.mqtt_version,
        "broker.connect_timeout": args.timeout,
        "message.destination": args.destination,
        "message.payload": build_payload(args),
        "message.qos": args.qos,
        "message.retained": args.retain,
        "message.declare_queue": args.declare_queue,
        "logging.level": args.log_level,
        "logging.file": args.log_file,
    })
    if not args.no_env:
        config = config.with_env_credentials()

    return config.with_overrides(**{
        "broker.username": args.username,
        "broker.password": args.password,
    })


def print_presets() -> None:
    for name in available_presets():
        preset = PRESETS[name]
        broker = preset["broker"]
        message = preset["message"]
        print(
            f"{name:12} {broker['protocol']}://{broker['host']}:{broker['port']} "
            f"-> {message['destination']!r}: {message['payload']!r}"
        )


def print_protocols() -> None:
    for protocol, description in sorted(default_registry().get_help().items()):
        print(f"{protocol:6} {description}")


def main(argv: Optional[List[str]] = None) -> int:
    """Punto de entrada. Retorna exit code (0 ok, 1 fallo)."""
    load_dotenv()

    args = build_parser().parse_args(argv)

    if args.list_presets:
        print_presets()
        return 0

    if args.list_protocols:
        print_protocols()
        return 0

    try:
        config = load_config(args)
    except ValidationError as e:
        # Fail fast con mensaje claro
        print("❌ Invalid configuration:")
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error['loc'])
            print(f"   • {field}: {error['msg']}")
        return 1
    except (FileNotFoundError, KeyError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Error loading config: {e}")
        return 1

    setup_logging(
        level=config.logging.level,
        indent=config.logging.json_indent,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
        library_level=config.logging.library_level,
        add_fields={"app": "alarm_sender"},
    )
    logger.info(
        "🔧 Alarm sender starting...",
        extra={
            "component": "cli",
            "event": "starting",
            "preset": None if args.config else args.preset,
            "config_file": args.config,
        }
    )

    result = publish_once(config)
    if not result.ok:
        print(f"❌ {result.kind}: {result.error}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()

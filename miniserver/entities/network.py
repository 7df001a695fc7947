import ipaddress
import logging
import os
import socket

logger = logging.getLogger(__name__)

PUBLIC_IP_ENV = "MINISERVER_PUBLIC_IP"


def _is_usable(ip: str) -> bool:
    try:
        address = ipaddress.IPv4Address(ip)
    except ipaddress.AddressValueError:
        return False
    return not (address.is_loopback or address.is_unspecified)


def detect_local_ip() -> str:
    """
    Determina la IP IPv4 no-loopback que se anuncia en PASV.

    Orden: variable de entorno, "UDP trick" (no envía paquetes) y
    resolución del hostname.

    Raises:
        RuntimeError: si no se encuentra ninguna interfaz adecuada
    """
    env_ip = os.environ.get(PUBLIC_IP_ENV, '').strip()
    if env_ip:
        if _is_usable(env_ip):
            return env_ip
        logger.warning("Ignoring %s=%s: not a usable IPv4 address", PUBLIC_IP_ENV, env_ip)

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            ip = s.getsockname()[0]
        if _is_usable(ip):
            return ip
    except OSError as e:
        logger.debug("UDP route lookup failed: %s", e)

    try:
        ip = socket.gethostbyname(socket.gethostname())
        if _is_usable(ip):
            return ip
    except OSError as e:
        logger.debug("Hostname resolution failed: %s", e)

    raise RuntimeError("Could not find a suitable network interface")


def create_server_socket(host: str, port: int, backlog: int = 5) -> socket.socket:
    """Crea el socket de escucha. Cualquier fallo aquí aborta el arranque."""
    server_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        server_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        server_sock.bind((host, port))
        server_sock.listen(backlog)
    except OSError:
        server_sock.close()
        raise
    return server_sock

import logging

logger = logging.getLogger(__name__)


def handle_pasv(command, client_session):
    """Maneja comando PASV - modo pasivo para transferencia de datos

    El socket de datos se crea una sola vez por sesión; PASV sucesivos
    anuncian el mismo puerto.
    """
    try:
        pasv_ip, data_port = client_session.enter_passive_mode()
        pasv_address = format_pasv_address(pasv_ip, data_port)
    except (OSError, ValueError) as e:
        logger.error("Error setting up passive mode for %s: %s", client_session.client_address, e)
        client_session.send_response(425, "Can't open data connection")
        return False

    client_session.send_response(227, f"Entering Passive Mode ({pasv_address})")
    return False


def format_pasv_address(ip: str, port: int) -> str:
    """Codifica IP y puerto como 'a,b,c,d,hi,lo' (port = 256*hi + lo)."""
    ip_parts = ip.split('.')
    if len(ip_parts) != 4:
        raise ValueError(f"Not an IPv4 address: {ip}")
    port_high = port // 256
    port_low = port % 256
    return f"{','.join(ip_parts)},{port_high},{port_low}"

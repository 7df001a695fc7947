import errno
import importlib
import logging
import os
import pkgutil
import socket
import time
import types
from miniserver import commands as commands_package
from miniserver.entities.client_session import ClientSession
from miniserver.entities.command import Command
from miniserver.entities.config import ServerConfig
from miniserver.entities.network import create_server_socket

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 4096
ACCEPT_RETRY_DELAY = 0.1
WELCOME_MESSAGE = "Welcome to mini FTP Server (Passive Mode Only)"

def _load_command_handlers():
    """Carga handlers desde el paquete `commands`.

    Cada módulo `<verbo>.py` debe exponer `handle_<verbo>`. La tabla
    resultante es de sólo lectura.
    """
    handlers = {}

    for module_info in pkgutil.iter_modules(commands_package.__path__):
        name = module_info.name
        command_name = name.upper()
        module = importlib.import_module(f"{commands_package.__name__}.{name}")

        handler_func = getattr(module, f'handle_{name}', None)
        if handler_func:
            handlers[command_name] = handler_func
            logger.debug("Loaded command: %s", command_name)
        else:
            logger.warning("No handler found for %s", command_name)

    return types.MappingProxyType(handlers)

COMMAND_HANDLERS = _load_command_handlers()

def start_connection_listener(config: ServerConfig, root_directory: str = None):
    """Punto de entrada: crea el socket de escucha y atiende clientes uno a uno."""
    server_sock = create_server_socket(config.host, config.port, config.backlog)
    logger.info("FTP server listening on %s:%d", config.host, server_sock.getsockname()[1])

    try:
        serve_connections(server_sock, config, root_directory)
    finally:
        server_sock.close()
        logger.info("Connection listener stopped")

def serve_connections(server_sock: socket.socket, config: ServerConfig, root_directory: str = None):
    """Acepta conexiones de control en serie.

    Cada sesión se atiende hasta el final (incluyendo los accept anidados de
    las transferencias) antes de aceptar la siguiente. El bucle termina
    cuando el socket de escucha se cierra.
    """
    if root_directory is None:
        root_directory = os.getcwd()

    while True:
        try:
            client_sock, client_addr = server_sock.accept()

        except OSError as e:
            if server_sock.fileno() == -1 or e.errno == errno.EINVAL:
                break
            logger.error("Accept failed: %s", e)
            time.sleep(ACCEPT_RETRY_DELAY)
            continue

        logger.info("New client connected from %s", client_addr[0])
        client_handler(client_sock, client_addr, config, root_directory)


def client_handler(client_socket: socket.socket, client_address, config: ServerConfig, root_directory: str):
    """Crear sesión y ejecutar dispatcher para el cliente."""
    session = ClientSession(client_socket, client_address, config=config, current_directory=root_directory)
    logger.info("Current working dir: %s", session.get_current_directory())

    try:
        session.send_response(220, WELCOME_MESSAGE)
        command_dispatcher(session)

    except Exception:
        logger.exception("Error while handling client %s", client_address)

    finally:
        session.close()


def command_dispatcher(session: ClientSession):
    """Leer la conexión de control, separar líneas y despachar handlers.

    Una línea de más de MAX_LINE_LENGTH bytes se responde con un único 500
    y se descarta entera, hasta su '\\n' inclusive.
    """
    buf = b""
    discarding = False

    for raw_chunk in recv_chunks(session.control_socket, chunk_size=MAX_LINE_LENGTH):
        buf += raw_chunk

        while True:
            if discarding:
                if b'\n' not in buf:
                    buf = b""
                    break
                buf = buf.split(b'\n', 1)[1]
                discarding = False

            if b'\n' not in buf:
                break

            line, buf = buf.split(b'\n', 1)
            if handle_line(session, line.decode('utf-8', errors='replace')):
                return

        if len(buf) > MAX_LINE_LENGTH:
            logger.warning("Discarding over-long line from %s", session.client_address)
            session.send_response(500, "Syntax error, command unrecognized")
            buf = b""
            discarding = True

    logger.info("Client %s disconnected", session.client_address)


def handle_line(session: ClientSession, line: str) -> bool:
    """Procesa una línea de control. Retorna True si la sesión debe terminar."""
    logger.info("Received [%s]: %s", session.client_address[0] if session.client_address else "-", line.rstrip('\r'))
    command = Command(line)

    if command.is_empty():
        session.send_response(500, "Syntax error, command unrecognized")
        return False

    handler = COMMAND_HANDLERS.get(command.get_name())
    if handler is None:
        session.send_response(502, "Command not implemented")
        return False

    return bool(handler(command, session))


def recv_chunks(sock: socket.socket, chunk_size: int = 65536):
    """Generador que devuelve chunks de bytes desde `sock` hasta EOF."""
    try:
        while True:
            chunk = sock.recv(chunk_size)

            if not chunk:
                break

            yield chunk

    except OSError as e:
        logger.info("Error receiving data: %s", e)
        return


__all__ = [
    'COMMAND_HANDLERS',
    'start_connection_listener',
    'serve_connections',
    'client_handler',
]

import errno
import logging
import socket
import threading
import time
from miniserver.entities.config import ShellConfig
from miniserver.entities.network import create_server_socket
from miniserver.entities.pty_session import PtySession

logger = logging.getLogger(__name__)

ACCEPT_RETRY_DELAY = 0.1


def start_shell_listener(config: ShellConfig):
    """Punto de entrada del servicio de shell: un hilo por conexión."""
    server_sock = create_server_socket(config.host, config.port, config.backlog)
    logger.info("Shell server listening on %s:%d", config.host, server_sock.getsockname()[1])

    try:
        serve_shell_connections(server_sock, config)
    finally:
        server_sock.close()
        logger.info("Shell listener stopped")


def serve_shell_connections(server_sock: socket.socket, config: ShellConfig):
    """Acepta clientes y lanza una PtySession independiente por cada uno.

    Los hilos no se esperan: cada sesión recoge a su propio hijo antes de
    terminar. El bucle termina cuando el socket de escucha se cierra.
    """
    while True:
        try:
            client_sock, client_addr = server_sock.accept()

        except OSError as e:
            if server_sock.fileno() == -1 or e.errno == errno.EINVAL:
                break
            logger.error("Accept failed: %s", e)
            time.sleep(ACCEPT_RETRY_DELAY)
            continue

        logger.info("Client connected from %s", client_addr[0])
        session = PtySession(client_sock, client_addr, config=config)
        t = threading.Thread(target=session.run, name=f"pty-{client_addr[0]}:{client_addr[1]}", daemon=True)
        try:
            t.start()
        except RuntimeError:
            logger.exception("Unable to start session thread for %s", client_addr)
            client_sock.close()


__all__ = [
    'start_shell_listener',
    'serve_shell_connections',
]

import logging
import socket

logger = logging.getLogger(__name__)


class DataChannel:
    """
    Socket pasivo de datos de una sesión FTP.

    Se crea en el primer PASV, escucha en un puerto efímero con backlog 1 y
    persiste hasta que la sesión termina. Cada comando de transferencia hace
    un único accept bloqueante sobre él; como la sesión procesa los comandos
    en serie nunca hay dos conexiones de datos vivas a la vez.

    Campos principales:
        - listen_socket (socket.socket): Socket en escucha o None si está cerrado.
        - timeout (Optional[float]): Timeout para accept y para la conexión aceptada.
    """

    def __init__(self, bind_host: str = "0.0.0.0", timeout=None):
        self.bind_host = bind_host
        self.timeout = timeout
        self.listen_socket = None

    def open(self):
        """Crea el socket de escucha si aún no existe. Retorna el puerto."""
        if self.listen_socket is not None:
            return self.port

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self.bind_host, 0))
            sock.listen(1)
            sock.settimeout(self.timeout)
        except OSError:
            sock.close()
            raise

        self.listen_socket = sock
        logger.info("Data socket listening on %s:%d", self.bind_host, self.port)
        return self.port

    @property
    def port(self):
        if self.listen_socket is None:
            return None
        return self.listen_socket.getsockname()[1]

    def is_open(self) -> bool:
        return self.listen_socket is not None

    def accept(self):
        """
        Espera (bloqueante) la conexión del cliente para una transferencia.

        Returns:
            (socket.socket, addr) de la conexión de datos

        Raises:
            OSError: si no hay socket de escucha o el accept falla / expira
        """
        if self.listen_socket is None:
            raise OSError("Data channel is not open")

        data_conn, data_addr = self.listen_socket.accept()
        data_conn.settimeout(self.timeout)
        logger.info("Data connection established with %s", data_addr)
        return data_conn, data_addr

    def close(self):
        """Cierra el socket de escucha si existe."""
        if self.listen_socket is None:
            return
        port = self.port
        try:
            self.listen_socket.close()
            logger.info("Data socket closed on port %s", port)
        finally:
            self.listen_socket = None

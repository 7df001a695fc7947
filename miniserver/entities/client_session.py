import logging
import os
import socket
from miniserver.entities.config import ServerConfig
from miniserver.entities.data_channel import DataChannel

logger = logging.getLogger(__name__)

class ClientSession:
    """Representa el estado de sesión de un cliente FTP.

    La sesión es dueña de la conexión de control y del canal de datos; los
    cierra ambos en `close()`. El directorio actual sólo cambia tras un CWD
    exitoso y siempre es una ruta canónica.
    """

    def __init__(self, control_socket: socket.socket, client_address=None,
                 config: ServerConfig = None, current_directory: str = None):
        self.config = config or ServerConfig()

        # Identificación de la conexión
        self.control_socket = control_socket
        self.client_address = client_address

        # Directorio de trabajo (ruta absoluta canónica)
        self.current_directory = os.path.realpath(current_directory or os.getcwd())

        # PASV / data connection state
        self.data_channel = DataChannel(timeout=self.config.data_timeout)

    # ----------------- working directory -----------------
    def get_current_directory(self) -> str:
        return self.current_directory

    def set_current_directory(self, path: str):
        """Actualiza el directorio actual; `path` ya debe estar resuelto."""
        self.current_directory = path
        logger.info("Working directory for %s is now %s", self.client_address, path)

    #------------------ response sending -----------------

    def send_response(self, code: int, message: str) -> None:
        """Envía una respuesta al cliente con formato RFC-959.

        Esta ayuda centraliza el envío y el logging. No lanza excepciones al
        llamar: un socket roto se detecta en la siguiente lectura.
        """
        line = f"{code} {message}\r\n"
        try:
            self.control_socket.sendall(line.encode('utf-8'))
            logger.info("Sent response to %s: %s", self.client_address, line.strip())
        except OSError:
            logger.exception("Failed to send response to %s: %s", self.client_address, line.strip())

    # ----------------- PASV / data socket -----------------
    def enter_passive_mode(self):
        """Abre el canal de datos si hace falta. Retorna (ip_anunciada, puerto)."""
        port = self.data_channel.open()
        return self.get_advertised_address(), port

    def get_advertised_address(self) -> str:
        """IP que se anuncia en PASV: la configurada o la local de la conexión de control."""
        if self.config.advertised_address:
            return self.config.advertised_address
        return self.control_socket.getsockname()[0]

    def open_data_connection(self, preliminary_message: str):
        """
        Envía la respuesta preliminar 150 y espera la conexión de datos.

        Returns:
            socket.socket conectado, o None si no se pudo abrir (ya se respondió 425)
        """
        if not self.data_channel.is_open():
            self.send_response(425, "Use PASV first")
            return None

        self.send_response(150, preliminary_message)
        try:
            data_conn, _ = self.data_channel.accept()
        except OSError as e:
            logger.error("Accept failed for %s: %s", self.client_address, e)
            self.send_response(425, "Can't open data connection")
            return None

        return data_conn

    # ----------------- session lifecycle -----------------
    def close(self):
        """Cierra el canal de datos y la conexión de control."""
        try:
            self.data_channel.close()
        except OSError:
            logger.exception("Error closing data socket for %s", self.client_address)

        try:
            self.control_socket.close()
        except OSError:
            logger.exception("Error closing control socket for %s", self.client_address)

        logger.info("Closing connection from %s", self.client_address)

    # ----------------- util -----------------
    def __str__(self):
        return f"ClientSession(addr={self.client_address}, cwd={self.current_directory})"

import logging
import os
import pty
import selectors
import signal
import socket
import time
from miniserver.entities.config import ShellConfig

logger = logging.getLogger(__name__)


class PtySession:
    """
    Sesión de shell remoto: un proceso hijo sobre un pseudo-terminal y un
    relé de bytes entre el socket del cliente y el extremo maestro del PTY.

    La sesión es dueña del socket del cliente, del descriptor maestro y del
    proceso hijo; al terminar cierra el maestro, recoge al hijo y cierra el
    socket. Nada se comparte entre sesiones.

    Campos principales:
        - client_socket (socket.socket): Conexión del cliente.
        - master_fd (int): Extremo maestro del PTY o None.
        - pid (int): PID del hijo o None si no hay hijo vivo sin recoger.
        - exit_status (int): Estado devuelto por waitpid tras recoger al hijo.
    """

    def __init__(self, client_socket: socket.socket, client_address=None, config: ShellConfig = None):
        self.config = config or ShellConfig()
        self.client_socket = client_socket
        self.client_address = client_address
        self.master_fd = None
        self.pid = None
        self.exit_status = None

    # ---------------- lifecycle ----------------
    def run(self):
        """Lanza el hijo, hace de relé hasta que un extremo se cierra y libera todo."""
        try:
            self.spawn()
        except OSError as e:
            logger.error("Unable to start shell for %s: %s", self.client_address, e)
            self._close_client()
            return

        try:
            self.relay()
        except Exception:
            logger.exception("Relay failed for %s", self.client_address)
        finally:
            self.close()

    def spawn(self):
        """Crea el PTY y ejecuta el comando configurado con el esclavo como terminal de control."""
        command = list(self.config.command)
        pid, master_fd = pty.fork()

        if pid == 0:
            # Proceso hijo: nunca debe volver al código del servidor
            try:
                os.execvp(command[0], command)
            except OSError as e:
                os.write(2, f"{command[0]}: {e.strerror}\r\n".encode('utf-8', errors='replace'))
            finally:
                os._exit(127)

        self.pid = pid
        self.master_fd = master_fd
        logger.info("PTY created for %s (fd=%d, pid=%d)", self.client_address, master_fd, pid)

    def relay(self):
        """Copia bytes en ambos sentidos hasta EOF o error en cualquiera de los dos extremos."""
        with selectors.DefaultSelector() as selector:
            selector.register(self.client_socket, selectors.EVENT_READ, self._client_to_pty)
            selector.register(self.master_fd, selectors.EVENT_READ, self._pty_to_client)

            while True:
                for key, _ in selector.select():
                    if not key.data():
                        return

    def _client_to_pty(self) -> bool:
        try:
            data = self.client_socket.recv(self.config.chunk_size)
        except OSError as e:
            logger.info("Error reading from client %s: %s", self.client_address, e)
            return False

        if not data:
            logger.info("Client %s closed the connection", self.client_address)
            return False

        try:
            self._write_all(self.master_fd, data)
        except OSError as e:
            logger.info("Error writing to PTY for %s: %s", self.client_address, e)
            return False
        return True

    def _pty_to_client(self) -> bool:
        try:
            data = os.read(self.master_fd, self.config.chunk_size)
        except OSError as e:
            # EIO: el hijo cerró el esclavo
            logger.info("PTY for %s closed: %s", self.client_address, e)
            return False

        if not data:
            return False

        try:
            self.client_socket.sendall(data)
        except OSError as e:
            logger.info("Error writing to client %s: %s", self.client_address, e)
            return False
        return True

    @staticmethod
    def _write_all(fd: int, data: bytes):
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]

    # ---------------- teardown ----------------
    def close(self):
        """Cierra el maestro (cuelga el terminal), recoge al hijo y cierra el socket."""
        if self.master_fd is not None:
            try:
                os.close(self.master_fd)
            except OSError:
                logger.exception("Error closing PTY for %s", self.client_address)
            self.master_fd = None

        if self.pid is not None:
            self.exit_status = self._reap(self.pid)
            logger.info("Child %d of %s reaped (status=%s)", self.pid, self.client_address, self.exit_status)
            self.pid = None

        self._close_client()

    def _close_client(self):
        try:
            self.client_socket.close()
        except OSError:
            logger.exception("Error closing client socket for %s", self.client_address)
        logger.info("Client disconnected from %s", self.client_address)

    def _reap(self, pid: int):
        """
        Espera al hijo. Tras cerrar el maestro el hijo recibe SIGHUP; si sigue
        vivo pasado `reap_timeout` se le envía SIGTERM y luego SIGKILL.
        """
        status = self._wait_for(pid, self.config.reap_timeout)
        if status is not None:
            return status

        for sig in (signal.SIGTERM, signal.SIGKILL):
            logger.warning("Child %d of %s still alive, sending %s", pid, self.client_address, sig.name)
            try:
                os.kill(pid, sig)
            except ProcessLookupError:
                pass
            status = self._wait_for(pid, 1.0)
            if status is not None:
                return status

        try:
            return os.waitpid(pid, 0)[1]
        except ChildProcessError:
            return None

    @staticmethod
    def _wait_for(pid: int, timeout: float):
        """waitpid no bloqueante en bucle. Retorna el estado o None si sigue vivo."""
        deadline = time.monotonic() + timeout
        while True:
            try:
                waited_pid, status = os.waitpid(pid, os.WNOHANG)
            except ChildProcessError:
                # Ya recogido
                return -1
            if waited_pid != 0:
                return status
            if time.monotonic() >= deadline:
                return None
            time.sleep(0.05)

from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_FTP_PORT = 21
DEFAULT_SHELL_PORT = 12345
DEFAULT_SHELL_COMMAND = ("/bin/sh",)


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuración del servicio FTP. Se pasa a cada sesión al crearla.

    Campos principales:
        - host (str): IP donde escucha la conexión de control.
        - port (int): Puerto de la conexión de control.
        - advertised_address (Optional[str]): IP anunciada en la respuesta PASV.
          Si es None se usa la IP local de la conexión de control.
        - data_timeout (Optional[float]): Timeout del accept/transferencia de datos.
          None bloquea indefinidamente.
        - chunk_size (int): Tamaño de bloque de las transferencias.
    """
    host: str = "0.0.0.0"
    port: int = DEFAULT_FTP_PORT
    advertised_address: Optional[str] = None
    data_timeout: Optional[float] = None
    chunk_size: int = 65536
    backlog: int = 5


@dataclass(frozen=True)
class ShellConfig:
    """Configuración del servicio de shell remoto sobre PTY."""
    host: str = "0.0.0.0"
    port: int = DEFAULT_SHELL_PORT
    command: Tuple[str, ...] = field(default=DEFAULT_SHELL_COMMAND)
    chunk_size: int = 1024
    backlog: int = 10
    reap_timeout: float = 5.0

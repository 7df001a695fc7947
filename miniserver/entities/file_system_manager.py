import grp
import logging
import os
import pwd
import stat
import time

logger = logging.getLogger(__name__)

MAX_PATH = 512
PATH_SEPARATOR = "/"

_PERMISSION_BITS = (
    (stat.S_IRUSR, 'r'), (stat.S_IWUSR, 'w'), (stat.S_IXUSR, 'x'),
    (stat.S_IRGRP, 'r'), (stat.S_IWGRP, 'w'), (stat.S_IXGRP, 'x'),
    (stat.S_IROTH, 'r'), (stat.S_IWOTH, 'w'), (stat.S_IXOTH, 'x'),
)


class PathResolutionError(Exception):
    """La ruta pedida no se puede usar como directorio de trabajo"""
    pass

# =============================================================================
# PATH RESOLUTION
# =============================================================================

def join_path(current_directory, requested_path):
    """
    Une `requested_path` con el directorio actual usando un único separador.
    Una ruta que empieza por '/' se toma como absoluta.

    Raises:
        PathResolutionError: si la ruta resultante excede MAX_PATH
    """
    if requested_path.startswith(PATH_SEPARATOR):
        joined = requested_path
    else:
        joined = current_directory.rstrip(PATH_SEPARATOR) + PATH_SEPARATOR + requested_path

    if len(joined.encode('utf-8', errors='surrogateescape')) >= MAX_PATH:
        raise PathResolutionError(f"Path too long: {joined[:64]}...")

    return joined

def resolve_directory(current_directory, requested_path):
    """
    Resuelve la ruta pedida a una ruta canónica de directorio accesible.

    No hay confinamiento a una raíz: '..' y los enlaces simbólicos pueden
    llevar a cualquier parte del sistema de archivos.

    Returns:
        str: Ruta absoluta canónica (sin '.', '..' ni enlaces)

    Raises:
        PathResolutionError: si la ruta es demasiado larga, no existe, no es
        un directorio o no se puede entrar en ella
    """
    joined = join_path(current_directory, requested_path)

    try:
        resolved = os.path.realpath(joined, strict=True)
    except OSError as e:
        raise PathResolutionError(f"Cannot resolve {joined}: {e.strerror}") from e

    if not os.path.isdir(resolved):
        raise PathResolutionError(f"Not a directory: {resolved}")

    if not os.access(resolved, os.X_OK):
        raise PathResolutionError(f"Permission denied: {resolved}")

    return resolved

# =============================================================================
# DIRECTORY LISTING
# =============================================================================

def list_directory_names(path):
    """
    Lista solo nombres de archivos/directorios (para NLST).
    Nunca incluye '.' ni '..'.

    Returns:
        List[str] con nombres de cada elemento
    """
    names = []
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.name in ('.', '..'):
                continue
            names.append(entry.name)
    return names

def permission_string(mode):
    """Devuelve 'drwxr-xr-x' a partir de st_mode"""
    flags = ['d' if stat.S_ISDIR(mode) else '-']
    flags.extend(char if mode & bit else '-' for bit, char in _PERMISSION_BITS)
    return ''.join(flags)

def _owner_name(uid):
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return ""

def _group_name(gid):
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return ""

def format_detailed_entry(name, file_stat):
    """
    Formatea una línea del listado LIST.

    Campos: permisos, dueño, grupo, fecha de modificación (YY-MM-DD HH:MM),
    tamaño en KiB redondeado y nombre.
    """
    modified = time.strftime("%y-%m-%d %H:%M", time.localtime(file_stat.st_mtime))
    size_kib = file_stat.st_size / 1024.0
    return (
        f"{permission_string(file_stat.st_mode)} {_owner_name(file_stat.st_uid)} "
        f"{_group_name(file_stat.st_gid)} \t{modified}\t{size_kib:1.0f}K\t{name}"
    )

def list_directory_detailed(path, formatter=format_detailed_entry):
    """
    Lista contenido con información completa (para LIST).

    Las entradas cuyo stat falla (enlace roto, borrada durante el listado)
    se omiten.

    Returns:
        List[str]: una línea formateada por entrada
    """
    lines = []
    with os.scandir(path) as entries:
        for entry in entries:
            try:
                file_stat = os.stat(os.path.join(path, entry.name))
            except OSError as e:
                logger.debug("Skipping %s in listing: %s", entry.name, e)
                continue
            lines.append(formatter(entry.name, file_stat))
    return lines

def lines_to_bytes(lines):
    """Convierte una lista de líneas a bytes con terminador CRLF"""
    return b"".join(f"{line}\r\n".encode('utf-8', errors='surrogateescape') for line in lines)

# =============================================================================
# TRANSFERS
# =============================================================================

def send_file(data_conn, file_path, chunk_size=65536):
    """
    Envía un archivo por `data_conn` en bloques.

    Si el archivo no se puede abrir la transferencia queda en cero bytes;
    los errores de socket se propagan al handler.

    Returns:
        int: bytes enviados
    """
    try:
        f = open(file_path, 'rb')
    except OSError as e:
        logger.warning("Unable to open file %s: %s", file_path, e)
        return 0

    total_sent = 0
    with f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            data_conn.sendall(chunk)
            total_sent += len(chunk)

    return total_sent

def receive_file(data_conn, file_path, chunk_size=65536):
    """
    Guarda en `file_path` (creado o truncado) todo lo recibido por `data_conn`
    hasta EOF.

    Si el archivo no se puede crear no se lee nada de la conexión.

    Returns:
        int: bytes escritos
    """
    try:
        f = open(file_path, 'wb')
    except OSError as e:
        logger.warning("Unable to create file %s: %s", file_path, e)
        return 0

    total_received = 0
    with f:
        while True:
            chunk = data_conn.recv(chunk_size)
            if not chunk:
                break
            f.write(chunk)
            total_received += len(chunk)

    return total_received

def send_bytes(data_conn, payload):
    """Envía un listado ya generado por la conexión de datos"""
    data_conn.sendall(payload)
    return len(payload)

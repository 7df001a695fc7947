import logging
from miniserver.entities.file_system_manager import send_file, join_path, PathResolutionError

logger = logging.getLogger(__name__)

def handle_retr(command, client_session):
    """Maneja comando RETR - descarga de archivo mediante data connection (streaming).

    Si el archivo no se puede abrir se envían cero bytes y aun así se
    responde 226.
    """
    if not command.has_argument():
        client_session.send_response(501, "Syntax error in parameters")
        return False

    filename = command.get_argument()
    try:
        full_path = join_path(client_session.get_current_directory(), filename)
    except PathResolutionError as e:
        logger.info("RETR rejected for %s: %s", client_session.client_address, e)
        client_session.send_response(550, "Requested action not taken")
        return False

    data_conn = client_session.open_data_connection("Opening BINARY mode data connection")
    if data_conn is None:
        return False

    try:
        logger.info("Sending file %s to %s", full_path, client_session.client_address)
        total_sent = send_file(data_conn, full_path, chunk_size=client_session.config.chunk_size)
        logger.info("RETR %s complete (%d bytes)", full_path, total_sent)

    except OSError as e:
        logger.error("Error in RETR command: %s", e)
        client_session.send_response(426, "Connection closed; transfer aborted")
        return False

    finally:
        data_conn.close()

    client_session.send_response(226, "Transfer complete")
    return False

import logging
from miniserver.entities.file_system_manager import list_directory_detailed, lines_to_bytes, send_bytes

logger = logging.getLogger(__name__)

def handle_list(command, client_session):
    """Maneja comando LIST - listar directorio con formato detallado"""
    data_conn = client_session.open_data_connection("Opening ASCII mode data connection for file list")
    if data_conn is None:
        return False

    try:
        current_directory = client_session.get_current_directory()
        try:
            listing = list_directory_detailed(current_directory)
        except OSError as e:
            logger.error("Unable to open directory %s: %s", current_directory, e)
            listing = []

        sent = send_bytes(data_conn, lines_to_bytes(listing))
        logger.info("LIST sent %d entries (%d bytes) to %s", len(listing), sent, client_session.client_address)

    except OSError as e:
        logger.error("Error in LIST command: %s", e)
        client_session.send_response(426, "Connection closed; transfer aborted")
        return False

    finally:
        data_conn.close()

    client_session.send_response(226, "Transfer complete")
    return False

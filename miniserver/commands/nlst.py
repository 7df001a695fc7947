import logging
from miniserver.entities.file_system_manager import list_directory_names, lines_to_bytes, send_bytes

logger = logging.getLogger(__name__)

def handle_nlst(command, client_session):
    """Maneja comando NLST - lista solo nombres de archivos"""
    data_conn = client_session.open_data_connection("Opening ASCII mode data connection for file list")
    if data_conn is None:
        return False

    try:
        current_directory = client_session.get_current_directory()
        try:
            file_names = list_directory_names(current_directory)
        except OSError as e:
            logger.error("Unable to open directory %s: %s", current_directory, e)
            file_names = []

        sent = send_bytes(data_conn, lines_to_bytes(file_names))
        logger.info("NLST sent %d entries (%d bytes) to %s", len(file_names), sent, client_session.client_address)

    except OSError as e:
        logger.error("Error in NLST command: %s", e)
        client_session.send_response(426, "Connection closed; transfer aborted")
        return False

    finally:
        data_conn.close()

    client_session.send_response(226, "Transfer complete")
    return False

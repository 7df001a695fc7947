import logging
from miniserver.entities.file_system_manager import resolve_directory, PathResolutionError

logger = logging.getLogger(__name__)

def handle_cwd(command, client_session):
    """Maneja comando CWD - Change Working Directory"""
    if not command.has_argument():
        client_session.send_response(501, "Syntax error in parameters")
        return False

    try:
        new_current_dir = resolve_directory(client_session.get_current_directory(), command.get_argument())
    except PathResolutionError as e:
        logger.info("CWD rejected for %s: %s", client_session.client_address, e)
        client_session.send_response(550, "Failed to change directory")
        return False

    client_session.set_current_directory(new_current_dir)
    client_session.send_response(250, "Directory successfully changed")
    return False

def handle_user(command, client_session):
    """Maneja comando USER - se acepta cualquier usuario, no hay autenticación."""
    client_session.send_response(331, "User name okay, need password")
    return False

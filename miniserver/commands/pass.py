def handle_pass(command, client_session):
    """Maneja comando PASS - se acepta cualquier contraseña."""
    client_session.send_response(230, "User logged in")
    return False

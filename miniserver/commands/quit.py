def handle_quit(command, client_session):
    """Maneja comando QUIT: responde 221 y pide cerrar la sesión."""
    client_session.send_response(221, "Goodbye")
    return True

def handle_type(command, client_session):
    """Maneja comando TYPE - siempre binario, el argumento se ignora"""
    client_session.send_response(200, "Type set to I")
    return False

def handle_pwd(command, client_session):
    """Maneja comando PWD - Print Working Directory"""
    current_dir = client_session.get_current_directory()

    # Enviar respuesta en formato FTP (257 "PATHNAME")
    client_session.send_response(257, f'"{current_dir}" is the current directory')
    return False

"""Un módulo por comando FTP; cada uno expone `handle_<verbo>(command, session) -> bool`."""

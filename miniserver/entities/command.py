class Command:
    """Una línea de la conexión de control: verbo y argumento opcional."""

    def __init__(self, raw_command):
        self.raw_command = raw_command.rstrip('\r\n')
        self.parse_command()

    def parse_command(self):
        """Separa el verbo del resto de la línea.

        El argumento es todo lo que sigue al primer bloque de espacios, sin
        partirlo: los nombres de archivo pueden contener espacios.
        """
        parts = self.raw_command.split(None, 1)
        if parts:
            self.name = parts[0].upper()  # Comando siempre en mayúsculas
            self.argument = parts[1] if len(parts) > 1 else None
        else:
            self.name = ""
            self.argument = None

    def __str__(self):
        return f"Command(name='{self.name}', argument={self.argument!r})"

    def is_empty(self):
        """True si la línea no contenía ningún verbo"""
        return not self.name

    def get_name(self):
        """Devuelve el nombre del comando"""
        return self.name

    def get_argument(self, default=None):
        """Devuelve el argumento o `default` si no hay"""
        return self.argument if self.argument is not None else default

    def has_argument(self):
        return self.argument is not None

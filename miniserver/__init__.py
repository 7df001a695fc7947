from miniserver.entities.config import ServerConfig, ShellConfig

__all__ = ["ServerConfig", "ShellConfig"]

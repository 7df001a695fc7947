import argparse
import logging
import os
import signal
import sys
from miniserver.entities.config import DEFAULT_FTP_PORT, DEFAULT_SHELL_PORT, DEFAULT_SHELL_COMMAND, ServerConfig, ShellConfig

logger = logging.getLogger("miniserver")


def _port(value: str) -> int:
    port = int(value)
    if port <= 0 or port > 65535:
        raise argparse.ArgumentTypeError(f"Invalid port number {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="miniserver", description="Mini FTP (passive mode) and PTY shell servers")
    subparsers = parser.add_subparsers(dest="service", required=True)

    ftp = subparsers.add_parser("ftp", help="FTP server, one client at a time")
    ftp.add_argument("--host", default="0.0.0.0", help="IP de escucha de la conexión de control")
    ftp.add_argument("--port", type=_port, default=DEFAULT_FTP_PORT)
    ftp.add_argument("--address", help="IP anunciada en PASV. Si no se pasa, se detecta una IP local no-loopback")
    ftp.add_argument("--data-timeout", type=float, default=None, help="Segundos de espera de la conexión de datos")
    ftp.add_argument("--root", default=None, help="Directorio inicial de cada sesión (por defecto el actual)")

    shell = subparsers.add_parser("shell", help="Remote shell over a pseudo-terminal")
    shell.add_argument("--host", default="0.0.0.0")
    shell.add_argument("--port", type=_port, default=DEFAULT_SHELL_PORT)
    shell.add_argument("--command", nargs="+", default=list(DEFAULT_SHELL_COMMAND), help="Comando a ejecutar en el PTY")

    return parser


def run_ftp(args) -> int:
    from miniserver.entities.ftp_server import start_connection_listener
    from miniserver.entities.network import detect_local_ip

    address = args.address
    if not address:
        try:
            address = detect_local_ip()
        except RuntimeError as e:
            logger.error("%s", e)
            return 1

    config = ServerConfig(host=args.host, port=args.port, advertised_address=address, data_timeout=args.data_timeout)
    root = os.path.realpath(args.root) if args.root else os.getcwd()
    logger.info("Server running on %s port %d", address, config.port)

    try:
        start_connection_listener(config, root_directory=root)
    except OSError as e:
        logger.error("Unable to start listener on %s:%d: %s", config.host, config.port, e)
        return 1
    return 0


def run_shell(args) -> int:
    from miniserver.entities.shell_server import start_shell_listener

    config = ShellConfig(host=args.host, port=args.port, command=tuple(args.command))
    try:
        start_shell_listener(config)
    except OSError as e:
        logger.error("Unable to start listener on %s:%d: %s", config.host, config.port, e)
        return 1
    return 0


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    args = build_parser().parse_args(argv)

    def _handle_sigint(signum, frame):
        logger.info("Shutting down the server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, _handle_sigint)

    if args.service == "ftp":
        return run_ftp(args)
    return run_shell(args)


if __name__ == "__main__":
    sys.exit(main())

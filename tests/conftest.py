import contextlib
import os
import socket
import threading

import pytest

from miniserver.entities.config import ServerConfig
from miniserver.entities.ftp_server import serve_connections
from miniserver.entities.network import create_server_socket


class RunningServer:
    def __init__(self, server_sock, thread, root):
        self.server_sock = server_sock
        self.thread = thread
        self.root = root
        self.host, self.port = server_sock.getsockname()

    def stop(self):
        with contextlib.suppress(OSError):
            self.server_sock.shutdown(socket.SHUT_RDWR)
        self.server_sock.close()
        self.thread.join(timeout=5)


def start_ftp_server(root, **config_overrides):
    overrides = {"host": "127.0.0.1", "port": 0, "data_timeout": 5.0}
    overrides.update(config_overrides)
    config = ServerConfig(**overrides)
    server_sock = create_server_socket(config.host, config.port)
    thread = threading.Thread(target=serve_connections, args=(server_sock, config, root), daemon=True)
    thread.start()
    return RunningServer(server_sock, thread, root)


@pytest.fixture
def ftp_root(tmp_path):
    root = os.path.realpath(tmp_path)
    with open(os.path.join(root, "hello.txt"), "wb") as f:
        f.write(b"hello world\n")
    os.mkdir(os.path.join(root, "sub"))
    return root


@pytest.fixture
def ftp_server(ftp_root):
    server = start_ftp_server(ftp_root)
    yield server
    server.stop()


class ControlClient:
    """Cliente mínimo de la conexión de control para respuestas exactas."""

    def __init__(self, host, port):
        self.sock = socket.create_connection((host, port), timeout=5)
        self.reader = self.sock.makefile('rb')
        self.welcome = self.readline()

    def readline(self):
        return self.reader.readline().decode('utf-8').rstrip('\r\n')

    def send(self, raw):
        self.sock.sendall(raw.encode('utf-8'))

    def command(self, line):
        self.send(line + "\r\n")
        return self.readline()

    def pasv_port(self):
        reply = self.command("PASV")
        numbers = reply[reply.index('(') + 1:reply.index(')')].split(',')
        return reply, int(numbers[4]) * 256 + int(numbers[5])

    def close(self):
        self.reader.close()
        self.sock.close()


@pytest.fixture
def control(ftp_server):
    client = ControlClient(ftp_server.host, ftp_server.port)
    yield client
    client.close()

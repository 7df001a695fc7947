import contextlib
import os
import socket
import sys
import threading
import time

import pytest

from miniserver.entities.config import ShellConfig
from miniserver.entities.network import create_server_socket
from miniserver.entities.pty_session import PtySession
from miniserver.entities.shell_server import serve_shell_connections

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX pseudo-terminals")


def _read_until(sock, predicate, timeout=10.0):
    sock.settimeout(0.2)
    data = b""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline and not predicate(data):
        try:
            chunk = sock.recv(4096)
        except socket.timeout:
            continue
        if not chunk:
            break
        data += chunk
    return data


def _start_session(command, **overrides):
    server_end, client_end = socket.socketpair()
    session = PtySession(server_end, "test-client", ShellConfig(command=tuple(command), **overrides))
    thread = threading.Thread(target=session.run, daemon=True)
    thread.start()
    return session, thread, client_end


def _wait_for_pid(session, timeout=5.0):
    deadline = time.monotonic() + timeout
    while session.pid is None and time.monotonic() < deadline:
        time.sleep(0.01)
    return session.pid


def test_child_output_reaches_client_and_child_is_reaped():
    session, thread, client = _start_session(["/bin/sh", "-c", "echo done"])
    try:
        data = _read_until(client, lambda d: False)
    finally:
        thread.join(10)
        client.close()

    assert b"done" in data
    assert not thread.is_alive()
    assert session.pid is None and session.master_fd is None
    assert os.WIFEXITED(session.exit_status) and os.WEXITSTATUS(session.exit_status) == 0


def test_client_input_is_fed_to_child():
    session, thread, client = _start_session(["/bin/cat"])
    try:
        client.sendall(b"ping\n")
        data = _read_until(client, lambda d: d.count(b"ping") >= 2)
    finally:
        client.close()
        thread.join(10)

    # eco del terminal y salida de cat
    assert data.count(b"ping") >= 2


def test_client_disconnect_tears_down_child():
    session, thread, client = _start_session(["/bin/cat"])
    pid = _wait_for_pid(session)
    assert pid is not None

    client.close()
    thread.join(10)

    assert not thread.is_alive()
    assert session.pid is None and session.master_fd is None
    with pytest.raises(ChildProcessError):
        os.waitpid(pid, os.WNOHANG)


def test_child_ignoring_hangup_is_killed():
    session, thread, client = _start_session(
        ["/bin/sh", "-c", "trap '' HUP; while :; do sleep 1; done"], reap_timeout=0.5)
    pid = _wait_for_pid(session)
    assert pid is not None

    client.close()
    thread.join(15)

    assert not thread.is_alive()
    assert os.WIFSIGNALED(session.exit_status)
    with pytest.raises(ChildProcessError):
        os.waitpid(pid, os.WNOHANG)


def test_exec_failure_only_ends_that_session():
    session, thread, client = _start_session(["/nonexistent/program"])
    try:
        data = _read_until(client, lambda d: False)
    finally:
        thread.join(10)
        client.close()

    assert b"/nonexistent/program" in data
    assert os.WEXITSTATUS(session.exit_status) == 127


@pytest.fixture
def shell_server():
    config = ShellConfig(host="127.0.0.1", port=0, command=("/bin/sh",))
    server_sock = create_server_socket(config.host, config.port)
    thread = threading.Thread(target=serve_shell_connections, args=(server_sock, config), daemon=True)
    thread.start()
    yield server_sock.getsockname()
    with contextlib.suppress(OSError):
        server_sock.shutdown(socket.SHUT_RDWR)
    server_sock.close()
    thread.join(5)


def test_echo_through_shell_server(shell_server):
    with socket.create_connection(shell_server, timeout=5) as client:
        client.sendall(b"echo hi\n")
        data = _read_until(client, lambda d: b"\r\nhi\r\n" in d)

    assert b"echo hi" in data
    assert b"\r\nhi\r\n" in data


def test_shell_sessions_run_concurrently(shell_server):
    with socket.create_connection(shell_server, timeout=5) as first, \
            socket.create_connection(shell_server, timeout=5) as second:
        second.sendall(b"echo second\n")
        assert b"\r\nsecond\r\n" in _read_until(second, lambda d: b"\r\nsecond\r\n" in d)
        first.sendall(b"echo first\n")
        assert b"\r\nfirst\r\n" in _read_until(first, lambda d: b"\r\nfirst\r\n" in d)

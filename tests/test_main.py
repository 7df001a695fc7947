import pytest

from miniserver.commands.pasv import format_pasv_address
from miniserver.entities.network import PUBLIC_IP_ENV, detect_local_ip
from miniserver.main import build_parser


def test_ftp_defaults():
    args = build_parser().parse_args(["ftp"])
    assert args.port == 21
    assert args.address is None
    assert args.data_timeout is None


def test_shell_defaults():
    args = build_parser().parse_args(["shell"])
    assert args.port == 12345
    assert args.command == ["/bin/sh"]


@pytest.mark.parametrize("port", ["0", "65536", "-1"])
def test_invalid_port_is_rejected(port):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["ftp", "--port", port])


def test_pasv_address_encoding():
    assert format_pasv_address("192.168.1.10", 50000) == "192,168,1,10,195,80"
    assert format_pasv_address("10.0.0.1", 21) == "10,0,0,1,0,21"


def test_pasv_address_requires_ipv4():
    with pytest.raises(ValueError):
        format_pasv_address("::1", 1000)


def test_public_ip_from_environment(monkeypatch):
    monkeypatch.setenv(PUBLIC_IP_ENV, "203.0.113.7")
    assert detect_local_ip() == "203.0.113.7"


def test_package_exports_configs():
    import miniserver

    assert miniserver.ServerConfig().port == 21
    assert miniserver.ShellConfig().port == 12345

"""Tests for target normalization and resolution."""

import socket

import pytest

from portsweep import address
from portsweep.address import format_target, normalize_host, resolve_address, strip_brackets
from portsweep.errors import AddressResolutionError, ConfigError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("::1", "[::1]"),
        ("[::1]", "[::1]"),
        ("[[::1]]", "[::1]"),
        ("[[[[fe80::1]]]]", "[fe80::1]"),
        ("  [2001:db8::5]  ", "[2001:db8::5]"),
        ("192.168.1.10", "192.168.1.10"),
        ("[192.168.1.10]", "192.168.1.10"),
        ("[ [::1] ]", "[::1]"),
        (" [[ ::1 ]] ", "[::1]"),
        ("example.com", "example.com"),
    ],
)
def test_normalize_host(raw, expected):
    assert normalize_host(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["::1", "[::1]", "[[[::1]]]", "[ [::1] ]", " [[ ::1 ]] ", "10.0.0.1", "[ [10.0.0.1] ]", "[[host.local]]", "a:b"],
)
def test_normalize_is_idempotent(raw):
    once = normalize_host(raw)
    assert normalize_host(once) == once


@pytest.mark.parametrize("raw", ["", "   ", "[]", "[[ ]]"])
def test_normalize_rejects_empty(raw):
    with pytest.raises(ConfigError):
        normalize_host(raw)


def test_strip_brackets():
    assert strip_brackets("[[::1]]") == "::1"
    assert strip_brackets("localhost") == "localhost"


def test_format_target():
    assert format_target("[[::1]]", 80) == "[::1]:80"
    assert format_target("10.0.0.1", 443) == "10.0.0.1:443"


def test_resolve_ipv4_literal():
    target = resolve_address("[127.0.0.1]", 80)
    assert target.host == "127.0.0.1"
    assert target.address == "127.0.0.1"
    assert target.family == socket.AF_INET
    assert target.endpoint(80) == "127.0.0.1:80"


@pytest.mark.skipif(not socket.has_ipv6, reason="IPv6 not supported")
def test_resolve_nested_ipv6_literal():
    target = resolve_address("[[::1]]", 80)
    assert target.host == "[::1]"
    assert target.address == "::1"
    assert target.family == socket.AF_INET6
    assert target.endpoint(80) == "[::1]:80"


def test_resolve_failure(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(address.socket, "getaddrinfo", fail)
    with pytest.raises(AddressResolutionError) as exc_info:
        resolve_address("no-such-host.invalid", 80)
    assert exc_info.value.host == "no-such-host.invalid"
    assert isinstance(exc_info.value, ConfigError)


def test_resolve_empty_answer(monkeypatch):
    monkeypatch.setattr(address.socket, "getaddrinfo", lambda *args, **kwargs: [])
    with pytest.raises(AddressResolutionError):
        resolve_address("empty.example", 80)

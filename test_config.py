"""Tests for resolver configuration loading and validation."""
import pytest

from concurrentResolver.resolver.config import INVALID_FORMAT_MESSAGE, ResolverConfig


def test_defaults():
    cfg = ResolverConfig()
    assert cfg.input == "urls.txt"
    assert cfg.output == "resolved_ips.txt"
    assert cfg.concurrency == 100
    assert cfg.format == "ip"
    assert cfg.timeout is None
    assert cfg.nameservers == []


def test_invalid_format_rejected_with_clear_message():
    with pytest.raises(ValueError) as excinfo:
        ResolverConfig.build(overrides={"format": "csv"})
    assert str(excinfo.value) == INVALID_FORMAT_MESSAGE


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError, match="concurrency"):
        ResolverConfig.build(overrides={"concurrency": 0})


def test_yaml_values_and_overrides(tmp_path):
    path = tmp_path / "resolver.yaml"
    path.write_text(
        "input: domains.txt\n"
        "format: domain-ip\n"
        "concurrency: 20\n"
        "nameservers:\n"
        "  - 1.1.1.1\n"
    )

    loaded = ResolverConfig.load(str(path))
    assert loaded.input == "domains.txt"
    assert loaded.format == "domain-ip"
    assert loaded.concurrency == 20
    assert loaded.nameservers == ["1.1.1.1"]

    cfg = ResolverConfig.build(str(path), {"concurrency": 5, "format": None, "output": "out.txt"})
    assert cfg.concurrency == 5
    assert cfg.format == "domain-ip"
    assert cfg.output == "out.txt"


def test_invalid_format_in_yaml(tmp_path):
    path = tmp_path / "resolver.yaml"
    path.write_text("format: json\n")
    with pytest.raises(ValueError, match="Invalid output format"):
        ResolverConfig.load(str(path))


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ResolverConfig.load(str(tmp_path / "missing.yaml"))


def test_config_must_be_a_mapping(tmp_path):
    path = tmp_path / "resolver.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="expected a mapping"):
        ResolverConfig.load(str(path))


def test_empty_config_file_uses_defaults(tmp_path):
    path = tmp_path / "resolver.yaml"
    path.write_text("")
    assert ResolverConfig.load(str(path)) == ResolverConfig()


def test_nameservers_must_be_addresses(tmp_path):
    path = tmp_path / "resolver.yaml"
    path.write_text("nameservers: [foo]\n")
    with pytest.raises(ValueError, match="Invalid nameserver 'foo'"):
        ResolverConfig.load(str(path))


def test_nameservers_accept_ip_and_https_forms():
    servers = ["1.1.1.1", "2606:4700:4700::1111", "https://dns.example/dns-query"]
    assert ResolverConfig.build(overrides={"nameservers": servers}).nameservers == servers

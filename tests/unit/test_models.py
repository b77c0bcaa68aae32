"""Unit tests for data models and errors."""

import pytest

from docker_tester.models import (
    ContainerHandle,
    ContainerStartError,
    DockerTesterException,
    ErrorType,
    MigrationError,
    MigrationExecutionError,
    PortBinding,
    PortMappingError,
    parse_port_bindings,
)


class TestContainerHandle:
    """Tests for ContainerHandle."""

    def test_address(self):
        handle = ContainerHandle(id="3f2a9c1b7d4e", host="127.0.0.1", port=49153)

        assert handle.address == "127.0.0.1:49153"

    def test_ipv6_address(self):
        handle = ContainerHandle(id="3f2a9c1b7d4e", host="::1", port=49153)

        assert handle.address == "[::1]:49153"

    def test_immutable(self):
        handle = ContainerHandle(id="3f2a9c1b7d4e", host="127.0.0.1", port=49153)

        with pytest.raises(AttributeError):
            handle.port = 1


class TestPortBindings:
    """Tests for parsing NetworkSettings.Ports entries."""

    def test_parse_daemon_format(self):
        bindings = parse_port_bindings([{"HostIp": "0.0.0.0", "HostPort": "49153"}])

        assert bindings == [PortBinding(host_ip="0.0.0.0", host_port="49153")]
        assert bindings[0].is_wildcard is True

    @pytest.mark.parametrize("raw", [None, []])
    def test_unpublished(self, raw):
        assert parse_port_bindings(raw) == []

    def test_ipv6(self):
        binding = PortBinding(HostIp="::", HostPort="49153")

        assert binding.is_ipv6 is True
        assert binding.is_wildcard is True

    def test_specific_host(self):
        binding = PortBinding(HostIp="10.0.0.5", HostPort="5432")

        assert binding.is_wildcard is False
        assert binding.is_ipv6 is False


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_all_errors_share_base(self):
        assert issubclass(ContainerStartError, DockerTesterException)
        assert issubclass(MigrationExecutionError, MigrationError)
        assert issubclass(MigrationError, DockerTesterException)

    def test_default_start_message(self):
        error = ContainerStartError("docker/getting-started")

        assert str(error) == "Cannot start the image[docker/getting-started] container"
        assert error.error_type is ErrorType.CONTAINER_START

    def test_to_dict(self):
        error = PortMappingError("3f2a9c1b7d4e", "80/tcp", details={"image": "nginx"})

        assert error.to_dict() == {
            "error": "The container[3f2a9c1b7d4e] cannot find NetworkSettings.Ports for 80/tcp",
            "error_type": "port_mapping",
            "image": "nginx",
        }

"""Container data models."""

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


@dataclass(frozen=True)
class ContainerHandle:
    """A running container started for tests.

    The handle is only meaningful while the container is running; it holds no
    connection to the daemon itself.
    """

    id: str
    host: str
    port: int
    image: str = ""

    @property
    def address(self) -> str:
        """Host and port in ``host:port`` form."""
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class PortBinding(BaseModel):
    """One host binding from ``NetworkSettings.Ports`` as the daemon reports it."""

    model_config = ConfigDict(populate_by_name=True)

    host_ip: str = Field(default="", alias="HostIp")
    host_port: str = Field(..., alias="HostPort")

    @property
    def is_ipv6(self) -> bool:
        return ":" in self.host_ip

    @property
    def is_wildcard(self) -> bool:
        return self.host_ip in ("", "0.0.0.0", "::")


PortBindingList = TypeAdapter(List[PortBinding])


def parse_port_bindings(raw) -> List[PortBinding]:
    """Parse the binding list of one exposed port (``None`` when unpublished)."""
    if not raw:
        return []
    return PortBindingList.validate_python(raw)

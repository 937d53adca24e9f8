"""
DNS transport implementations.

Provides the protocol-exchange layer used by the query engine:
- UDP (standard DNS)
- TCP (DNS over TCP)

A transport sends one ``dns.message.Message`` to one server and returns
the parsed response. Timeouts and connection failures are raised to the
caller, which decides whether to fail over.
"""

import asyncio
import ipaddress
import socket
import struct
from abc import ABC, abstractmethod

import dns.message
import dns.query

from .models import Transport


class BaseTransport(ABC):
    """Base class for DNS transports."""

    transport_type: Transport

    @abstractmethod
    async def exchange(
        self,
        message: dns.message.Message,
        host: str,
        port: int = 53,
        timeout: float = 5.0,
    ) -> dns.message.Message:
        """
        Send a DNS query and return the response.

        Raises:
            dns.exception.Timeout, asyncio.TimeoutError: No answer in time
            OSError: Connection failure
        """


class UDPTransport(BaseTransport):
    """Standard DNS over UDP."""

    transport_type = Transport.UDP

    async def exchange(
        self,
        message: dns.message.Message,
        host: str,
        port: int = 53,
        timeout: float = 5.0,
    ) -> dns.message.Message:
        """Send DNS query over UDP."""
        address = await self._resolve_host(host, port, timeout)

        # Run the synchronous UDP query in a thread pool
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: dns.query.udp(
                message,
                address,
                timeout=timeout,
                port=port,
            )
        )

    @staticmethod
    async def _resolve_host(host: str, port: int, timeout: float) -> str:
        """
        Turn a server host name into an address for ``dns.query.udp``.

        Raises:
            OSError: If the name cannot be resolved (``socket.gaierror``)
        """
        try:
            ipaddress.ip_address(host)
        except ValueError:
            pass
        else:
            return host

        loop = asyncio.get_running_loop()
        infos = await asyncio.wait_for(
            loop.getaddrinfo(host, port, type=socket.SOCK_DGRAM),
            timeout=timeout
        )
        return infos[0][4][0]


class TCPTransport(BaseTransport):
    """DNS over TCP."""

    transport_type = Transport.TCP

    async def exchange(
        self,
        message: dns.message.Message,
        host: str,
        port: int = 53,
        timeout: float = 5.0,
    ) -> dns.message.Message:
        """Send DNS query over TCP."""
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout
        )

        try:
            # DNS over TCP requires length prefix
            wire = message.to_wire()
            writer.write(struct.pack("!H", len(wire)) + wire)
            await writer.drain()

            length_data = await asyncio.wait_for(
                reader.readexactly(2),
                timeout=timeout
            )
            response_length = struct.unpack("!H", length_data)[0]

            response_data = await asyncio.wait_for(
                reader.readexactly(response_length),
                timeout=timeout
            )
        finally:
            writer.close()
            await writer.wait_closed()

        response = dns.message.from_wire(response_data)
        if not message.is_response(response):
            raise dns.query.BadResponse()
        return response


def create_transport(transport_type: Transport) -> BaseTransport:
    """
    Create a transport instance for the given type.

    Args:
        transport_type: Type of transport to create

    Returns:
        Appropriate transport instance
    """
    if transport_type == Transport.UDP:
        return UDPTransport()
    elif transport_type == Transport.TCP:
        return TCPTransport()
    else:
        raise ValueError(f"Unknown transport type: {transport_type}")

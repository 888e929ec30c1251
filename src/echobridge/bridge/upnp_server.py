"""SSDP advertiser announcing the emulated bridge on the local network."""

import asyncio
import contextlib
import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)

SSDP_ADDR = "239.255.255.250"
SSDP_PORT = 1900

# These must match what the voice assistant expects from a real bridge
SERVICE_TYPE = "urn:schemas-upnp-org:device:basic:1"
DEVICE_UUID = "2f402f80-da50-11e1-9b23-00178829d301"
BRIDGE_ID_HEADER = "hue-bridgeid"
BRIDGE_ID = "001788FFFE29D301"
MAX_AGE = 5
HTTP_PORT = 8080
SERVER_NAME = "Linux/3.14.0 UPnP/1.0 IpBridge/1.16.0"

SEARCH_TARGETS = ("ssdp:all", "upnp:rootdevice", SERVICE_TYPE, f"uuid:{DEVICE_UUID}")


def determine_outbound_ip(remote: tuple[str, int] = ("8.8.8.8", 80)) -> str:
    """Get the preferred outbound (local) IP of this machine.

    Connecting a UDP socket only selects a route; no packet is sent.

    Raises:
        OSError: If no route to ``remote`` exists
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.connect(remote)
        return sock.getsockname()[0]


def location_url(host_ip: str) -> str:
    return f"http://{host_ip}:{HTTP_PORT}/description.xml"


def _format(start_line: str, headers: list[tuple[str, str]]) -> bytes:
    lines = [start_line] + [f"{name}: {value}" if value else f"{name}:" for name, value in headers]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def build_search_response(location: str, search_target: str) -> bytes:
    """Unicast reply to an M-SEARCH for ``search_target``."""
    st = SERVICE_TYPE if search_target == "ssdp:all" else search_target
    usn = f"uuid:{DEVICE_UUID}" if st == f"uuid:{DEVICE_UUID}" else f"uuid:{DEVICE_UUID}::{st}"
    return _format(
        "HTTP/1.1 200 OK",
        [
            ("CACHE-CONTROL", f"max-age={MAX_AGE}"),
            ("EXT", ""),
            ("LOCATION", location),
            ("SERVER", SERVER_NAME),
            ("ST", st),
            ("USN", usn),
            (BRIDGE_ID_HEADER, BRIDGE_ID),
        ],
    )


def build_notify(location: str, nts: str = "ssdp:alive") -> bytes:
    """Multicast presence announcement (``ssdp:alive`` or ``ssdp:byebye``)."""
    headers = [("HOST", f"{SSDP_ADDR}:{SSDP_PORT}")]
    if nts == "ssdp:alive":
        headers += [
            ("CACHE-CONTROL", f"max-age={MAX_AGE}"),
            ("LOCATION", location),
            ("SERVER", SERVER_NAME),
        ]
    headers += [
        ("NT", SERVICE_TYPE),
        ("NTS", nts),
        ("USN", f"uuid:{DEVICE_UUID}::{SERVICE_TYPE}"),
        (BRIDGE_ID_HEADER, BRIDGE_ID),
    ]
    return _format("NOTIFY * HTTP/1.1", headers)


def parse_message(data: bytes) -> tuple[str, dict[str, str]]:
    """Split an SSDP datagram into its start line and upper-cased headers."""
    lines = data.decode("utf-8", errors="replace").splitlines()
    if not lines:
        return "", {}
    headers = {}
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip().upper()] = value.strip()
    return lines[0].strip(), headers


class SsdpProtocol(asyncio.DatagramProtocol):
    """Datagram protocol forwarding received messages to the server."""

    def __init__(self, server: "UPnPServer"):
        self.server = server
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, address):
        self.server.handle_datagram(data, address)

    def error_received(self, exc):
        logger.warning(f"SSDP socket error: {exc}")

    def connection_lost(self, exc):
        logger.info(f"SSDP socket closed {exc or ''}".rstrip())


class UPnPServer:
    """Answers discovery searches and periodically announces the bridge.

    Discovery notifications from other devices are ignored; no state
    depends on them.
    """

    def __init__(
        self,
        host_ip: str,
        bind_address: str = "0.0.0.0",
        port: int = SSDP_PORT,
        multicast_address: tuple[str, int] = (SSDP_ADDR, SSDP_PORT),
        announce_interval: float = MAX_AGE,
    ):
        """Initialize the advertiser.

        Args:
            host_ip: Outbound IP of this host, used for the location URL
                and as the multicast interface
            bind_address: Address to listen on for searches
            port: UDP port to listen on
            multicast_address: Destination of presence announcements
            announce_interval: Seconds between ``ssdp:alive`` announcements
        """
        self.host_ip = host_ip
        self.location = location_url(host_ip)
        self._bind_address = bind_address
        self._port = port
        self._multicast_address = multicast_address
        self._announce_interval = announce_interval
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._announcer: Optional[asyncio.Task] = None
        self._stopped = asyncio.Event()

    async def start(self) -> None:
        """Open the socket and begin announcing."""
        if self._transport is not None:
            return

        loop = asyncio.get_running_loop()
        sock = self._create_socket()
        self._transport, _ = await loop.create_datagram_endpoint(
            lambda: SsdpProtocol(self), sock=sock
        )
        self._stopped.clear()
        self._send_notify("ssdp:alive")
        self._announcer = asyncio.create_task(self._announce_loop())
        logger.info(f"Advertising bridge at {self.location}")

    async def serve_forever(self) -> None:
        """Start and block the calling task until stop() is called."""
        await self.start()
        try:
            await self._stopped.wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Say goodbye and release the socket."""
        if self._transport is None:
            return

        if self._announcer is not None:
            self._announcer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._announcer
            self._announcer = None

        self._send_notify("ssdp:byebye")
        self._transport.close()
        self._transport = None
        self._stopped.set()
        logger.info("Stopped advertising bridge")

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    def handle_datagram(self, data: bytes, address: tuple[str, int]) -> None:
        """Reply to M-SEARCH requests matching this bridge."""
        start_line, headers = parse_message(data)
        if not start_line.upper().startswith("M-SEARCH"):
            logger.debug(f"Ignoring SSDP message from {address[0]}: {start_line!r}")
            return

        if headers.get("MAN", "").strip('"') != "ssdp:discover":
            logger.debug(f"Ignoring M-SEARCH without ssdp:discover from {address[0]}")
            return

        search_target = headers.get("ST", "")
        if search_target not in SEARCH_TARGETS:
            return

        logger.debug(f"Answering M-SEARCH for {search_target} from {address[0]}:{address[1]}")
        if self._transport is not None:
            self._transport.sendto(build_search_response(self.location, search_target), address)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            with contextlib.suppress(OSError):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        sock.bind((self._bind_address, self._port))
        membership = socket.inet_aton(SSDP_ADDR) + socket.inet_aton(self.host_ip)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(self.host_ip))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
        sock.setblocking(False)
        return sock

    async def _announce_loop(self) -> None:
        while True:
            await asyncio.sleep(self._announce_interval)
            self._send_notify("ssdp:alive")

    def _send_notify(self, nts: str) -> None:
        if self._transport is not None:
            self._transport.sendto(build_notify(self.location, nts), self._multicast_address)

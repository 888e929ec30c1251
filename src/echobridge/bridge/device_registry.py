"""Device registry resolving bridge light IDs to devices."""

import asyncio
from collections.abc import Iterable, Iterator
from typing import Union

from echobridge.devices.base import BaseDevice, DeviceResult


class LightNotFoundError(LookupError):
    """Raised when a light ID does not resolve to a registered device."""

    def __init__(self, light_id: Union[int, str]):
        super().__init__(f"resource, /lights/{light_id}, not available")
        self.light_id = light_id


class DeviceRegistry:
    """Fixed, insertion-ordered collection of devices with 1-based IDs.

    Membership is set at construction and never changes; only the devices'
    own state mutates.
    """

    def __init__(self, devices: Iterable[BaseDevice]):
        self._devices: tuple[BaseDevice, ...] = tuple(devices)

    def resolve(self, light_id: Union[int, str]) -> BaseDevice:
        """Get a device by its external ID.

        Args:
            light_id: 1-based light ID, as an int or a decimal string

        Returns:
            The device at that position

        Raises:
            LightNotFoundError: If the ID is non-numeric or outside 1..len
        """
        if isinstance(light_id, bool):
            raise LightNotFoundError(light_id)
        if isinstance(light_id, str):
            if not light_id.isascii() or not light_id.isdigit():
                raise LightNotFoundError(light_id)
            index = int(light_id)
        elif isinstance(light_id, int):
            index = light_id
        else:
            raise LightNotFoundError(light_id)

        if index < 1 or index > len(self._devices):
            raise LightNotFoundError(light_id)
        return self._devices[index - 1]

    def items(self) -> Iterator[tuple[int, BaseDevice]]:
        """Iterate over (light ID, device) pairs in registration order."""
        return enumerate(self._devices, start=1)

    async def refresh_all(self) -> dict[int, DeviceResult]:
        """Refresh every device concurrently.

        Returns:
            Dictionary mapping light IDs to refresh results
        """
        results = await asyncio.gather(*(device.refresh() for device in self._devices))
        return dict(zip(range(1, len(self._devices) + 1), results))

    def __len__(self) -> int:
        """Return the number of registered devices."""
        return len(self._devices)

    def __iter__(self) -> Iterator[BaseDevice]:
        return iter(self._devices)

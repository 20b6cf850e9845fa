"""
Device registry adapter.

The host application renders devices; the sync engine only ever tells it to
add, update or remove a record. `InMemoryDeviceRegistry` is the adapter used
by the command line runner and the tests.
"""
import logging
from abc import ABC, abstractmethod

from .exceptions import ADTPulseDeviceExists
from .models import DeviceRecord, StableId

logger = logging.getLogger(__name__)


class DeviceRegistry(ABC):
    """Host side device store keyed by stable id"""

    @abstractmethod
    def add(self, device: DeviceRecord) -> None:
        """
        Register a new device.

        Raises:
            ADTPulseDeviceExists: If a device with the same id is registered
        """

    @abstractmethod
    def update(self, device: DeviceRecord) -> None:
        """Overwrite the display fields of a registered device"""

    @abstractmethod
    def remove(self, device: DeviceRecord) -> None:
        """Unregister a device; unknown ids are ignored"""


class InMemoryDeviceRegistry(DeviceRegistry):
    def __init__(self):
        self.devices: dict[StableId, DeviceRecord] = {}

    def add(self, device: DeviceRecord) -> None:
        if device.id in self.devices:
            raise ADTPulseDeviceExists(
                f"Cannot add {device.name} (id: {device.id}, uuid: {device.uuid}) that already exists"
            )
        logger.info("Adding %s (id: %s, uuid: %s) device ...", device.name, device.id, device.uuid)
        self.devices[device.id] = device

    def update(self, device: DeviceRecord) -> None:
        if device.id not in self.devices:
            logger.warning(
                "Attempted to update %s (id: %s, uuid: %s) device that does not exist ...",
                device.name,
                device.id,
                device.uuid,
            )
            return
        logger.debug("Updating %s (id: %s, uuid: %s) device ...", device.name, device.id, device.uuid)
        self.devices[device.id] = device

    def remove(self, device: DeviceRecord) -> None:
        logger.info("Removing %s (id: %s, uuid: %s) device ...", device.name, device.id, device.uuid)
        self.devices.pop(device.id, None)

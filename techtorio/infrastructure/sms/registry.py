"""Runtime registry of SMS relay devices connected for push delivery."""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol


class DeviceRegistry:
    """
    In-memory mapping of relay device ids to phone numbers and live connections.
    Thread-safe; a process restart forgets every connection.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._phones: Dict[str, str] = {}
        self._connections: Dict[str, str] = {}

    def register(self, device_id: str, phone_number: str) -> None:
        with self._lock:
            self._phones[device_id] = phone_number

    def register_connection(self, device_id: str, connection_id: str, phone_number: Optional[str] = None) -> None:
        with self._lock:
            self._connections[device_id] = connection_id
            if phone_number:
                self._phones[device_id] = phone_number

    def unregister_connection(self, connection_id: str) -> None:
        with self._lock:
            for device_id, conn in list(self._connections.items()):
                if conn == connection_id:
                    del self._connections[device_id]

    def unregister(self, device_id: str) -> None:
        with self._lock:
            self._phones.pop(device_id, None)
            self._connections.pop(device_id, None)

    def find_device_id_by_phone(self, phone_number: str) -> Optional[str]:
        with self._lock:
            for device_id, phone in self._phones.items():
                if phone == phone_number:
                    return device_id
        return None

    def find_connection_id(self, device_id: str) -> Optional[str]:
        with self._lock:
            return self._connections.get(device_id)

    def any_connected_device_id(self) -> Optional[str]:
        with self._lock:
            return next(iter(self._connections), None)


class DevicePushService(Protocol):
    def try_push_otp(self, device_id: str, phone_number: str, otp: str, template: Optional[str] = None) -> bool:
        ...

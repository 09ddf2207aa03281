"""Host configuration store for the Start Layout policy values.

Explorer reads two values from the per-user policy key on startup:
StartLayoutFile (path to a layout XML) and LockedStartLayout (1 = enforce it).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

EXPLORER_POLICY_KEY = r"Software\Policies\Microsoft\Windows\Explorer"
START_LAYOUT_FILE = "StartLayoutFile"
LOCKED_START_LAYOUT = "LockedStartLayout"
LAYOUT_VALUES = (START_LAYOUT_FILE, LOCKED_START_LAYOUT)


class HostConfigStore(ABC):
    """
    Typed key-value access to the shell configuration.

    All methods raise OSError when the underlying store rejects the
    operation, which is what winreg does.
    """

    @abstractmethod
    def list_values(self) -> List[str]:
        """Names of all values currently set"""
        pass

    @abstractmethod
    def read_value(self, name: str) -> Optional[Any]:
        """Current data of a value, or None when it does not exist"""
        pass

    @abstractmethod
    def set_string(self, name: str, value: str) -> None:
        """Write an expandable string (REG_EXPAND_SZ)"""
        pass

    @abstractmethod
    def set_flag(self, name: str, value: int) -> None:
        """Write a DWORD"""
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove a value"""
        pass


class RegistryConfigStore(HostConfigStore):
    """HKEY_CURRENT_USER policy key accessed through winreg."""

    def __init__(self, key_path: str = EXPLORER_POLICY_KEY):
        import winreg  # Windows only
        self._winreg = winreg
        self.key_path = key_path

    def _open(self):
        winreg = self._winreg
        return winreg.CreateKeyEx(winreg.HKEY_CURRENT_USER, self.key_path, 0, winreg.KEY_ALL_ACCESS)

    def list_values(self) -> List[str]:
        with self._open() as key:
            _, value_count, _ = self._winreg.QueryInfoKey(key)
            return [self._winreg.EnumValue(key, i)[0] for i in range(value_count)]

    def read_value(self, name: str) -> Optional[Any]:
        with self._open() as key:
            try:
                value, _ = self._winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                return None
        return value

    def set_string(self, name: str, value: str) -> None:
        with self._open() as key:
            self._winreg.SetValueEx(key, name, 0, self._winreg.REG_EXPAND_SZ, value)
        logger.debug(f"[Registry] {name} = '{value}'")

    def set_flag(self, name: str, value: int) -> None:
        with self._open() as key:
            self._winreg.SetValueEx(key, name, 0, self._winreg.REG_DWORD, value)
        logger.debug(f"[Registry] {name} = {value}")

    def delete(self, name: str) -> None:
        with self._open() as key:
            self._winreg.DeleteValue(key, name)
        logger.debug(f"[Registry] Deleted {name}")

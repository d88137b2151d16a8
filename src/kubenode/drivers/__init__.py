from .base import BaseDriver
from .none import DRIVER_NONE, NoneDriver
from .not_supported import NotSupportedDriver
from .registry import new_driver, supported_drivers
from .state import MachineState

__all__ = [
    "BaseDriver",
    "DRIVER_NONE",
    "MachineState",
    "NoneDriver",
    "NotSupportedDriver",
    "new_driver",
    "supported_drivers",
]

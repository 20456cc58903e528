from .bundle import AssetCapabilities, CapabilityBundle, validate_flags
from .models import AssetCapability, BurnCap, FreezeCap, MintCap
from .slot import Slot
from .store import AssetCapabilityStore

__all__ = [
    "AssetCapabilities",
    "AssetCapability",
    "AssetCapabilityStore",
    "BurnCap",
    "CapabilityBundle",
    "FreezeCap",
    "MintCap",
    "Slot",
    "validate_flags",
]

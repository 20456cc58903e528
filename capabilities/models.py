"""Authority tokens scoped to one fungible asset."""

from core.models import Capability, EntityId


class AssetCapability(Capability):
    __slots__ = ()

    @property
    def asset_id(self) -> EntityId:
        return self._entity_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(asset_id={self._entity_id!r})"


class MintCap(AssetCapability):
    """Authority to increase supply and fabricate new value."""

    __slots__ = ()
    kind = "mint"


class FreezeCap(AssetCapability):
    """Authority to set or clear the frozen flag on any holder's sub-account."""

    __slots__ = ()
    kind = "freeze"


class BurnCap(AssetCapability):
    """Authority to decrease supply and destroy value."""

    __slots__ = ()
    kind = "burn"

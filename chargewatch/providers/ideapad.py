"""Charging mode control through the ideapad_acpi sysfs attributes.

Lenovo IdeaPad/Legion firmware exposes battery conservation mode as
``conservation_mode`` under the VPC2004 platform device. Rapid charge is only
present with newer or out-of-tree drivers (``rapid_charge``/``rapidcharge``),
so RapidCharge support is detected separately.
"""

import logging
from pathlib import Path
from typing import Optional

from chargewatch.core.provider import ModeControlProvider
from chargewatch.core.types import PowerMode

log = logging.getLogger(__name__)

_PLATFORM_DRIVERS = Path("/sys/bus/platform/drivers")
_DEVICE_GLOBS = ("ideapad_acpi/VPC2004:*", "legion/PNP0C09:*")
_RAPID_ATTRS = ("rapid_charge", "rapidcharge")


def _find_attr(root: Path, names) -> Optional[Path]:
    for pattern in _DEVICE_GLOBS:
        for device in sorted(root.glob(pattern)):
            for name in names:
                attr = device / name
                if attr.exists():
                    return attr
    return None


def _read_flag(path: Path) -> bool:
    return path.read_text().strip() == "1"


def _write_flag(path: Path, enabled: bool) -> None:
    path.write_text("1" if enabled else "0")


class IdeapadModeProvider(ModeControlProvider):
    """Switches between conservation, normal and rapid charge."""

    def __init__(self, root: Path = _PLATFORM_DRIVERS):
        self._root = Path(root)
        self._conservation: Optional[Path] = None
        self._rapid: Optional[Path] = None
        self._probed = False

    @property
    def name(self) -> str:
        return "ideapad_acpi"

    def _probe(self) -> None:
        if self._probed:
            return
        self._conservation = _find_attr(self._root, ("conservation_mode",))
        self._rapid = _find_attr(self._root, _RAPID_ATTRS)
        self._probed = True
        log.debug("ideapad probe: conservation=%s rapid=%s",
                  self._conservation, self._rapid)

    def is_supported(self) -> bool:
        self._probe()
        return self._conservation is not None

    @property
    def supports_rapid_charge(self) -> bool:
        self._probe()
        return self._rapid is not None

    def get_mode(self) -> PowerMode:
        if not self.is_supported():
            raise OSError("conservation_mode attribute not found")
        if _read_flag(self._conservation):
            return PowerMode.CONSERVATION
        if self._rapid is not None and _read_flag(self._rapid):
            return PowerMode.RAPID_CHARGE
        return PowerMode.NORMAL

    def set_mode(self, mode: PowerMode) -> None:
        if not self.is_supported():
            raise OSError("conservation_mode attribute not found")

        # Always switch the other flag off first so both are never on together.
        if mode == PowerMode.CONSERVATION:
            if self._rapid is not None:
                _write_flag(self._rapid, False)
            _write_flag(self._conservation, True)
        elif mode == PowerMode.RAPID_CHARGE:
            if self._rapid is None:
                raise ValueError("Rapid charge is not supported on this machine")
            _write_flag(self._conservation, False)
            _write_flag(self._rapid, True)
        else:
            _write_flag(self._conservation, False)
            if self._rapid is not None:
                _write_flag(self._rapid, False)

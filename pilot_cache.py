"""Last-known pilot per bulb.

Every setPilot must carry the full state vector or the bulb resets the
missing fields to its defaults, so the bridge keeps the last pilot it saw
(or sent) for each bulb and merges partial changes against it.
"""

import logging
from typing import Dict, Iterator, Optional

from models import Pilot

logger = logging.getLogger(__name__)


class PilotCache:
    """In-memory mapping of bulb MAC to its last-known Pilot.

    One instance is owned by the bridge and handed to the getter and the
    setter. Mutations happen on the event loop thread only.
    """

    def __init__(self):
        self._pilots: Dict[str, Pilot] = {}

    def get(self, mac: str) -> Optional[Pilot]:
        return self._pilots.get(mac)

    def set(self, mac: str, pilot: Pilot):
        self._pilots[mac] = pilot

    def delete(self, mac: str):
        if self._pilots.pop(mac, None) is not None:
            logger.debug(f"Dropped cached pilot for {mac}")

    def __contains__(self, mac: object) -> bool:
        return mac in self._pilots

    def __len__(self) -> int:
        return len(self._pilots)

    def __iter__(self) -> Iterator[str]:
        return iter(self._pilots)

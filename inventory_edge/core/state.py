from dataclasses import dataclass


@dataclass
class ConnectivityState:
    """Connectivity flags shared by a ScanQueue and a SyncEngine.

    One instance is created per application (or per test) and handed to the
    constructors, so independent instances never see each other's flags.
    """

    online: bool = True
    offline_mode: bool = False

    @property
    def serving_offline(self) -> bool:
        return self.offline_mode or not self.online

    def mark_online(self, online: bool) -> bool:
        """Record reachability; True only on an offline -> online transition."""
        reconnected = online and not self.online
        self.online = online
        return reconnected

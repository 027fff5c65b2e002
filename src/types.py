from dataclasses import dataclass, astuple
from typing import Any

ClusterConfig = dict[str, str]
ClusterRecord = dict[str, Any]

HEADER = ('Ver', 'Cluster', 'Port', 'Status', 'Owner', 'Data directory', 'Log file')


@dataclass
class ClusterInfo:
    version: str
    cluster_name: str
    port: str
    state: str
    owner: str
    pgdata: str
    log_file: str

    def cells(self) -> tuple:
        return astuple(self)


@dataclass
class Selection:
    """
    Versions and clusters requested on the command line.
    None means "everything installed".
    """

    version: str | None = None
    cluster: str | None = None

    def pairs(self, provider):
        versions = [self.version] if self.version is not None else provider.get_versions()
        for version in versions:
            clusters = [self.cluster] if self.cluster is not None else provider.get_version_clusters(version)
            for cluster in clusters:
                yield version, cluster

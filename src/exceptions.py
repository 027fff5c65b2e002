# coding: utf8
"""
Describes exception classes used in pglsclusters.
"""


class LsClustersException(Exception):
    """
    Generic pglsclusters exception.
    """

    pass


class InvalidVersion(LsClustersException):
    """
    Version argument is not a version number.
    """

    def __init__(self, version):
        super().__init__('invalid version number: %s' % version)
        self.version = version


class InvalidClusterName(LsClustersException):
    """
    Cluster argument contains forbidden characters.
    """

    def __init__(self, name):
        super().__init__('invalid cluster name: %s' % name)
        self.name = name


class ClusterNotFound(LsClustersException):
    """
    Requested cluster is not configured for requested version.
    """

    def __init__(self, version, name):
        super().__init__(f'cluster {version}/{name} does not exist')
        self.version = version
        self.name = name


class ClusterConfigError(LsClustersException):
    """
    Cluster configuration could not be read.
    """

    pass


class OutputFormatError(LsClustersException):
    """
    Collected cluster records could not be encoded.
    """

    pass

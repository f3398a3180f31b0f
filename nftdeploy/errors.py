class NftDeployException(Exception):
    pass


class NotFoundException(NftDeployException):
    pass


class ConfigurationException(NftDeployException):
    pass


class ArtifactException(NftDeployException):
    pass


class ConstructorArgumentsException(NftDeployException):
    pass


class LedgerException(NftDeployException):
    pass

class IngestInfrastructureError(Exception):
    pass


class DataSourceError(IngestInfrastructureError):
    pass


class DataSourceNotFoundError(DataSourceError):
    pass


class DataSourceIOError(DataSourceError):
    pass


class DataParseError(DataSourceError):
    pass


class TableStoreError(IngestInfrastructureError):
    pass

from ..settings import Settings

class DevelopmentSettings(Settings):
    debug: bool = True
    database_url: str = "duckdb://./data/deliciousbite_dev.duckdb"
    remote_timeout_seconds: float = 5.0

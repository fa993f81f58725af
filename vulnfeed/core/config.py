from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "vulnfeed"
    LOG_LEVEL: str = "INFO"

    # HTTP Settings
    HTTP_TIMEOUT_SECONDS: float = 60.0
    HTTP_USER_AGENT: str = "vulnfeed/0.1"

    # Worker Settings
    WORKER_COUNT: int = 4

    # Spool files are created here; None uses the platform temp directory
    SPOOL_DIR: Optional[str] = None

    # Vulnerability feeds
    ORACLE_BASE_URL: str = "https://linux.oracle.com/security/oval/"
    ORACLE_YEAR_WINDOW: int = 10
    RHEL_MANIFEST_URL: str = "https://access.redhat.com/security/data/oval/v2/PULP_MANIFEST"
    UBUNTU_API_URL: str = "https://api.launchpad.net/1.0/"
    UBUNTU_OVAL_URL: str = "https://security-metadata.canonical.com/oval/com.ubuntu.{release}.cve.oval.xml.bz2"

    # Enrichment feeds
    EPSS_BASE_URL: str = "https://epss.cyentia.com/"
    KEV_FEED_URL: str = "https://www.cisa.gov/sites/default/files/feeds/known_exploited_vulnerabilities.json"

    # Repository to CPE mapping
    REPO2CPE_URL: str = "https://access.redhat.com/security/data/metrics/repository-to-cpe.json"
    MAPPING_REFRESH_INTERVAL_SECONDS: int = 600

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")


settings = Settings()

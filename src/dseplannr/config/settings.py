from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    cutoff_base_url: str = os.getenv("CUTOFF_BASE_URL", "public")
    cutoff_main_document: str = os.getenv("CUTOFF_MAIN_DOCUMENT", "dse-cutoffs.md")
    cutoff_elective_document: str = os.getenv("CUTOFF_ELECTIVE_DOCUMENT", "dse-cutoffs-electives.md")
    cutoff_fetch_timeout: float = _float_env("CUTOFF_FETCH_TIMEOUT", 15.0)

    log_level: str = os.getenv("DSEPLANNR_LOG_LEVEL", "INFO")


settings = Settings()

import os
from typing import List
from dotenv import load_dotenv
load_dotenv()

PLUGIN_ID = "editor-plugins/dbpedia-info-card"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [p.strip() for p in raw.split(",") if p.strip()]


class Settings:
    DBPEDIA_SPARQL_ENDPOINT: str = os.getenv("DBPEDIA_SPARQL_ENDPOINT", "http://dbpedia.org/sparql")
    LOOKUP_TIMEOUT: float = float(os.getenv("LOOKUP_TIMEOUT", "10"))
    LOOKUP_ATTEMPTS: int = int(os.getenv("LOOKUP_ATTEMPTS", "1"))
    WIKIPEDIA_PREFIX: str = os.getenv("WIKIPEDIA_PREFIX", "https://en.wikipedia.org/wiki/")
    TRIM_WHITESPACE_IN_SPAN: bool = _env_bool("TRIM_WHITESPACE_IN_SPAN", "true")
    # rdfs:seeAlso style filter; empty means any predicate is accepted
    SEE_ALSO_PREDICATES: List[str] = _env_list("SEE_ALSO_PREDICATES")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

settings = Settings()

__all__ = ["settings", "Settings", "PLUGIN_ID"]

"""
Configuration settings for the Moray batch benchmark.

Uses Pydantic Settings to load environment variables for shard discovery,
the target bucket, corpus shape, and logging. Defaults reproduce the fixed
values the harness has always run with.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Discovery
    moray_shard: int = Field(1, alias="MORAY_SHARD")
    moray_domain: str = Field("perf2.scloud.host", alias="MORAY_DOMAIN")
    moray_service: str = Field("_moray", alias="MORAY_SERVICE")
    moray_proto: str = Field("_tcp", alias="MORAY_PROTO")
    moray_connect_timeout: float = Field(10.0, alias="MORAY_CONNECT_TIMEOUT")
    moray_connect_attempts: int = Field(1, alias="MORAY_CONNECT_ATTEMPTS")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Benchmark defaults
    bench_bucket: str = Field("rust_batch_test_bucket", alias="BENCH_BUCKET")
    bench_objects: int = Field(10_000, alias="BENCH_OBJECTS")
    bench_batch_size: int = Field(50, alias="BENCH_BATCH_SIZE")
    bench_flush_remainder: bool = Field(False, alias="BENCH_FLUSH_REMAINDER")
    bench_seed: Optional[int] = Field(None, alias="BENCH_SEED")
    bench_seed_store: bool = Field(True, alias="BENCH_SEED_STORE")
    bench_storage_domain: str = Field("domain", alias="BENCH_STORAGE_DOMAIN")
    # JSON object, e.g. {"noCache": true}; sent as the options of every write
    bench_write_options: Dict[str, Any] = Field(default_factory=dict, alias="BENCH_WRITE_OPTIONS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from common.settings import PROJECT_ROOT, settings


class AppConfig(BaseModel):
    data_dir: Path = Path("data")
    db_path: Path = Path("data/kb.sqlite3")


class ChunkingConfig(BaseModel):
    window: int = Field(default=200, ge=1)


class SignatureConfig(BaseModel):
    shingle_size: int = Field(default=5, ge=1)
    num_perm: int = Field(default=128, ge=1)
    seed_base: int = Field(default=0x9E3779B9, ge=0, le=0xFFFFFFFF)


class RetrievalConfig(BaseModel):
    top_k: int = Field(default=6, ge=1)
    shortlist_factor: int = Field(default=8, ge=1)
    approx_scan_ceiling: int = Field(default=5000, ge=0)
    approx_threshold: float = Field(default=0.18, ge=0.0, le=1.0)
    approx_top_n: int = Field(default=6, ge=0)
    approx_score: float = 50.0
    entity_score: float = 999.0
    topic_score: float = 998.0


class IngestionConfig(BaseModel):
    batch_size: int = Field(default=150, ge=1)
    batch_delay: float = Field(default=0.03, ge=0.0)


class DictionaryConfig(BaseModel):
    enabled: bool = True
    path: Path = PROJECT_ROOT / "config" / "knowledge.yaml"


class GlobalYAMLConfig(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    signature: SignatureConfig = Field(default_factory=SignatureConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    dictionary: DictionaryConfig = Field(default_factory=DictionaryConfig)


def load_yaml_config(path: Path | None = None) -> GlobalYAMLConfig:
    """
    Parse the YAML config into typed sections. A missing file means defaults.
    """
    path = Path(path or settings.config_path)
    raw = {}
    if path.exists():
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    cfg = GlobalYAMLConfig(**raw)
    if not cfg.dictionary.path.is_absolute():
        cfg.dictionary.path = PROJECT_ROOT / cfg.dictionary.path
    if settings.db_path is not None:
        cfg.app.db_path = settings.db_path
    return cfg


yaml_config = load_yaml_config()

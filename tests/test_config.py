import logging

import pytest
from pydantic import ValidationError

from common.config import GlobalYAMLConfig, RetrievalConfig, load_yaml_config
from common.errors import PayloadError
from common.logger import get_logger, set_log_level


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_yaml_config(tmp_path / "missing.yaml")
    assert cfg.chunking.window == 200
    assert cfg.signature.num_perm == 128
    assert cfg.signature.seed_base == 0x9E3779B9
    assert cfg.retrieval.approx_scan_ceiling == 5000
    assert cfg.ingestion.batch_size == 150


def test_yaml_sections_override_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("chunking:\n  window: 50\nretrieval:\n  top_k: 3\n")
    cfg = load_yaml_config(path)
    assert cfg.chunking.window == 50
    assert cfg.retrieval.top_k == 3
    assert cfg.retrieval.approx_threshold == 0.18
    assert cfg.dictionary.path.is_absolute()


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        RetrievalConfig(approx_threshold=1.5)
    with pytest.raises(ValidationError):
        GlobalYAMLConfig(chunking={"window": 0})


def test_payload_error_is_value_error():
    err = PayloadError("bad", index=3, errors=[{"loc": ("id",)}])
    assert isinstance(err, ValueError)
    assert err.to_dict() == {"message": "bad", "index": 3, "errors": [{"loc": ("id",)}]}


def test_set_log_level():
    log = get_logger("kb.test_config")
    set_log_level("DEBUG")
    assert log.level == logging.DEBUG
    set_log_level(logging.INFO)
    assert log.level == logging.INFO

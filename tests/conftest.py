import pytest

from common.config import GlobalYAMLConfig, IngestionConfig, RetrievalConfig
from common.errors import StoreError
from ingestion.scheduler import BatchScheduler
from kbstore.memory_store import MemoryStore
from retrieval.matchers import KnowledgeDictionary
from retrieval.service import KnowledgeBaseService


class FlakyStore(MemoryStore):
    """MemoryStore whose individual operations can be switched to fail."""

    def __init__(self, fail_postings=False, fail_signatures=False, fail_reads=False):
        super().__init__()
        self.fail_postings = fail_postings
        self.fail_signatures = fail_signatures
        self.fail_reads = fail_reads

    def put_posting(self, term, ids):
        if self.fail_postings:
            raise StoreError("quota exceeded")
        super().put_posting(term, ids)

    def put_signature(self, chunk_id, signature):
        if self.fail_signatures:
            raise StoreError("quota exceeded")
        super().put_signature(chunk_id, signature)

    def get_posting(self, term):
        if self.fail_reads:
            raise StoreError("store unavailable")
        return super().get_posting(term)

    def scan_signatures(self):
        if self.fail_reads:
            raise StoreError("store unavailable")
        yield from super().scan_signatures()

    def count(self, store_name):
        if self.fail_reads:
            raise StoreError("store unavailable")
        return super().count(store_name)


@pytest.fixture
def flaky_store():
    return FlakyStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def scheduler():
    return BatchScheduler(batch_size=2, delay=0.0, pause=lambda _: None)


@pytest.fixture
def test_config():
    # a high threshold keeps approximate hits out of lexical ranking checks
    return GlobalYAMLConfig(
        retrieval=RetrievalConfig(approx_threshold=0.5),
        ingestion=IngestionConfig(batch_delay=0.0),
    )


@pytest.fixture
def kb(store, test_config):
    service = KnowledgeBaseService(store, config=test_config, dictionary=KnowledgeDictionary())
    yield service
    service.close()
